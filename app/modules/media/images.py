"""
Image compression.

Scales images into a size band and re-encodes them until they fit a byte
budget. Lossy sources walk JPEG quality down in fixed steps. Lossless sources
keep their format unless they stay over budget.
"""
import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps

from app.core.errors import ProcessingError
from app.modules.media.validation import ImageFormat, ImageInfo, MediaCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressionProfile:
    target_size_kb: int
    max_dimension: int
    min_quality: int  # percent

    @property
    def target_bytes(self) -> int:
        return self.target_size_kb * 1024


STANDARD_PROFILE = CompressionProfile(target_size_kb=100, max_dimension=1024, min_quality=10)
PROFILE_PICTURE_PROFILE = CompressionProfile(target_size_kb=500, max_dimension=2048, min_quality=80)

START_QUALITY = 90
QUALITY_STEP = 10


def profile_for(category: MediaCategory) -> CompressionProfile:
    return PROFILE_PICTURE_PROFILE if category == MediaCategory.PROFILE else STANDARD_PROFILE


@dataclass
class CompressedImage:
    data: bytes
    format: ImageFormat
    width: int
    height: int


def scale_image(img: Image.Image, max_dimension: int) -> Image.Image:
    """Shrink so the longest side is at most max_dimension, keeping aspect ratio"""
    width, height = img.size
    if max(width, height) <= max_dimension:
        return img

    ratio = max_dimension / max(width, height)
    new_size = (max(1, round(width * ratio)), max(1, round(height * ratio)))
    logger.debug(f"Resizing image from {width}x{height} to {new_size[0]}x{new_size[1]}")
    return img.resize(new_size, Image.Resampling.LANCZOS)


def _to_rgb(img: Image.Image) -> Image.Image:
    if img.mode == "RGB":
        return img
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return img.convert("RGB")


def encode_jpeg(img: Image.Image, target_bytes: int, min_quality: int) -> bytes:
    """Encode as JPEG, lowering quality until the output fits or the floor is reached"""
    rgb = _to_rgb(img)
    quality = START_QUALITY
    while True:
        buffer = io.BytesIO()
        rgb.save(buffer, format="JPEG", quality=quality, optimize=True)
        output = buffer.getvalue()
        logger.debug(f"JPEG at quality {quality}: {len(output)} bytes")
        quality -= QUALITY_STEP
        if len(output) <= target_bytes or quality < min_quality:
            return output


def encode_native(img: Image.Image, image_format: ImageFormat) -> bytes:
    buffer = io.BytesIO()
    if image_format == ImageFormat.WEBP:
        img.save(buffer, format="WEBP", lossless=True)
    elif image_format == ImageFormat.BMP and img.mode not in ("1", "L", "P", "RGB"):
        _to_rgb(img).save(buffer, format="BMP")
    else:
        img.save(buffer, format=image_format.pil_name, optimize=True)
    return buffer.getvalue()


def _compress(img: Image.Image, info: ImageInfo, profile: CompressionProfile) -> CompressedImage:
    img = ImageOps.exif_transpose(img)
    scaled = scale_image(img, profile.max_dimension)
    width, height = scaled.size

    if info.format.is_lossy:
        data = encode_jpeg(scaled, profile.target_bytes, profile.min_quality)
        return CompressedImage(data, ImageFormat.JPEG, width, height)

    try:
        data = encode_native(scaled, info.format)
    except (OSError, ValueError) as e:
        logger.warning(f"Native {info.format.pil_name} encode failed, using JPEG: {e}")
        data = b""

    if data and len(data) <= profile.target_bytes:
        return CompressedImage(data, info.format, width, height)

    data = encode_jpeg(scaled, profile.target_bytes, profile.min_quality)
    return CompressedImage(data, ImageFormat.JPEG, width, height)


def _fallback_jpeg(data: bytes, profile: CompressionProfile) -> CompressedImage:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        scaled = scale_image(_to_rgb(img), profile.max_dimension)
        output = encode_jpeg(scaled, profile.target_bytes, profile.min_quality)
        return CompressedImage(output, ImageFormat.JPEG, scaled.size[0], scaled.size[1])


def compress_image(data: bytes, info: ImageInfo, profile: CompressionProfile = STANDARD_PROFILE) -> CompressedImage:
    """Compress validated image bytes into the profile's size band"""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            result = _compress(img, info, profile)
    except (OSError, ValueError) as e:
        logger.warning(f"Image compression failed, retrying as plain JPEG: {e}")
        try:
            result = _fallback_jpeg(data, profile)
        except (OSError, ValueError) as fallback_error:
            logger.error(f"JPEG fallback failed: {fallback_error}")
            raise ProcessingError("Image processing failed") from fallback_error

    if not result.data:
        raise ProcessingError("Image processing produced no output")

    logger.info(
        f"Compressed {info.format.pil_name} {info.width}x{info.height} ({len(data)} bytes) "
        f"to {result.format.pil_name} {result.width}x{result.height} ({len(result.data)} bytes)"
    )
    return result
