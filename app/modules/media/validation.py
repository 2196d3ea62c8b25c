"""
Media validation.

Inspects uploaded bytes to find their real type. Filenames and client-declared
content types are never trusted. Every rejection is a ValidationError so
routers answer with 4xx.
"""
import enum
import io
import json
import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from app.core.config import settings
from app.core.errors import ProcessingError, ValidationError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_MB = 20
MAX_IMAGE_DIMENSION = 4096
MAX_VIDEO_SIZE_MB = 10
MAX_VIDEO_DURATION_SECONDS = 60


class MediaCategory(str, enum.Enum):
    GENERAL = "general"
    PROFILE = "profile"

    @classmethod
    def for_folder(cls, folder: str) -> "MediaCategory":
        return cls.PROFILE if "profile" in folder.lower() else cls.GENERAL


class ImageFormat(enum.Enum):
    # (Pillow format name, mime type, extension, lossy)
    JPEG = ("JPEG", "image/jpeg", "jpg", True)
    PNG = ("PNG", "image/png", "png", False)
    WEBP = ("WEBP", "image/webp", "webp", False)
    GIF = ("GIF", "image/gif", "gif", False)
    BMP = ("BMP", "image/bmp", "bmp", False)
    TIFF = ("TIFF", "image/tiff", "tiff", False)

    def __init__(self, pil_name, mime_type, extension, is_lossy):
        self.pil_name = pil_name
        self.mime_type = mime_type
        self.extension = extension
        self.is_lossy = is_lossy

    @classmethod
    def from_pil(cls, pil_format: Optional[str]) -> Optional["ImageFormat"]:
        if pil_format == "MPO":
            # Multi-picture JPEGs written by phone cameras
            return cls.JPEG
        for fmt in cls:
            if fmt.pil_name == pil_format:
                return fmt
        return None


@dataclass
class ImageInfo:
    format: ImageFormat
    width: int
    height: int

    @property
    def mime_type(self) -> str:
        return self.format.mime_type


SUPPORTED_VIDEO_TYPES = {
    "mp4": ("video/mp4", "mp4"),
    "mov": ("video/quicktime", "mov"),
    "webm": ("video/webm", "webm"),
    "matroska": ("video/x-matroska", "mkv"),
    "avi": ("video/x-msvideo", "avi"),
}


@dataclass
class VideoMetadata:
    mime_type: str
    duration: float
    width: int
    height: int
    frame_rate: float
    has_audio: bool
    audio_channels: int = 0
    audio_sample_rate: int = 0


def validate_image(data: bytes, category: MediaCategory = MediaCategory.GENERAL) -> ImageInfo:
    """Sniff the image format from its bytes and enforce size limits"""
    if not data:
        raise ValidationError("Uploaded file is empty")

    if len(data) > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise ValidationError(f"File size exceeds {MAX_FILE_SIZE_MB}MB limit")

    try:
        with Image.open(io.BytesIO(data)) as img:
            pil_format = img.format
            width, height = img.size
            img.verify()
    except Image.DecompressionBombError:
        raise ValidationError(
            f"Image dimensions exceed maximum allowed {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.info(f"Rejected unreadable image upload: {e}")
        raise ValidationError("Unsupported or corrupted image file")

    image_format = ImageFormat.from_pil(pil_format)
    if image_format is None:
        raise ValidationError(f"Unsupported image type: {pil_format}")

    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValidationError(
            f"Image dimensions exceed maximum allowed {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )

    logger.debug(f"Validated {category.value} image: {image_format.mime_type} {width}x{height}")
    return ImageInfo(format=image_format, width=width, height=height)


def command_timeout(deadline: Optional[float] = None) -> float:
    """Seconds a media subprocess may run, capped by an absolute time.monotonic() deadline"""
    timeout = settings.MEDIA_PROCESSING_TIMEOUT_SECONDS
    if deadline is None:
        return timeout

    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise ProcessingError("Media processing timed out")
    return min(timeout, remaining)


def probe_video(path: str, deadline: Optional[float] = None) -> dict:
    """Run ffprobe and return its JSON description of the container"""
    cmd = [
        settings.FFPROBE_BINARY,
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        path,
    ]
    timeout = command_timeout(deadline)
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        logger.info(f"ffprobe could not read upload: {e.stderr.decode(errors='ignore').strip()}")
        raise ValidationError("Unsupported or corrupted video file")
    except subprocess.TimeoutExpired:
        raise ProcessingError("Timed out inspecting video")
    except FileNotFoundError:
        logger.error(f"ffprobe binary not found: {settings.FFPROBE_BINARY}")
        raise ProcessingError("Video processing is not available")

    return json.loads(result.stdout or b"{}")


def _parse_frame_rate(value: Optional[str]) -> float:
    if not value or value == "0/0":
        return 0.0
    if "/" in value:
        num, den = value.split("/", 1)
        return float(num) / float(den) if float(den) else 0.0
    return float(value)


def _detect_video_type(probe: dict) -> Optional[tuple]:
    fmt = probe.get("format", {})
    names = fmt.get("format_name", "").split(",")
    if "mp4" in names or "mov" in names:
        brand = fmt.get("tags", {}).get("major_brand", "").strip()
        return SUPPORTED_VIDEO_TYPES["mov" if brand == "qt" else "mp4"]
    if "webm" in names:
        return SUPPORTED_VIDEO_TYPES["webm"]
    if "matroska" in names:
        return SUPPORTED_VIDEO_TYPES["matroska"]
    if "avi" in names:
        return SUPPORTED_VIDEO_TYPES["avi"]
    return None


def validate_video(path: str, size: int, deadline: Optional[float] = None) -> VideoMetadata:
    """Probe a video on disk and enforce type, size and duration limits"""
    if size <= 0:
        raise ValidationError("Uploaded file is empty")

    if size > MAX_VIDEO_SIZE_MB * 1024 * 1024:
        raise ValidationError(f"Video size exceeds {MAX_VIDEO_SIZE_MB}MB limit")

    probe = probe_video(path, deadline)
    video_type = _detect_video_type(probe)
    if video_type is None:
        raise ValidationError("Unsupported video type")

    streams = probe.get("streams", [])
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
    if video is None:
        raise ValidationError("File has no video stream")

    duration = float(probe.get("format", {}).get("duration") or video.get("duration") or 0)
    if duration <= 0:
        raise ValidationError("Could not determine video duration")
    if duration > MAX_VIDEO_DURATION_SECONDS:
        raise ValidationError(f"Video duration exceeds {MAX_VIDEO_DURATION_SECONDS} seconds")

    frame_rate = _parse_frame_rate(video.get("avg_frame_rate")) or _parse_frame_rate(video.get("r_frame_rate"))

    return VideoMetadata(
        mime_type=video_type[0],
        duration=duration,
        width=int(video.get("width", 0)),
        height=int(video.get("height", 0)),
        frame_rate=frame_rate,
        has_audio=audio is not None,
        audio_channels=int(audio.get("channels", 0)) if audio else 0,
        audio_sample_rate=int(audio.get("sample_rate", 0)) if audio else 0,
    )
