import asyncio
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from starlette.concurrency import run_in_threadpool

from app.core.errors import ProcessingError
from app.core.storage import StorageClient, build_object_path
from app.modules.media import blurhash
from app.modules.media.images import CompressedImage, compress_image, profile_for
from app.modules.media.validation import MediaCategory, validate_image, validate_video
from app.modules.media.video import extract_thumbnail, transcode_video

logger = logging.getLogger(__name__)


@dataclass
class MediaUploadResult:
    url: str
    mime_type: str
    blur_hash: Optional[str] = None
    duration_millis: int = 0


def _blur_hash(data: bytes) -> str:
    try:
        return blurhash.blur_hash_for_bytes(data)
    except (OSError, ValueError) as e:
        logger.error(f"BlurHash generation failed: {e}")
        raise ProcessingError("Failed to generate image placeholder") from e


def prepare_image(data: bytes, category: MediaCategory) -> Tuple[CompressedImage, str]:
    """Validate, hash and compress image bytes. CPU bound, run it off the event loop."""
    info = validate_image(data, category)
    # Hash the original so the placeholder matches what the uploader saw
    blur_hash = _blur_hash(data)
    compressed = compress_image(data, info, profile_for(category))
    return compressed, blur_hash


def prepare_video(
    data: bytes, filename: Optional[str] = None, deadline: Optional[float] = None
) -> Tuple[bytes, str, int]:
    """
    Validate and transcode a video, returning (mp4 bytes, blur hash of the thumbnail, duration in ms).
    All intermediate files live in a private temp directory removed on every exit path.
    deadline is an absolute time.monotonic() value; each ffmpeg call is killed when it passes.
    """
    extension = os.path.splitext(filename or "")[1].lower() or ".bin"
    with tempfile.TemporaryDirectory(prefix="status_video_") as workdir:
        src = os.path.join(workdir, f"input{extension}")
        dst = os.path.join(workdir, "output.mp4")
        thumb = os.path.join(workdir, "thumbnail.jpg")

        with open(src, "wb") as f:
            f.write(data)

        metadata = validate_video(src, len(data), deadline)
        transcode_video(src, dst, metadata, deadline)
        thumbnail = extract_thumbnail(dst, thumb, metadata, deadline)

        with open(dst, "rb") as f:
            output = f.read()
        if not output:
            raise ProcessingError("Video transcoding produced no output")

    logger.info(f"Transcoded video from {len(data)} to {len(output)} bytes")
    return output, _blur_hash(thumbnail), int(metadata.duration * 1000)


class MediaService:
    """Runs the validate → compress/transcode → hash → upload pipeline"""

    def __init__(self, storage: StorageClient, request_timeout: float = 180.0):
        self.storage = storage
        self.request_timeout = request_timeout

    async def _with_deadline(self, coro, timeout: Optional[float] = None):
        timeout = self.request_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(coro, timeout=max(timeout, 0))
        except asyncio.TimeoutError as e:
            logger.error(f"Media pipeline exceeded {self.request_timeout}s deadline")
            raise ProcessingError("Media processing timed out") from e

    async def upload_image(self, data: bytes, folder: str = "status_images") -> MediaUploadResult:
        """Compress an image and upload it; profile folders get the profile-picture profile"""
        category = MediaCategory.for_folder(folder)

        async def pipeline() -> MediaUploadResult:
            compressed, blur_hash = await run_in_threadpool(prepare_image, data, category)
            path = build_object_path(folder, "image", compressed.format.extension)
            url = await self.storage.upload(compressed.data, path, compressed.format.mime_type)
            return MediaUploadResult(url=url, mime_type=compressed.format.mime_type, blur_hash=blur_hash)

        return await self._with_deadline(pipeline())

    async def upload_video(
        self, data: bytes, filename: Optional[str] = None, folder: str = "status_videos"
    ) -> MediaUploadResult:
        """Transcode a video, hash its thumbnail and upload the MP4"""
        base = os.path.splitext(os.path.basename(filename or "video"))[0]
        base = re.sub(r"[^A-Za-z0-9_-]", "_", base)[:40] or "video"

        deadline = time.monotonic() + self.request_timeout
        # prepare_video stops at the deadline itself, so no ffmpeg child or temp dir outlives this await
        output, blur_hash, duration_millis = await run_in_threadpool(prepare_video, data, filename, deadline)

        path = build_object_path(folder, f"video_{base}", "mp4")
        url = await self._with_deadline(
            self.storage.upload(output, path, "video/mp4"), deadline - time.monotonic()
        )
        return MediaUploadResult(url=url, mime_type="video/mp4", blur_hash=blur_hash, duration_millis=duration_millis)

    def object_path(self, url: str) -> str:
        """Bucket-relative path of a public URL; ValidationError for foreign URLs"""
        return self.storage.path_from_url(url)

    async def delete(self, url: str) -> None:
        await self.storage.delete(url)

    async def discard(self, url: Optional[str]) -> None:
        """Best-effort removal of an asset whose owning write failed; never raises"""
        if not url:
            return
        try:
            await self.storage.delete(url)
            logger.info(f"Removed orphaned upload {url}")
        except Exception as e:
            logger.error(f"Failed to remove orphaned upload {url}: {e}")
