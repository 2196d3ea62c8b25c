"""
Video transcoding with ffmpeg.

Every status video is normalised to H.264/AAC MP4 inside a fixed bitrate and
resolution envelope so clients can stream it without probing.
"""
import logging
import subprocess
from typing import List, Optional, Tuple

from app.core.config import settings
from app.core.errors import ProcessingError
from app.modules.media.validation import VideoMetadata, command_timeout

logger = logging.getLogger(__name__)

TARGET_BITRATE_KBPS = 1500
TARGET_FRAMERATE = 30
TARGET_WIDTH = 720
TARGET_HEIGHT = 1280
AUDIO_BITRATE_KBPS = 128
THUMBNAIL_POSITION = 0.1


def _run_ffmpeg(args: List[str], action: str, deadline: Optional[float] = None) -> None:
    cmd = [settings.FFMPEG_BINARY, "-y", "-hide_banner", "-loglevel", "error", *args]
    timeout = command_timeout(deadline)
    logger.debug(f"Running ffmpeg for {action}: {' '.join(cmd)}")
    try:
        # On timeout subprocess.run kills the child before raising
        subprocess.run(cmd, capture_output=True, check=True, timeout=timeout)
    except subprocess.CalledProcessError as e:
        logger.error(f"ffmpeg {action} failed: {e.stderr.decode(errors='ignore').strip()}")
        raise ProcessingError(f"Video {action} failed") from e
    except subprocess.TimeoutExpired as e:
        logger.error(f"ffmpeg {action} timed out after {timeout:.1f}s")
        raise ProcessingError(f"Video {action} timed out") from e
    except FileNotFoundError as e:
        logger.error(f"ffmpeg binary not found: {settings.FFMPEG_BINARY}")
        raise ProcessingError("Video processing is not available") from e


def _even(value: float) -> int:
    return max(2, int(value) // 2 * 2)


def target_dimensions(width: int, height: int) -> Tuple[int, int]:
    """Fit the source inside 720x1280 (or 1280x720 for landscape), never upscaling"""
    if width <= 0 or height <= 0:
        return TARGET_WIDTH, TARGET_HEIGHT

    if width > height:
        max_width, max_height = TARGET_HEIGHT, TARGET_WIDTH
    else:
        max_width, max_height = TARGET_WIDTH, TARGET_HEIGHT

    ratio = min(1.0, max_width / width, max_height / height)
    return _even(width * ratio), _even(height * ratio)


def build_transcode_args(src: str, dst: str, metadata: VideoMetadata) -> List[str]:
    width, height = target_dimensions(metadata.width, metadata.height)
    frame_rate = min(metadata.frame_rate or TARGET_FRAMERATE, TARGET_FRAMERATE)

    args = [
        "-i", src,
        "-map", "0:v:0",
        "-c:v", "libx264",
        "-preset", "fast",
        "-crf", "23",
        "-b:v", f"{TARGET_BITRATE_KBPS}k",
        "-maxrate", f"{TARGET_BITRATE_KBPS}k",
        "-bufsize", f"{TARGET_BITRATE_KBPS * 2}k",
        "-vf", f"scale={width}:{height}",
        "-r", f"{frame_rate:g}",
        "-pix_fmt", "yuv420p",
    ]

    if metadata.has_audio:
        args += ["-map", "0:a:0", "-c:a", "aac", "-b:a", f"{AUDIO_BITRATE_KBPS}k"]
        if metadata.audio_channels:
            args += ["-ac", str(min(metadata.audio_channels, 2))]
    else:
        # No audio track in the source, so none in the output
        args.append("-an")

    args += ["-movflags", "+faststart", "-f", "mp4", dst]
    return args


def transcode_video(src: str, dst: str, metadata: VideoMetadata, deadline: Optional[float] = None) -> None:
    """Transcode src into an MP4 at dst"""
    logger.info(
        f"Transcoding video {metadata.width}x{metadata.height} {metadata.duration:.1f}s "
        f"(audio: {metadata.has_audio})"
    )
    _run_ffmpeg(build_transcode_args(src, dst, metadata), "transcoding", deadline)


def extract_thumbnail(src: str, dst: str, metadata: VideoMetadata, deadline: Optional[float] = None) -> bytes:
    """Grab one JPEG frame at 10% of the duration"""
    position = max(0.0, metadata.duration * THUMBNAIL_POSITION)
    _run_ffmpeg(
        ["-ss", f"{position:.3f}", "-i", src, "-frames:v", "1", "-q:v", "2", "-f", "image2", dst],
        "thumbnail extraction",
        deadline,
    )
    with open(dst, "rb") as f:
        data = f.read()
    if not data:
        raise ProcessingError("Thumbnail extraction produced no output")
    return data
