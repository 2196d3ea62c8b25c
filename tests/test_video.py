import json
import os
import shutil
import subprocess
import time

import pytest

from app.core.config import settings
from app.core.errors import ProcessingError, ValidationError
from app.modules.media import service as media_service
from app.modules.media.validation import (
    VideoMetadata,
    _detect_video_type,
    _parse_frame_rate,
    command_timeout,
    validate_video,
)
from app.modules.media.video import build_transcode_args, target_dimensions

requires_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg and ffprobe are required",
)


def _metadata(**overrides):
    values = dict(
        mime_type="video/mp4", duration=5.0, width=1080, height=1920,
        frame_rate=60.0, has_audio=True, audio_channels=6, audio_sample_rate=48000,
    )
    values.update(overrides)
    return VideoMetadata(**values)


def _make_clip(path, seconds=2, with_audio=False, size="320x240"):
    args = ["ffmpeg", "-y", "-loglevel", "error", "-f", "lavfi", "-i", f"testsrc=duration={seconds}:size={size}:rate=25"]
    if with_audio:
        args += ["-f", "lavfi", "-i", f"sine=frequency=440:duration={seconds}", "-c:a", "aac"]
    args += ["-c:v", "libx264", "-pix_fmt", "yuv420p", "-shortest", path]
    subprocess.run(args, check=True, capture_output=True)


def _audio_stream_count(data, tmp_path):
    path = tmp_path / "check.mp4"
    path.write_bytes(data)
    probe = subprocess.run(
        ["ffprobe", "-v", "error", "-print_format", "json", "-show_streams", str(path)],
        check=True, capture_output=True,
    )
    streams = json.loads(probe.stdout)["streams"]
    return sum(1 for s in streams if s.get("codec_type") == "audio")


def test_target_dimensions_fit_portrait_and_landscape_without_upscaling():
    assert target_dimensions(1080, 1920) == (720, 1280)
    assert target_dimensions(1920, 1080) == (1280, 720)
    assert target_dimensions(320, 240) == (320, 240)
    assert target_dimensions(0, 0) == (720, 1280)


def test_transcode_args_cap_frame_rate_and_downmix_audio():
    args = build_transcode_args("in.mov", "out.mp4", _metadata())

    assert args[args.index("-c:v") + 1] == "libx264"
    assert args[args.index("-r") + 1] == "30"
    assert args[args.index("-vf") + 1] == "scale=720:1280"
    assert args[args.index("-c:a") + 1] == "aac"
    assert args[args.index("-ac") + 1] == "2"
    assert "-an" not in args
    assert args[-1] == "out.mp4"


def test_transcode_args_drop_audio_when_source_has_none():
    args = build_transcode_args("in.mp4", "out.mp4", _metadata(has_audio=False, audio_channels=0))

    assert "-an" in args
    assert "-c:a" not in args
    assert "0:a:0" not in args


def test_frame_rate_parsing():
    assert _parse_frame_rate("30000/1001") == pytest.approx(29.97, rel=1e-3)
    assert _parse_frame_rate("0/0") == 0.0
    assert _parse_frame_rate(None) == 0.0
    assert _parse_frame_rate("25") == 25.0


def test_command_timeout_is_capped_by_remaining_deadline():
    assert command_timeout() == settings.MEDIA_PROCESSING_TIMEOUT_SECONDS
    assert 0 < command_timeout(time.monotonic() + 2) <= 2

    with pytest.raises(ProcessingError):
        command_timeout(time.monotonic() - 1)


def test_container_detection_uses_probe_format():
    assert _detect_video_type({"format": {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", "tags": {"major_brand": "isom"}}})[0] == "video/mp4"
    assert _detect_video_type({"format": {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", "tags": {"major_brand": "qt  "}}})[0] == "video/quicktime"
    assert _detect_video_type({"format": {"format_name": "matroska,webm"}})[0] == "video/webm"
    assert _detect_video_type({"format": {"format_name": "gif"}}) is None


def test_oversized_video_is_rejected_before_probing(tmp_path):
    path = tmp_path / "big.mp4"
    path.write_bytes(b"0")

    with pytest.raises(ValidationError):
        validate_video(str(path), 11 * 1024 * 1024)


@requires_ffmpeg
def test_non_video_bytes_are_rejected(tmp_path):
    path = tmp_path / "notes.mp4"
    path.write_bytes(b"plain text pretending to be a movie\n" * 20)

    with pytest.raises(ValidationError):
        validate_video(str(path), path.stat().st_size)


@requires_ffmpeg
def test_silent_clip_transcodes_without_audio_track(tmp_path):
    src = tmp_path / "silent.mp4"
    _make_clip(str(src), with_audio=False)

    output, blur_hash, duration_millis = media_service.prepare_video(src.read_bytes(), "silent.mp4")

    assert output
    assert blur_hash
    assert 1500 <= duration_millis <= 2500
    assert _audio_stream_count(output, tmp_path) == 0


@requires_ffmpeg
def test_clip_with_audio_keeps_one_audio_track(tmp_path):
    src = tmp_path / "tone.mp4"
    _make_clip(str(src), with_audio=True)

    output, _, _ = media_service.prepare_video(src.read_bytes(), "tone.mp4")

    assert _audio_stream_count(output, tmp_path) == 1


@requires_ffmpeg
def test_temp_files_are_removed_after_failure(tmp_path, monkeypatch):
    created = []
    original = media_service.tempfile.TemporaryDirectory

    def tracking(*args, **kwargs):
        directory = original(*args, **kwargs)
        created.append(directory.name)
        return directory

    monkeypatch.setattr(media_service.tempfile, "TemporaryDirectory", tracking)

    with pytest.raises(ValidationError):
        media_service.prepare_video(b"garbage" * 100, "clip.mp4")

    assert created
    assert not any(os.path.exists(path) for path in created)
