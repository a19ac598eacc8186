"""Input video validation - checks run before any editor state is created"""

import mimetypes
from pathlib import Path
from typing import Optional

from config import settings
from models.video import VideoSource
from utils.logger import logger
from .ffmpeg_utils import FFmpegUtils


ALLOWED_MIME_TYPES = (
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/x-msvideo",
    "video/x-matroska",
    "video/ogg",
)

# mimetypes does not know every container on every platform
EXTENSION_MIME_TYPES = {
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".ogg": "video/ogg",
    ".ogv": "video/ogg",
}


class VideoValidationError(ValueError):
    """The input cannot be edited; the message is shown to the user as is"""
    pass


def guess_mime_type(filename: str) -> Optional[str]:
    suffix = Path(filename).suffix.lower()
    if suffix in EXTENSION_MIME_TYPES:
        return EXTENSION_MIME_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type


def validate_video_file(size_bytes: int, mime_type: Optional[str], max_bytes: Optional[int] = None) -> None:
    """
    Check container type and size of an upload.

    Raises:
        VideoValidationError: Unsupported type or file too large
    """
    max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
    if mime_type not in ALLOWED_MIME_TYPES:
        raise VideoValidationError(
            f"Unsupported format: {mime_type or 'unknown'}. Please use MP4, WebM, MOV, AVI, or MKV."
        )
    if size_bytes > max_bytes:
        size_mb = f"{size_bytes / (1024 * 1024):.1f}"
        max_mb = max_bytes // (1024 * 1024)
        raise VideoValidationError(f"File too large ({size_mb}MB). Maximum size is {max_mb}MB.")


def validate_metadata(duration: float, width: int, height: int) -> None:
    """Probed (or caller-supplied) metadata must describe a playable clip"""
    if not duration or duration <= 0:
        raise VideoValidationError("Could not read video duration. The file may be corrupted.")
    if not width or not height or width <= 0 or height <= 0:
        raise VideoValidationError("Could not read video dimensions. The file may be corrupted.")


def probe_video(path: str) -> dict:
    """ffprobe metadata: duration, width, height, fps"""
    info = FFmpegUtils.get_video_info(path)
    if info is None:
        raise VideoValidationError("Could not read video metadata. The file may be corrupted.")
    return info


def load_video_source(
    path: str,
    mime_type: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> VideoSource:
    """
    Validate a file on disk and describe it as a VideoSource.

    Args:
        path: Video file
        mime_type: Declared type; guessed from the extension when omitted
        metadata: {duration, width, height[, fps]}; probed with ffprobe when omitted

    Raises:
        VideoValidationError
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise VideoValidationError(f"File not found: {file_path.name}")

    size_bytes = file_path.stat().st_size
    mime_type = mime_type or guess_mime_type(file_path.name)
    validate_video_file(size_bytes, mime_type)

    metadata = metadata or probe_video(str(file_path))
    duration = float(metadata.get("duration") or 0)
    width = int(metadata.get("width") or 0)
    height = int(metadata.get("height") or 0)
    validate_metadata(duration, width, height)

    source = VideoSource(
        name=file_path.name,
        duration=duration,
        width=width,
        height=height,
        path=str(file_path),
        size_bytes=size_bytes,
        mime_type=mime_type,
        fps=float(metadata.get("fps") or 30.0),
    )
    logger.info(f"Video accepted: {source}")
    return source
