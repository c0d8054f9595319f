"""
Video intake.

Turn an uploaded file or a pasted link into a VideoRecord.
"""

import os
import tempfile
import uuid
from typing import Optional

from shared.errors import ValidationError
from shared.logging import get_logger
from shared.models.video import VideoRecord, VideoSource
from shared.validation import (
    validate_video_file,
    validate_video_link,
    guess_link_mime_type,
)

logger = get_logger("uploader")

PREVIEW_PATH = "/api/v1/videos/{video_id}/preview"

_EXTENSIONS = {
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/webm": ".webm",
    "video/x-matroska": ".mkv",
    "video/x-msvideo": ".avi",
}


def _write_local_copy(video_id: str, content: bytes, mime_type: str, upload_dir: Optional[str]) -> str:
    """Write the upload where OpenCV can open it; returns the file path."""
    directory = upload_dir or tempfile.gettempdir()
    os.makedirs(directory, exist_ok=True)
    suffix = _EXTENSIONS.get(mime_type, ".mp4")
    path = os.path.join(directory, f"upload_{video_id}{suffix}")
    with open(path, "wb") as f:
        f.write(content)
    return path


async def read_upload(file, max_size_mb: int, chunk_size: int = 1024 * 1024) -> bytes:
    """
    Read an uploaded file in chunks, stopping once it exceeds the limit.

    Args:
        file: Object with an async ``read(size)`` method (e.g. UploadFile)
        max_size_mb: Upload size limit
        chunk_size: Bytes read per call

    Raises:
        ValidationError: As soon as more than ``max_size_mb`` has been read
    """
    max_bytes = max_size_mb * 1024 * 1024
    chunks = []
    total = 0
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            logger.warning("Upload rejected while reading", extra={"max_size_mb": max_size_mb})
            raise ValidationError(f"File size exceeds maximum of {max_size_mb}MB")
        chunks.append(chunk)
    return b"".join(chunks)


def create_upload_record(
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
    upload_dir: Optional[str] = None,
    max_size_mb: int = 50
) -> VideoRecord:
    """
    Create a record for an uploaded video file.

    Args:
        filename: Original filename
        content: File bytes
        content_type: MIME type reported by the client
        upload_dir: Directory for the transient local copy
        max_size_mb: Upload size limit

    Returns:
        VideoRecord pointing at the stored copy and a local preview URL

    Raises:
        ValidationError: If the file is not an acceptable video
    """
    mime_type = validate_video_file(
        content,
        filename=filename,
        content_type=content_type,
        max_size_mb=max_size_mb
    )

    video_id = str(uuid.uuid4())
    try:
        local_path = _write_local_copy(video_id, content, mime_type, upload_dir)
    except OSError as e:
        logger.error("Failed to store upload", exc_info=e, extra={"video_id": video_id})
        raise ValidationError(f"Could not store uploaded video: {str(e)}", video_id=video_id) from e

    record = VideoRecord(
        id=video_id,
        source=VideoSource.UPLOAD,
        size_bytes=len(content),
        preview_url=PREVIEW_PATH.format(video_id=video_id),
        mime_type=mime_type,
        filename=filename,
        local_path=local_path
    )

    logger.info(
        "Video uploaded",
        extra={"video_id": video_id, "mime_type": mime_type, "size_bytes": len(content)}
    )
    return record


def create_link_record(url: str) -> VideoRecord:
    """
    Create a record for a pasted direct video link.

    The link itself is the preview URL; nothing is downloaded.

    Raises:
        LinkRejectedError: If the link does not end in a video extension
    """
    url = validate_video_link(url)
    video_id = str(uuid.uuid4())

    record = VideoRecord(
        id=video_id,
        source=VideoSource.LINK,
        url=url,
        preview_url=url,
        mime_type=guess_link_mime_type(url)
    )

    logger.info("Video link accepted", extra={"video_id": video_id})
    return record
