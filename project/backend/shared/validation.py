"""
Validation utilities.

Shared validation utilities for common input validation tasks.
"""

import mimetypes
import re
from typing import Optional
from urllib.parse import urlparse

from shared.errors import ValidationError, LinkRejectedError

# Direct links must end in one of these container extensions
VIDEO_LINK_PATTERN = re.compile(r"\.(mp4|webm|mov)$", re.IGNORECASE)

LINK_REJECTED_WARNING = (
    "Please use a direct link to a video file (.mp4, .webm, .mov) or upload a file. "
    "Standard website URLs cannot be fetched and processed."
)

SUPPORTED_VIDEO_MIME_TYPES = [
    "video/mp4",
    "video/quicktime",
    "video/webm",
    "video/x-matroska",
    "video/x-msvideo",
]


def detect_video_mime_type(header: bytes) -> Optional[str]:
    """
    Detect a video container from its leading bytes.

    Args:
        header: First bytes of the file (at least 12)

    Returns:
        MIME type, or None if no known signature matches
    """
    if len(header) >= 12 and header[4:8] == b"ftyp":
        # ISO base media: MP4 and QuickTime share the ftyp box
        if header[8:10] == b"qt":
            return "video/quicktime"
        return "video/mp4"
    if header.startswith(b"\x1a\x45\xdf\xa3"):
        return "video/webm"
    if header.startswith(b"RIFF") and header[8:12] == b"AVI ":
        return "video/x-msvideo"
    return None


def validate_video_file(
    content: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    max_size_mb: int = 50
) -> str:
    """
    Validate an uploaded video file.

    Args:
        content: File bytes
        filename: Original filename, used for MIME guessing
        content_type: MIME type reported by the client
        max_size_mb: Maximum file size in MB (default: 50)

    Returns:
        The MIME type to use for the payload

    Raises:
        ValidationError: If file is invalid
    """
    if content is None:
        raise ValidationError("File is required")

    if len(content) == 0:
        raise ValidationError("File is empty")

    validate_file_size(len(content), max_size_mb * 1024 * 1024)

    detected = detect_video_mime_type(content[:12])

    declared = None
    if content_type and content_type.startswith("video/"):
        declared = content_type
    elif filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed and guessed.startswith("video/"):
            declared = guessed

    if not detected and not declared:
        raise ValidationError(
            "Invalid video file format. Supported formats: MP4, MOV, WEBM"
        )

    return declared or detected


def validate_video_link(url: str) -> str:
    """
    Validate a pasted direct video link.

    Only the URL shape is checked; reachability is not.

    Args:
        url: Link pasted by the user

    Returns:
        The stripped URL

    Raises:
        LinkRejectedError: If the link is not a direct video file link
    """
    if not url or not url.strip():
        raise LinkRejectedError("Video link is required")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise LinkRejectedError(LINK_REJECTED_WARNING)

    if not VIDEO_LINK_PATTERN.search(parsed.path):
        raise LinkRejectedError(LINK_REJECTED_WARNING)

    return url


def guess_link_mime_type(url: str) -> Optional[str]:
    """MIME type implied by a link's file extension."""
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    return guessed


def validate_file_size(
    file_size_bytes: int,
    max_size_bytes: int
) -> None:
    """
    Validate file size.

    Args:
        file_size_bytes: File size in bytes
        max_size_bytes: Maximum allowed size in bytes

    Raises:
        ValidationError: If file size exceeds maximum
    """
    if file_size_bytes < 0:
        raise ValidationError("File size cannot be negative")

    if file_size_bytes > max_size_bytes:
        max_size_mb = max_size_bytes / (1024 * 1024)
        file_size_mb = file_size_bytes / (1024 * 1024)
        raise ValidationError(
            f"File size ({file_size_mb:.2f} MB) exceeds maximum "
            f"of {max_size_mb:.2f} MB"
        )
