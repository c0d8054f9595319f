"""
Video input and output models.
"""

import base64
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VideoSource(str, Enum):
    UPLOAD = "upload"
    LINK = "link"


class VideoRecord(BaseModel):
    """
    A video supplied by the user.

    Uploads are kept on disk at ``local_path`` and read only when the
    describe stage needs them; links carry only the external URL.
    Records are frozen: picking a new video replaces the record.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    source: VideoSource
    url: Optional[str] = None
    preview_url: str
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    local_path: Optional[str] = Field(default=None, exclude=True)
    size_bytes: Optional[int] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def check_payload_or_url(self) -> "VideoRecord":
        """Exactly one of the stored payload and the url is populated."""
        if (self.local_path is None) == (self.url is None):
            raise ValueError("VideoRecord needs exactly one of local_path or url")
        if self.source == VideoSource.UPLOAD and self.local_path is None:
            raise ValueError("Uploaded videos must be stored locally")
        if self.source == VideoSource.LINK and self.url is None:
            raise ValueError("Linked videos must carry a url")
        return self

    @property
    def has_payload(self) -> bool:
        return self.local_path is not None

    def read_payload(self) -> Optional[bytes]:
        """Read the uploaded bytes back from disk."""
        if self.local_path is None:
            return None
        with open(self.local_path, "rb") as f:
            return f.read()

    def load_base64(self) -> Optional[str]:
        """Payload encoded for inline transfer to the remote API."""
        payload = self.read_payload()
        if payload is None:
            return None
        return base64.b64encode(payload).decode("ascii")

    @property
    def capture_source(self) -> str:
        """Path or URL that frame capture should open."""
        return self.local_path or self.url or ""


class CapturedFrame(BaseModel):
    """A single still frame encoded as an image."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    mime_type: str = "image/png"
    width: int
    height: int
    position_ms: float = 0.0

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class GeneratedImage(BaseModel):
    """Image returned by the text-to-image model."""

    data: str = Field(repr=False)  # base64
    mime_type: str = "image/png"


class OperationError(BaseModel):
    code: Optional[int] = None
    message: Optional[str] = None


class VideoOperation(BaseModel):
    """Handle to a long-running video generation on the remote side."""

    name: str
    done: bool = False
    error: Optional[OperationError] = None
    video_uri: Optional[str] = None


class GeneratedVideoResult(BaseModel):
    """Playable result of a restoration run."""

    video_uri: str
    url: str  # video_uri with the access credential appended
    filename: str = "restored_video.mp4"
