"""
Request and response bodies for the HTTP API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from shared.models.video import VideoRecord, VideoSource


class LinkRequest(BaseModel):
    url: str


class RestoreRequest(BaseModel):
    position_seconds: float = Field(default=0.0, ge=0)


class CredentialRequest(BaseModel):
    api_key: str


class CredentialStatusResponse(BaseModel):
    has_selected_api_key: bool
    selection_requested: bool


class VideoResponse(BaseModel):
    video_id: str
    source: VideoSource
    preview_url: Optional[str] = None
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    size_bytes: Optional[int] = None
    status: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: VideoRecord, status: str) -> "VideoResponse":
        return cls(
            video_id=record.id,
            source=record.source,
            preview_url=record.preview_url,
            mime_type=record.mime_type,
            filename=record.filename,
            size_bytes=record.size_bytes,
            status=status,
            created_at=record.created_at
        )


class DownloadResponse(BaseModel):
    download_url: str
    filename: str
