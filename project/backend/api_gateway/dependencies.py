"""
FastAPI dependencies.

Session stores and request utilities.
"""

from fastapi import Depends, Path

from shared.credentials import ApiKeyStore, api_key_store
from shared.models.video import VideoRecord
from modules.uploader import VideoStore, video_store


def get_video_store() -> VideoStore:
    return video_store


def get_credential_store() -> ApiKeyStore:
    return api_key_store


async def get_video(
    video_id: str = Path(...),
    store: VideoStore = Depends(get_video_store)
) -> VideoRecord:
    """
    Look up the video addressed by the request path.

    Raises:
        VideoNotFoundError: If the video is unknown or was discarded
    """
    return store.get(video_id)
