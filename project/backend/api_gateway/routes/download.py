"""
Download endpoint.

Hand out the playable URL of a restored video.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from shared.logging import get_logger
from shared.models.pipeline import PipelineStatus
from shared.models.video import VideoRecord
from api_gateway.dependencies import get_video
from api_gateway.schemas import DownloadResponse
from api_gateway.services import run_registry

logger = get_logger(__name__)

router = APIRouter()


@router.get("/videos/{video_id}/download", response_model=DownloadResponse)
async def download_video(video: VideoRecord = Depends(get_video)):
    """
    Download the restored video.

    Returns:
        URL with the access credential embedded, and the suggested filename
    """
    state = run_registry.get_state(video.id)

    if state.status != PipelineStatus.COMPLETED.value:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Restoration not completed or video not available"
        )

    logger.info("Download URL served", extra={"video_id": video.id})

    return DownloadResponse(
        download_url=state.result.url,
        filename=state.result.filename
    )
