"""
Restoration endpoints.

Start, retry and observe the restoration run of a loaded video.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from shared.credentials import ApiKeyStore
from shared.logging import get_logger
from shared.models.video import VideoRecord
from api_gateway.dependencies import get_video, get_credential_store
from api_gateway.orchestrator import execute_pipeline
from api_gateway.schemas import RestoreRequest
from api_gateway.services import run_registry
from api_gateway.services.presenter import ViewModel, render_view
from api_gateway.services.sse_manager import publish_state

logger = get_logger(__name__)

router = APIRouter()


@router.post("/videos/{video_id}/restore", status_code=status.HTTP_202_ACCEPTED)
async def start_restoration(
    body: Optional[RestoreRequest] = None,
    video: VideoRecord = Depends(get_video),
    credentials: ApiKeyStore = Depends(get_credential_store)
):
    """
    Start restoring a video in the background.

    Args:
        body: Playback position to take the seed frame from

    Returns:
        Accepted marker; progress arrives via /status or /stream

    Raises:
        RunConflictError: If a run is active or the video is not idle
    """
    position_ms = body.position_seconds * 1000 if body else 0.0

    def runner(cancel_event):
        return execute_pipeline(
            video,
            credentials=credentials,
            cancel_event=cancel_event,
            position_ms=position_ms
        )

    await run_registry.start_run(video.id, runner)

    logger.info(
        "Restoration accepted",
        extra={"video_id": video.id, "position_ms": position_ms}
    )
    return {"video_id": video.id, "status": "accepted"}


@router.post("/videos/{video_id}/retry")
async def retry_restoration(video: VideoRecord = Depends(get_video)):
    """
    Reset a failed run to idle so it can be started again.

    Raises:
        StateTransitionError: If the run has not failed
    """
    state = await run_registry.reset_run(video.id)
    publish_state(video.id, state)
    return state.model_dump(mode="json")


@router.get("/videos/{video_id}/status")
async def get_status(video: VideoRecord = Depends(get_video)):
    """Current pipeline state (polling fallback, SSE preferred)."""
    return run_registry.get_state(video.id).model_dump(mode="json")


@router.get("/videos/{video_id}/view", response_model=ViewModel)
async def get_view(video: VideoRecord = Depends(get_video)):
    """Render-ready view of the current state."""
    return render_view(run_registry.get_state(video.id), video)
