"""
Pipeline orchestration logic.

Runs capture, describe, clean-frame and generate sequentially with state
reporting and error handling.
"""

import asyncio
from typing import Optional

from shared.config import settings
from shared.credentials import CredentialSelector, resolve_api_key
from shared.errors import (
    PipelineError,
    FrameCaptureError,
    GenerationError,
    CredentialError,
    CredentialExpiredError,
    PipelineCancelledError,
)
from shared.logging import get_logger, set_video_id
from shared.models.pipeline import (
    AnalyzingState,
    CleaningFrameState,
    CompletedState,
    FailedState,
    GeneratingState,
    PipelineState,
)
from shared.models.video import CapturedFrame, GeneratedVideoResult, VideoRecord
from modules.frame_capture import capture_video_frame
from modules.genai_client import GenAIClient
from modules.restoration import (
    analyze_video_content,
    clean_frame,
    generate_clean_video,
    select_analysis_input,
)
from api_gateway.services import run_registry
from api_gateway.services.sse_manager import publish_state

logger = get_logger(__name__)

# Substring the Gemini API uses when the key cannot see the model
CREDENTIAL_ERROR_MARKER = "Requested entity was not found"
CREDENTIAL_EXPIRED_MESSAGE = "API Key session expired. Please try again."


async def update_state(video_id: str, state: PipelineState) -> None:
    """
    Record a new pipeline state and push it to SSE listeners.

    Args:
        video_id: Video ID
        state: New state
    """
    await run_registry.set_state(video_id, state)
    publish_state(video_id, state)

    logger.info(
        "State updated",
        extra={"video_id": video_id, "status": state.status, "progress": getattr(state, "progress", None)}
    )


def check_cancellation(cancel_event: Optional[asyncio.Event]) -> None:
    """
    Stop the run if its video was discarded.

    Raises:
        PipelineCancelledError: If cancel_event is set
    """
    if cancel_event is not None and cancel_event.is_set():
        raise PipelineCancelledError("Restoration cancelled")


def is_credential_error(error: Exception) -> bool:
    return CREDENTIAL_ERROR_MARKER in str(error)


async def recover_credential(
    error: Exception,
    credentials: Optional[CredentialSelector]
) -> Exception:
    """
    Turn an invalid-key error into a key re-selection prompt.

    Returns:
        CredentialExpiredError after prompting once, otherwise the original error
    """
    if not is_credential_error(error) or credentials is None:
        return error

    logger.warning("API key rejected by remote API, requesting new key")
    await credentials.open_select_key()
    return CredentialExpiredError(CREDENTIAL_EXPIRED_MESSAGE, code="CREDENTIAL_EXPIRED")


def _error_code(error: Exception) -> str:
    code = getattr(error, "code", None)
    if code:
        return code
    if isinstance(error, FrameCaptureError):
        return "FRAME_CAPTURE_FAILED"
    if isinstance(error, CredentialError):
        return "CREDENTIAL_ERROR"
    if isinstance(error, GenerationError):
        return "GENERATION_FAILED"
    return "MODULE_FAILURE"


async def handle_pipeline_error(video_id: str, error: Exception) -> None:
    """
    Handle pipeline error by marking the run as failed.

    The failure message is the underlying error message, unmodified. The
    run may be retried unless the error says the same input will fail again.

    Args:
        video_id: Video ID
        error: Exception that occurred
    """
    try:
        error_code = _error_code(error)
        state = FailedState(
            error=str(error) or "Unknown error occurred",
            code=error_code,
            retryable=getattr(error, "retryable", True)
        )
        await update_state(video_id, state)

        logger.error(
            "Pipeline error handled",
            exc_info=error,
            extra={"video_id": video_id, "error_code": error_code}
        )

    except Exception as e:
        logger.error("Failed to handle pipeline error", exc_info=e, extra={"video_id": video_id})


async def capture_stage(video: VideoRecord, position_ms: float = 0.0) -> CapturedFrame:
    """
    Wait for the source media and capture the seed frame.

    Raises:
        FrameCaptureError: If no frame can be captured
    """
    try:
        frame = await capture_video_frame(
            video.capture_source,
            position_ms=position_ms,
            timeout=settings.media_load_timeout_seconds
        )
    except FrameCaptureError as e:
        # A stored upload fails the same way every time
        if video.has_payload:
            raise FrameCaptureError(str(e), video_id=video.id, retryable=False) from e
        raise

    if frame is None:
        raise FrameCaptureError(
            "Could not capture video frame",
            video_id=video.id,
            retryable=not video.has_payload
        )
    return frame


async def execute_pipeline(
    video: VideoRecord,
    client: Optional[GenAIClient] = None,
    credentials: Optional[CredentialSelector] = None,
    cancel_event: Optional[asyncio.Event] = None,
    position_ms: float = 0.0,
    poll_interval: Optional[float] = None
) -> GeneratedVideoResult:
    """
    Execute the restoration pipeline for one video.

    Args:
        video: Video to restore
        client: Gemini client (default: one built from the selected key)
        credentials: Host key-selection capability, if any
        cancel_event: Set when the video is discarded
        position_ms: Playback position of the seed frame
        poll_interval: Seconds between operation polls

    Returns:
        Result with the playable URL
    """
    video_id = video.id
    set_video_id(video_id)
    owns_client = client is None

    try:
        # Stage 1: Capture (10% progress)
        await update_state(video_id, AnalyzingState())

        if credentials is not None or client is None:
            api_key = await resolve_api_key(credentials)
            if client is None:
                client = GenAIClient(api_key)

        frame = await capture_stage(video, position_ms)
        check_cancellation(cancel_event)

        # Stage 2: Describe
        analysis_input = select_analysis_input(video, frame)
        description = await analyze_video_content(client, analysis_input.data, analysis_input.mime_type)
        check_cancellation(cancel_event)

        # Stage 3: Clean frame (40% progress)
        await update_state(video_id, CleaningFrameState())
        clean = await clean_frame(client, frame.base64_data, frame.mime_type)
        check_cancellation(cancel_event)

        if not description or not clean.data:
            raise PipelineError("Missing description or clean frame", video_id=video_id)

        # Stage 4: Generate (60% progress)
        await update_state(video_id, GeneratingState())

        async def on_progress(message: str) -> None:
            await update_state(video_id, GeneratingState(message=message))

        result = await generate_clean_video(
            client,
            clean,
            description,
            on_progress=on_progress,
            cancel_event=cancel_event,
            interval=poll_interval or settings.poll_interval_seconds
        )

        await update_state(video_id, CompletedState(result=result))
        logger.info(
            "Pipeline completed successfully",
            extra={"video_id": video_id, "degraded_analysis": analysis_input.degraded}
        )
        return result

    except PipelineCancelledError:
        logger.info("Pipeline cancelled", extra={"video_id": video_id})
        raise
    except Exception as e:
        error = await recover_credential(e, credentials)
        await handle_pipeline_error(video_id, error)
        if error is e:
            raise
        raise error from e
    finally:
        if owns_client and client is not None:
            await client.aclose()
