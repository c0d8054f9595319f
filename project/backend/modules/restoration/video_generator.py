"""
Generate stage.

Start Veo image-to-video generation from the clean seed frame and poll the
long-running operation until it finishes.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, Union

from modules.genai_client.client import GenAIClient
from modules.restoration.prompts import VIDEO_QUALITY_SUFFIX
from shared.errors import GenerationError, NoResultError, PipelineCancelledError
from shared.logging import get_logger
from shared.models.video import GeneratedImage, GeneratedVideoResult, VideoOperation

logger = get_logger("restoration")

POLL_INTERVAL_SECONDS = 5.0

ProgressCallback = Callable[[str], Union[None, Awaitable[None]]]


async def _notify(on_progress: Optional[ProgressCallback], message: str) -> None:
    if on_progress is None:
        return
    result = on_progress(message)
    if inspect.isawaitable(result):
        await result


async def _wait_interval(interval: float, cancel_event: Optional[asyncio.Event]) -> bool:
    """
    Sleep for one poll interval.

    Returns:
        True if the cancel event fired during the wait
    """
    if cancel_event is None:
        await asyncio.sleep(interval)
        return False
    if cancel_event.is_set():
        return True
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=interval)
    except asyncio.TimeoutError:
        return False
    return True


async def wait_for_operation(
    client: GenAIClient,
    operation: VideoOperation,
    interval: float = POLL_INTERVAL_SECONDS,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None
) -> VideoOperation:
    """
    Poll a long-running operation until it reports done.

    One status check is made per elapsed interval, and the progress
    callback runs before each one.

    Raises:
        PipelineCancelledError: If cancel_event is set between polls
    """
    polls = 0
    while not operation.done:
        await _notify(on_progress, "Rendering video frames...")
        if await _wait_interval(interval, cancel_event):
            logger.info(f"Polling cancelled after {polls} checks: {operation.name}")
            raise PipelineCancelledError("Restoration cancelled")
        operation = await client.get_video_operation(operation)
        polls += 1
        logger.debug(f"Operation {operation.name} poll {polls}: done={operation.done}")

    logger.info(f"Operation finished after {polls} polls: {operation.name}")
    return operation


async def generate_clean_video(
    client: GenAIClient,
    start_frame: GeneratedImage,
    prompt: str,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None,
    interval: float = POLL_INTERVAL_SECONDS
) -> GeneratedVideoResult:
    """
    Generate a new video seeded by the clean frame.

    Args:
        client: Gemini client
        start_frame: Clean seed frame
        prompt: Content/motion description from the describe stage
        on_progress: Called with a status message before each step and poll
        cancel_event: Stops polling when set
        interval: Seconds between polls

    Returns:
        Result with the playable URL (API key appended)

    Raises:
        GenerationError: If the operation reports an error
        NoResultError: If the operation finishes without a video URI
    """
    await _notify(on_progress, "Initializing generation model...")

    operation = await client.generate_video(
        prompt + VIDEO_QUALITY_SUFFIX,
        start_frame.data,
        image_mime_type=start_frame.mime_type
    )

    await _notify(on_progress, "Video generation started. This may take a moment...")

    operation = await wait_for_operation(
        client,
        operation,
        interval=interval,
        on_progress=on_progress,
        cancel_event=cancel_event
    )

    if operation.error is not None:
        raise GenerationError(
            operation.error.message or "Video generation failed",
            status_code=operation.error.code
        )

    if not operation.video_uri:
        raise NoResultError("No video URI returned", code="NO_RESULT")

    return GeneratedVideoResult(
        video_uri=operation.video_uri,
        url=client.with_credential(operation.video_uri)
    )
