"""
SSE stream endpoint.

Real-time pipeline state updates via Server-Sent Events.
"""

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from shared.logging import get_logger
from shared.models.video import VideoRecord
from api_gateway.dependencies import get_video
from api_gateway.services import run_registry
from api_gateway.services.sse_manager import (
    END_OF_STREAM,
    MAX_CONNECTIONS_PER_VIDEO,
    STATE_EVENT,
    current_state,
    discarded_event,
    format_event,
    subscribe,
    subscriber_count,
    unsubscribe,
)

logger = get_logger(__name__)

router = APIRouter()

HEARTBEAT_INTERVAL_SECONDS = 30


async def event_generator(video_id: str, queue: asyncio.Queue):
    """
    Generate SSE events for a video until it is discarded.

    Args:
        video_id: Video ID to stream events for
        queue: Queue returned by ``subscribe`` for this stream

    Yields:
        SSE formatted event strings
    """
    try:
        state = current_state(video_id)
        if state is None:
            yield discarded_event(video_id)
            return
        yield format_event(STATE_EVENT, state)

        logger.info("SSE stream started", extra={"video_id": video_id})

        while True:
            try:
                message = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_INTERVAL_SECONDS)
            except asyncio.TimeoutError:
                if video_id not in run_registry.runs:
                    yield discarded_event(video_id)
                    break
                yield format_event("heartbeat", {"timestamp": datetime.utcnow().isoformat()})
                continue

            if message is END_OF_STREAM:
                break
            yield message

    finally:
        unsubscribe(video_id, queue)
        logger.info("SSE stream ended", extra={"video_id": video_id})


@router.get("/videos/{video_id}/stream")
async def stream_state(video: VideoRecord = Depends(get_video)):
    """
    SSE stream for real-time state updates.

    The stream ends with a ``discarded`` event when the video is deleted
    or evicted.

    Returns:
        SSE stream response
    """
    try:
        queue = subscribe(video.id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Maximum {MAX_CONNECTIONS_PER_VIDEO} connections per video exceeded"
        )

    logger.debug("SSE stream requested", extra={"video_id": video.id, "streams": subscriber_count(video.id)})

    return StreamingResponse(
        event_generator(video.id, queue),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"  # Disable buffering for nginx
        }
    )
