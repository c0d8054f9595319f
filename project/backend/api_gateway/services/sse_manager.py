"""
SSE manager service.

Fans pipeline state out to every open stream of a video. Each stream owns
an unbounded queue of pre-formatted messages; a ``None`` entry tells the
stream to finish after delivering what is already queued.
"""

import asyncio
import json
from typing import Dict, Optional, Set

from shared.errors import VideoNotFoundError
from shared.logging import get_logger
from shared.models.pipeline import PipelineState
from api_gateway.services import run_registry

logger = get_logger(__name__)

# Open stream queues per video
connections: Dict[str, Set[asyncio.Queue]] = {}

MAX_CONNECTIONS_PER_VIDEO = 10

STATE_EVENT = "state"
DISCARDED_EVENT = "discarded"
END_OF_STREAM = None


def format_event(event_type: str, data: dict) -> str:
    """Format an SSE message."""
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


def discarded_event(video_id: str) -> str:
    return format_event(DISCARDED_EVENT, {"video_id": video_id})


def subscriber_count(video_id: str) -> int:
    return len(connections.get(video_id, ()))


def subscribe(video_id: str) -> asyncio.Queue:
    """
    Open a stream queue for a video.

    Raises:
        ValueError: If the video already has the maximum number of streams
    """
    queues = connections.setdefault(video_id, set())
    if len(queues) >= MAX_CONNECTIONS_PER_VIDEO:
        raise ValueError(f"Maximum {MAX_CONNECTIONS_PER_VIDEO} connections per video exceeded")

    queue: asyncio.Queue = asyncio.Queue()
    queues.add(queue)
    logger.debug("SSE connection added", extra={"video_id": video_id, "total": len(queues)})
    return queue


def unsubscribe(video_id: str, queue: asyncio.Queue) -> None:
    queues = connections.get(video_id)
    if queues is None:
        return
    queues.discard(queue)
    if not queues:
        del connections[video_id]
    logger.debug("SSE connection removed", extra={"video_id": video_id})


def publish(video_id: str, event_type: str, data: dict) -> int:
    """
    Queue an event on every open stream of a video.

    Returns:
        Number of streams the event was queued on
    """
    queues = connections.get(video_id)
    if not queues:
        return 0

    message = format_event(event_type, data)
    for queue in queues:
        queue.put_nowait(message)
    return len(queues)


def publish_state(video_id: str, state: PipelineState) -> int:
    return publish(video_id, STATE_EVENT, state.model_dump(mode="json"))


def close_stream(video_id: str) -> int:
    """
    End every stream of a discarded video.

    Each stream receives a ``discarded`` event and then finishes. Streams
    opened afterwards are refused by the route because the video is gone.

    Returns:
        Number of streams closed
    """
    queues = connections.pop(video_id, set())
    message = discarded_event(video_id)
    for queue in queues:
        queue.put_nowait(message)
        queue.put_nowait(END_OF_STREAM)

    if queues:
        logger.info("SSE streams closed", extra={"video_id": video_id, "count": len(queues)})
    return len(queues)


def current_state(video_id: str) -> Optional[dict]:
    """
    Current pipeline state for the first message of a stream.

    Returns:
        The state as JSON-ready data, or None if the video was discarded
    """
    try:
        return run_registry.get_state(video_id).model_dump(mode="json")
    except VideoNotFoundError:
        return None
