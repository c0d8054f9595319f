"""
Tests for SSE manager service and the stream generator.
"""

import pytest
import asyncio
from unittest.mock import patch

from api_gateway.routes import stream
from api_gateway.routes.stream import event_generator
from api_gateway.services import run_registry
from api_gateway.services.sse_manager import (
    END_OF_STREAM,
    MAX_CONNECTIONS_PER_VIDEO,
    close_stream,
    connections,
    current_state,
    publish,
    publish_state,
    subscribe,
    subscriber_count,
    unsubscribe,
)
from shared.models.pipeline import AnalyzingState


def test_subscribe():
    queue = subscribe("vid-1")

    assert subscriber_count("vid-1") == 1
    assert queue in connections["vid-1"]


def test_unsubscribe():
    queue = subscribe("vid-1")
    unsubscribe("vid-1", queue)

    assert subscriber_count("vid-1") == 0
    assert "vid-1" not in connections


def test_unsubscribe_unknown_is_noop():
    unsubscribe("vid-1", asyncio.Queue())
    assert "vid-1" not in connections


def test_max_connections_per_video():
    """Test maximum connections limit."""
    for _ in range(MAX_CONNECTIONS_PER_VIDEO):
        subscribe("vid-1")

    with pytest.raises(ValueError, match=f"Maximum {MAX_CONNECTIONS_PER_VIDEO}"):
        subscribe("vid-1")
    assert subscriber_count("vid-1") == MAX_CONNECTIONS_PER_VIDEO


def test_publish():
    """Events reach every stream of the video and nothing else."""
    queue1 = subscribe("vid-1")
    queue2 = subscribe("vid-1")
    other = subscribe("vid-2")

    delivered = publish("vid-1", "state", {"status": "analyzing", "progress": 10})

    event1 = queue1.get_nowait()
    event2 = queue2.get_nowait()
    assert delivered == 2
    assert event1 == event2
    assert event1.startswith("event: state\n")
    assert '"progress": 10' in event1
    assert other.empty()


def test_publish_no_connections():
    assert publish("vid-1", "state", {"progress": 50}) == 0


def test_publish_state():
    queue = subscribe("vid-1")
    publish_state("vid-1", AnalyzingState())
    assert '"status": "analyzing"' in queue.get_nowait()


def test_close_stream():
    """Discarding a video queues a final event and ends each stream."""
    queue1 = subscribe("vid-1")
    queue2 = subscribe("vid-1")

    assert close_stream("vid-1") == 2
    assert "vid-1" not in connections
    for queue in (queue1, queue2):
        assert queue.get_nowait().startswith("event: discarded\n")
        assert queue.get_nowait() is END_OF_STREAM

    assert close_stream("vid-1") == 0


@pytest.mark.asyncio
async def test_current_state():
    """Test initial state comes from the run registry."""
    await run_registry.register_video("vid-1")
    await run_registry.set_state("vid-1", AnalyzingState())

    state = current_state("vid-1")

    assert state["status"] == "analyzing"
    assert state["progress"] == 10
    assert state["message"] == "Analyzing video structure..."


def test_current_state_unknown_video():
    assert current_state("missing") is None


@pytest.mark.asyncio
async def test_event_generator_streams_updates():
    await run_registry.register_video("vid-1")
    queue = subscribe("vid-1")
    events = event_generator("vid-1", queue)

    first = await events.__anext__()
    assert first.startswith("event: state\n")
    assert '"status": "idle"' in first

    publish_state("vid-1", AnalyzingState())
    update = await asyncio.wait_for(events.__anext__(), timeout=1.0)
    assert '"status": "analyzing"' in update

    await events.aclose()
    assert subscriber_count("vid-1") == 0


@pytest.mark.asyncio
async def test_event_generator_ends_when_video_discarded():
    await run_registry.register_video("vid-1")
    queue = subscribe("vid-1")
    events = event_generator("vid-1", queue)
    await events.__anext__()

    await run_registry.discard_run("vid-1")
    close_stream("vid-1")

    final = await asyncio.wait_for(events.__anext__(), timeout=1.0)
    assert final.startswith("event: discarded\n")
    with pytest.raises(StopAsyncIteration):
        await events.__anext__()


@pytest.mark.asyncio
async def test_event_generator_ends_on_heartbeat_after_discard():
    """A stream that missed the close still ends at its next heartbeat."""
    await run_registry.register_video("vid-1")
    queue = subscribe("vid-1")
    events = event_generator("vid-1", queue)
    await events.__anext__()

    await run_registry.discard_run("vid-1")

    with patch.object(stream, "HEARTBEAT_INTERVAL_SECONDS", 0.05):
        final = await asyncio.wait_for(events.__anext__(), timeout=1.0)
        assert final.startswith("event: discarded\n")
        with pytest.raises(StopAsyncIteration):
            await events.__anext__()
    assert subscriber_count("vid-1") == 0


@pytest.mark.asyncio
async def test_event_generator_heartbeat_while_alive():
    await run_registry.register_video("vid-1")
    queue = subscribe("vid-1")
    events = event_generator("vid-1", queue)
    await events.__anext__()

    with patch.object(stream, "HEARTBEAT_INTERVAL_SECONDS", 0.05):
        beat = await asyncio.wait_for(events.__anext__(), timeout=1.0)
    assert beat.startswith("event: heartbeat\n")
    await events.aclose()


@pytest.mark.asyncio
async def test_event_generator_for_missing_video():
    queue = subscribe("gone")
    events = event_generator("gone", queue)

    only = await events.__anext__()
    assert only.startswith("event: discarded\n")
    with pytest.raises(StopAsyncIteration):
        await events.__anext__()
    assert subscriber_count("gone") == 0
