"""
Run registry service.

Owns the pipeline state of every loaded video and the single in-flight run
per video. Only the orchestrator writes state here; views and SSE read it.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from shared.errors import (
    PipelineError,
    PipelineCancelledError,
    RunConflictError,
    StateTransitionError,
    VideoNotFoundError,
)
from shared.logging import get_logger
from shared.models.pipeline import (
    FailedState,
    IdleState,
    PipelineState,
    PipelineStatus,
    can_transition,
    is_active,
)

logger = get_logger(__name__)


class PipelineRun:
    """State holder for one loaded video."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        self.state: PipelineState = IdleState()
        self.history: List[PipelineState] = [self.state]
        self.task: Optional[asyncio.Task] = None
        self.cancel_event = asyncio.Event()

    @property
    def in_flight(self) -> bool:
        return self.task is not None and not self.task.done()


# Runs keyed by video ID
runs: Dict[str, PipelineRun] = {}
runs_lock = asyncio.Lock()


async def register_video(video_id: str) -> PipelineRun:
    """Start tracking a newly loaded video in the idle state."""
    async with runs_lock:
        run = PipelineRun(video_id)
        runs[video_id] = run
        return run


def get_run(video_id: str) -> PipelineRun:
    """
    Get the run holder for a video.

    Raises:
        VideoNotFoundError: If the video is not registered
    """
    run = runs.get(video_id)
    if run is None:
        raise VideoNotFoundError(f"Video not found: {video_id}", video_id=video_id)
    return run


def get_state(video_id: str) -> PipelineState:
    """Current state of a video's pipeline."""
    return get_run(video_id).state


async def set_state(video_id: str, state: PipelineState) -> PipelineState:
    """
    Move a video's pipeline to a new state.

    Raises:
        PipelineCancelledError: If the video was discarded
        StateTransitionError: If the transition is not allowed
    """
    async with runs_lock:
        run = runs.get(video_id)
        if run is None:
            raise PipelineCancelledError("Video was discarded", video_id=video_id)

        if not can_transition(run.state, state):
            raise StateTransitionError(
                f"Cannot move from {run.state.status} to {state.status}",
                video_id=video_id,
                code="INVALID_TRANSITION"
            )

        run.state = state
        run.history.append(state)
        return state


async def _run_guarded(video_id: str, coro: Awaitable) -> None:
    """Await a pipeline coroutine; failures are already recorded in state."""
    try:
        await coro
        logger.info("Run finished", extra={"video_id": video_id})
    except PipelineCancelledError:
        logger.info("Run cancelled", extra={"video_id": video_id})
    except PipelineError as e:
        logger.error("Run failed", exc_info=e, extra={"video_id": video_id})
    except Exception as e:
        logger.error("Unexpected error in run", exc_info=e, extra={"video_id": video_id})


async def start_run(
    video_id: str,
    runner: Callable[[asyncio.Event], Awaitable]
) -> PipelineRun:
    """
    Start the pipeline for a video as a background task.

    Args:
        video_id: Video to process
        runner: Builds the pipeline coroutine from the run's cancel event

    Raises:
        VideoNotFoundError: If the video is not registered
        RunConflictError: If a run is in flight or the state is not idle
    """
    async with runs_lock:
        run = runs.get(video_id)
        if run is None:
            raise VideoNotFoundError(f"Video not found: {video_id}", video_id=video_id)

        if run.in_flight or is_active(run.state):
            raise RunConflictError("A restoration is already running for this video", video_id=video_id)

        if run.state.status != PipelineStatus.IDLE:
            raise RunConflictError(
                f"Video is {run.state.status}; retry or load a new video first",
                video_id=video_id
            )

        run.cancel_event = asyncio.Event()
        run.task = asyncio.create_task(_run_guarded(video_id, runner(run.cancel_event)))

    logger.info("Run started", extra={"video_id": video_id})
    return run


async def reset_run(video_id: str) -> PipelineState:
    """
    Reset a failed run back to idle so it can be started again.

    Raises:
        StateTransitionError: If the run has not failed, or failed in a
            way that retrying cannot fix
    """
    state = get_run(video_id).state
    if isinstance(state, FailedState) and not state.retryable:
        raise StateTransitionError(
            "This failure cannot be retried; load a different video",
            video_id=video_id,
            code="NOT_RETRYABLE"
        )
    return await set_state(video_id, IdleState())


async def discard_run(video_id: str) -> bool:
    """
    Stop tracking a video and signal its run to stop polling.

    Returns:
        True if the video was registered
    """
    async with runs_lock:
        run = runs.pop(video_id, None)

    if run is None:
        return False

    run.cancel_event.set()
    logger.info("Run discarded", extra={"video_id": video_id, "in_flight": run.in_flight})
    return True


def active_run_count() -> int:
    return sum(1 for run in runs.values() if run.in_flight)
