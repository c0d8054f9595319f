"""
Pipeline state models.

One variant per status, discriminated on ``status``. In-progress states
carry no error and the failed state carries no progress.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from shared.models.video import GeneratedVideoResult


class PipelineStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    CLEANING_FRAME = "cleaning_frame"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


STATUS_ORDER = [
    PipelineStatus.IDLE,
    PipelineStatus.ANALYZING,
    PipelineStatus.CLEANING_FRAME,
    PipelineStatus.GENERATING,
    PipelineStatus.COMPLETED,
]

IN_PROGRESS_STATUSES = {
    PipelineStatus.ANALYZING,
    PipelineStatus.CLEANING_FRAME,
    PipelineStatus.GENERATING,
}


class _State(BaseModel):
    model_config = ConfigDict(frozen=True)


class IdleState(_State):
    status: Literal["idle"] = "idle"
    progress: Literal[0] = 0


class AnalyzingState(_State):
    status: Literal["analyzing"] = "analyzing"
    message: str = "Analyzing video structure..."
    progress: int = Field(default=10, ge=0, le=100)


class CleaningFrameState(_State):
    status: Literal["cleaning_frame"] = "cleaning_frame"
    message: str = "Reconstructing clean keyframes..."
    progress: int = Field(default=40, ge=0, le=100)


class GeneratingState(_State):
    status: Literal["generating"] = "generating"
    message: str = "Generating logo-free video with Veo..."
    progress: int = Field(default=60, ge=0, le=100)


class CompletedState(_State):
    status: Literal["completed"] = "completed"
    message: str = "Restoration complete!"
    progress: Literal[100] = 100
    result: GeneratedVideoResult


class FailedState(_State):
    status: Literal["failed"] = "failed"
    message: str = "Processing failed"
    error: str
    code: str = "MODULE_FAILURE"
    retryable: bool = True


PipelineState = Annotated[
    Union[IdleState, AnalyzingState, CleaningFrameState, GeneratingState, CompletedState, FailedState],
    Field(discriminator="status"),
]

pipeline_state_adapter = TypeAdapter(PipelineState)


def is_active(state: PipelineState) -> bool:
    """True while a run is in flight."""
    return PipelineStatus(state.status) in IN_PROGRESS_STATUSES


def can_transition(current: PipelineState, new: PipelineState) -> bool:
    """
    Check whether ``current`` may move to ``new``.

    Statuses only move forward; any in-progress status may fail; a failed
    run may only go back to idle (retry). Repeating an in-progress status
    is allowed for message updates as long as progress does not drop.
    """
    old_status = PipelineStatus(current.status)
    new_status = PipelineStatus(new.status)

    if old_status == PipelineStatus.FAILED:
        return new_status == PipelineStatus.IDLE
    if new_status == PipelineStatus.FAILED:
        return old_status in IN_PROGRESS_STATUSES
    if old_status == PipelineStatus.COMPLETED:
        return False
    if new_status == PipelineStatus.IDLE:
        return False
    if new_status == PipelineStatus.COMPLETED:
        return old_status == PipelineStatus.GENERATING

    old_index = STATUS_ORDER.index(old_status)
    new_index = STATUS_ORDER.index(new_status)
    if new_index == old_index:
        return old_status in IN_PROGRESS_STATUSES and new.progress >= current.progress
    if new_index < old_index:
        return False
    return _progress(new) >= _progress(current)


def _progress(state: PipelineState) -> Optional[int]:
    return getattr(state, "progress", None)
