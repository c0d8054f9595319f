"""
Presenter service.

Map pipeline state to the view the front-end renders.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from shared.models.pipeline import PipelineState, PipelineStatus
from shared.models.video import VideoRecord

ViewName = Literal["upload", "ready", "processing", "completed", "failed"]

STEPS = [
    (PipelineStatus.ANALYZING, "Analyzing scene dynamics"),
    (PipelineStatus.CLEANING_FRAME, "Removing watermark artifacts"),
    (PipelineStatus.GENERATING, "Synthesizing clean video"),
]

_STEP_ORDER = [
    PipelineStatus.ANALYZING,
    PipelineStatus.CLEANING_FRAME,
    PipelineStatus.GENERATING,
    PipelineStatus.COMPLETED,
]


class StepView(BaseModel):
    key: PipelineStatus
    label: str
    reached: bool = False


class ViewModel(BaseModel):
    view: ViewName
    status: Optional[PipelineStatus] = None
    message: str = ""
    progress: Optional[int] = None
    error: Optional[str] = None
    steps: List[StepView] = Field(default_factory=list)
    original_url: Optional[str] = None
    result_url: Optional[str] = None
    download_filename: Optional[str] = None
    actions: List[str] = Field(default_factory=list)


def _steps(status: PipelineStatus) -> List[StepView]:
    reached_index = _STEP_ORDER.index(status) if status in _STEP_ORDER else -1
    return [
        StepView(key=key, label=label, reached=reached_index >= _STEP_ORDER.index(key))
        for key, label in STEPS
    ]


def render_view(state: Optional[PipelineState], video: Optional[VideoRecord]) -> ViewModel:
    """
    Render the current state.

    Args:
        state: Pipeline state of the loaded video
        video: Loaded video, or None before anything was supplied

    Returns:
        One of the upload, ready, processing, completed or failed views
    """
    if video is None or state is None:
        return ViewModel(view="upload", actions=["upload", "paste_link"])

    status = PipelineStatus(state.status)
    base = {"status": status, "original_url": video.preview_url}

    if status == PipelineStatus.IDLE:
        return ViewModel(
            view="ready",
            message="Ready to process video.",
            progress=0,
            actions=["start", "change_video"],
            **base
        )

    if status == PipelineStatus.COMPLETED:
        return ViewModel(
            view="completed",
            message=state.message,
            progress=state.progress,
            steps=_steps(status),
            result_url=state.result.url,
            download_filename=state.result.filename,
            actions=["download", "change_video"],
            **base
        )

    if status == PipelineStatus.FAILED:
        return ViewModel(
            view="failed",
            message=state.message,
            error=state.error,
            actions=["retry", "change_video"] if state.retryable else ["change_video"],
            **base
        )

    return ViewModel(
        view="processing",
        message=state.message,
        progress=state.progress,
        steps=_steps(status),
        **base
    )
