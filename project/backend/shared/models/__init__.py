"""
Data models for the video restoration pipeline.

This module exports all Pydantic models used across pipeline modules.
"""

from .video import (
    VideoSource,
    VideoRecord,
    CapturedFrame,
    GeneratedImage,
    OperationError,
    VideoOperation,
    GeneratedVideoResult,
)
from .pipeline import (
    PipelineStatus,
    PipelineState,
    IdleState,
    AnalyzingState,
    CleaningFrameState,
    GeneratingState,
    CompletedState,
    FailedState,
    pipeline_state_adapter,
    is_active,
    can_transition,
)

__all__ = [
    # Video models
    "VideoSource",
    "VideoRecord",
    "CapturedFrame",
    "GeneratedImage",
    "OperationError",
    "VideoOperation",
    "GeneratedVideoResult",
    # Pipeline state
    "PipelineStatus",
    "PipelineState",
    "IdleState",
    "AnalyzingState",
    "CleaningFrameState",
    "GeneratingState",
    "CompletedState",
    "FailedState",
    "pipeline_state_adapter",
    "is_active",
    "can_transition",
]
