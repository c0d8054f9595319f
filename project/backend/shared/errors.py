"""
Error handling.

Custom exception classes for consistent error handling across the pipeline.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        video_id: Optional[str] = None,
        code: Optional[str] = None
    ):
        """
        Initialize pipeline error.

        Args:
            message: Error message
            video_id: Optional video ID associated with the error
            code: Optional error code for categorization
        """
        self.message = message
        self.video_id = video_id
        self.code = code
        super().__init__(self.message)


class ConfigError(PipelineError):
    """Configuration errors (missing env vars, invalid settings)."""
    pass


class ValidationError(PipelineError):
    """Input validation errors."""
    pass


class LinkRejectedError(ValidationError):
    """Pasted link does not point at a recognised video file."""
    pass


class FrameCaptureError(PipelineError):
    """No still frame could be extracted from the source video."""

    def __init__(
        self,
        message: str,
        video_id: Optional[str] = None,
        code: Optional[str] = None,
        retryable: bool = True
    ):
        """
        Initialize frame capture error.

        Args:
            message: Error message
            video_id: Optional video ID associated with the error
            code: Optional error code for categorization
            retryable: False when the same input will fail the same way again
        """
        self.retryable = retryable
        super().__init__(message, video_id, code)


class GenerationError(PipelineError):
    """Remote AI generation failures (description, image, video)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        video_id: Optional[str] = None,
        code: Optional[str] = None
    ):
        """
        Initialize generation error.

        Args:
            message: Error message as reported by the remote API
            status_code: HTTP status of the failed remote call, if any
            video_id: Optional video ID associated with the error
            code: Optional error code for categorization
        """
        self.status_code = status_code
        super().__init__(message, video_id, code)


class NoResultError(GenerationError):
    """Remote operation finished without producing a result."""
    pass


class CredentialError(PipelineError):
    """Access credential problems."""
    pass


class CredentialMissingError(CredentialError):
    """No API key has been selected."""
    pass


class CredentialExpiredError(CredentialError):
    """The selected API key was rejected by the remote API."""
    pass


class PipelineCancelledError(PipelineError):
    """Run stopped because its video was discarded."""
    pass


class RunConflictError(PipelineError):
    """A run is already active, or the video is not ready to start one."""
    pass


class VideoNotFoundError(PipelineError):
    """Unknown or discarded video."""
    pass


class StateTransitionError(PipelineError):
    """Illegal pipeline state transition."""
    pass


__all__ = [
    "PipelineError",
    "ConfigError",
    "ValidationError",
    "LinkRejectedError",
    "FrameCaptureError",
    "GenerationError",
    "NoResultError",
    "CredentialError",
    "CredentialMissingError",
    "CredentialExpiredError",
    "PipelineCancelledError",
    "RunConflictError",
    "VideoNotFoundError",
    "StateTransitionError",
]
