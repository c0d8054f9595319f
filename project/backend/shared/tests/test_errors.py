"""
Tests for error handling.
"""

from shared.errors import (
    PipelineError,
    ConfigError,
    ValidationError,
    LinkRejectedError,
    FrameCaptureError,
    GenerationError,
    NoResultError,
    CredentialError,
    CredentialMissingError,
    CredentialExpiredError,
    PipelineCancelledError,
    RunConflictError,
    VideoNotFoundError,
    StateTransitionError,
)


def test_pipeline_error_inheritance():
    """Test that all exceptions inherit from PipelineError."""
    for cls in (
        ConfigError,
        ValidationError,
        FrameCaptureError,
        GenerationError,
        CredentialError,
        PipelineCancelledError,
        RunConflictError,
        VideoNotFoundError,
        StateTransitionError,
    ):
        assert issubclass(cls, PipelineError)

    assert issubclass(LinkRejectedError, ValidationError)
    assert issubclass(NoResultError, GenerationError)
    assert issubclass(CredentialMissingError, CredentialError)
    assert issubclass(CredentialExpiredError, CredentialError)


def test_pipeline_error_with_video_id():
    """Test that exceptions can include video_id."""
    error = ConfigError("Test error", video_id="vid-1", code="TEST_ERROR")

    assert error.message == "Test error"
    assert error.video_id == "vid-1"
    assert error.code == "TEST_ERROR"
    assert str(error) == "Test error"


def test_generation_error_keeps_remote_message():
    """The remote message is the exception text, unmodified."""
    error = GenerationError("Requested entity was not found.", status_code=404)

    assert str(error) == "Requested entity was not found."
    assert error.status_code == 404
    assert error.video_id is None


def test_no_result_error_code():
    error = NoResultError("No video URI returned", code="NO_RESULT")
    assert error.code == "NO_RESULT"
    assert error.status_code is None
