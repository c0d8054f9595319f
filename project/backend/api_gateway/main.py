"""
FastAPI application entry point.

Main application setup with CORS, middleware, and route registration.
"""

import uuid
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from shared.config import settings
from shared.logging import configure_logging, get_logger
from shared.errors import (
    ValidationError,
    LinkRejectedError,
    VideoNotFoundError,
    RunConflictError,
    StateTransitionError,
    CredentialError,
    PipelineError
)

configure_logging(settings.log_level)
logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="VideoRestore API Gateway",
    description="Watermark removal by regenerating videos from a clean keyframe",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=True,
    max_age=3600
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path
        }
    )

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


def _error_response(request: Request, exc: Exception, status_code: int, code: str, retryable: bool = False):
    return JSONResponse(
        status_code=status_code,
        content={
            "error": str(exc),
            "code": code,
            "retryable": retryable,
            "request_id": getattr(request.state, "request_id", None)
        }
    )


@app.exception_handler(LinkRejectedError)
async def link_rejected_handler(request: Request, exc: LinkRejectedError):
    """Handle rejected video links; the message is the user-facing warning."""
    return _error_response(request, exc, 400, "LINK_REJECTED")


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return _error_response(request, exc, 400, "VALIDATION_ERROR")


@app.exception_handler(VideoNotFoundError)
async def not_found_handler(request: Request, exc: VideoNotFoundError):
    """Handle unknown or discarded videos."""
    return _error_response(request, exc, 404, "VIDEO_NOT_FOUND")


@app.exception_handler(RunConflictError)
async def run_conflict_handler(request: Request, exc: RunConflictError):
    """Handle a second start while a run is active."""
    return _error_response(request, exc, 409, "RUN_CONFLICT")


@app.exception_handler(StateTransitionError)
async def transition_error_handler(request: Request, exc: StateTransitionError):
    """Handle illegal state changes (e.g. retry of a run that has not failed)."""
    return _error_response(request, exc, 409, exc.code or "INVALID_TRANSITION")


@app.exception_handler(CredentialError)
async def credential_error_handler(request: Request, exc: CredentialError):
    """Handle missing or rejected API keys."""
    return _error_response(request, exc, 401, exc.code or "CREDENTIAL_ERROR", retryable=True)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    """Handle pipeline errors."""
    return _error_response(request, exc, 500, exc.code or "MODULE_FAILURE")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={"request_id": getattr(request.state, "request_id", None)}
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "retryable": False,
            "request_id": getattr(request.state, "request_id", None)
        }
    )


# Register routes
from api_gateway.routes import videos, restore, health, download, stream, credentials

app.include_router(videos.router, prefix="/api/v1", tags=["videos"])
app.include_router(restore.router, prefix="/api/v1", tags=["restore"])
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(download.router, prefix="/api/v1", tags=["download"])
app.include_router(stream.router, prefix="/api/v1", tags=["stream"])
app.include_router(credentials.router, prefix="/api/v1", tags=["credentials"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "VideoRestore API Gateway", "version": "1.0.0"}
