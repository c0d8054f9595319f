"""
Configuration management.

Centralized environment variable management and validation.
"""

from typing import Literal, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow case-insensitive env var matching
        extra="ignore"
    )

    # Gemini API
    gemini_api_key: Optional[str] = None
    genai_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Models
    analysis_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    video_model: str = "veo-3.1-fast-generate-preview"

    # Generation parameters
    video_resolution: Literal["720p", "1080p"] = "720p"
    aspect_ratio: Literal["16:9", "9:16", "1:1", "3:4", "4:3"] = "16:9"

    # Timing
    poll_interval_seconds: float = 5.0
    request_timeout_seconds: float = 60.0
    media_load_timeout_seconds: float = 30.0

    # Uploads
    max_upload_mb: int = 50
    upload_dir: Optional[str] = None  # Default: system temp directory
    max_session_videos: int = 20  # Oldest videos are evicted beyond this

    # Frontend configuration
    frontend_url: str = "http://localhost:3000"  # Frontend domain for CORS

    # Environment
    environment: Literal["development", "staging", "production", "test"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("gemini_api_key")
    @classmethod
    def validate_gemini_api_key(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank key as unset."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("genai_base_url")
    @classmethod
    def validate_genai_base_url(cls, v: str) -> str:
        """Validate Gemini API base URL format."""
        if not v.startswith(("http://", "https://")):
            raise ConfigError("GENAI_BASE_URL must be a valid HTTP/HTTPS URL")
        return v.rstrip("/")

    @field_validator("poll_interval_seconds", "request_timeout_seconds", "media_load_timeout_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Durations must be positive."""
        if v <= 0:
            raise ConfigError("Timeouts and intervals must be greater than zero")
        return v

    @field_validator("max_upload_mb")
    @classmethod
    def validate_max_upload_mb(cls, v: int) -> int:
        """Validate upload size limit."""
        if v < 1:
            raise ConfigError("MAX_UPLOAD_MB must be at least 1")
        return v

    @field_validator("max_session_videos")
    @classmethod
    def validate_max_session_videos(cls, v: int) -> int:
        """Validate the session video limit."""
        if v < 1:
            raise ConfigError("MAX_SESSION_VIDEOS must be at least 1")
        return v

    @field_validator("frontend_url")
    @classmethod
    def validate_frontend_url(cls, v: str) -> str:
        """Validate frontend URL format."""
        if not v:
            raise ConfigError("FRONTEND_URL is required")
        if not v.startswith(("http://", "https://")):
            raise ConfigError("FRONTEND_URL must be a valid HTTP/HTTPS URL")
        return v


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigError for consistency
    if isinstance(e, ConfigError):
        raise
    raise ConfigError(f"Failed to load configuration: {str(e)}") from e
