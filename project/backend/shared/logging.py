"""
Logging setup.

JSON log lines with the active video ID attached to every record.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

_video_id: ContextVar[Optional[str]] = ContextVar("video_id", default=None)

# Attributes every LogRecord has; anything else came in through `extra=`
_RESERVED_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class VideoContextFilter(logging.Filter):
    """Attach the current video ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "video_id"):
            record.video_id = _video_id.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "ts": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(VideoContextFilter())
    root.handlers = [handler]


def set_video_id(video_id: Optional[str]) -> None:
    """Set the video ID reported on log records from this context."""
    _video_id.set(str(video_id) if video_id is not None else None)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
