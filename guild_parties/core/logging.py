# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Structured JSON logging - one JSON line per record.

The request id set by RequestIDMiddleware is carried in a context variable
and stamped on every record logged while that request is handled, including
records from services running in the threadpool.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from guild_parties.core.config import settings

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Optional ``extra=`` keys copied into the JSON line when present.
CONTEXT_FIELDS: tuple[str, ...] = (
    "request_id", "operation", "party_id", "member_id", "party_type",
)


class RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_ctx.get()
        return True


class JSONFormatter(logging.Formatter):
    """Emit every log record as a single JSON line for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value
        if record.exc_info and record.exc_info[1]:
            log_data["error"] = str(record.exc_info[1])
            log_data["error_type"] = type(record.exc_info[1]).__name__
        return json.dumps(log_data, default=str)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger writing JSON lines to stdout."""
    logger = logging.getLogger(name or settings.SERVICE_NAME)
    if not logger.handlers:
        logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        handler.addFilter(RequestIDFilter())
        logger.addHandler(handler)
        logger.propagate = False
    return logger
