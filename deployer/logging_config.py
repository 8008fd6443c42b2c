"""
Logging configuration for the deployer.
Provides structured JSON logs and request correlation helpers.
"""

from __future__ import annotations

import contextvars
import json
import logging
import logging.config
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import settings

_request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "deployer_request_id", default=None
)
_configured = False


def get_request_id() -> Optional[str]:
    """Return the current request identifier if any."""
    return _request_id_ctx.get()


def set_request_id(request_id: str) -> contextvars.Token:
    """Bind the request identifier into the context and return the token."""
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    """Reset the request identifier using the provided token."""
    try:
        _request_id_ctx.reset(token)
    except ValueError:
        # Token created in another context; logging must not fail the request.
        pass


class JsonFormatter(logging.Formatter):
    """Formatter that emits structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        if timestamp.endswith("+00:00"):
            timestamp = timestamp[:-6] + "Z"

        payload: Dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)

        return json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str)


LOG_FILES = ("app.log", "access.log")
FALLBACK_LOG_DIR = Path(tempfile.gettempdir()) / "deployer-logs"


def prepare_log_dir(preferred: Path) -> Path:
    """Return a writable log directory, falling back to the temp dir.

    The default LOG_DIR sits next to the package, which is read-only once
    installed into site-packages of a container image.
    """
    for candidate in (Path(preferred), FALLBACK_LOG_DIR):
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            # Files exist before the first entry so tailing agents pick them up
            for fname in LOG_FILES:
                (candidate / fname).touch(exist_ok=True)
        except OSError:
            continue
        return candidate
    raise OSError(f"no writable log directory ({preferred}, {FALLBACK_LOG_DIR})")


def _rotating_file(path: Path) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "filename": str(path),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
    }


def setup_logging() -> None:
    """Configure application-wide logging once."""
    global _configured
    if _configured:
        return

    log_dir = prepare_log_dir(settings.LOG_DIR)

    root_handlers: list[str] = ["app_file"]
    handlers: Dict[str, Dict[str, Any]] = {
        "app_file": _rotating_file(log_dir / "app.log"),
        "access_file": _rotating_file(log_dir / "access.log"),
    }
    if settings.LOG_ENABLE_CONSOLE:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": settings.LOG_LEVEL,
        }
        root_handlers.append("console")

    access_handlers = ["access_file"] + (["console"] if settings.LOG_ENABLE_CONSOLE else [])

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            },
            "json": {
                "()": "deployer.logging_config.JsonFormatter",
            },
        },
        "handlers": handlers,
        "loggers": {
            "deployer": {
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "deployer.access": {
                "level": "INFO",
                "handlers": access_handlers,
                "propagate": False,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": root_handlers,
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": access_handlers,
                "propagate": False,
            },
        },
        "root": {
            "level": settings.LOG_LEVEL,
            "handlers": root_handlers,
        },
    }

    logging.config.dictConfig(logging_config)
    logging.captureWarnings(True)

    logging.getLogger("deployer").info(
        "logging_initialized",
        extra={
            "extra_fields": {
                "log_dir": str(log_dir),
                "log_dir_fallback": log_dir != Path(settings.LOG_DIR),
                "level": settings.LOG_LEVEL,
                "max_bytes": settings.LOG_MAX_BYTES,
                "backup_count": settings.LOG_BACKUP_COUNT,
                "console_enabled": settings.LOG_ENABLE_CONSOLE,
            }
        },
    )

    _configured = True


__all__ = [
    "get_request_id",
    "set_request_id",
    "reset_request_id",
    "setup_logging",
    "prepare_log_dir",
]
