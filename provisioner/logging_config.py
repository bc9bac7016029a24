"""
Journalisation JSON du provisioner.
Trois fichiers tournants : app.log, audit.log (provisionings réussis) et
access.log (une ligne par requête HTTP, corrélée par X-Request-ID).
"""
import contextvars
import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import settings

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "provisioner_request_id", default=None
)
_configured = False


def set_request_id(request_id: str) -> contextvars.Token:
    return _request_id.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    try:
        _request_id.reset(token)
    except ValueError:
        # Jeton créé dans un autre contexte (passage par le threadpool)
        pass


class JsonFormatter(logging.Formatter):
    """Une ligne JSON par événement, ``extra_fields`` fusionnés au premier niveau."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": _request_id.get(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)

        return json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str)


def _rotating(path: Path, max_bytes: int, backup_count: int) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "filename": str(path),
        "maxBytes": max_bytes,
        "backupCount": backup_count,
        "encoding": "utf-8",
    }


def setup_logging() -> None:
    """Configure la journalisation une seule fois par processus."""
    global _configured
    if _configured:
        return

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers: Dict[str, Dict[str, Any]] = {
        "app_file": _rotating(log_dir / "app.log", settings.LOG_MAX_BYTES, settings.LOG_BACKUP_COUNT),
        "audit_file": _rotating(
            log_dir / "audit.log", settings.AUDIT_LOG_MAX_BYTES, settings.AUDIT_LOG_BACKUP_COUNT
        ),
        "access_file": _rotating(log_dir / "access.log", settings.LOG_MAX_BYTES, settings.LOG_BACKUP_COUNT),
    }
    console = []
    if settings.LOG_ENABLE_CONSOLE:
        handlers["console"] = {"class": "logging.StreamHandler", "formatter": "json"}
        console = ["console"]

    def dedicated(handler: str) -> Dict[str, Any]:
        return {"level": "INFO", "handlers": [handler] + console, "propagate": False}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": "provisioner.logging_config.JsonFormatter"}},
        "handlers": handlers,
        "loggers": {
            "provisioner": {"level": settings.LOG_LEVEL, "propagate": True},
            "provisioner.audit": dedicated("audit_file"),
            "provisioner.access": dedicated("access_file"),
            "uvicorn.access": dedicated("access_file"),
        },
        "root": {"level": settings.LOG_LEVEL, "handlers": ["app_file"] + console},
    })
    # QuantityParseWarning et consorts finissent dans app.log (logger py.warnings)
    logging.captureWarnings(True)

    _configured = True
