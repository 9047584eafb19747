"""Structured logging for the API server and the deployment runner.

Standard library logging carries the output (stdout plus a rotating file) and
structlog renders it. Values bound with ``structlog.contextvars``, such as the
request id, are merged into every event. Deployment tasks are created while a
request is being handled, so their events carry that request's id too.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

from ntando.config import Settings, get_settings

# Per-request logging is done by RequestLoggingMiddleware
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "pymongo")


def _log_file(settings: Settings) -> Path | None:
    if not settings.log_file_name:
        return None
    log_dir = Path(settings.log_directory).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / settings.log_file_name


def _handlers(settings: Settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = _log_file(settings)
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=settings.log_file_max_bytes,
                backupCount=settings.log_file_backups,
                encoding="utf-8",
            )
        )
    return handlers


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structured logging for the application."""
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        level=settings.log_level,
        handlers=_handlers(settings),
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exc_info itself
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
