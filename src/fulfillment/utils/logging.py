"""Logging configuration for the fulfillment engine.

Modules log through ``structlog.get_logger(__name__)``. Applications embedding
the engine call ``configure_logging()`` once at startup; level, renderer and
optional log files follow ``FulfillmentSettings``.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from fulfillment.config import FulfillmentSettings, get_settings

_LEVELS_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_JSON_ENVIRONMENTS = {"production", "staging"}

_MAX_LOG_BYTES = 10 * 1024 * 1024


def get_log_level(settings: FulfillmentSettings | None = None) -> str:
    """Explicit ``log_level`` wins; otherwise the environment decides."""
    settings = settings or get_settings()
    if settings.log_level:
        return settings.log_level.upper()
    return _LEVELS_BY_ENVIRONMENT.get(settings.environment.lower(), "INFO")


def _rotating_file(path: Path, level: str | int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _handlers(settings: FulfillmentSettings, level: str) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers = [console]

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_file(log_dir / "fulfillment.log", level))
        handlers.append(_rotating_file(log_dir / "fulfillment_error.log", logging.ERROR))
    return handlers


def setup_stdlib_logging(settings: FulfillmentSettings | None = None) -> None:
    """Route the root logger to stdout and, with ``log_dir`` set, to rotating files."""
    settings = settings or get_settings()
    level = get_log_level(settings)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(settings, level)

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def setup_structlog(settings: FulfillmentSettings | None = None) -> None:
    settings = settings or get_settings()
    if settings.environment.lower() in _JSON_ENVIRONMENTS:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: FulfillmentSettings | None = None) -> None:
    settings = settings or get_settings()
    setup_stdlib_logging(settings)
    setup_structlog(settings)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind values (request id, tenant, ...) onto every later log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
