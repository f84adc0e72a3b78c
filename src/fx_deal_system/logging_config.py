"""Structured logging for the FX Deal System, built on structlog.

Console rendering is used while developing; JSON lines (with level, app and
environment keys) everywhere else. Request handlers and the import workflow
bind identifiers such as ``request_id`` and ``deal_unique_id`` to the
contextvars so every event emitted while handling them carries those keys.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from fx_deal_system.config import Settings, get_settings

NOISY_LOGGERS = (
    "httpcore",
    "httpx",
    "uvicorn.access",
    "asyncio",
)

FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _uppercase_level(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["level"] = str(event_dict.get("level", method_name)).upper()
    return event_dict


def _app_context(settings: Settings) -> Processor:
    app = settings.app_name
    environment = settings.environment.value

    def add_app_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("app", app)
        event_dict.setdefault("environment", environment)
        return event_dict

    return add_app_context


def build_processors(settings: Settings) -> list[Processor]:
    """Processor chain for the configured ``log_format``."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.log_format == "json":
        processors += [
            _uppercase_level,
            _app_context(settings),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Call once at startup (the API lifespan and the CLI both do) before any
    events are emitted.
    """
    settings = settings or get_settings()
    level = (
        logging.DEBUG
        if settings.debug
        else logging.getLevelName(settings.log_level.value)
    )

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_file:
        _attach_file_handler(settings.log_file, level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def _attach_file_handler(log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("deal_imported", deal_unique_id="FX-001", deal_id=42)
    """
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind keys for the duration of a ``with`` block.

    Example:
        with LogContext(deal_unique_id=request.deal_unique_id):
            logger.info("deal_import_started")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs

    def __enter__(self) -> "LogContext":
        bind_context(**self.kwargs)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self.kwargs)
