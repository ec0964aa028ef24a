"""
Structured logging configuration using structlog.

HTTP requests bind ``request_id`` in the tracing middleware; scenario runs
bind ``scenario_id`` (and the session) through :func:`scenario_context`, so
every event emitted by the pipeline stages carries them, including those
logged from worker threads.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.types import EventDict, Processor

from miraat.config import get_settings

SERVICE_NAME = "miraat"

NOISY_LOGGERS = ("uvicorn.access", "httpx", "hpack")


def add_service(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Upper-case severity field expected by log collectors."""
    event_dict["severity"] = method_name.upper()
    return event_dict


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    JSON lines outside dev mode when ``log_format`` is ``json``, a coloured
    console renderer otherwise. Access logs of the HTTP stack are capped at
    WARNING while testing.
    """
    settings = get_settings()
    level = _resolve_level(settings.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    if settings.testing:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not settings.testing)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service,
            add_severity,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def scenario_context(scenario_id: str, session_id: Optional[str] = None) -> Iterator[None]:
    """
    Bind scenario identifiers to every log event inside the block.

    Bindings live in contextvars, so they follow the current asyncio task
    and are copied into ``asyncio.to_thread`` workers.
    """
    bindings = {"scenario_id": scenario_id}
    if session_id is not None:
        bindings["session_id"] = session_id
    with structlog.contextvars.bound_contextvars(**bindings):
        yield
