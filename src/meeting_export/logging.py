"""
Structured logging configuration for the meeting export pipeline.

Uses structlog for structured, context-aware logging with:
- JSON output for production
- Pretty console output for development
- Run and user identifiers propagated through context variables
- Stage timing for export runs
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

# Context variables for run-scoped data
_run_id: ContextVar[str | None] = ContextVar('run_id', default=None)
_user_id: ContextVar[str | None] = ContextVar('user_id', default=None)


def get_run_id() -> str | None:
    """Get the current export run ID from context."""
    return _run_id.get()


def get_user_id() -> str | None:
    """Get the current user ID from context."""
    return _user_id.get()


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that adds context variables to log entries."""
    run_id = get_run_id()
    user_id = get_user_id()

    if run_id:
        event_dict.setdefault('run_id', run_id)
    if user_id:
        event_dict.setdefault('user_id', user_id)

    return event_dict


def configure_logging(
    json_output: bool = False,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON logs (for production).
                    If False, output pretty console logs (for development).
        log_level: Override log level (defaults to config.LOG_LEVEL)
    """
    level = log_level or config.LOG_LEVEL
    level_num = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stdout,
        level=level_num,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def logging_context(
    run_id: str | None = None,
    user_id: str | None = None,
) -> Generator[None, None, None]:
    """
    Context manager for setting logging context variables.

    Usage:
        with logging_context(run_id="9f2c", user_id="ana@example.com"):
            logger.info("export.started")  # Includes run_id and user_id
    """
    old_run = _run_id.get()
    old_user = _user_id.get()

    try:
        if run_id is not None:
            _run_id.set(run_id)
        if user_id is not None:
            _user_id.set(user_id)
        yield
    finally:
        _run_id.set(old_run)
        _user_id.set(old_user)


class ExportTimer:
    """
    Timer for tracking export stage durations.

    Usage:
        timer = ExportTimer()
        with timer.stage("load_transcript"):
            ...
        with timer.stage("steps"):
            ...
        print(timer.summary())
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time: float = time.perf_counter()
        self._stage_start: float | None = None

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time an export stage."""
        self._stage_start = time.perf_counter()
        try:
            yield
        finally:
            if self._stage_start is not None:
                elapsed = time.perf_counter() - self._stage_start
                self.stages[name] = elapsed * 1000
            self._stage_start = None

    def record(self, name: str, duration_ms: float) -> None:
        """Manually record a stage duration."""
        self.stages[name] = duration_ms

    @property
    def total_ms(self) -> float:
        """Total elapsed time since timer creation in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get timing summary as a dictionary."""
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


# Initialize logging on module import (development mode by default)
# Production deployments should call configure_logging(json_output=True)
configure_logging(json_output=config.LOG_JSON)
