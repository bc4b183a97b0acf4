"""
Structured Logging

JSON log lines via structlog. Each Agent.run() binds a fresh run ID so that
tool calls, gateway round trips and the outcome of one run can be grouped in
the log stream; asyncio tasks spawned inside a run inherit it.

Pattern: Configure once, reconfigure only with force=True (tests)
"""

import contextvars
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

import structlog
from structlog.types import EventDict, WrappedLogger


_run_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "agentloop_run_id", default=None
)
_configured = False


def set_run_id(run_id: str) -> None:
    _run_id.set(run_id)


def get_run_id() -> Optional[str]:
    return _run_id.get()


def clear_run_id() -> None:
    _run_id.set(None)


@contextmanager
def run_id_context(run_id: str) -> Iterator[None]:
    """
    Bind ``run_id`` to every log line emitted inside the block.

    Example:
        >>> with run_id_context("run-1a2b3c"):
        ...     log.info("tool_call", tool="add")
    """
    token = _run_id.set(run_id)
    try:
        yield
    finally:
        _run_id.reset(token)


def inject_run_id(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog processor adding the active run ID, if any."""
    run_id = _run_id.get()
    if run_id is not None:
        event_dict.setdefault("run_id", run_id)
    return event_dict


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    Install the JSON processor chain.

    Every line carries ``event``, ``level``, an ISO-8601 UTC ``timestamp``
    and, inside a run, ``run_id``. Values that are not JSON serializable are
    rendered with ``str``.

    Args:
        level: Minimum level name; unknown names fall back to INFO
        stream: Destination (default: sys.stdout)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    threshold = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            inject_run_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )
    _configured = True


def reset_logging() -> None:
    """Forget the current configuration. Test use only."""
    global _configured
    _configured = False


def get_logger(
    name: str,
    stream: Optional[TextIO] = None,
    level: Optional[str] = None,
) -> structlog.BoundLogger:
    """
    Logger bound to ``name``, configuring structlog on first use.

    The level defaults to ``Settings.log_level``.
    """
    if level is None:
        from agentloop.core.config import get_settings

        level = get_settings().log_level

    configure_logging(level=level, stream=stream)
    return structlog.get_logger().bind(logger=name)
