"""
Observability Package

Structured JSON logging with per-run context.
"""

from agentloop.observability.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    reset_logging,
    run_id_context,
    set_run_id,
)

__all__ = [
    "configure_logging",
    "reset_logging",
    "get_logger",
    "set_run_id",
    "get_run_id",
    "clear_run_id",
    "run_id_context",
]
