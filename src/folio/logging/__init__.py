"""
Folio logging - structured, run-aware logging.

Usage:
    from folio.logging import configure_logging, get_logger, log_step, bind_context

    configure_logging()
    log = get_logger(__name__)

    bind_context(run_id="3f2a9c01b7de")
    with log_step("ingest.index"):
        build_indexes()
"""

from folio.logging.config import configure_logging, is_configured
from folio.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    new_run_id,
    push_context,
    set_context,
)
from folio.logging.timing import TimingResult, log_step

__all__ = [
    "configure_logging",
    "is_configured",
    "LogContext",
    "get_logger",
    "set_context",
    "bind_context",
    "push_context",
    "clear_context",
    "get_context",
    "new_run_id",
    "TimingResult",
    "log_step",
]
