"""
Logging context management using contextvars.

The current ingestion run, the stage being executed and the document being
processed are attached to every log entry without threading them through
each call. Worker threads copy the context explicitly (see
``folio.corpus.ingest``) because ``ThreadPoolExecutor`` does not.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token
from dataclasses import asdict, dataclass
from typing import Any

import structlog


def new_run_id() -> str:
    """Generate a short run identifier (12 hex chars)."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class LogContext:
    """
    Execution context attached to all log entries.

    Attributes:
        run_id: Identifier of the ingestion run
        stage: Current pipeline stage ("parse", "slugs", "index", ...)
        origin: Origin identifier of the document being processed
        span_id: Current timing span
        parent_span_id: Enclosing timing span
    """

    run_id: str | None = None
    stage: str | None = None
    origin: str | None = None
    span_id: str | None = None
    parent_span_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs: Any) -> LogContext:
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("folio_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def set_context(
    run_id: str | None = None,
    stage: str | None = None,
    origin: str | None = None,
) -> LogContext:
    """
    Set the current log context.

    This replaces the current context. Use bind_context() to add to existing.
    """
    ctx = LogContext(run_id=run_id, stage=stage, origin=origin)
    _log_context.set(ctx)
    return ctx


def bind_context(**kwargs: Any) -> LogContext:
    """Merge values into the current context and return it."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Clear the current context (reset to empty)."""
    _log_context.set(LogContext())


class ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token: Token[LogContext]):
        self._token = token

    def restore(self) -> None:
        """Restore the previous context."""
        _log_context.reset(self._token)


def push_context(**kwargs: Any) -> ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(origin="posts/a.md")
        try:
            parse(raw)
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    return ContextToken(_log_context.set(updated))


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds the folio context to every log entry.

    Existing keys in the event win over context values.
    """
    for key, value in get_context().to_dict().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)
