"""
Stage timing for ingestion runs.

``log_step`` wraps one pipeline stage: it pushes the stage name and a fresh
span id into the log context, logs ``<stage>.start`` at DEBUG and
``<stage>.end`` at INFO with ``duration_ms`` and any metrics collected on
the way. Events logged inside the block (e.g. per-document rejections)
carry the same ``stage`` and ``span_id``.
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from folio.logging.context import get_context, get_logger, push_context


@dataclass
class TimingResult:
    """Timing and metrics of one stage."""

    step: str
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    status: str = "ok"
    error_info: dict[str, Any] | None = None

    @property
    def duration_ms(self) -> float:
        end = time.perf_counter() if self.ended_at is None else self.ended_at
        return (end - self.started_at) * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        self.metrics[key] = value
        return self

    def fail(self, error: BaseException) -> None:
        self.status = "error"
        self.error_info = {"error_type": type(error).__name__, "error_message": str(error)}

    def fields(self) -> dict[str, Any]:
        """Key/values for the end (or error) event."""
        out: dict[str, Any] = {"duration_ms": round(self.duration_ms, 2), **self.metrics}
        if self.error_info:
            out.update(self.error_info)
        return out


@contextmanager
def log_step(event: str, level: str = "info", **metrics: Any) -> Iterator[TimingResult]:
    """
    Time a stage and log its start and end.

    Usage:
        with log_step("ingest.parse", documents=120) as timer:
            outcomes = parse_all(raws)
            timer.add_metric("candidates", len(outcomes))

        # DEBUG ingest.parse.start stage=ingest.parse span_id=a1b2c3d4 documents=120
        # INFO  ingest.parse.end   stage=ingest.parse span_id=a1b2c3d4 duration_ms=42.1 candidates=131

    Exceptions are logged as ``<stage>.error`` and re-raised.
    """
    log = get_logger("folio.timing")
    timer = TimingResult(step=event, parent_span_id=get_context().span_id, metrics=dict(metrics))
    token = push_context(stage=event, span_id=timer.span_id, parent_span_id=timer.parent_span_id)
    try:
        log.debug(f"{event}.start", **metrics)
        try:
            yield timer
        except Exception as e:
            timer.ended_at = time.perf_counter()
            timer.fail(e)
            log.error(f"{event}.error", **timer.fields())
            raise
        timer.ended_at = time.perf_counter()
        getattr(log, level)(f"{event}.end", **timer.fields())
    finally:
        token.restore()
