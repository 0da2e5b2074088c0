"""
Phase timing for operation lifecycles.

``log_step`` wraps one lifecycle phase (state load, context build, an
engine call, persist, plan write) and logs::

    <phase>.start   DEBUG    span_id [, parent_span_id] [, extra fields]
    <phase>.end     INFO     duration_ms, span_id, metrics
    <phase>.error   WARNING  duration_ms, error_type, error_message

Errors are logged and re-raised unchanged. While the block runs the phase
name and span id are pushed into the log context, so nested log calls and
nested phases are attributed to it.
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from strata.framework.logging.context import get_context, get_logger, push_context


@dataclass
class PhaseTimer:
    """Timing and metrics collected for one phase."""

    step: str
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)

    def stop(self) -> None:
        if self.ended_at is None:
            self.ended_at = time.perf_counter()

    @property
    def duration_ms(self) -> float:
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return (end - self.started_at) * 1000

    def add_metric(self, key: str, value: Any) -> "PhaseTimer":
        self.metrics[key] = value
        return self

    def fields(self) -> dict[str, Any]:
        out: dict[str, Any] = {"duration_ms": round(self.duration_ms, 2), "span_id": self.span_id}
        if self.parent_span_id:
            out["parent_span_id"] = self.parent_span_id
        out.update(self.metrics)
        return out



@contextmanager
def timed_block(step: str = "unnamed") -> Iterator[PhaseTimer]:
    """Time a block without logging anything."""
    timer = PhaseTimer(step=step, parent_span_id=get_context().span_id)
    try:
        yield timer
    finally:
        timer.stop()


@contextmanager
def log_step(event: str, log_start: bool = True, level: str = "info", **extra: Any) -> Iterator[PhaseTimer]:
    """Log the start, end (with duration) or failure of a phase.

    Usage:
        with log_step("engine.refresh") as timer:
            snapshot = engine.refresh()
            timer.add_metric("resources", len(snapshot.resource_addresses()))
    """
    log = get_logger("strata.timing")
    timer = PhaseTimer(step=event, parent_span_id=get_context().span_id, metrics=dict(extra))
    token = push_context(step=event, span_id=timer.span_id, parent_span_id=timer.parent_span_id)

    if log_start:
        start = {"span_id": timer.span_id, **extra}
        if timer.parent_span_id:
            start["parent_span_id"] = timer.parent_span_id
        log.debug(f"{event}.start", **start)

    try:
        yield timer
    except Exception as e:
        timer.stop()
        log.warning(
            f"{event}.error",
            **timer.fields(),
            status="error",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise
    finally:
        timer.stop()
        token.restore()

    getattr(log, level)(f"{event}.end", **timer.fields())
