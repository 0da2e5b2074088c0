"""Operation requests and running-operation handles.

``Operation`` says *what* to do; a backend decides *how*. Handing an
Operation to ``Enhanced.operation()`` returns a ``RunningOperation``
immediately while the work continues in the background.

ARCHITECTURE
────────────
::

    caller                         backend worker
      │ operation(op) ─────────────▶ (slot acquired, task submitted)
      │ ◀──── RunningOperation
      │                              record_state(loaded)
      │  .state (best known) ◀────── record_state(refreshed)
      │                              record_plan(plan_id, plan)
      │                              record_error(err)      (write-once)
      │  .wait() ◀────────────────── mark_finished()        (done, once)

The completion event belongs to the handle itself. It is never derived from
the caller's cancellation flag, so cancelling the caller cannot mark the
operation done before the handler has actually stopped.

Reading rules:
    - ``err``, ``plan_id`` and ``plan`` are final only after ``done()``.
    - ``state`` may be read at any time and holds the best-known snapshot,
      including after a failure.

Tags:
    strata, backend, operation, async, future
"""

from __future__ import annotations

import dataclasses
import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from strata.backend.runs import RunStatus, validate_run_transition
from strata.core.errors import OperationCancelledError

if TYPE_CHECKING:
    from strata.engine.ui import UIInput, UIOutput
    from strata.plan.models import Plan
    from strata.state.snapshot import StateSnapshot


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class OperationType(str, Enum):
    """Kinds of work a backend may support."""

    REFRESH = "refresh"
    PLAN = "plan"
    APPLY = "apply"


@dataclass(frozen=True)
class Operation:
    """One requested unit of work.

    Not every backend supports every field; a backend rejects what it cannot
    honor before starting any work.

    Example:
        >>> op = Operation(type=OperationType.PLAN, module=tree, destroy=True)
        >>> op.types()
        (<OperationType.PLAN: 'plan'>,)
    """

    type: OperationType | None = None
    """Selects the handler."""

    sequence: tuple[OperationType, ...] = ()
    """Run several types in order under one slot, e.g. refresh then plan."""

    # === SAVED PLANS ===
    plan_id: str | None = None
    """Opaque reference to a plan held by the backend."""

    plan_path: Path | None = None
    """Path of a saved plan file to use instead of planning live."""

    plan_out_path: Path | None = None
    """Where a plan operation saves its plan artifact."""

    plan_refresh: bool = False
    """Refresh through the engine before planning."""

    # === ENGINE OVERRIDES ===
    module: Any = None
    """Opaque module tree handle."""

    destroy: bool = False
    targets: tuple[str, ...] = ()
    variables: Mapping[str, Any] | None = None

    # === INPUT / OUTPUT / CONTROL ===
    ui_in: UIInput | None = None
    ui_out: UIOutput | None = None
    cancel: threading.Event | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sequence", tuple(self.sequence))
        object.__setattr__(self, "targets", tuple(self.targets))
        if self.variables is not None:
            object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))
        for name in ("plan_path", "plan_out_path"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                object.__setattr__(self, name, Path(value))

    def types(self) -> tuple[OperationType, ...]:
        """The operation types to run, in order."""
        if self.sequence:
            return self.sequence
        if self.type is not None:
            return (self.type,)
        return ()

    def replace(self, **changes: Any) -> Operation:
        """Return a copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


class RunningOperation:
    """Handle to an operation executing in the background.

    Handler side (the backend): ``mark_started``, ``record_state``,
    ``record_plan``, ``record_error``, ``mark_finished``.

    Caller side: ``done``, ``wait``, ``result`` and the read-only properties.
    """

    def __init__(self, operation: Operation, operation_id: str | None = None):
        self.operation = operation
        self.id = operation_id or f"op-{uuid.uuid4().hex[:8]}"
        self.created_at = utcnow()
        self.started_at: datetime | None = None
        self.completed_at: datetime | None = None

        self._done = threading.Event()
        self._lock = threading.Lock()
        self._status = RunStatus.PENDING
        self._err: BaseException | None = None
        self._plan_id: str | None = None
        self._plan: Plan | None = None
        self._state: StateSnapshot | None = None

    def __repr__(self) -> str:
        return f"RunningOperation(id={self.id!r}, status={self._status.value})"

    # === CALLER SIDE ===

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the operation finishes; False if ``timeout`` expired."""
        return self._done.wait(timeout)

    def result(self, timeout: float | None = None) -> StateSnapshot | None:
        """Wait for completion and return the final state, or raise ``err``.

        Raises:
            TimeoutError: If the operation did not finish within ``timeout``.
        """
        if not self.wait(timeout):
            raise TimeoutError(f"Operation {self.id} did not finish within {timeout}s")
        if self._err is not None:
            raise self._err
        return self._state

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def err(self) -> BaseException | None:
        return self._err

    @property
    def plan_id(self) -> str | None:
        return self._plan_id

    @property
    def plan(self) -> Plan | None:
        return self._plan

    @property
    def state(self) -> StateSnapshot | None:
        return self._state

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    # === HANDLER SIDE ===

    def mark_started(self) -> None:
        with self._lock:
            validate_run_transition(self._status, RunStatus.RUNNING)
            self._status = RunStatus.RUNNING
            self.started_at = utcnow()

    def record_state(self, state: StateSnapshot | None) -> None:
        """Publish the best-known snapshot."""
        with self._lock:
            self._state = state

    def record_plan(self, plan_id: str, plan: Plan) -> None:
        with self._lock:
            if self._plan_id is not None:
                raise RuntimeError(f"plan already recorded for operation {self.id}")
            self._plan_id = plan_id
            self._plan = plan

    def record_error(self, err: BaseException) -> None:
        with self._lock:
            if self._err is not None:
                raise RuntimeError(f"error already recorded for operation {self.id}")
            self._err = err

    def mark_finished(self) -> None:
        """Set the terminal status and signal completion exactly once."""
        with self._lock:
            if self._done.is_set():
                raise RuntimeError(f"operation {self.id} already finished")
            if self._err is None:
                target = RunStatus.COMPLETED
            elif isinstance(self._err, OperationCancelledError):
                target = RunStatus.CANCELLED
            else:
                target = RunStatus.FAILED
            validate_run_transition(self._status, target)
            self._status = target
            self.completed_at = utcnow()
        self._done.set()
