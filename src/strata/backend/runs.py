"""Run status — the state machine of a running operation.

Valid transition graph::

    PENDING   → RUNNING | CANCELLED
    RUNNING   → COMPLETED | FAILED | CANCELLED
    COMPLETED → (terminal)
    FAILED    → (terminal)
    CANCELLED → (terminal)

Tags:
    strata, backend, runs, state-machine
"""

from enum import Enum


class InvalidTransitionError(Exception):
    """Raised when a run status transition is not allowed."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Invalid RunStatus transition: {current} → {target}")
        self.current = current
        self.target = target


class RunStatus(str, Enum):
    """Lifecycle status of a RunningOperation."""

    PENDING = "pending"  # Accepted, task not yet started
    RUNNING = "running"  # Handler executing
    COMPLETED = "completed"  # Finished successfully
    FAILED = "failed"  # Finished with error
    CANCELLED = "cancelled"  # Stopped after observing a cancellation request

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)


RUN_VALID_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.PENDING: frozenset({RunStatus.RUNNING, RunStatus.CANCELLED}),
    RunStatus.RUNNING: frozenset({RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED}),
    **{status: frozenset() for status in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)},
}


def validate_run_transition(current: RunStatus, target: RunStatus) -> None:
    """Raise :class:`InvalidTransitionError` unless *target* may follow *current*."""
    if target not in RUN_VALID_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current.value, target.value)
