"""Engine hooks — passive observers the engine calls while it works.

``Hook`` is a no-op base class; observers override only what they need.
``CountHook`` tallies planned resource actions so the plan handler can print
its one-line summary.

Summary accounting (user-visible, keep it exact)::

    add     = to_add + to_remove_and_add
    change  = to_change
    destroy = to_remove + to_remove_and_add

A replace is counted once on each side of the add/destroy tally.
"""

from __future__ import annotations

import threading
from enum import Enum

from strata.plan.models import DiffChangeType, InstanceDiff
from strata.state.snapshot import InstanceState


class HookAction(str, Enum):
    """What the engine should do after calling a hook.

    ``HALT`` stops the engine from feeding further resources to any hook.
    """

    CONTINUE = "continue"
    HALT = "halt"


class Hook:
    """Base hook. Every callback returns ``HookAction.CONTINUE``."""

    def pre_diff(self, address: str, state: InstanceState | None) -> HookAction:
        return HookAction.CONTINUE

    def post_diff(self, address: str, diff: InstanceDiff) -> HookAction:
        return HookAction.CONTINUE


class CountHook(Hook):
    """Counts planned creates, updates, destroys and replaces.

    The engine may call hooks from several worker threads, so counters are
    updated under a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.to_add = 0
        self.to_change = 0
        self.to_remove = 0
        self.to_remove_and_add = 0

    def post_diff(self, address: str, diff: InstanceDiff) -> HookAction:
        if diff.is_empty():
            return HookAction.CONTINUE

        with self._lock:
            match diff.change_type:
                case DiffChangeType.DESTROY_CREATE:
                    self.to_remove_and_add += 1
                case DiffChangeType.CREATE:
                    self.to_add += 1
                case DiffChangeType.DESTROY:
                    self.to_remove += 1
                case DiffChangeType.UPDATE:
                    self.to_change += 1

        return HookAction.CONTINUE

    @property
    def add_total(self) -> int:
        return self.to_add + self.to_remove_and_add

    @property
    def destroy_total(self) -> int:
        return self.to_remove + self.to_remove_and_add

    def summary(self) -> str:
        """One-line plan summary in rich markup."""
        return (
            "[bold]Plan:[/bold] "
            f"{self.add_total} to add, {self.to_change} to change, {self.destroy_total} to destroy."
        )
