"""State handle chain — ordered decorators around a base handle.

A backend builds its decorator tuple once from its configuration and applies
it to every base handle it creates. The tuple is never mutated afterwards.

Example::

    decorators = backup_decorators("strata.tfstate.backup")
    handle = build_state_chain(LocalState("strata.tfstate"), decorators)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from strata.core.settings import BACKUP_DISABLED
from strata.state.backup import BackupState
from strata.state.protocol import StateHandle

StateDecorator = Callable[[StateHandle], StateHandle]


def backup_decorators(path: str | None) -> tuple[StateDecorator, ...]:
    """Decorators for a backup path; empty when backups are disabled."""
    if not path or path == BACKUP_DISABLED:
        return ()

    def wrap(real: StateHandle) -> StateHandle:
        return BackupState(real, path)

    return (wrap,)


def build_state_chain(base: StateHandle, decorators: Sequence[StateDecorator]) -> StateHandle:
    """Apply ``decorators`` in order; the last one is the outermost handle."""
    handle = base
    for decorate in decorators:
        handle = decorate(handle)
    return handle
