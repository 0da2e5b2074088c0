"""State handle contract.

Everything above the state package (the backends, the operation handlers)
talks to persisted state only through this protocol, so a handle may be a
local file, a backup-wrapped file, or a handle owned by another backend.

Lifecycle::

    refresh()         re-read from the backing store
    read()            current in-memory snapshot (None = no state yet)
    write(snapshot)   replace the in-memory snapshot, not yet durable
    persist()         durably commit the in-memory snapshot

A terminal sequence that changes state is always ``write`` then ``persist``.

Tags:
    strata, state, protocol, interface
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from strata.state.snapshot import StateSnapshot


@runtime_checkable
class StateHandle(Protocol):
    """Access to one persisted state resource."""

    def refresh(self) -> None:
        """Re-read the snapshot from the backing store.

        Raises:
            StateReadError: If the store exists but cannot be read or parsed.
        """
        ...

    def read(self) -> StateSnapshot | None:
        """Return the current in-memory snapshot."""
        ...

    def write(self, snapshot: StateSnapshot) -> None:
        """Replace the in-memory snapshot without touching the store.

        Raises:
            StateWriteError: If the snapshot cannot be accepted.
        """
        ...

    def persist(self) -> None:
        """Durably commit the in-memory snapshot.

        Raises:
            StatePersistError: If the store cannot be written.
        """
        ...
