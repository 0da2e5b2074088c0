"""Backup state — takes a copy of the prior state before it is overwritten.

``BackupState`` decorates another handle (the *real* handle). The first time
a ``persist()`` is about to reach the real handle, the real handle's
pre-write snapshot is written to the backup path. Only after the backup is
durable does the real handle persist, so the backup always holds the state
as it was immediately before the overwrite.

Rules:
    - The pre-write snapshot is captured at the first ``write()``; if
      ``persist()`` is called without a write, the current snapshot is used.
    - The backup is taken at most once per handle.
    - No backup is written when there was no prior state.
    - A failed backup aborts the persist; the real store is left untouched.

Tags:
    strata, state, backup, decorator
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from strata.core.errors import BackupError, StatePersistError
from strata.framework.logging import get_logger
from strata.state.local import LocalState
from strata.state.protocol import StateHandle
from strata.state.snapshot import StateSnapshot

logger = get_logger(__name__)


class BackupState:
    """State handle that backs up the real handle's prior snapshot once."""

    def __init__(self, real: StateHandle, path: str | PathLike[str]):
        self.real = real
        self.path = Path(path)
        self._captured = False
        self._pre_write: StateSnapshot | None = None
        self._backed_up = False

    def __repr__(self) -> str:
        return f"BackupState(real={self.real!r}, path={str(self.path)!r})"

    def refresh(self) -> None:
        self.real.refresh()

    def read(self) -> StateSnapshot | None:
        return self.real.read()

    def write(self, snapshot: StateSnapshot) -> None:
        if not self._backed_up and not self._captured:
            self._pre_write = self.real.read()
            self._captured = True
        self.real.write(snapshot)

    def persist(self) -> None:
        if not self._backed_up:
            prior = self._pre_write if self._captured else self.real.read()
            if prior is not None:
                self._write_backup(prior)
            self._backed_up = True
            self._pre_write = None
        self.real.persist()

    def _write_backup(self, snapshot: StateSnapshot) -> None:
        backup = LocalState(self.path)
        backup.write(snapshot)
        try:
            backup.persist()
        except StatePersistError as e:
            raise BackupError(
                f"Error writing state backup: {e.cause}",
                path=self.path,
                cause=e.cause,
            ) from e
        logger.info("state.backup_written", path=str(self.path))
