"""Local file state — a state handle over a JSON file on disk.

``LocalState`` reads from ``path`` and persists to ``path_out`` (which
defaults to ``path``). A missing input file is not an error: it simply means
no infrastructure has been recorded yet and ``read()`` returns ``None``.

Persisting bumps ``serial`` when the content differs from what was last read
or persisted, then replaces the output file atomically (temporary file in the
same directory + ``os.replace``).

Related modules:
    backup.py    — BackupState wraps a LocalState
    chain.py     — builds the decorator chain around it
    snapshot.py  — the serialized model

Tags:
    strata, state, local, file, atomic-write
"""

from __future__ import annotations

import os
import tempfile
from os import PathLike
from pathlib import Path

from pydantic import ValidationError

from strata.core.errors import StatePersistError, StateReadError, StateWriteError
from strata.framework.logging import get_logger
from strata.state.snapshot import StateSnapshot, dump_snapshot, load_snapshot

logger = get_logger(__name__)


class LocalState:
    """State handle backed by a local file.

    Example:
        >>> state = LocalState("strata.tfstate")
        >>> state.refresh()
        >>> snapshot = state.read()
    """

    def __init__(self, path: str | PathLike[str], path_out: str | PathLike[str] | None = None):
        self.path = Path(path)
        self.path_out = Path(path_out) if path_out else self.path
        self._state: StateSnapshot | None = None
        self._read_state: StateSnapshot | None = None

    def __repr__(self) -> str:
        return f"LocalState(path={str(self.path)!r}, path_out={str(self.path_out)!r})"

    def refresh(self) -> None:
        if not self.path.exists():
            self._state = None
            self._read_state = None
            return

        try:
            data = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateReadError(self.path, e, phase="refresh") from e

        if not data.strip():
            self._state = None
            self._read_state = None
            return

        try:
            snapshot = load_snapshot(data)
        except (ValidationError, ValueError) as e:
            raise StateReadError(self.path, e, phase="refresh") from e

        self._state = snapshot
        self._read_state = snapshot.deep_copy()

    def read(self) -> StateSnapshot | None:
        if self._state is None:
            return None
        return self._state.deep_copy()

    def write(self, snapshot: StateSnapshot) -> None:
        if not isinstance(snapshot, StateSnapshot):
            raise StateWriteError(
                f"Error writing state: expected a StateSnapshot, got {type(snapshot).__name__}",
                path=self.path_out,
            )
        self._state = snapshot.deep_copy()

    def persist(self) -> None:
        if self._state is None:
            return

        snapshot = self._state
        if self._read_state is not None and not snapshot.equal_content(self._read_state):
            snapshot.serial = max(snapshot.serial, self._read_state.serial) + 1

        try:
            _atomic_write(self.path_out, dump_snapshot(snapshot))
        except OSError as e:
            raise StatePersistError(
                f"Error saving state: {e}",
                path=self.path_out,
                cause=e,
            ) from e

        self._read_state = snapshot.deep_copy()
        logger.debug("state.persisted", path=str(self.path_out), serial=snapshot.serial)


def _atomic_write(path: Path, data: str) -> None:
    """Write ``data`` to ``path`` via a temporary file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
