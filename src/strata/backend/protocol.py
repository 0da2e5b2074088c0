"""Backend capability protocols.

``Backend`` is the minimal capability set: validate and apply its own
configuration, and hand out the state handle for the current environment.
``Enhanced`` adds ``operation()`` for backends that execute operations
themselves. The local backend is Enhanced; a remote backend would implement
the same protocol and be selected once at startup.

ARCHITECTURE
────────────
::

    Backend (Protocol)
      ├── .validate(config)  → (warnings, errors)
      ├── .configure(config)
      └── .state()           → StateHandle

    Enhanced (Protocol, extends Backend)
      └── .operation(op, ctx) → RunningOperation   (does not block)

Tags:
    strata, backend, protocol, interface
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from strata.backend.operation import Operation, RunningOperation
from strata.state.protocol import StateHandle


@runtime_checkable
class Backend(Protocol):
    """Minimal interface a backend must implement."""

    def validate(self, config: Mapping[str, Any]) -> tuple[Sequence[str], Sequence[str | BaseException]]:
        ...

    def configure(self, config: Mapping[str, Any]) -> None:
        ...

    def state(self) -> StateHandle:
        """Return the state handle for this environment.

        The handle may not be loaded yet; callers call ``refresh()``.
        """
        ...


@runtime_checkable
class Enhanced(Backend, Protocol):
    """Backend that can execute operations."""

    def operation(self, op: Operation, ctx: threading.Event | None = None) -> RunningOperation:
        """Start ``op`` and return immediately.

        Raises:
            UnsupportedOperationError: Synchronously, if ``op`` cannot be run
                by this backend. Every later failure goes to
                ``RunningOperation.err``.
        """
        ...
