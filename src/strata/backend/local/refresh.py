"""Refresh handler — reconcile recorded state with real infrastructure.

Steps (each failure ends the operation, completed steps are not undone)::

    1. existence check      missing file   → StateNotFoundError
                            unreadable     → StateReadError
    2. load state           RunningOperation.state = loaded snapshot
    3. build context        input / validation
    4. engine.refresh()     RunningOperation.state = refreshed snapshot
    5. write + persist      through the backup chain

The existence check only applies when the backend owns its state; a
delegate backend decides for itself what "no state" means.
"""

from __future__ import annotations

import os
import threading
from typing import TYPE_CHECKING

from strata.backend.local.context import build_context, check_cancelled, load_state, save_state
from strata.backend.operation import Operation, RunningOperation
from strata.core.errors import EngineError, StateNotFoundError, StateReadError
from strata.framework.logging import get_logger, log_step

if TYPE_CHECKING:
    from strata.backend.local.backend import Local

logger = get_logger(__name__)


def _check_state_exists(path: str) -> None:
    try:
        os.stat(path)
    except FileNotFoundError:
        raise StateNotFoundError(path) from None
    except OSError as e:
        raise StateReadError(path, e, phase="load") from e


def op_refresh(
    backend: Local,
    op: Operation,
    running: RunningOperation,
    ctx: threading.Event | None = None,
) -> None:
    """Run a refresh and persist the result."""
    if backend.backend is None:
        _check_state_exists(backend.state_path)

    check_cancelled(op, ctx, "state.load")
    state = load_state(backend)
    running.record_state(state.read())

    engine = build_context(backend, op, state, ctx)

    check_cancelled(op, ctx, "engine.refresh")
    with log_step("engine.refresh") as timer:
        try:
            new_state = engine.refresh()
        except Exception as e:
            raise EngineError("refresh", e) from e
        if new_state is not None:
            timer.add_metric("resources", len(new_state.resource_addresses()))

    running.record_state(new_state)
    save_state(state, new_state)
