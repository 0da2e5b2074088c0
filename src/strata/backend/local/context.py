"""Execution context assembly for the local backend.

Every handler goes through the same three steps before touching the engine:
load the state handle, check for cancellation, build an engine from the
backend's base ``ContextOptions`` plus the operation's overrides.

Override rules::

    destroy, module, targets      operation value replaces base value
    ui_input                      operation value if given, else base value
    variables                     {**base, **op.variables} when op supplies
                                  a non-empty mapping, else base unchanged
    state                         the loaded handle's snapshot

The base options are copied, never modified. The one exception is the scoped
hook attach in :func:`attach_hook`, which restores the prior hook list on
every exit path.

Tags:
    strata, backend, local, context, engine
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from strata.backend.operation import Operation
from strata.core.errors import (
    InputError,
    OperationCancelledError,
    StateError,
    StatePersistError,
    StateReadError,
    StateWriteError,
    StrataError,
    ValidationFailedError,
)
from strata.engine.hooks import Hook
from strata.engine.protocol import ContextOptions, Engine, InputMode
from strata.framework.logging import get_logger, log_step
from strata.state.protocol import StateHandle
from strata.state.snapshot import StateSnapshot

if TYPE_CHECKING:
    from strata.backend.local.backend import Local

logger = get_logger(__name__)


class EngineConstructionError(Exception):
    """An engine factory failure on its way to the worker.

    The worker records ``original``, the exception the factory raised, and
    not this wrapper.
    """

    def __init__(self, original: BaseException):
        super().__init__(str(original))
        self.original = original


def check_cancelled(op: Operation, ctx: threading.Event | None, phase: str) -> None:
    """Raise :class:`OperationCancelledError` if either cancel flag is set."""
    if (ctx is not None and ctx.is_set()) or (op.cancel is not None and op.cancel.is_set()):
        logger.info("operation.cancel_observed", phase=phase)
        raise OperationCancelledError(phase)


def load_state(backend: Local) -> StateHandle:
    """Get the backend's state handle and load it."""
    with log_step("state.load"):
        try:
            state = backend.state()
            state.refresh()
        except StateError:
            raise
        except Exception as e:
            raise StateReadError(
                backend.state_path,
                e,
                message=f"Error loading state: {e}",
                phase="load",
            ) from e
    return state


def save_state(state: StateHandle, snapshot: StateSnapshot) -> None:
    """Write ``snapshot`` into the handle and persist it."""
    with log_step("state.persist"):
        try:
            state.write(snapshot)
        except StateError:
            raise
        except Exception as e:
            raise StateWriteError(f"Error writing state: {e}", cause=e) from e

        try:
            state.persist()
        except StateError:
            raise
        except Exception as e:
            raise StatePersistError(f"Error saving state: {e}", cause=e) from e


def context_options(base: ContextOptions, op: Operation, state: StateHandle) -> ContextOptions:
    """Derive the per-operation options from ``base``."""
    opts = base.copy()
    opts.destroy = op.destroy
    opts.module = op.module
    opts.targets = tuple(op.targets)
    if op.ui_in is not None:
        opts.ui_input = op.ui_in
    if op.variables:
        opts.variables = {**base.variables, **op.variables}
    opts.state = state.read()
    return opts


def build_context(
    backend: Local,
    op: Operation,
    state: StateHandle,
    ctx: threading.Event | None = None,
) -> Engine:
    """Build a ready-to-use engine for ``op``.

    Raises:
        OperationCancelledError: If a cancel flag is set before construction.
        EngineConstructionError: If the engine factory raises anything other
            than a StrataError (those propagate as they are).
        InputError: If input solicitation fails.
        ValidationFailedError: If the engine reports validation errors.
    """
    check_cancelled(op, ctx, "context")

    with log_step("context.build") as timer:
        opts = context_options(backend.context_opts, op, state)
        timer.add_metric("targets", len(opts.targets))
        timer.add_metric("variables", len(opts.variables))

        try:
            engine = backend.engine_factory(opts)
        except StrataError:
            raise
        except Exception as e:
            raise EngineConstructionError(e) from e

        if backend.input_enabled:
            try:
                engine.input(InputMode.PROVIDER | InputMode.VAR | InputMode.VAR_UNSET)
            except Exception as e:
                raise InputError(e) from e

        if backend.validation_enabled:
            warnings, errors = engine.validate()
            for warning in warnings:
                logger.warning("context.validate_warning", warning=str(warning))
            if errors:
                raise ValidationFailedError(errors)

    return engine


@contextmanager
def attach_hook(opts: ContextOptions, hook: Hook) -> Iterator[Hook]:
    """Append ``hook`` to ``opts.hooks`` for the duration of the block.

    The prior hook list is restored on exit, including on error.
    """
    previous = opts.hooks
    opts.hooks = [*previous, hook]
    try:
        yield hook
    finally:
        opts.hooks = previous
