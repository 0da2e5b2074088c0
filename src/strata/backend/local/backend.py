"""Local backend — runs operations in-process against a local state file.

Manifesto:
    One backend instance runs at most one operation at a time. ``operation()``
    never waits for work, only for the execution slot; the work itself runs
    on the backend's thread pool and reports through the returned
    ``RunningOperation``.

ARCHITECTURE
────────────
::

    Local(state_path, state_out_path, state_backup_path, ...)
      ├── .validate(config) / .configure(config)   LocalConfig or delegate
      ├── .state()          LocalState → BackupState chain, or delegate.state()
      ├── .operation(op)    check type → acquire slot → submit → return
      │      worker: handler(s) → record outcome → mark_finished → release
      └── .close()          drain the pool

    handlers: REFRESH → refresh.op_refresh
              PLAN    → plan.op_plan

APPLY needs an engine apply step, which the engine contract does not have,
so the local backend rejects it like any other unsupported type.

Related modules:
    context.py   — state load/save, context build, cancellation checks
    refresh.py   — refresh handler
    plan.py      — plan handler

Tags:
    strata, backend, local, thread-pool, dispatcher

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from strata.backend.local.context import EngineConstructionError
from strata.backend.local.plan import op_plan
from strata.backend.local.refresh import op_refresh
from strata.backend.operation import Operation, OperationType, RunningOperation
from strata.backend.protocol import Backend
from strata.core.errors import OperationFailedError, StrataError, UnsupportedOperationError
from strata.core.settings import DEFAULT_STATE_FILENAME
from strata.engine.protocol import ContextOptions, EngineFactory
from strata.engine.ui import Colorize, UIOutput
from strata.framework.logging import clear_context, get_logger, set_context
from strata.state.chain import StateDecorator, backup_decorators, build_state_chain
from strata.state.local import LocalState
from strata.state.protocol import StateHandle

logger = get_logger(__name__)

Handler = Callable[["Local", Operation, RunningOperation, "threading.Event | None"], None]

HANDLERS: Mapping[OperationType, Handler] = {
    OperationType.REFRESH: op_refresh,
    OperationType.PLAN: op_plan,
}


class LocalConfig(BaseModel):
    """Configuration block accepted by ``Local.validate`` / ``Local.configure``."""

    model_config = ConfigDict(extra="forbid")

    path: str | None = None
    path_out: str | None = None
    backup_path: str | None = None


class Local:
    """In-process backend.

    Attributes:
        state_path: State file read by operations.
        state_out_path: State file written by operations (default: state_path).
        state_backup_path: Backup file; empty or "-" disables backups.
        context_opts: Base engine options every operation starts from.
        engine_factory: Builds an engine from ContextOptions.
        input_enabled: Ask for missing input before running.
        validation_enabled: Validate before running.
        backend: Delegate for state storage; when set no local chain is built.
        cli: Reporting sink used when the operation has no ``ui_out``.
        colorize: Markup renderer for reports.

    Example:
        >>> with Local(state_path="prod.tfstate", engine_factory=make_engine) as b:
        ...     running = b.operation(Operation(type=OperationType.REFRESH))
        ...     running.wait()
    """

    name = "local"

    def __init__(
        self,
        *,
        state_path: str = DEFAULT_STATE_FILENAME,
        state_out_path: str | None = None,
        state_backup_path: str | None = None,
        context_opts: ContextOptions | None = None,
        engine_factory: EngineFactory | None = None,
        input_enabled: bool = False,
        validation_enabled: bool = False,
        backend: Backend | None = None,
        cli: UIOutput | None = None,
        colorize: Colorize | None = None,
    ):
        self.state_path = state_path
        self.state_out_path = state_out_path
        self.state_backup_path = state_backup_path
        self.context_opts = context_opts or ContextOptions()
        self.engine_factory = engine_factory
        self.input_enabled = input_enabled
        self.validation_enabled = validation_enabled
        self.backend = backend
        self.cli = cli
        self.colorize = colorize or Colorize(enabled=True)

        self._decorators: tuple[StateDecorator, ...] = backup_decorators(state_backup_path)
        self._slot = threading.Lock()
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="strata-op")

    def __repr__(self) -> str:
        return f"Local(state_path={self.state_path!r}, delegate={self.backend!r})"

    # === CONFIGURATION ===

    def validate(self, config: Mapping[str, Any]) -> tuple[list[str], list[str]]:
        """Check a configuration block; returns (warnings, errors)."""
        if self.backend is not None:
            warnings, errors = self.backend.validate(config)
            return list(warnings), [str(e) for e in errors]

        try:
            LocalConfig.model_validate(dict(config))
        except ValidationError as e:
            errors = []
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"])
                errors.append(f"{loc}: {err['msg']}" if loc else err["msg"])
            return [], errors
        return [], []

    def configure(self, config: Mapping[str, Any]) -> None:
        """Apply a configuration block. Call before the first operation.

        Raises:
            StrataError: If the block does not validate.
        """
        if self.backend is not None:
            self.backend.configure(config)
            return

        try:
            parsed = LocalConfig.model_validate(dict(config))
        except ValidationError as e:
            raise StrataError(f"Invalid local backend configuration: {e}", cause=e) from e

        if parsed.path is not None:
            self.state_path = parsed.path
        if parsed.path_out is not None:
            self.state_out_path = parsed.path_out
        if parsed.backup_path is not None:
            self.state_backup_path = parsed.backup_path
            self._decorators = backup_decorators(parsed.backup_path)

    # === STATE ===

    def state(self) -> StateHandle:
        """Return the state handle for this backend.

        Raises:
            StateReadError: If the local state file cannot be read.
        """
        if self.backend is not None:
            return self.backend.state()

        base = LocalState(self.state_path, self.state_out_path)
        base.refresh()
        return build_state_chain(base, self._decorators)

    # === OPERATIONS ===

    def operation(self, op: Operation, ctx: threading.Event | None = None) -> RunningOperation:
        """Start ``op`` in the background and return its handle.

        Blocks only while another operation holds this backend's slot.

        Raises:
            UnsupportedOperationError: If the type (or any type in
                ``op.sequence``) has no handler, a type repeats in
                ``op.sequence``, ``op.plan_id`` or ``op.plan_path`` is set,
                or no engine factory is configured. Nothing is started.
        """
        handlers = self._resolve_handlers(op)

        self._slot.acquire()
        running = RunningOperation(op)
        try:
            self._pool.submit(self._run, op, ctx, running, handlers)
        except BaseException:
            self._slot.release()
            raise

        logger.info(
            "operation.submitted",
            operation_id=running.id,
            operation=_describe(op),
            backend=self.name,
        )
        return running

    def _resolve_handlers(self, op: Operation) -> list[tuple[OperationType, Handler]]:
        types = op.types()
        if not types:
            raise UnsupportedOperationError("none", self.name, reason="no operation type given")

        resolved = []
        for requested in types:
            try:
                op_type = OperationType(requested)
            except ValueError:
                raise UnsupportedOperationError(str(requested), self.name) from None
            handler = HANDLERS.get(op_type)
            if handler is None:
                raise UnsupportedOperationError(op_type.value, self.name)
            if any(seen is op_type for seen, _ in resolved):
                raise UnsupportedOperationError(
                    _describe(op), self.name, reason=f"{op_type.value} appears more than once"
                )
            resolved.append((op_type, handler))

        if op.plan_id is not None:
            raise UnsupportedOperationError(
                _describe(op), self.name, reason="plan IDs are not supported"
            )
        if op.plan_path is not None:
            raise UnsupportedOperationError(
                _describe(op), self.name, reason="saved plans are not supported"
            )
        if self.engine_factory is None:
            raise UnsupportedOperationError(
                _describe(op), self.name, reason="no engine factory configured"
            )
        return resolved

    def _run(
        self,
        op: Operation,
        ctx: threading.Event | None,
        running: RunningOperation,
        handlers: list[tuple[OperationType, Handler]],
    ) -> None:
        set_context(operation_id=running.id, operation=_describe(op), backend=self.name)
        finished = False
        try:
            running.mark_started()
            for op_type, handler in handlers:
                set_context(operation_id=running.id, operation=op_type.value, backend=self.name)
                handler(self, op, running, ctx)
            finished = True
        except EngineConstructionError as e:
            running.record_error(e.original)
            finished = True
        except StrataError as e:
            e.with_context(operation=_describe(op), operation_id=running.id)
            running.record_error(e)
            finished = True
        except Exception as e:
            logger.exception("operation.crashed", error_type=type(e).__name__)
            running.record_error(
                OperationFailedError(f"Operation failed unexpectedly: {e}", cause=e).with_context(
                    operation=_describe(op), operation_id=running.id
                )
            )
            finished = True
        finally:
            try:
                if not finished:
                    running.record_error(OperationFailedError("Operation aborted"))
                running.mark_finished()
                self._log_outcome(running)
            finally:
                clear_context()
                self._slot.release()

    def _log_outcome(self, running: RunningOperation) -> None:
        if running.err is None:
            logger.info(
                "operation.completed",
                status=running.status.value,
                duration_seconds=running.duration_seconds,
            )
        else:
            logger.warning(
                "operation.failed",
                status=running.status.value,
                error_type=type(running.err).__name__,
                error=str(running.err),
            )

    # === LIFECYCLE ===

    def close(self, wait: bool = True) -> None:
        """Shut down the worker pool."""
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> Local:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close(wait=True)


def _describe(op: Operation) -> str:
    return "+".join(getattr(t, "value", str(t)) for t in op.types()) or "none"
