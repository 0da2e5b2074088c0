"""Command meta layer — turns settings and flags into a backend and an Operation.

The backend is resolved once per command invocation; commands never pick a
backend themselves.

Path defaulting rules::

    state_path       settings.state_path           (default strata.tfstate)
    state_out_path   settings.state_out_path       or state_path
    backup_path      settings.backup_path          or <state_out_path>.backup
                     "-"                           disables backups

Engine and module loader are given as import paths (``"pkg.module:attr"``).
Without a module loader the module handle is the configuration directory
itself.

Tags:
    strata, cli, meta, configuration
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

from strata.backend.local import Local
from strata.backend.operation import Operation, OperationType, RunningOperation
from strata.cli.utils import err_console
from strata.core.errors import ErrorCategory, ModuleLoadError, StrataError
from strata.core.settings import DEFAULT_BACKUP_EXTENSION, StrataSettings
from strata.engine.protocol import ContextOptions, EngineFactory
from strata.engine.ui import Colorize, UIInput, UIOutput
from strata.framework.logging import get_logger

logger = get_logger(__name__)


def resolve_import(path: str, kind: str) -> Any:
    """Import ``"package.module:attr"`` and return ``attr``.

    Raises:
        StrataError: If the path is malformed or cannot be imported.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise StrataError(
            f"Invalid {kind} import path {path!r}; expected 'package.module:attr'",
            category=ErrorCategory.CONFIG,
        )
    try:
        module = importlib.import_module(module_name)
        target = module
        for part in attr.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise StrataError(
            f"Could not load {kind} {path!r}: {e}",
            category=ErrorCategory.CONFIG,
            cause=e,
        ) from e
    return target


def resolve_paths(settings: StrataSettings) -> tuple[str, str, str]:
    """Apply the defaulting rules; returns (state, state_out, backup)."""
    state_path = settings.state_path
    state_out_path = settings.state_out_path or state_path
    backup_path = settings.backup_path or f"{state_out_path}{DEFAULT_BACKUP_EXTENSION}"
    return state_path, state_out_path, backup_path


def build_backend(
    settings: StrataSettings,
    *,
    engine_factory: EngineFactory | None = None,
    cli: UIOutput | None = None,
    ui_input: UIInput | None = None,
) -> Local:
    """Build the backend for one command invocation."""
    if engine_factory is None:
        if not settings.engine:
            raise StrataError(
                "No engine configured. Set STRATA_ENGINE to the import path of an engine factory.",
                category=ErrorCategory.CONFIG,
            )
        engine_factory = resolve_import(settings.engine, "engine")

    state_path, state_out_path, backup_path = resolve_paths(settings)
    logger.debug(
        "backend.resolved",
        backend=Local.name,
        state_path=state_path,
        state_out_path=state_out_path,
        backup_path=backup_path,
    )
    return Local(
        state_path=state_path,
        state_out_path=state_out_path,
        state_backup_path=backup_path,
        context_opts=ContextOptions(parallelism=settings.parallelism, ui_input=ui_input),
        engine_factory=engine_factory,
        input_enabled=settings.input,
        validation_enabled=settings.validation,
        cli=cli,
        colorize=Colorize(enabled=not settings.no_color),
    )


def load_module(settings: StrataSettings, directory: Path) -> Any:
    """Load the root module from ``directory``.

    Raises:
        ModuleLoadError: If the directory is missing or the loader fails.
    """
    if not directory.is_dir():
        raise ModuleLoadError(f"Error loading config: {directory} is not a directory")

    if not settings.module_loader:
        return directory.resolve()

    loader = resolve_import(settings.module_loader, "module loader")
    try:
        return loader(directory)
    except ModuleLoadError:
        raise
    except Exception as e:
        raise ModuleLoadError(f"Error loading config: {e}", cause=e) from e


def base_operation(
    op_type: OperationType,
    *,
    module: Any = None,
    targets: list[str] | None = None,
    variables: dict[str, Any] | None = None,
    ui_in: UIInput | None = None,
    **fields: Any,
) -> Operation:
    """Operation carrying the fields every command sets."""
    return Operation(
        type=op_type,
        module=module,
        targets=tuple(targets or ()),
        variables=variables or None,
        ui_in=ui_in,
        **fields,
    )


def execute(backend: Local, op: Operation) -> RunningOperation:
    """Run ``op`` to completion, turning Ctrl-C into a cooperative cancel.

    A second interrupt while the operation is winding down is not caught.
    """
    running = backend.operation(op)
    try:
        running.wait()
    except KeyboardInterrupt:
        err_console.print("Interrupt received. Gracefully shutting down...")
        if op.cancel is not None:
            op.cancel.set()
        running.wait()
    return running
