"""
CLI: ``strata plan`` — show the changes needed to reach the configuration.
"""

from __future__ import annotations

import threading
from pathlib import Path

import typer

from strata.backend.operation import OperationType
from strata.cli.meta import base_operation, build_backend, execute, load_module
from strata.cli.utils import ConsoleUI, ConsoleUIInput, fail, parse_vars
from strata.core.errors import StrataError
from strata.core.settings import get_settings
from strata.framework.logging import configure_logging


def plan(
    directory: Path = typer.Argument(Path("."), help="Configuration directory"),
    destroy: bool = typer.Option(False, "--destroy", help="Plan to destroy all managed resources"),
    refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Refresh state before planning"),
    out: Path | None = typer.Option(None, "--out", help="Save the plan to this path"),
    state: str | None = typer.Option(None, "--state", help="State file path"),
    target: list[str] | None = typer.Option(None, "--target", help="Resource address to target"),
    var: list[str] | None = typer.Option(None, "--var", help="Variable as key=value"),
    input: bool | None = typer.Option(None, "--input/--no-input", help="Ask for missing input"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
    detailed_exitcode: bool = typer.Option(
        False,
        "--detailed-exitcode",
        help="Exit 2 when the plan has changes, 0 when it has none, 1 on error",
    ),
) -> None:
    """Generate and show an execution plan."""
    settings = get_settings(state_path=state, input=input, no_color=no_color or None)
    configure_logging(level=settings.log_level, format=settings.log_format)
    variables = parse_vars(var)

    try:
        ui_input = ConsoleUIInput() if settings.input else None
        backend = build_backend(settings, cli=ConsoleUI(), ui_input=ui_input)
        module = load_module(settings, directory)
        op = base_operation(
            OperationType.PLAN,
            module=module,
            targets=target,
            variables=variables,
            ui_in=ui_input,
            destroy=destroy,
            plan_refresh=refresh,
            plan_out_path=out,
            cancel=threading.Event(),
        )
        with backend:
            running = execute(backend, op)
    except StrataError as e:
        raise fail(e) from e

    if running.err is not None:
        raise fail(running.err)

    if detailed_exitcode and running.plan is not None and not running.plan.diff.is_empty():
        raise typer.Exit(code=2)
