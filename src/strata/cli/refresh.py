"""
CLI: ``strata refresh`` — update the state file against real resources.
"""

from __future__ import annotations

import threading
from pathlib import Path

import typer

from strata.backend.operation import OperationType
from strata.cli.meta import base_operation, build_backend, execute, load_module
from strata.cli.utils import ConsoleUIInput, fail, parse_vars
from strata.core.errors import StrataError
from strata.core.settings import get_settings
from strata.engine.ui import Colorize
from strata.framework.logging import configure_logging


def refresh(
    directory: Path = typer.Argument(Path("."), help="Configuration directory"),
    state: str | None = typer.Option(None, "--state", help="State file to read"),
    state_out: str | None = typer.Option(None, "--state-out", help="State file to write"),
    backup: str | None = typer.Option(None, "--backup", help='Backup path, "-" to disable'),
    target: list[str] | None = typer.Option(None, "--target", help="Resource address to target"),
    var: list[str] | None = typer.Option(None, "--var", help="Variable as key=value"),
    input: bool | None = typer.Option(None, "--input/--no-input", help="Ask for missing input"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """Update the state file with the real state of resources."""
    settings = get_settings(
        state_path=state,
        state_out_path=state_out,
        backup_path=backup,
        input=input,
        no_color=no_color or None,
    )
    configure_logging(level=settings.log_level, format=settings.log_format)
    variables = parse_vars(var)

    try:
        ui_input = ConsoleUIInput() if settings.input else None
        backend = build_backend(settings, ui_input=ui_input)
        module = load_module(settings, directory)
        op = base_operation(
            OperationType.REFRESH,
            module=module,
            targets=target,
            variables=variables,
            ui_in=ui_input,
            cancel=threading.Event(),
        )
        with backend:
            running = execute(backend, op)
    except StrataError as e:
        raise fail(e) from e

    if running.err is not None:
        raise fail(running.err)

    snapshot = running.state
    if snapshot is not None:
        colorize = Colorize(enabled=not settings.no_color)
        count = len(snapshot.resource_addresses())
        typer.echo(colorize.color(f"[green]Refreshed {count} resource(s).[/green]"))
