"""
CLI utility helpers — consoles, UI adapters and option parsing.
"""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from strata.core.errors import StrataError
from strata.engine.ui import InputOpts

console = Console()
err_console = Console(stderr=True)


# ── UI adapters ──────────────────────────────────────────────────────────


class ConsoleUI:
    """UIOutput that writes finished lines (already colorized) to stdout."""

    def output(self, text: str) -> None:
        typer.echo(text)


class ConsoleUIInput:
    """UIInput that prompts on the terminal."""

    def input(self, opts: InputOpts) -> str:
        if opts.description:
            typer.echo(opts.description)
        return typer.prompt(opts.query, default=opts.default or None, show_default=bool(opts.default))


# ── Option parsing ───────────────────────────────────────────────────────


def parse_vars(values: list[str] | None) -> dict[str, Any]:
    """Parse repeated ``--var key=value`` options; later keys win."""
    variables: dict[str, Any] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got {item!r}", param_hint="--var")
        variables[key.strip()] = value
    return variables


# ── Error output ─────────────────────────────────────────────────────────


def fail(error: BaseException) -> typer.Exit:
    """Print ``error`` to stderr and return the exit to raise."""
    if isinstance(error, StrataError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {escape(error.message)}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {escape(str(error))}")
    return typer.Exit(code=1)
