"""
Root Typer application for the strata CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from strata import __version__

app = Typer(
    name="strata",
    help="strata — plan and refresh infrastructure state.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"strata {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """strata CLI — plan and refresh infrastructure."""


# ── Command registration ─────────────────────────────────────────────────

from strata.cli.plan import plan  # noqa: E402
from strata.cli.refresh import refresh  # noqa: E402

app.command("plan")(plan)
app.command("refresh")(refresh)
