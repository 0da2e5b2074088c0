"""UI capabilities handed to the engine and to the reporting path.

- ``UIInput``  — asks the user a question (used by engine input solicitation)
- ``UIOutput`` — the reporting sink; receives finished lines of text
- ``Colorize`` — turns rich console markup into ANSI text, or strips the
  markup when colors are disabled

Absent ``UIInput`` / ``UIOutput`` means non-interactive / silent.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.text import Text


@dataclass(frozen=True)
class InputOpts:
    """A single question asked through a UIInput."""

    id: str
    query: str
    description: str = ""
    default: str = ""


@runtime_checkable
class UIInput(Protocol):
    def input(self, opts: InputOpts) -> str:
        """Ask a question and return the answer.

        Raises:
            Exception: If the input channel is broken or closed.
        """
        ...


@runtime_checkable
class UIOutput(Protocol):
    def output(self, text: str) -> None:
        ...


class Colorize:
    """Render rich markup such as ``[bold]Plan:[/bold]``.

    When disabled the markup is removed and the plain text returned, so the
    output is identical apart from color.

    Example:
        >>> Colorize(enabled=False).color("[bold]Plan:[/bold] 1 to add")
        'Plan: 1 to add'
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def color(self, markup: str) -> str:
        text = Text.from_markup(markup)
        if not self.enabled:
            return text.plain

        console = Console(
            file=io.StringIO(),
            force_terminal=True,
            color_system="standard",
            highlight=False,
            soft_wrap=True,
        )
        with console.capture() as capture:
            console.print(text, end="")
        return capture.get()
