"""Engine contract — the narrow interface to the reconciliation engine.

The core never walks configuration or computes diffs itself. It builds a
``ContextOptions`` bundle, hands it to an ``EngineFactory`` and then calls at
most four methods on the resulting engine::

    engine.input(mode)          ask for missing values (may block on the user)
    engine.validate()           -> (warnings, errors)
    engine.refresh()            -> StateSnapshot
    engine.plan()               -> Plan

Construction may fail (bad module, bad variable types); that error reaches
the caller unchanged.

Tags:
    strata, engine, protocol, interface
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Flag, auto
from typing import Any, Protocol, runtime_checkable

from strata.engine.hooks import Hook
from strata.engine.ui import UIInput
from strata.plan.models import Plan
from strata.state.snapshot import StateSnapshot


class InputMode(Flag):
    """What the engine's input step should ask for."""

    NONE = 0
    VAR = auto()
    """Variables with no default."""
    VAR_UNSET = auto()
    """Variables that were not set at all."""
    PROVIDER = auto()
    """Provider configuration."""

    STD = VAR | VAR_UNSET | PROVIDER


@dataclass
class ContextOptions:
    """Everything the engine needs to run one operation.

    Backends keep a base instance and derive a per-operation copy from it with
    :meth:`copy`; the base is never modified while building a context.
    """

    module: Any = None
    state: StateSnapshot | None = None
    destroy: bool = False
    targets: tuple[str, ...] = ()
    variables: dict[str, Any] = field(default_factory=dict)
    ui_input: UIInput | None = None
    hooks: list[Hook] = field(default_factory=list)
    parallelism: int = 10

    def copy(self) -> ContextOptions:
        """Shallow copy with fresh containers for the mutable fields."""
        return dataclasses.replace(
            self,
            targets=tuple(self.targets),
            variables=dict(self.variables),
            hooks=list(self.hooks),
        )


@runtime_checkable
class Engine(Protocol):
    """A reconciliation engine bound to one ContextOptions bundle."""

    def input(self, mode: InputMode) -> None:
        ...

    def validate(self) -> tuple[Sequence[str], Sequence[BaseException | str]]:
        ...

    def refresh(self) -> StateSnapshot:
        ...

    def plan(self) -> Plan:
        ...


EngineFactory = Callable[[ContextOptions], Engine]
"""Builds an engine from options; raises if the options are unusable."""
