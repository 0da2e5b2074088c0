"""Contracts with the external reconciliation engine: options, hooks and UI."""

from strata.engine.hooks import CountHook, Hook, HookAction
from strata.engine.protocol import ContextOptions, Engine, EngineFactory, InputMode
from strata.engine.ui import Colorize, InputOpts, UIInput, UIOutput

__all__ = [
    "Engine",
    "EngineFactory",
    "ContextOptions",
    "InputMode",
    "Hook",
    "HookAction",
    "CountHook",
    "Colorize",
    "InputOpts",
    "UIInput",
    "UIOutput",
]
