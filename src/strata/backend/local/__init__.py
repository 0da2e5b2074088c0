"""The local backend and its operation handlers."""

from strata.backend.local.backend import HANDLERS, Local, LocalConfig
from strata.backend.local.context import attach_hook, build_context, check_cancelled

__all__ = [
    "HANDLERS",
    "Local",
    "LocalConfig",
    "attach_hook",
    "build_context",
    "check_cancelled",
]
