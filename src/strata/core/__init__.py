"""Core primitives: the error hierarchy and settings."""

from strata.core.errors import (
    BackupError,
    EngineError,
    ErrorCategory,
    ErrorContext,
    InputError,
    ModuleLoadError,
    OperationCancelledError,
    OperationFailedError,
    PlanReadError,
    PlanWriteError,
    StateError,
    StateNotFoundError,
    StatePersistError,
    StateReadError,
    StateWriteError,
    StrataError,
    UnsupportedOperationError,
    ValidationFailedError,
)
from strata.core.settings import StrataSettings, get_settings

__all__ = [
    "BackupError",
    "EngineError",
    "ErrorCategory",
    "ErrorContext",
    "InputError",
    "ModuleLoadError",
    "OperationCancelledError",
    "OperationFailedError",
    "PlanReadError",
    "PlanWriteError",
    "StateError",
    "StateNotFoundError",
    "StatePersistError",
    "StateReadError",
    "StateWriteError",
    "StrataError",
    "UnsupportedOperationError",
    "ValidationFailedError",
    "StrataSettings",
    "get_settings",
]
