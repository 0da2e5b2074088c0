"""
Structured error types for the strata operation core.

Every failure the core can report is a ``StrataError`` subclass carrying a
category, structured context (operation, phase, path) and the chained
underlying exception. Callers classify failures by type, never by message
text.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure class the caller
      must be able to tell apart (e.g. "not yet provisioned" vs. "corrupt")
    - **Phase-aware:** State and engine errors name the phase that failed
    - **Rich Context:** Errors carry metadata for logging
    - **Error Chaining:** Original exceptions are preserved as ``cause``
    - **No Retry:** Nothing in the core retries; every error is terminal
      for the operation that raised it

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                         StrataError                              │
        │              (category, context, cause, to_dict)                 │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  UnsupportedOperationError  ModuleLoadError     (pre-flight)    │
        │                                                                  │
        │  StateError (phase, path)                                        │
        │     ├── StateNotFoundError   (not yet provisioned)               │
        │     ├── StateReadError       (unreadable / corrupt)              │
        │     ├── StateWriteError                                          │
        │     ├── StatePersistError                                        │
        │     └── BackupError                                              │
        │                                                                  │
        │  InputError   ValidationFailedError   EngineError (phase)        │
        │                                                                  │
        │  PlanWriteError   PlanReadError                                  │
        │                                                                  │
        │  OperationCancelledError   OperationFailedError                  │
        └─────────────────────────────────────────────────────────────────┘

Two reporting channels exist and every error is reported through exactly
one of them:

- **synchronous** (raised from ``operation()`` / the CLI meta layer):
  ``UnsupportedOperationError``, ``ModuleLoadError``
- **asynchronous** (stored in ``RunningOperation.err``): everything else

Examples:
    >>> err = StateNotFoundError("strata.tfstate")
    >>> err.category
    <ErrorCategory.STORAGE: 'STORAGE'>
    >>> err.path
    'strata.tfstate'

    >>> err = ValidationFailedError(["a", "b", "c"])
    >>> len(err.errors)
    3

Tags:
    error-handling, exception-hierarchy, error-context, strata

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        CONFIG: Bad operation request, unsupported type, bad module
        STORAGE: State or plan file I/O
        INPUT: Interactive input solicitation
        VALIDATION: Engine validation errors
        ENGINE: Engine refresh/plan failures
        CANCELLED: Operation aborted by a cancellation request
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    CONFIG = "CONFIG"
    STORAGE = "STORAGE"
    INPUT = "INPUT"
    VALIDATION = "VALIDATION"
    ENGINE = "ENGINE"
    CANCELLED = "CANCELLED"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        operation: Operation type value (e.g. "refresh", "plan")
        operation_id: Identifier of the running operation
        phase: Lifecycle phase that failed (load, refresh, write, persist, ...)
        path: File path involved, if any
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    operation_id: str | None = None
    phase: str | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "operation_id", "phase", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StrataError(Exception):
    """
    Base exception for all strata errors.

    All StrataError instances carry:
    - **category:** ErrorCategory enum for classification
    - **context:** ErrorContext with structured metadata
    - **cause:** Optional underlying exception for chaining

    Subclasses set ``default_category`` to provide a sensible default.

    Examples:
        >>> error = StrataError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = StrataError("Write failed").with_context(phase="persist")
        >>> error.context.phase
        'persist'

        >>> try:
        ...     raise OSError("disk full")
        ... except OSError as e:
        ...     error = StrataError("Error saving state", cause=e)
        >>> error.cause
        OSError('disk full')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> StrataError:
        """
        Add context to this error (fluent API).

        Usage:
            raise EngineError("plan", cause=e).with_context(operation_id=op_id)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PRE-FLIGHT ERRORS (synchronous)
# =============================================================================


class UnsupportedOperationError(StrataError):
    """The backend has no handler for the requested operation.

    This is a caller/integration bug, raised before any work starts.
    """

    default_category = ErrorCategory.CONFIG

    def __init__(self, operation: str, backend: str = "local", *, reason: str | None = None):
        message = f"Unsupported operation type for the {backend} backend: {operation}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, context=ErrorContext(operation=operation))
        self.operation = operation
        self.backend = backend


class ModuleLoadError(StrataError):
    """The root configuration module could not be loaded."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# STATE ERRORS
# =============================================================================


class StateError(StrataError):
    """A state lifecycle step failed.

    ``phase`` is one of ``load``, ``refresh``, ``write``, ``persist`` or
    ``backup``; ``path`` is the backing location, when there is one.
    """

    default_category = ErrorCategory.STORAGE
    phase: str = "load"

    def __init__(
        self,
        message: str,
        *,
        path: str | PathLike[str] | None = None,
        phase: str | None = None,
        cause: BaseException | None = None,
    ):
        self.phase = phase or self.phase
        self.path = None if path is None else str(path)
        super().__init__(
            message,
            context=ErrorContext(phase=self.phase, path=self.path),
            cause=cause,
        )


class StateReadError(StateError):
    """The state exists but could not be read or parsed."""

    def __init__(
        self,
        path: str | PathLike[str] | None,
        cause: BaseException | None = None,
        *,
        message: str | None = None,
        phase: str | None = None,
    ):
        if message is None:
            message = (
                "There was an error reading the state that is needed\n"
                "for this operation. The path and error are shown below.\n\n"
                f"Path: {path}\n\nError: {cause}"
            )
        super().__init__(message, path=path, phase=phase, cause=cause)


class StateNotFoundError(StateError):
    """No state exists yet: the infrastructure was never provisioned.

    Distinct from :class:`StateReadError` because the next action for the
    user differs: run an apply first instead of repairing a file.
    """

    def __init__(self, path: str | PathLike[str]):
        message = (
            "The state file for your infrastructure does not\n"
            "exist. The 'refresh' command only works and only makes sense\n"
            "when there is existing state that strata is managing. Please\n"
            "double-check the value given below and try again. If you\n"
            "haven't created infrastructure with strata yet, use the\n"
            "'apply' command.\n\n"
            f"Path: {path}"
        )
        super().__init__(message, path=path)


class StateWriteError(StateError):
    """Replacing the in-memory snapshot failed."""

    phase = "write"


class StatePersistError(StateError):
    """Durably committing the snapshot failed."""

    phase = "persist"


class BackupError(StatePersistError):
    """Writing the pre-overwrite backup failed; the real state was not touched."""

    phase = "backup"


# =============================================================================
# CONTEXT / ENGINE ERRORS
# =============================================================================


class InputError(StrataError):
    """Asking the user for input failed."""

    default_category = ErrorCategory.INPUT

    def __init__(self, cause: BaseException):
        super().__init__(
            f"Error asking for user input: {cause}",
            context=ErrorContext(phase="input"),
            cause=cause,
        )


class ValidationFailedError(StrataError):
    """The engine reported one or more validation errors.

    All errors are kept in ``errors``; the message lists every one of them.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(self, errors: Sequence[BaseException | str]):
        self.errors = list(errors)
        count = len(self.errors)
        lines = "\n".join(f"* {e}" for e in self.errors)
        noun = "error" if count == 1 else "errors"
        super().__init__(
            f"{count} {noun} occurred:\n\n{lines}",
            context=ErrorContext(phase="validate"),
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = [str(e) for e in self.errors]
        return result


class EngineError(StrataError):
    """An engine step (refresh, plan) failed."""

    default_category = ErrorCategory.ENGINE

    _LABELS = {
        "refresh": "Error refreshing state",
        "plan": "Error running plan",
    }

    def __init__(self, phase: str, cause: BaseException):
        self.phase = phase
        label = self._LABELS.get(phase, f"Error during {phase}")
        super().__init__(
            f"{label}: {cause}",
            context=ErrorContext(phase=phase),
            cause=cause,
        )


# =============================================================================
# PLAN ARTIFACT ERRORS
# =============================================================================


class PlanWriteError(StrataError):
    """The computed plan could not be saved to the requested path."""

    default_category = ErrorCategory.STORAGE

    def __init__(self, path: str | PathLike[str], cause: BaseException):
        self.path = str(path)
        super().__init__(
            f"Error writing plan file: {cause}",
            context=ErrorContext(phase="plan_write", path=self.path),
            cause=cause,
        )


class PlanReadError(StrataError):
    """A saved plan could not be read back."""

    default_category = ErrorCategory.STORAGE

    def __init__(self, path: str | PathLike[str], cause: BaseException):
        self.path = str(path)
        super().__init__(
            f"Error reading plan file: {cause}",
            context=ErrorContext(phase="plan_read", path=self.path),
            cause=cause,
        )


# =============================================================================
# RUN OUTCOME ERRORS
# =============================================================================


class OperationCancelledError(StrataError):
    """The operation observed a cancellation request and stopped early."""

    default_category = ErrorCategory.CANCELLED

    def __init__(self, phase: str):
        self.phase = phase
        super().__init__(
            f"Operation cancelled before {phase}",
            context=ErrorContext(phase=phase),
        )


class OperationFailedError(StrataError):
    """A handler raised something that is not a StrataError."""

    default_category = ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "StrataError",
    "UnsupportedOperationError",
    "ModuleLoadError",
    "StateError",
    "StateReadError",
    "StateNotFoundError",
    "StateWriteError",
    "StatePersistError",
    "BackupError",
    "InputError",
    "ValidationFailedError",
    "EngineError",
    "PlanWriteError",
    "PlanReadError",
    "OperationCancelledError",
    "OperationFailedError",
]
