"""
Operation-scoped log context.

Every log entry emitted while an operation runs carries the operation id,
its type and the backend executing it, without threading those values
through every call. The values live in a ``ContextVar``; a structlog
processor copies them into each event.

Worker threads do not inherit the submitting thread's context, so the
dispatcher calls :func:`set_context` at the top of every task and
:func:`clear_context` when the task ends.

Fields::

    operation_id     op-1a2b3c4d
    operation        refresh | plan | refresh+plan
    backend          local
    step             current lifecycle phase ("state.persist")
    span_id          id of the innermost timed phase
    parent_span_id   id of the enclosing timed phase
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass, fields, replace
from typing import Any

import structlog


@dataclass(frozen=True)
class LogContext:
    """Immutable bundle of context fields; ``None`` means unset."""

    operation_id: str | None = None
    operation: str | None = None
    backend: str | None = None
    step: str | None = None
    span_id: str | None = None
    parent_span_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                out[f.name] = value
        return out

    def merge(self, **values: Any) -> "LogContext":
        """Copy with the known, non-None ``values`` applied."""
        known = {f.name for f in fields(self)}
        return replace(self, **{k: v for k, v in values.items() if k in known and v is not None})


_EMPTY = LogContext()
_current: ContextVar[LogContext] = ContextVar("strata_log_context", default=_EMPTY)


def get_context() -> LogContext:
    return _current.get()


def set_context(**values: Any) -> LogContext:
    """Replace the whole context with ``values``."""
    ctx = _EMPTY.merge(**values)
    _current.set(ctx)
    return ctx


def bind_context(**values: Any) -> LogContext:
    """Add ``values`` to the current context."""
    ctx = _current.get().merge(**values)
    _current.set(ctx)
    return ctx


def clear_context() -> None:
    _current.set(_EMPTY)


class ContextToken:
    """Handle returned by :func:`push_context`; ``restore()`` undoes the push."""

    def __init__(self, token: Token):
        self._token = token

    def restore(self) -> None:
        _current.reset(self._token)


def push_context(**values: Any) -> ContextToken:
    """Layer ``values`` over the current context until ``restore()``.

    Usage:
        token = push_context(step="state.load")
        try:
            handle.refresh()
        finally:
            token.restore()
    """
    return ContextToken(_current.set(_current.get().merge(**values)))


def add_context_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Structlog processor: fill in context fields the event did not set."""
    for key, value in _current.get().to_dict().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Structlog logger; context fields are added by the configured processor."""
    return structlog.get_logger(name)
