"""Backends: the capability protocols, operation requests and run handles."""

from strata.backend.operation import Operation, OperationType, RunningOperation
from strata.backend.protocol import Backend, Enhanced
from strata.backend.runs import InvalidTransitionError, RunStatus

__all__ = [
    "Backend",
    "Enhanced",
    "Operation",
    "OperationType",
    "RunningOperation",
    "RunStatus",
    "InvalidTransitionError",
]
