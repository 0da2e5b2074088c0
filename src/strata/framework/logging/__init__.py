"""
Strata Framework Logging - Structured, operation-aware logging.

This module provides:
- Structured logging with structlog
- Operation context propagation via contextvars
- Timing utilities for lifecycle phases
- Environment-based configuration

Usage:
    from strata.framework.logging import get_logger, configure_logging, log_step, set_context

    # Configure once at startup
    configure_logging()

    # Get a logger
    log = get_logger(__name__)

    # Set operation context (automatically attached to all logs)
    set_context(operation_id="op-1a2b3c4d", operation="refresh", backend="local")

    # Log a phase with timing
    with log_step("state.persist"):
        handle.persist()
"""

from strata.framework.logging.config import configure_logging, is_configured
from strata.framework.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    push_context,
    set_context,
)
from strata.framework.logging.timing import log_step, timed_block

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    # Context
    "get_logger",
    "set_context",
    "clear_context",
    "get_context",
    "bind_context",
    "push_context",
    "LogContext",
    # Timing
    "log_step",
    "timed_block",
]
