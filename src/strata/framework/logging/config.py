"""
structlog setup for strata.

``configure_logging`` is called once by the CLI before any command runs.
Level and renderer come from the arguments, else from the environment::

    STRATA_LOG_LEVEL    DEBUG | INFO | WARNING | ERROR     (default WARNING)
    STRATA_LOG_FORMAT   console | json                    (default console)

Output goes to stderr; stdout is reserved for plan and refresh reports.
"""

import logging
import os
import sys

import structlog
from structlog.types import Processor

from strata.framework.logging.context import add_context_processor

_configured = False


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get("STRATA_LOG_LEVEL") or "WARNING").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.WARNING


def _renderer(fmt: str | None) -> Processor:
    name = (fmt or os.environ.get("STRATA_LOG_FORMAT") or "console").lower()
    if name == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(level: str | None = None, format: str | None = None, force: bool = False) -> None:
    """Install the strata processor chain; later calls are no-ops unless ``force``."""
    global _configured
    if _configured and not force:
        return

    numeric_level = _resolve_level(level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_context_processor,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level, force=True)
    logging.getLogger("strata").setLevel(numeric_level)
    _configured = True


def is_configured() -> bool:
    return _configured
