"""Saved plan files.

The plan artifact is written verbatim as JSON to the operation's
``plan_out_path`` and read back from ``plan_path``. Errors are wrapped so the
caller can tell a plan file problem from a state problem.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from pydantic import ValidationError

from strata.core.errors import PlanReadError, PlanWriteError
from strata.plan.models import Plan


def write_plan(plan: Plan, path: str | PathLike[str]) -> None:
    """Serialize ``plan`` to ``path``.

    Raises:
        PlanWriteError: If the file cannot be written.
    """
    target = Path(path)
    try:
        target.write_text(plan.model_dump_json(indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise PlanWriteError(target, e) from e


def read_plan(path: str | PathLike[str]) -> Plan:
    """Load a plan previously saved with :func:`write_plan`.

    Raises:
        PlanReadError: If the file is missing or not a valid plan.
    """
    source = Path(path)
    try:
        return Plan.model_validate_json(source.read_text(encoding="utf-8"))
    except (OSError, ValidationError, ValueError) as e:
        raise PlanReadError(source, e) from e
