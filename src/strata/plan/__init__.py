"""Plan artifacts: models, rendering and saved plan files."""

from strata.plan.format import format_plan
from strata.plan.io import read_plan, write_plan
from strata.plan.models import AttributeDiff, Diff, DiffChangeType, InstanceDiff, Plan

__all__ = [
    "Plan",
    "Diff",
    "InstanceDiff",
    "AttributeDiff",
    "DiffChangeType",
    "format_plan",
    "read_plan",
    "write_plan",
]
