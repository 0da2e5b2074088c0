"""Plan artifact models.

A ``Plan`` is what the engine's plan step returns: the diff between
configuration and state plus the inputs it was computed from. The core only
inspects ``diff`` (to report it) and otherwise treats the artifact as an
opaque blob that ``strata.plan.io`` writes and reads verbatim.

Change types and their meaning::

    CREATE          + resource will be created
    UPDATE          ~ resource will be updated in place
    DESTROY         - resource will be destroyed
    DESTROY_CREATE  -/+ resource will be destroyed and re-created (replace)

Tags:
    strata, plan, diff, pydantic
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from strata.state.snapshot import StateSnapshot


class DiffChangeType(str, Enum):
    """Action planned for one resource."""

    NONE = "none"
    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"
    DESTROY_CREATE = "destroy_create"


class AttributeDiff(BaseModel):
    """Planned change of a single attribute."""

    old: str = ""
    new: str = ""
    new_computed: bool = False
    new_removed: bool = False
    requires_new: bool = False
    sensitive: bool = False


class InstanceDiff(BaseModel):
    """Planned change of one resource instance."""

    model_config = ConfigDict(extra="ignore")

    change_type: DiffChangeType = DiffChangeType.NONE
    attributes: dict[str, AttributeDiff] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return self.change_type is DiffChangeType.NONE and not self.attributes


class Diff(BaseModel):
    """Per-resource actions, keyed by resource address."""

    model_config = ConfigDict(extra="ignore")

    resources: dict[str, InstanceDiff] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return all(d.is_empty() for d in self.resources.values())


class Plan(BaseModel):
    """A computed, not yet applied, description of changes."""

    model_config = ConfigDict(extra="ignore")

    diff: Diff = Field(default_factory=Diff)
    state: StateSnapshot | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    targets: list[str] = Field(default_factory=list)
    destroy: bool = False
