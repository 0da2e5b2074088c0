"""State snapshot models — the serializable record of known infrastructure.

A ``StateSnapshot`` is what a state handle loads, what the engine refreshes
and what gets persisted. The core treats it as a value: handles hand out
copies and callers never mutate a snapshot they did not create.

Layout::

    StateSnapshot
      ├── version, serial, lineage
      └── modules: [ModuleState]
            ├── path      ["root", ...]
            ├── outputs   {name: value}
            └── resources {address: ResourceState}
                              ├── type
                              ├── depends_on
                              └── primary: InstanceState(id, attributes, tainted)

Tags:
    strata, state, snapshot, pydantic, serialization
"""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

STATE_VERSION = 3
"""Snapshot schema version written by this package."""

ROOT_MODULE_PATH = ("root",)


class InstanceState(BaseModel):
    """Attributes of one concrete resource instance."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    attributes: dict[str, str] = Field(default_factory=dict)
    tainted: bool = False


class ResourceState(BaseModel):
    """A managed resource and its primary instance."""

    model_config = ConfigDict(extra="ignore")

    type: str
    depends_on: list[str] = Field(default_factory=list)
    primary: InstanceState | None = None


class ModuleState(BaseModel):
    """Resources and outputs belonging to one module path."""

    model_config = ConfigDict(extra="ignore")

    path: list[str] = Field(default_factory=lambda: list(ROOT_MODULE_PATH))
    outputs: dict[str, Any] = Field(default_factory=dict)
    resources: dict[str, ResourceState] = Field(default_factory=dict)

    def is_root(self) -> bool:
        return tuple(self.path) == ROOT_MODULE_PATH


class StateSnapshot(BaseModel):
    """Point-in-time record of infrastructure resource attributes.

    Example:
        >>> snap = StateSnapshot(modules=[ModuleState(resources={
        ...     "test_instance.foo": ResourceState(
        ...         type="test_instance", primary=InstanceState(id="bar")),
        ... })])
        >>> print(snap.render())
        test_instance.foo:
          ID = bar
    """

    model_config = ConfigDict(extra="ignore")

    version: int = STATE_VERSION
    serial: int = 0
    lineage: str = Field(default_factory=lambda: str(uuid.uuid4()))
    modules: list[ModuleState] = Field(default_factory=list)

    def root_module(self) -> ModuleState | None:
        for module in self.modules:
            if module.is_root():
                return module
        return None

    def deep_copy(self) -> StateSnapshot:
        return self.model_copy(deep=True)

    def is_empty(self) -> bool:
        """True when no module holds a resource."""
        return not any(module.resources for module in self.modules)

    def resource_addresses(self) -> list[str]:
        """Fully qualified addresses of every resource, sorted."""
        addresses = []
        for module in self.modules:
            prefix = "".join(f"module.{name}." for name in module.path[1:])
            addresses.extend(prefix + address for address in module.resources)
        return sorted(addresses)

    def equal_content(self, other: StateSnapshot | None) -> bool:
        """Compare resources and outputs, ignoring serial and lineage."""
        if other is None:
            return False
        return [m.model_dump() for m in self.modules] == [m.model_dump() for m in other.modules]

    def render(self) -> str:
        """Stable human-readable rendering, used for diagnostics and tests."""
        if self.is_empty():
            return "<no state>"

        lines: list[str] = []
        for module in sorted(self.modules, key=lambda m: m.path):
            prefix = "".join(f"module.{name}." for name in module.path[1:])
            for address in sorted(module.resources):
                resource = module.resources[address]
                instance = resource.primary or InstanceState()
                title = f"{prefix}{address}:"
                if instance.tainted:
                    title = f"{prefix}{address}: (tainted)"
                lines.append(title)
                lines.append(f"  ID = {instance.id}")
                for key in sorted(instance.attributes):
                    lines.append(f"  {key} = {instance.attributes[key]}")
                for dep in resource.depends_on:
                    lines.append(f"  Dependency: {dep}")
        return "\n".join(lines)


def load_snapshot(data: str | bytes) -> StateSnapshot:
    """Parse a serialized snapshot.

    Raises:
        pydantic.ValidationError: If the data is not a valid snapshot.
    """
    return StateSnapshot.model_validate_json(data)


def dump_snapshot(snapshot: StateSnapshot) -> str:
    """Serialize a snapshot to its on-disk JSON form."""
    return snapshot.model_dump_json(indent=2) + "\n"
