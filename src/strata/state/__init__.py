"""Persisted infrastructure state: snapshot model, handles and the handle chain."""

from strata.state.backup import BackupState
from strata.state.chain import StateDecorator, backup_decorators, build_state_chain
from strata.state.local import LocalState
from strata.state.protocol import StateHandle
from strata.state.snapshot import (
    STATE_VERSION,
    InstanceState,
    ModuleState,
    ResourceState,
    StateSnapshot,
    dump_snapshot,
    load_snapshot,
)

__all__ = [
    "StateHandle",
    "LocalState",
    "BackupState",
    "StateDecorator",
    "backup_decorators",
    "build_state_chain",
    "STATE_VERSION",
    "StateSnapshot",
    "ModuleState",
    "ResourceState",
    "InstanceState",
    "load_snapshot",
    "dump_snapshot",
]
