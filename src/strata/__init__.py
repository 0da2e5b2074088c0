"""
strata — operation execution core for an infrastructure-orchestration tool.

Given a module tree (what infrastructure should exist) and a recorded state
(what is known to exist), strata runs refresh and plan operations that
reconcile the two, in the background, one at a time per backend.

Packages:
    strata.backend     — Backend protocols, Operation, RunningOperation, Local
    strata.state       — state snapshots and the state handle chain
    strata.engine      — engine contract, hooks, UI capabilities
    strata.plan        — plan artifact, plan files, plan rendering
    strata.core        — errors and settings
    strata.framework   — structured logging
    strata.cli         — Typer command line

Tags:
    strata, infrastructure, orchestration
"""

__version__ = "0.1.0"
