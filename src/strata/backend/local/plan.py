"""Plan handler — compute and report the changes needed.

Plan is read-only with respect to state: it loads and (optionally) refreshes
through the engine, but never writes or persists the state handle. The
computed plan can be saved to ``Operation.plan_out_path`` for a later apply.

Report layout (when a UI sink is attached)::

    No changes. Infrastructure is up-to-date.   (empty diff only)
    <header: saved / not saved>
    <rendered diff>
    Plan: N to add, N to change, N to destroy.
"""

from __future__ import annotations

import threading
import uuid
from typing import TYPE_CHECKING

from rich.markup import escape

from strata.backend.local.context import attach_hook, build_context, check_cancelled, load_state
from strata.backend.operation import Operation, RunningOperation
from strata.core.errors import EngineError
from strata.engine.hooks import CountHook
from strata.engine.ui import UIOutput
from strata.framework.logging import get_logger, log_step
from strata.plan.format import format_plan
from strata.plan.io import write_plan
from strata.plan.models import Plan

if TYPE_CHECKING:
    from strata.backend.local.backend import Local

logger = get_logger(__name__)

NO_CHANGES = (
    "[bold green]No changes. Infrastructure is up-to-date.[/bold green]\n\n"
    "This means that strata could not detect any differences between your\n"
    "configuration and the real physical resources that exist. As a result,\n"
    "strata doesn't need to do anything."
)

HEADER_NO_OUTPUT = (
    "The strata execution plan has been generated and is shown below.\n"
    "Resources are shown in alphabetical order for quick scanning. Green resources\n"
    "will be created (or destroyed and then created if an existing resource\n"
    "exists), yellow resources are being changed in-place, and red resources\n"
    "will be destroyed. Cyan entries are data sources to be read.\n\n"
    "Note: You didn't specify an \"--out\" parameter to save this plan, so when\n"
    "\"apply\" is called, strata can't guarantee this is what will execute."
)

HEADER_YES_OUTPUT = (
    "The strata execution plan has been generated and is shown below.\n"
    "Resources are shown in alphabetical order for quick scanning. Green resources\n"
    "will be created (or destroyed and then created if an existing resource\n"
    "exists), yellow resources are being changed in-place, and red resources\n"
    "will be destroyed. Cyan entries are data sources to be read.\n\n"
    "Your plan was also saved to the path below. Call the \"apply\" subcommand\n"
    "with this plan file and strata will exactly execute this execution\n"
    "plan.\n\n"
    "Path: {path}"
)


def op_plan(
    backend: Local,
    op: Operation,
    running: RunningOperation,
    ctx: threading.Event | None = None,
) -> None:
    """Compute a plan, optionally save it, and report it."""
    check_cancelled(op, ctx, "state.load")
    state = load_state(backend)
    running.record_state(state.read())

    count_hook = CountHook()
    with attach_hook(backend.context_opts, count_hook):
        engine = build_context(backend, op, state, ctx)

        if op.plan_refresh:
            check_cancelled(op, ctx, "engine.refresh")
            with log_step("engine.refresh"):
                try:
                    refreshed = engine.refresh()
                except Exception as e:
                    raise EngineError("refresh", e) from e
            running.record_state(refreshed)

        check_cancelled(op, ctx, "engine.plan")
        with log_step("engine.plan") as timer:
            try:
                plan = engine.plan()
            except Exception as e:
                raise EngineError("plan", e) from e
            timer.add_metric("resources", len(plan.diff.resources))

    if op.plan_out_path is not None:
        with log_step("plan.write", path=str(op.plan_out_path)):
            write_plan(plan, op.plan_out_path)

    plan_id = f"plan-{uuid.uuid4().hex[:12]}"
    running.record_plan(plan_id, plan)
    logger.info(
        "plan.computed",
        plan_id=plan_id,
        to_add=count_hook.add_total,
        to_change=count_hook.to_change,
        to_destroy=count_hook.destroy_total,
    )

    ui = op.ui_out or backend.cli
    if ui is not None:
        _report(backend, op, plan, count_hook, ui)


def _report(backend: Local, op: Operation, plan: Plan, count_hook: CountHook, ui: UIOutput) -> None:
    colorize = backend.colorize
    if plan.diff.is_empty():
        ui.output(colorize.color(NO_CHANGES))

    if op.plan_out_path is None:
        ui.output(colorize.color(HEADER_NO_OUTPUT) + "\n")
    else:
        ui.output(colorize.color(HEADER_YES_OUTPUT.format(path=escape(str(op.plan_out_path)))) + "\n")

    ui.output(colorize.color(format_plan(plan)))
    ui.output(colorize.color(count_hook.summary()))
