"""Tests for the plan handler of the Local backend."""

from __future__ import annotations

import pytest

from strata.backend import Operation, OperationType
from strata.core.errors import EngineError, PlanWriteError
from strata.engine.hooks import CountHook, Hook
from strata.engine.protocol import ContextOptions
from strata.engine.ui import Colorize
from strata.plan import Diff, DiffChangeType, InstanceDiff, Plan, read_plan
from strata.testing import MockEngineFactory, MockUI, sample_refresh_state


def _mixed_plan() -> Plan:
    return Plan(
        diff=Diff(
            resources={
                "test_instance.a": InstanceDiff(change_type=DiffChangeType.CREATE),
                "test_instance.b": InstanceDiff(change_type=DiffChangeType.CREATE),
                "test_instance.c": InstanceDiff(change_type=DiffChangeType.UPDATE),
                "test_instance.d": InstanceDiff(change_type=DiffChangeType.DESTROY),
                "test_instance.e": InstanceDiff(change_type=DiffChangeType.DESTROY_CREATE),
            }
        )
    )


def _plan(backend, **fields):
    running = backend.operation(Operation(type=OperationType.PLAN, **fields))
    assert running.wait(5)
    return running


@pytest.fixture
def ui():
    return MockUI()


@pytest.fixture
def plain():
    return Colorize(enabled=False)


# ── Read-only ────────────────────────────────────────────────────────────


class TestPlanIsReadOnly:
    def test_state_file_untouched(self, make_backend, existing_state, tmp_path):
        before = existing_state.read_bytes()
        backup = tmp_path / "strata.tfstate.backup"
        factory = MockEngineFactory(refresh_state=sample_refresh_state("yes"), plan_result=_mixed_plan())
        backend = make_backend(engine_factory=factory, state_backup_path=str(backup))

        running = _plan(backend, plan_refresh=True)

        assert running.err is None
        assert factory.last.refresh_called
        assert existing_state.read_bytes() == before
        assert not backup.exists()

    def test_refreshed_state_recorded(self, make_backend, existing_state):
        factory = MockEngineFactory(refresh_state=sample_refresh_state("yes"))
        running = _plan(make_backend(engine_factory=factory), plan_refresh=True)
        assert running.state.render() == "test_instance.foo:\n  ID = yes"

    def test_no_refresh_by_default(self, make_backend, existing_state):
        factory = MockEngineFactory()
        _plan(make_backend(engine_factory=factory))
        assert not factory.last.refresh_called
        assert factory.last.plan_called

    def test_plan_without_state(self, make_backend, state_path):
        factory = MockEngineFactory()
        running = _plan(make_backend(engine_factory=factory))
        assert running.err is None
        assert running.state is None
        assert factory.last.opts.state is None


# ── Result ───────────────────────────────────────────────────────────────


class TestPlanResult:
    def test_plan_recorded(self, make_backend):
        plan = _mixed_plan()
        running = _plan(make_backend(engine_factory=MockEngineFactory(plan_result=plan)))

        assert running.plan == plan
        assert running.plan_id.startswith("plan-")

    def test_plan_ids_unique(self, make_backend):
        backend = make_backend()
        assert _plan(backend).plan_id != _plan(backend).plan_id

    def test_saved_plan(self, make_backend, tmp_path):
        out = tmp_path / "out.plan"
        plan = _mixed_plan()
        running = _plan(make_backend(engine_factory=MockEngineFactory(plan_result=plan)), plan_out_path=out)

        assert running.err is None
        assert read_plan(out) == plan

    def test_plan_write_failure_is_fatal(self, make_backend, tmp_path):
        running = _plan(make_backend(), plan_out_path=tmp_path / "missing" / "out.plan")

        assert isinstance(running.err, PlanWriteError)
        assert running.plan_id is None

    def test_engine_failure(self, make_backend):
        running = _plan(make_backend(engine_factory=MockEngineFactory(plan_error=RuntimeError("cycle"))))
        assert isinstance(running.err, EngineError)
        assert running.err.phase == "plan"
        assert str(running.err) == "Error running plan: cycle"

    def test_refresh_failure(self, make_backend, existing_state):
        factory = MockEngineFactory(refresh_error=RuntimeError("timeout"))
        running = _plan(make_backend(engine_factory=factory), plan_refresh=True)
        assert isinstance(running.err, EngineError)
        assert running.err.phase == "refresh"
        assert not factory.last.plan_called


# ── Report ───────────────────────────────────────────────────────────────


class TestPlanReport:
    def test_summary_counts(self, make_backend, ui, plain):
        backend = make_backend(engine_factory=MockEngineFactory(plan_result=_mixed_plan()), cli=ui, colorize=plain)
        _plan(backend)

        assert ui.lines[-1] == "Plan: 3 to add, 1 to change, 2 to destroy."
        assert "No changes" not in ui.text
        assert "+ test_instance.a" in ui.text
        assert "-/+ test_instance.e (new resource required)" in ui.text

    def test_header_without_out(self, make_backend, ui, plain):
        _plan(make_backend(cli=ui, colorize=plain))
        assert "You didn't specify an \"--out\" parameter" in ui.text

    def test_header_with_out(self, make_backend, ui, plain, tmp_path):
        out = tmp_path / "out.plan"
        _plan(make_backend(cli=ui, colorize=plain), plan_out_path=out)
        assert f"Path: {out}" in ui.text

    def test_no_changes(self, make_backend, ui, plain):
        _plan(make_backend(cli=ui, colorize=plain))
        assert ui.lines[0].startswith("No changes. Infrastructure is up-to-date.")
        assert "This plan does nothing." in ui.text
        assert ui.lines[-1] == "Plan: 0 to add, 0 to change, 0 to destroy."

    def test_operation_ui_out_preferred(self, make_backend, plain):
        backend_ui = MockUI()
        op_ui = MockUI()
        _plan(make_backend(cli=backend_ui, colorize=plain), ui_out=op_ui)
        assert op_ui.lines
        assert backend_ui.lines == []

    def test_silent_without_ui(self, make_backend):
        running = _plan(make_backend(engine_factory=MockEngineFactory(plan_result=_mixed_plan())))
        assert running.err is None

    def test_colored_output(self, make_backend, ui):
        _plan(make_backend(engine_factory=MockEngineFactory(plan_result=_mixed_plan()), cli=ui))
        assert "\x1b[" in ui.lines[-1]


# ── Hooks ────────────────────────────────────────────────────────────────


class TestCountHookScope:
    def test_count_hook_attached_during_plan(self, make_backend):
        existing = Hook()
        factory = MockEngineFactory()
        backend = make_backend(engine_factory=factory, context_opts=ContextOptions(hooks=[existing]))
        _plan(backend)

        hooks = factory.last.opts.hooks
        assert hooks[0] is existing
        assert isinstance(hooks[-1], CountHook)

    def test_hooks_restored_after_success(self, make_backend):
        existing = Hook()
        opts = ContextOptions(hooks=[existing])
        _plan(make_backend(context_opts=opts))
        assert opts.hooks == [existing]

    def test_hooks_restored_after_failure(self, make_backend):
        opts = ContextOptions(hooks=[])
        factory = MockEngineFactory(plan_error=RuntimeError("x"))
        running = _plan(make_backend(engine_factory=factory, context_opts=opts))
        assert running.err is not None
        assert opts.hooks == []

    def test_fresh_count_hook_per_plan(self, make_backend, ui, plain):
        backend = make_backend(engine_factory=MockEngineFactory(plan_result=_mixed_plan()), cli=ui, colorize=plain)
        _plan(backend)
        _plan(backend)
        summaries = [line for line in ui.lines if line.startswith("Plan:")]
        assert summaries == ["Plan: 3 to add, 1 to change, 2 to destroy."] * 2


# ── Context overrides ────────────────────────────────────────────────────


class TestContextOverrides:
    def test_variables_merged(self, make_backend):
        opts = ContextOptions(variables={"a": "1", "b": "2"})
        factory = MockEngineFactory()
        _plan(make_backend(engine_factory=factory, context_opts=opts), variables={"b": "3"})

        assert factory.last.opts.variables == {"a": "1", "b": "3"}
        assert opts.variables == {"a": "1", "b": "2"}

    @pytest.mark.parametrize("variables", [None, {}])
    def test_base_variables_kept_without_overrides(self, make_backend, variables):
        factory = MockEngineFactory()
        opts = ContextOptions(variables={"a": "1"})
        _plan(make_backend(engine_factory=factory, context_opts=opts), variables=variables)
        assert factory.last.opts.variables == {"a": "1"}

    def test_destroy_targets_module(self, make_backend):
        factory = MockEngineFactory()
        module = object()
        running = _plan(
            make_backend(engine_factory=factory),
            destroy=True,
            targets=("test_instance.foo",),
            module=module,
        )
        opts = factory.last.opts
        assert opts.destroy is True
        assert opts.targets == ("test_instance.foo",)
        assert opts.module is module
        assert running.plan.destroy is True

    def test_base_options_not_mutated(self, make_backend):
        opts = ContextOptions(variables={"a": "1"})
        _plan(make_backend(context_opts=opts), destroy=True, targets=("x",), variables={"b": "2"})
        assert opts.destroy is False
        assert opts.targets == ()
        assert opts.variables == {"a": "1"}
        assert opts.state is None
