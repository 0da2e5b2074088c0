"""Tests for Operation and RunningOperation."""

import threading
from pathlib import Path

import pytest

from strata.backend.operation import Operation, OperationType, RunningOperation
from strata.backend.runs import RunStatus
from strata.core.errors import EngineError, OperationCancelledError
from strata.plan.models import Plan
from strata.testing import sample_refresh_state


class TestOperation:
    def test_types_single(self):
        assert Operation(type=OperationType.PLAN).types() == (OperationType.PLAN,)

    def test_types_sequence_wins(self):
        op = Operation(type=OperationType.PLAN, sequence=[OperationType.REFRESH, OperationType.PLAN])
        assert op.types() == (OperationType.REFRESH, OperationType.PLAN)

    def test_types_empty(self):
        assert Operation().types() == ()

    def test_variables_are_read_only(self):
        source = {"a": "1"}
        op = Operation(type=OperationType.PLAN, variables=source)
        source["a"] = "changed"
        assert op.variables["a"] == "1"
        with pytest.raises(TypeError):
            op.variables["b"] = "2"

    def test_frozen(self):
        op = Operation(type=OperationType.PLAN)
        with pytest.raises(AttributeError):
            op.destroy = True

    def test_paths_normalized(self):
        op = Operation(type=OperationType.PLAN, plan_out_path="out.plan")
        assert op.plan_out_path == Path("out.plan")

    def test_replace(self):
        op = Operation(type=OperationType.PLAN, targets=["a"])
        changed = op.replace(destroy=True)
        assert changed.destroy and changed.targets == ("a",)
        assert not op.destroy


class TestRunningOperation:
    @pytest.fixture
    def running(self):
        return RunningOperation(Operation(type=OperationType.PLAN))

    def test_initial_state(self, running):
        assert running.status is RunStatus.PENDING
        assert not running.done()
        assert running.err is None
        assert running.id.startswith("op-")

    def test_success(self, running):
        running.mark_started()
        running.record_state(sample_refresh_state())
        running.record_plan("plan-1", Plan())
        running.mark_finished()

        assert running.done()
        assert running.wait(0)
        assert running.status is RunStatus.COMPLETED
        assert running.plan_id == "plan-1"
        assert running.result().render() == "test_instance.foo:\n  ID = bar"
        assert running.duration_seconds is not None

    def test_failure_reraised_by_result(self, running):
        running.mark_started()
        running.record_error(EngineError("plan", RuntimeError("boom")))
        running.mark_finished()

        assert running.status is RunStatus.FAILED
        with pytest.raises(EngineError):
            running.result()

    def test_cancelled_status(self, running):
        running.mark_started()
        running.record_error(OperationCancelledError("engine.plan"))
        running.mark_finished()
        assert running.status is RunStatus.CANCELLED

    def test_err_write_once(self, running):
        running.record_error(RuntimeError("first"))
        with pytest.raises(RuntimeError, match="already recorded"):
            running.record_error(RuntimeError("second"))
        assert str(running.err) == "first"

    def test_plan_id_write_once(self, running):
        running.record_plan("plan-1", Plan())
        with pytest.raises(RuntimeError):
            running.record_plan("plan-2", Plan())

    def test_finish_once(self, running):
        running.mark_started()
        running.mark_finished()
        with pytest.raises(RuntimeError):
            running.mark_finished()

    def test_result_timeout(self, running):
        with pytest.raises(TimeoutError):
            running.result(timeout=0.01)

    def test_wait_from_other_thread(self, running):
        finished = threading.Event()

        def waiter():
            running.wait()
            finished.set()

        t = threading.Thread(target=waiter)
        t.start()
        assert not finished.wait(0.05)
        running.mark_started()
        running.mark_finished()
        t.join(timeout=2)
        assert finished.is_set()
