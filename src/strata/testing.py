"""Test Harness — doubles for exercising backends without a real engine.

ARCHITECTURE
────────────
::

    Engine doubles:
      MockEngine          → records calls, returns configured results
      MockEngineFactory   → EngineFactory that builds MockEngines and
                            remembers them (and the options they got)

    UI doubles:
      MockUIInput         → answers questions from a dict, records them
      MockUI              → UIOutput collecting every line

    State helpers:
      sample_refresh_state()     → one resource, test_instance.foo (ID "bar")
      write_state_file(path, s)  → write a snapshot as a state file

Example::

    from strata.testing import MockEngineFactory, sample_refresh_state, write_state_file

    def test_refresh(tmp_path):
        write_state_file(tmp_path / "strata.tfstate", sample_refresh_state())
        factory = MockEngineFactory(refresh_state=sample_refresh_state("yes"))
        with Local(state_path=str(tmp_path / "strata.tfstate"), engine_factory=factory) as b:
            running = b.operation(Operation(type=OperationType.REFRESH))
            running.wait()
        assert factory.last.refresh_called

Tags:
    strata, testing, mocks, harness
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from os import PathLike
from pathlib import Path
from typing import Any

from strata.engine.hooks import HookAction
from strata.engine.protocol import ContextOptions, InputMode
from strata.engine.ui import InputOpts
from strata.plan.models import Diff, Plan
from strata.state.snapshot import (
    InstanceState,
    ModuleState,
    ResourceState,
    StateSnapshot,
    dump_snapshot,
)

# ---------------------------------------------------------------------------
# Engine doubles
# ---------------------------------------------------------------------------


class MockEngine:
    """Engine that records every call and returns pre-configured results.

    Parameters
    ----------
    opts
        The options the engine was built with.
    refresh_state
        Snapshot returned by ``refresh()``; defaults to ``opts.state``.
    plan_result
        Plan returned by ``plan()``. Its diff is fed through every hook's
        ``pre_diff`` and ``post_diff`` first, in address order, like a real
        engine walking the graph. A hook returning ``HALT`` ends the walk.
    warnings, errors
        Returned by ``validate()``.
    input_error, refresh_error, plan_error
        Raised from the matching method when set.
    input_questions
        Questions asked through ``opts.ui_input`` during ``input()``.
    on_refresh, on_plan
        Called inside ``refresh()`` / ``plan()``, for blocking or observing the call.
    """

    def __init__(
        self,
        opts: ContextOptions | None = None,
        *,
        refresh_state: StateSnapshot | None = None,
        plan_result: Plan | None = None,
        warnings: Sequence[str] = (),
        errors: Sequence[BaseException | str] = (),
        input_error: BaseException | None = None,
        refresh_error: BaseException | None = None,
        plan_error: BaseException | None = None,
        input_questions: Sequence[str] = (),
        on_refresh: Callable[[], None] | None = None,
        on_plan: Callable[[], None] | None = None,
    ) -> None:
        self.opts = opts or ContextOptions()
        self._refresh_state = refresh_state
        self._plan_result = plan_result
        self._warnings = list(warnings)
        self._errors = list(errors)
        self._input_error = input_error
        self._refresh_error = refresh_error
        self._plan_error = plan_error
        self._input_questions = list(input_questions)
        self._on_refresh = on_refresh
        self._on_plan = on_plan

        self.calls: list[str] = []
        self.input_mode: InputMode | None = None
        self.answers: dict[str, str] = {}

    @property
    def input_called(self) -> bool:
        return "input" in self.calls

    @property
    def validate_called(self) -> bool:
        return "validate" in self.calls

    @property
    def refresh_called(self) -> bool:
        return "refresh" in self.calls

    @property
    def plan_called(self) -> bool:
        return "plan" in self.calls

    def input(self, mode: InputMode) -> None:
        self.calls.append("input")
        self.input_mode = mode
        if self._input_error is not None:
            raise self._input_error
        if self.opts.ui_input is not None:
            for question in self._input_questions:
                self.answers[question] = self.opts.ui_input.input(InputOpts(id=question, query=question))

    def validate(self) -> tuple[list[str], list[BaseException | str]]:
        self.calls.append("validate")
        return list(self._warnings), list(self._errors)

    def refresh(self) -> StateSnapshot:
        self.calls.append("refresh")
        if self._on_refresh is not None:
            self._on_refresh()
        if self._refresh_error is not None:
            raise self._refresh_error
        if self._refresh_state is not None:
            return self._refresh_state.deep_copy()
        return self.opts.state.deep_copy() if self.opts.state is not None else StateSnapshot()

    def plan(self) -> Plan:
        self.calls.append("plan")
        if self._on_plan is not None:
            self._on_plan()
        if self._plan_error is not None:
            raise self._plan_error

        plan = self._plan_result
        if plan is None:
            plan = Plan(
                diff=Diff(),
                state=self.opts.state,
                variables=dict(self.opts.variables),
                targets=list(self.opts.targets),
                destroy=self.opts.destroy,
            )
        self._walk_hooks(plan)
        return plan

    def _walk_hooks(self, plan: Plan) -> None:
        prior = {}
        root = self.opts.state.root_module() if self.opts.state is not None else None
        if root is not None:
            prior = {address: resource.primary for address, resource in root.resources.items()}

        for address in sorted(plan.diff.resources):
            for hook in self.opts.hooks:
                if hook.pre_diff(address, prior.get(address)) is HookAction.HALT:
                    return
            for hook in self.opts.hooks:
                if hook.post_diff(address, plan.diff.resources[address]) is HookAction.HALT:
                    return


class MockEngineFactory:
    """EngineFactory building :class:`MockEngine` instances.

    Keyword arguments are passed to every engine. ``error`` makes the
    factory itself raise, like an engine rejecting its options.
    """

    def __init__(self, *, error: BaseException | None = None, **engine_kwargs: Any) -> None:
        self.error = error
        self.engine_kwargs = engine_kwargs
        self.engines: list[MockEngine] = []

    def __call__(self, opts: ContextOptions) -> MockEngine:
        if self.error is not None:
            raise self.error
        engine = MockEngine(opts, **self.engine_kwargs)
        self.engines.append(engine)
        return engine

    @property
    def last(self) -> MockEngine:
        if not self.engines:
            raise AssertionError("no engine was built")
        return self.engines[-1]


# ---------------------------------------------------------------------------
# UI doubles
# ---------------------------------------------------------------------------


class MockUIInput:
    """UIInput answering from a mapping of question id → answer."""

    def __init__(self, answers: Mapping[str, str] | None = None, *, error: BaseException | None = None) -> None:
        self.answers = dict(answers or {})
        self.error = error
        self.asked: list[InputOpts] = []

    def input(self, opts: InputOpts) -> str:
        self.asked.append(opts)
        if self.error is not None:
            raise self.error
        return self.answers.get(opts.id, opts.default)


class MockUI:
    """UIOutput that keeps every line it was given."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def output(self, text: str) -> None:
        self.lines.append(text)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


# ---------------------------------------------------------------------------
# State helpers
# ---------------------------------------------------------------------------


def sample_refresh_state(instance_id: str = "bar") -> StateSnapshot:
    """Snapshot with a single ``test_instance.foo`` resource."""
    return StateSnapshot(
        modules=[
            ModuleState(
                resources={
                    "test_instance.foo": ResourceState(
                        type="test_instance",
                        primary=InstanceState(id=instance_id),
                    )
                }
            )
        ]
    )


def write_state_file(path: str | PathLike[str], snapshot: StateSnapshot) -> Path:
    """Write ``snapshot`` to ``path`` in the on-disk state format."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dump_snapshot(snapshot), encoding="utf-8")
    return target
