"""Tests for the command meta layer."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from strata.backend import OperationType
from strata.cli.meta import base_operation, build_backend, load_module, resolve_import, resolve_paths
from strata.cli.utils import parse_vars
from strata.core.errors import ModuleLoadError, StrataError
from strata.core.settings import StrataSettings
from strata.state import BackupState, LocalState
from strata.testing import MockEngine, MockEngineFactory


def _failing_loader(directory):
    raise ValueError(f"cannot parse {directory}")


class TestResolveImport:
    def test_resolves_attribute(self):
        assert resolve_import("strata.testing:MockEngine", "engine") is MockEngine

    @pytest.mark.parametrize("path", ["strata.testing", ":MockEngine", "strata.testing:"])
    def test_malformed(self, path):
        with pytest.raises(StrataError):
            resolve_import(path, "engine")

    def test_missing(self):
        with pytest.raises(StrataError) as exc_info:
            resolve_import("strata.testing:NoSuchThing", "engine")
        assert isinstance(exc_info.value.cause, AttributeError)


class TestResolvePaths:
    def test_defaults(self):
        assert resolve_paths(StrataSettings()) == ("strata.tfstate", "strata.tfstate", "strata.tfstate.backup")

    def test_backup_follows_out(self):
        settings = StrataSettings(state_path="in.tfstate", state_out_path="out.tfstate")
        assert resolve_paths(settings) == ("in.tfstate", "out.tfstate", "out.tfstate.backup")

    def test_explicit_backup(self):
        assert resolve_paths(StrataSettings(backup_path="-"))[2] == "-"


class TestBuildBackend:
    def test_requires_engine(self):
        with pytest.raises(StrataError, match="No engine configured"):
            build_backend(StrataSettings())

    def test_engine_from_import_path(self):
        backend = build_backend(StrataSettings(engine="strata.testing:MockEngine"))
        try:
            assert backend.engine_factory is MockEngine
        finally:
            backend.close()

    def test_settings_applied(self, tmp_path):
        settings = StrataSettings(
            state_path=str(tmp_path / "s.tfstate"),
            input=False,
            validation=False,
            parallelism=4,
            no_color=True,
        )
        backend = build_backend(settings, engine_factory=MockEngineFactory())
        try:
            assert backend.input_enabled is False
            assert backend.validation_enabled is False
            assert backend.context_opts.parallelism == 4
            assert backend.colorize.enabled is False
            assert isinstance(backend.state(), BackupState)
        finally:
            backend.close()

    def test_backup_disabled(self, tmp_path):
        settings = StrataSettings(state_path=str(tmp_path / "s.tfstate"), backup_path="-")
        backend = build_backend(settings, engine_factory=MockEngineFactory())
        try:
            assert isinstance(backend.state(), LocalState)
        finally:
            backend.close()


class TestLoadModule:
    def test_default_is_directory(self, tmp_path):
        assert load_module(StrataSettings(), tmp_path) == tmp_path.resolve()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ModuleLoadError):
            load_module(StrataSettings(), tmp_path / "missing")

    def test_custom_loader(self, tmp_path):
        settings = StrataSettings(module_loader="pathlib:Path")
        assert load_module(settings, tmp_path) == Path(tmp_path)

    def test_loader_failure_wrapped(self, tmp_path, monkeypatch):
        monkeypatch.setattr("strata.cli.meta.resolve_import", lambda path, kind: _failing_loader)
        with pytest.raises(ModuleLoadError) as exc_info:
            load_module(StrataSettings(module_loader="x:y"), tmp_path)
        assert isinstance(exc_info.value.cause, ValueError)


class TestBaseOperation:
    def test_fields(self):
        op = base_operation(OperationType.PLAN, targets=["a"], variables={}, destroy=True)
        assert op.type is OperationType.PLAN
        assert op.targets == ("a",)
        assert op.variables is None
        assert op.destroy is True


class TestParseVars:
    def test_parses_and_later_wins(self):
        assert parse_vars(["a=1", "b=x=y", "a=2"]) == {"a": "2", "b": "x=y"}

    def test_empty(self):
        assert parse_vars(None) == {}

    @pytest.mark.parametrize("item", ["novalue", "=value"])
    def test_invalid(self, item):
        with pytest.raises(typer.BadParameter):
            parse_vars([item])
