"""Tests for ``strata refresh``."""

from __future__ import annotations

from typer.testing import CliRunner

from strata.cli.app import app
from strata.state import load_snapshot
from strata.testing import sample_refresh_state, write_state_file

runner = CliRunner()


def _render(path):
    return load_snapshot(path.read_text()).render()


class TestRefreshCommand:
    def test_refresh_writes_state_and_default_backup(self, engine_factory, tmp_path):
        state = write_state_file(tmp_path / "strata.tfstate", sample_refresh_state("bar"))
        engine_factory.engine_kwargs["refresh_state"] = sample_refresh_state("yes")

        result = runner.invoke(app, ["refresh", str(tmp_path), "--state", str(state), "--no-color"])

        assert result.exit_code == 0, result.output
        assert "Refreshed 1 resource(s)." in result.output
        assert _render(state) == "test_instance.foo:\n  ID = yes"
        assert _render(tmp_path / "strata.tfstate.backup") == "test_instance.foo:\n  ID = bar"

    def test_backup_disabled(self, engine_factory, tmp_path):
        state = write_state_file(tmp_path / "strata.tfstate", sample_refresh_state("bar"))
        result = runner.invoke(app, ["refresh", str(tmp_path), "--state", str(state), "--backup", "-"])
        assert result.exit_code == 0, result.output
        assert not (tmp_path / "strata.tfstate.backup").exists()

    def test_state_out(self, engine_factory, tmp_path):
        state = write_state_file(tmp_path / "in.tfstate", sample_refresh_state("bar"))
        out = tmp_path / "out.tfstate"
        engine_factory.engine_kwargs["refresh_state"] = sample_refresh_state("yes")

        result = runner.invoke(
            app, ["refresh", str(tmp_path), "--state", str(state), "--state-out", str(out)]
        )

        assert result.exit_code == 0, result.output
        assert _render(out) == "test_instance.foo:\n  ID = yes"
        assert _render(state) == "test_instance.foo:\n  ID = bar"
        # backup defaults next to the output file and holds the state that was read
        assert _render(tmp_path / "out.tfstate.backup") == "test_instance.foo:\n  ID = bar"

    def test_missing_state(self, engine_factory, tmp_path):
        result = runner.invoke(app, ["refresh", str(tmp_path), "--state", str(tmp_path / "none.tfstate")])
        assert result.exit_code == 1
        assert "does not" in result.output
        assert engine_factory.engines == []

    def test_validation_failure(self, engine_factory, tmp_path):
        state = write_state_file(tmp_path / "strata.tfstate", sample_refresh_state("bar"))
        engine_factory.engine_kwargs["errors"] = ["one", "two", "three"]
        result = runner.invoke(app, ["refresh", str(tmp_path), "--state", str(state)])
        assert result.exit_code == 1
        assert "3 errors occurred" in result.output
