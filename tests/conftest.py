"""
Shared pytest fixtures for strata tests.

This module provides:
- Environment isolation (no STRATA_* variables leak in from the shell)
- Temporary state file paths
- A factory for local backends that are shut down after each test

Usage:
    def test_refresh(make_backend, state_path):
        backend = make_backend(engine_factory=MockEngineFactory())
        ...
"""

import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

# Ensure strata package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from strata.backend.local import Local
from strata.testing import MockEngineFactory, sample_refresh_state, write_state_file


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_strata_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove STRATA_* variables and run from an empty directory (no .env)."""
    for key in list(os.environ):
        if key.startswith("STRATA_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


# =============================================================================
# State files
# =============================================================================


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    """Path of a state file that does not exist yet."""
    return tmp_path / "strata.tfstate"


@pytest.fixture
def existing_state(state_path: Path) -> Path:
    """State file holding test_instance.foo with ID "bar"."""
    return write_state_file(state_path, sample_refresh_state("bar"))


# =============================================================================
# Backends
# =============================================================================


@pytest.fixture
def make_backend(state_path: Path) -> Generator[Callable[..., Local], None, None]:
    """Build Local backends against ``state_path``; closes them on teardown."""
    created: list[Local] = []

    def _make(**kwargs: Any) -> Local:
        kwargs.setdefault("state_path", str(state_path))
        kwargs.setdefault("engine_factory", MockEngineFactory())
        backend = Local(**kwargs)
        created.append(backend)
        return backend

    yield _make

    for backend in created:
        backend.close(wait=True)
