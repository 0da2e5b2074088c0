"""Fixtures for CLI tests: an engine factory wired in through the meta layer."""

import pytest

from strata.cli import meta
from strata.testing import MockEngineFactory


@pytest.fixture
def engine_factory(monkeypatch):
    """MockEngineFactory returned for any STRATA_ENGINE import path."""
    factory = MockEngineFactory()
    monkeypatch.setenv("STRATA_ENGINE", "tests.engines:factory")
    monkeypatch.setenv("STRATA_LOG_LEVEL", "CRITICAL")
    monkeypatch.setattr(meta, "resolve_import", lambda path, kind: factory)
    return factory
