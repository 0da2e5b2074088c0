"""Tests for strata.state.snapshot."""

from strata.state.snapshot import (
    InstanceState,
    ModuleState,
    ResourceState,
    StateSnapshot,
    dump_snapshot,
    load_snapshot,
)
from strata.testing import sample_refresh_state


class TestStateSnapshot:
    def test_render(self):
        assert sample_refresh_state("bar").render() == "test_instance.foo:\n  ID = bar"

    def test_render_sorts_attributes_and_prefixes_modules(self):
        snap = StateSnapshot(
            modules=[
                ModuleState(
                    path=["root", "child"],
                    resources={
                        "test_instance.a": ResourceState(
                            type="test_instance",
                            primary=InstanceState(id="1", attributes={"z": "2", "a": "1"}),
                        )
                    },
                )
            ]
        )
        assert snap.render() == "module.child.test_instance.a:\n  ID = 1\n  a = 1\n  z = 2"

    def test_empty(self):
        snap = StateSnapshot()
        assert snap.is_empty()
        assert snap.render() == "<no state>"
        assert snap.root_module() is None

    def test_deep_copy_is_independent(self):
        snap = sample_refresh_state()
        copy = snap.deep_copy()
        copy.modules[0].resources["test_instance.foo"].primary.id = "changed"
        assert snap.modules[0].resources["test_instance.foo"].primary.id == "bar"

    def test_equal_content_ignores_serial_and_lineage(self):
        a = sample_refresh_state()
        b = sample_refresh_state()
        b.serial = 7
        assert a.lineage != b.lineage
        assert a.equal_content(b)
        assert not a.equal_content(sample_refresh_state("yes"))
        assert not a.equal_content(None)

    def test_resource_addresses(self):
        assert sample_refresh_state().resource_addresses() == ["test_instance.foo"]


class TestSerialization:
    def test_dump_then_load_preserves_content(self):
        snap = sample_refresh_state()
        loaded = load_snapshot(dump_snapshot(snap))
        assert loaded.equal_content(snap)
        assert loaded.lineage == snap.lineage
