"""
Tests for the public/private Partitioner and the Snapshot Cache.
"""

import pytest

from stratum.errors import BoundaryViolationError
from stratum.frozen import FrozenMapping
from stratum.partition import Partitioner, to_tree
from stratum.resolver import ResolvedConfig, Resolver
from stratum.schema import SchemaEntry, SchemaRegistry, Visibility
from stratum.snapshot import Snapshot, SnapshotCache
from stratum.sources import MappingSource


def _resolved(registry, version=1, **values):
    """Build a ResolvedConfig directly, bypassing type coercion."""
    private = frozenset(entry.dotted for entry in registry.leaves() if entry.is_private)
    return ResolvedConfig(version=version, values=FrozenMapping(values), private_keys=private)


@pytest.fixture
def resolved(sample_registry):
    return Resolver().resolve(sample_registry, [MappingSource("local", 10, {"apiKey": "k"})])


# =============================================================================
# Partitioner Tests
# =============================================================================


class TestPartitioner:
    """Tests for public view derivation."""

    def test_public_view_contains_only_public_keys(self, sample_registry, resolved):
        view = Partitioner(sample_registry).derive_public_view(resolved)

        assert dict(view) == {
            "service.baseUrl": "https://api.example.com",
            "port": 8080,
            "debug": False,
        }

    def test_equal_values_do_not_leak(self, simple_registry):
        resolved = Resolver().resolve(simple_registry, [])

        view = Partitioner(simple_registry).derive_public_view(resolved)

        assert resolved["title"] == resolved["secret"] == "hello"
        assert list(view) == ["title"]

    def test_private_child_of_public_parent_is_excluded(self, sample_registry, resolved):
        tree = to_tree(Partitioner(sample_registry).derive_public_view(resolved))

        assert dict(tree["service"]) == {"baseUrl": "https://api.example.com"}

    def test_public_keys(self, sample_registry):
        assert Partitioner(sample_registry).public_keys() == ["service.baseUrl", "port", "debug"]

    def test_non_wire_safe_public_value_fails_closed(self, simple_registry):
        resolved = _resolved(simple_registry, title=lambda: None, secret="s")

        with pytest.raises(BoundaryViolationError) as exc_info:
            Partitioner(simple_registry).derive_public_view(resolved)

        assert exc_info.value.path == "title"
        assert exc_info.value.reason == "callable"

    def test_private_values_are_not_guarded(self, simple_registry):
        resolved = _resolved(simple_registry, title="t", secret=object())

        view = Partitioner(simple_registry).derive_public_view(resolved)

        assert dict(view) == {"title": "t"}

    def test_view_is_read_only(self, sample_registry, resolved):
        view = Partitioner(sample_registry).derive_public_view(resolved)

        with pytest.raises(TypeError):
            view["apiKey"] = "x"

    def test_undeclared_ancestor_does_not_block(self):
        registry = SchemaRegistry(
            [SchemaEntry(key=("ui", "theme"), visibility=Visibility.PUBLIC, default="dark")]
        )
        resolved = Resolver().resolve(registry, [])

        assert dict(Partitioner(registry).derive_public_view(resolved)) == {"ui.theme": "dark"}

    def test_to_tree(self):
        tree = to_tree(FrozenMapping({"a.b": 1, "a.c": 2, "d": 3}))

        assert tree.to_dict() == {"a": {"b": 1, "c": 2}, "d": 3}


# =============================================================================
# Snapshot Cache Tests
# =============================================================================


class TestSnapshotCache:
    """Tests for SnapshotCache."""

    @pytest.fixture
    def cache(self, simple_registry):
        return SnapshotCache(Partitioner(simple_registry), max_history=2)

    def test_publish_swaps_current(self, cache, simple_registry):
        assert cache.current is None

        snapshot = cache.publish(_resolved(simple_registry, title="a", secret="s"))

        assert cache.current is snapshot
        assert snapshot.version == 1
        assert dict(snapshot.public_view) == {"title": "a"}

    def test_failed_publish_keeps_previous(self, cache, simple_registry):
        first = cache.publish(_resolved(simple_registry, title="a", secret="s"))

        with pytest.raises(BoundaryViolationError):
            cache.publish(_resolved(simple_registry, 2, title=print, secret="s"))

        assert cache.current is first
        assert cache.versions() == [1]

    def test_stale_version_rejected(self, cache, simple_registry):
        cache.publish(_resolved(simple_registry, 3, title="a", secret="s"))

        with pytest.raises(ValueError):
            cache.publish(_resolved(simple_registry, 3, title="b", secret="s"))

    def test_history_is_bounded(self, cache, simple_registry):
        for version in (1, 2, 3):
            cache.publish(_resolved(simple_registry, version, title=str(version), secret="s"))

        assert cache.versions() == [2, 3]
        assert cache.get(1) is None
        assert cache.get(2).public_view["title"] == "2"
        assert len(cache) == 2

    def test_old_snapshot_stays_valid(self, cache, simple_registry):
        first = cache.publish(_resolved(simple_registry, 1, title="a", secret="s"))
        cache.publish(_resolved(simple_registry, 2, title="b", secret="s"))

        assert first.public_view["title"] == "a"

    def test_listeners_notified_after_swap(self, cache, simple_registry):
        seen = []
        cache.subscribe(lambda snapshot: seen.append((snapshot.version, cache.current.version)))

        cache.publish(_resolved(simple_registry, title="a", secret="s"))

        assert seen == [(1, 1)]

    def test_unsubscribe(self, cache, simple_registry):
        seen = []
        unsubscribe = cache.subscribe(seen.append)
        unsubscribe()
        unsubscribe()

        cache.publish(_resolved(simple_registry, title="a", secret="s"))

        assert seen == []

    def test_failing_listener_does_not_block_others(self, cache, simple_registry, caplog):
        seen = []

        def broken(snapshot):
            raise RuntimeError("boom")

        cache.subscribe(broken)
        cache.subscribe(seen.append)

        snapshot = cache.publish(_resolved(simple_registry, title="a", secret="s"))

        assert seen == [snapshot]
        assert "Listener failed" in caplog.text

    def test_invalid_history(self, simple_registry):
        with pytest.raises(ValueError):
            SnapshotCache(Partitioner(simple_registry), max_history=0)


class TestSnapshot:
    """Tests for Snapshot."""

    def test_to_dict_has_no_values(self, sample_registry, resolved):
        snapshot = Snapshot(resolved, Partitioner(sample_registry).derive_public_view(resolved))

        data = snapshot.to_dict()

        assert data["version"] == 1
        assert data["public_keys"] == 3
        assert set(data) == {"version", "created_at", "keys", "public_keys", "warnings"}

    def test_public_tree(self, sample_registry, resolved):
        snapshot = Snapshot(resolved, Partitioner(sample_registry).derive_public_view(resolved))

        assert snapshot.public_tree()["service"]["baseUrl"] == "https://api.example.com"
