"""
Tests for value sources.

Tests for:
- MappingSource and flatten
- EnvironmentNaming (path <-> variable name bijection)
- EnvironmentSource capture and rejected names
- SourceLayer ordering and origin uniqueness
"""

import pytest

from stratum.errors import DuplicateKeyError, UnmappablePathError
from stratum.schema import ABSENT, SchemaEntry, SchemaRegistry, ValueType
from stratum.sources import (
    EnvironmentNaming,
    EnvironmentSource,
    MappingSource,
    SourceLayer,
    external_name,
    flatten,
)

# =============================================================================
# MappingSource Tests
# =============================================================================


class TestMappingSource:
    """Tests for the in-memory source."""

    def test_read_dotted_and_tuple_keys(self):
        source = MappingSource("local", 10, {"service.baseUrl": "https://x", ("port",): "80"})

        assert source.read(("service", "baseUrl")) == "https://x"
        assert source.read(("port",)) == "80"
        assert source.read(("missing",)) is ABSENT

    def test_copies_input(self):
        values = {"port": "80"}
        source = MappingSource("local", 10, values)
        values["port"] = "81"

        assert source.read(("port",)) == "80"

    def test_values_are_read_only(self):
        source = MappingSource("local", 10, {"port": "80"})

        with pytest.raises(TypeError):
            source.values[("port",)] = "81"

    def test_from_tree(self):
        source = MappingSource.from_tree("yaml", 5, {"service": {"baseUrl": "https://x"}, "port": 80})

        assert sorted(source.paths()) == [("port",), ("service", "baseUrl")]

    def test_flatten_keeps_empty_mappings_as_leaves(self):
        assert flatten({"a": {}, "b": {"c": 1}}) == {("a",): {}, ("b", "c"): 1}

    def test_none_is_a_value(self):
        source = MappingSource("local", 10, {"port": None})

        assert source.read(("port",)) is None


# =============================================================================
# Environment Naming Tests
# =============================================================================


class TestEnvironmentNaming:
    """Tests for the path/variable name mapping."""

    def test_external_name(self):
        assert external_name(("service", "baseUrl"), "APP") == "APP_SERVICE_BASEURL"
        assert external_name("port", "app") == "APP_PORT"

    def test_map_and_unmap_are_inverse(self, sample_registry):
        naming = EnvironmentNaming("APP", sample_registry.paths())

        for path in sample_registry.paths():
            assert naming.unmap(naming.map(path)) == path

    def test_unmap_unknown_name(self, sample_registry):
        naming = EnvironmentNaming("APP", sample_registry.paths())

        assert naming.unmap("APP_NOPE") is None

    def test_map_unregistered_path(self, sample_registry):
        naming = EnvironmentNaming("APP", sample_registry.paths())

        with pytest.raises(UnmappablePathError):
            naming.map("nope")

    def test_case_collision_rejected(self):
        with pytest.raises(UnmappablePathError) as exc_info:
            EnvironmentNaming("APP", [("baseUrl",), ("baseurl",)])

        assert "APP_BASEURL" in str(exc_info.value)

    def test_separator_collision_rejected(self):
        with pytest.raises(UnmappablePathError):
            EnvironmentNaming("APP", [("a_b",), ("a", "b")])

    def test_invalid_namespace_rejected(self):
        with pytest.raises(UnmappablePathError):
            EnvironmentNaming("MY-APP", [("port",)])

    def test_owns(self):
        naming = EnvironmentNaming("APP", [("port",)])

        assert naming.owns("APP_ANYTHING")
        assert not naming.owns("OTHER_PORT")
        assert not naming.owns("APPPORT")


# =============================================================================
# Environment Source Tests
# =============================================================================


class TestEnvironmentSource:
    """Tests for EnvironmentSource."""

    def test_reads_registered_names(self, sample_registry):
        naming = EnvironmentNaming("APP", sample_registry.paths())
        source = EnvironmentSource(
            naming, {"APP_SERVICE_BASEURL": "https://env", "HOME": "/root"}
        )

        assert source.read(("service", "baseUrl")) == "https://env"
        assert source.paths() == [("service", "baseUrl")]

    def test_unrecognized_names_are_rejected_without_values(self, sample_registry):
        naming = EnvironmentNaming("APP", sample_registry.paths())
        source = EnvironmentSource(naming, {"APP_TYPO": "secret-value", "OTHER": "x"})

        assert source.rejected_keys() == ["APP_TYPO"]
        assert source.paths() == []
        assert "secret-value" not in repr(source.__dict__)

    def test_capture_is_a_snapshot(self, sample_registry):
        naming = EnvironmentNaming("APP", sample_registry.paths())
        environ = {"APP_PORT": "1"}
        source = EnvironmentSource(naming, environ)
        environ["APP_PORT"] = "2"

        assert source.read(("port",)) == "1"

    def test_defaults(self, sample_registry):
        naming = EnvironmentNaming("APP", sample_registry.paths())
        source = EnvironmentSource(naming, {})

        assert source.origin == "env"
        assert source.precedence_rank == 100
        assert source.naming is naming


# =============================================================================
# Source Layer Tests
# =============================================================================


class TestSourceLayer:
    """Tests for SourceLayer."""

    def test_orders_by_rank_descending(self, sample_registry):
        layer = SourceLayer(sample_registry)
        layer.add(MappingSource("low", 1))
        layer.add(MappingSource("high", 50))
        layer.add(MappingSource("mid", 10))

        assert [source.origin for source in layer.collect()] == ["high", "mid", "low"]

    def test_equal_rank_later_registration_first(self, sample_registry):
        layer = SourceLayer(sample_registry)
        layer.add(MappingSource("first", 10))
        layer.add(MappingSource("second", 10))

        assert [source.origin for source in layer.collect()] == ["second", "first"]

    def test_duplicate_origin(self, sample_registry):
        layer = SourceLayer(sample_registry)
        layer.add(MappingSource("local", 10))

        with pytest.raises(DuplicateKeyError) as exc_info:
            layer.add(MappingSource("local", 20))

        assert exc_info.value.kind == "source origin"

    def test_provider_called_every_collect(self, sample_registry):
        layer = SourceLayer(sample_registry)
        calls = []

        def provider():
            calls.append(1)
            return MappingSource("dynamic", 5, {"port": str(len(calls))})

        layer.add(provider)

        assert layer.collect()[0].read(("port",)) == "1"
        assert layer.collect()[0].read(("port",)) == "2"

    def test_provider_origin_clash_detected_on_collect(self, sample_registry):
        layer = SourceLayer(sample_registry)
        layer.add(MappingSource("local", 10))
        layer.add(lambda: MappingSource("local", 20))

        with pytest.raises(DuplicateKeyError):
            layer.collect()

    def test_provider_must_return_source(self, sample_registry):
        layer = SourceLayer(sample_registry)
        layer.add(lambda: {"port": 1})

        with pytest.raises(TypeError):
            layer.collect()

    def test_rejects_non_callable(self, sample_registry):
        layer = SourceLayer(sample_registry)

        with pytest.raises(TypeError):
            layer.add({"port": 1})

    def test_unknown_paths(self):
        registry = SchemaRegistry(
            [
                SchemaEntry(key=("service",), type=ValueType.NESTED),
                SchemaEntry(key=("service", "url"), default="x"),
            ]
        )
        layer = SourceLayer(registry)
        source = MappingSource("local", 1, {"service.url": "y", "service": "z", "extra": 1, "bad-key": 2})

        assert layer.unknown_paths(source) == [("service",), ("extra",), ("bad-key",)]
