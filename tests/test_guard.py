"""
Tests for the Serialization Guard.
"""

import math

import pytest

from stratum.errors import BoundaryViolationError
from stratum.frozen import FrozenMapping
from stratum.guard import (
    SerializationGuard,
    SerializationViolation,
    ViolationReason,
    WireShape,
    check,
    classify,
)


@pytest.fixture
def guard():
    return SerializationGuard()


class _Handle:
    pass


# =============================================================================
# Classification Tests
# =============================================================================


class TestClassify:
    """Tests for shape tagging."""

    @pytest.mark.parametrize("value", [None, "x", True, 0, 1.5, -3])
    def test_primitives(self, value):
        assert classify(value) is WireShape.PRIMITIVE

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_floats_are_opaque(self, value):
        assert classify(value) is WireShape.OPAQUE

    def test_containers(self):
        assert classify([1]) is WireShape.SEQUENCE
        assert classify((1,)) is WireShape.SEQUENCE
        assert classify({"a": 1}) is WireShape.MAPPING
        assert classify(FrozenMapping({"a": 1})) is WireShape.MAPPING

    def test_callables_and_opaque(self):
        assert classify(lambda: None) is WireShape.CALLABLE
        assert classify(_Handle) is WireShape.CALLABLE
        assert classify(_Handle()) is WireShape.OPAQUE
        assert classify({1, 2}) is WireShape.OPAQUE
        assert classify(b"bytes") is WireShape.OPAQUE


# =============================================================================
# Check Tests
# =============================================================================


class TestCheck:
    """Tests for SerializationGuard.check."""

    def test_plain_data_passes(self, guard):
        value = {"a": [1, 2.5, "x", None, {"b": True}], "c": ()}

        assert guard.check(value) is None
        assert guard.is_wire_safe(value)

    def test_callable_member(self, guard):
        violation = guard.check({"a": 1, "b": lambda: None})

        assert violation == SerializationViolation("b", ViolationReason.CALLABLE, "function")

    def test_nested_path_with_index(self, guard):
        violation = guard.check({"items": [1, {"handler": print}]})

        assert violation.path == "items[1].handler"
        assert violation.reason is ViolationReason.CALLABLE

    def test_unsupported_type(self, guard):
        violation = guard.check({"when": _Handle()})

        assert violation.reason is ViolationReason.UNSUPPORTED_TYPE
        assert violation.type_name == "_Handle"

    def test_nan_is_unsupported(self, guard):
        violation = guard.check([math.nan])

        assert violation.path == "[0]"
        assert violation.reason is ViolationReason.UNSUPPORTED_TYPE

    def test_non_string_key(self, guard):
        violation = guard.check({1: "x"})

        assert violation.reason is ViolationReason.UNSUPPORTED_TYPE
        assert violation.type_name == "int"

    def test_non_string_key_path_hides_key(self, guard):
        with pytest.raises(BoundaryViolationError) as exc_info:
            guard.ensure({"a": 1, b"sk-live-123": "x"}, path="cfg")

        assert exc_info.value.path == "cfg.<bytes key #1>"
        assert "sk-live-123" not in str(exc_info.value)

    def test_self_reference_is_cyclic(self, guard):
        value = {"a": 1}
        value["self"] = value

        violation = guard.check(value)

        assert violation.reason is ViolationReason.CYCLIC
        assert violation.path == "self"

    def test_indirect_cycle(self, guard):
        outer = []
        inner = [outer]
        outer.append(inner)

        assert guard.check(outer).reason is ViolationReason.CYCLIC

    def test_shared_reference_is_not_a_cycle(self, guard):
        shared = {"x": 1}

        assert guard.check({"a": shared, "b": shared, "c": [shared, shared]}) is None

    def test_depth_bound(self):
        guard = SerializationGuard(max_depth=3)

        assert guard.check([[[1]]]) is None
        assert guard.check([[[[1]]]]).reason is ViolationReason.CYCLIC

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            SerializationGuard(max_depth=0)

    def test_module_level_check(self):
        assert check({"a": 1}) is None
        assert check(lambda: None).path == ""


# =============================================================================
# Ensure Tests
# =============================================================================


class TestEnsure:
    """Tests for SerializationGuard.ensure."""

    def test_passes_silently(self, guard):
        guard.ensure({"a": 1}, path="store")

    def test_error_carries_prefixed_path(self, guard):
        with pytest.raises(BoundaryViolationError) as exc_info:
            guard.ensure({"b": lambda: None}, path="settings")

        assert exc_info.value.path == "settings.b"
        assert exc_info.value.reason == "callable"

    def test_root_violation(self, guard):
        with pytest.raises(BoundaryViolationError) as exc_info:
            guard.ensure(lambda: None)

        assert exc_info.value.path == "<root>"

    def test_error_never_contains_value(self, guard):
        class Secret:
            def __repr__(self):
                return "TOP-SECRET"

        with pytest.raises(BoundaryViolationError) as exc_info:
            guard.ensure({"token": Secret()}, path="cfg")

        assert "TOP-SECRET" not in str(exc_info.value)
        assert exc_info.value.type_name == "Secret"
