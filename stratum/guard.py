"""
Serialization Guard.

Checks that a value is wire-safe: representable losslessly as primitives,
ordered sequences and string-keyed mappings, with no callable or opaque
content and no cycles.

Design:
    Every value is first tagged with one of a small closed set of shapes
    (PRIMITIVE, SEQUENCE, MAPPING, CALLABLE, OPAQUE). The walk then
    dispatches on the tag only. Cycles are detected by container identity
    along the current walk path, so a structure sharing a child between
    two parents passes while a structure reaching itself fails. A depth
    bound backs up the identity check.

Usage:
    guard = SerializationGuard()
    violation = guard.check({"a": 1, "b": lambda: None})
    # SerializationViolation(path='b', reason=ViolationReason.CALLABLE)

    guard.ensure(value, path="service")   # raises BoundaryViolationError
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from stratum.errors import BoundaryViolationError

DEFAULT_MAX_DEPTH = 64


class WireShape(Enum):
    """Closed set of shapes a value can take."""

    PRIMITIVE = "primitive"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    CALLABLE = "callable"
    OPAQUE = "opaque"


class ViolationReason(str, Enum):
    CALLABLE = "callable"
    UNSUPPORTED_TYPE = "unsupported-type"
    CYCLIC = "cyclic"


@dataclass(frozen=True, slots=True)
class SerializationViolation:
    """Why and where a value is not wire-safe."""

    path: str
    reason: ViolationReason
    type_name: str = ""

    def to_error(self, prefix: str = "") -> BoundaryViolationError:
        return BoundaryViolationError(
            _join(prefix, self.path) or "<root>",
            self.reason.value,
            type_name=self.type_name or None,
        )


def classify(value: Any) -> WireShape:
    """Tag a value with its wire shape."""
    if value is None or isinstance(value, (str, bool, int)):
        return WireShape.PRIMITIVE
    if isinstance(value, float):
        return WireShape.PRIMITIVE if math.isfinite(value) else WireShape.OPAQUE
    if isinstance(value, (list, tuple)):
        return WireShape.SEQUENCE
    if isinstance(value, Mapping):
        return WireShape.MAPPING
    if callable(value):
        return WireShape.CALLABLE
    return WireShape.OPAQUE


def _join(prefix: str, segment: str) -> str:
    if not prefix:
        return segment
    if not segment:
        return prefix
    if segment.startswith("["):
        return prefix + segment
    return f"{prefix}.{segment}"


class SerializationGuard:
    """
    Recursive wire-safety checker.

    Args:
        max_depth: Nesting depth beyond which a value is reported as cyclic
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.max_depth = max_depth

    def check(self, value: Any) -> SerializationViolation | None:
        """
        Check a value.

        Returns:
            None if the value is wire-safe, otherwise the first violation
        """
        return self._visit(value, "", set(), 0)

    def is_wire_safe(self, value: Any) -> bool:
        return self.check(value) is None

    def ensure(self, value: Any, path: str = "") -> None:
        """
        Check a value, raising on violation.

        Raises:
            BoundaryViolationError: With the path and reason, never the value
        """
        violation = self.check(value)
        if violation is not None:
            raise violation.to_error(path)

    def _visit(
        self,
        value: Any,
        path: str,
        active: set[int],
        depth: int,
    ) -> SerializationViolation | None:
        shape = classify(value)

        if shape is WireShape.PRIMITIVE:
            return None
        if shape is WireShape.CALLABLE:
            return SerializationViolation(path, ViolationReason.CALLABLE, type(value).__name__)
        if shape is WireShape.OPAQUE:
            return SerializationViolation(
                path, ViolationReason.UNSUPPORTED_TYPE, type(value).__name__
            )

        marker = id(value)
        if marker in active or depth >= self.max_depth:
            return SerializationViolation(path, ViolationReason.CYCLIC, type(value).__name__)

        active.add(marker)
        try:
            if shape is WireShape.SEQUENCE:
                for index, item in enumerate(value):
                    violation = self._visit(item, f"{path}[{index}]", active, depth + 1)
                    if violation is not None:
                        return violation
            else:
                for index, (key, item) in enumerate(value.items()):
                    if not isinstance(key, str):
                        # Keys may be private data; name the position only
                        return SerializationViolation(
                            _join(path, f"<{type(key).__name__} key #{index}>"),
                            ViolationReason.UNSUPPORTED_TYPE,
                            type(key).__name__,
                        )
                    violation = self._visit(item, _join(path, key), active, depth + 1)
                    if violation is not None:
                        return violation
        finally:
            active.discard(marker)
        return None


_default_guard = SerializationGuard()


def check(value: Any) -> SerializationViolation | None:
    """Check a value with the default guard."""
    return _default_guard.check(value)
