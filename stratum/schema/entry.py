"""
Schema entries.

A SchemaEntry declares one recognized configuration key: its path, value
type, optional default and visibility class.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from stratum.errors import SchemaError, TypeMismatchError, UnmappablePathError

Path = tuple[str, ...]

_SEGMENT = re.compile(r"^[A-Za-z0-9_]+$")
_INT_LITERAL = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_LITERAL = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


class _Absent:
    """Sentinel for 'no value supplied'."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Any = _Absent()


def parse_path(key: str | Path) -> Path:
    """
    Normalize a dotted string or tuple into a path tuple.

    Raises:
        UnmappablePathError: If a segment is empty or contains characters
            outside [A-Za-z0-9_]
    """
    path = tuple(key.split(".")) if isinstance(key, str) else tuple(key)
    if not path:
        raise UnmappablePathError(key, "empty path")
    for segment in path:
        if not isinstance(segment, str) or not _SEGMENT.match(segment):
            raise UnmappablePathError(
                key, f"segment {segment!r} must match [A-Za-z0-9_]+"
            )
    return path


def format_path(path: Path) -> str:
    return ".".join(path)


class Visibility(str, Enum):
    """Visibility class of a configuration key."""

    PUBLIC = "public"
    PRIVATE = "private"


class ValueType(str, Enum):
    """Declared type of a configuration key."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NESTED = "nested"

    def coerce(self, raw: Any, path: Path, *, redact: bool = False) -> Any:
        """
        Coerce a raw source value to this type.

        Strings parse to numbers (int literal first, then finite float) and
        booleans (true/false/1/0/yes/no/on/off). Native values of the right
        type pass unchanged.

        Raises:
            TypeMismatchError: If the value cannot be coerced
        """
        if self is ValueType.STRING:
            if isinstance(raw, str):
                return raw
        elif self is ValueType.NUMBER:
            if isinstance(raw, bool):
                pass
            elif isinstance(raw, int):
                return raw
            elif isinstance(raw, float) and math.isfinite(raw):
                return raw
            elif isinstance(raw, str):
                number = _parse_number(raw)
                if number is not None:
                    return number
        elif self is ValueType.BOOLEAN:
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str):
                word = raw.strip().lower()
                if word in _TRUE_WORDS:
                    return True
                if word in _FALSE_WORDS:
                    return False
        raise TypeMismatchError(path, self.value, _describe(raw, redact))


def _parse_number(text: str) -> int | float | None:
    text = text.strip()
    try:
        if _INT_LITERAL.match(text):
            return int(text)
        if _FLOAT_LITERAL.match(text):
            number = float(text)
            return number if math.isfinite(number) else None
    except ValueError:
        # int() refuses literals past the interpreter's digit limit
        return None
    return None


def _describe(raw: Any, redact: bool) -> str:
    type_name = type(raw).__name__
    if redact:
        return f"<redacted {type_name}>"
    text = repr(raw)
    if len(text) > 40:
        text = text[:37] + "..."
    return f"{type_name} {text}"


@dataclass(frozen=True, kw_only=True, slots=True)
class SchemaEntry:
    """
    Declaration of a single configuration key.

    Attributes:
        key: Path of identifiers, e.g. ("service", "baseUrl")
        type: Declared value type
        default: Default value, ABSENT when the key is required
        visibility: PUBLIC keys may cross the boundary, PRIVATE keys never do
        description: Human-readable description
    """

    key: Path
    type: ValueType = ValueType.STRING
    default: Any = ABSENT
    visibility: Visibility = Visibility.PRIVATE
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", parse_path(self.key))
        object.__setattr__(self, "type", ValueType(self.type))
        object.__setattr__(self, "visibility", Visibility(self.visibility))
        if self.type is ValueType.NESTED:
            if self.default is not ABSENT:
                raise SchemaError(self.key, "nested entries cannot declare a default")
        elif self.default is not ABSENT:
            coerced = self.type.coerce(self.default, self.key, redact=self.is_private)
            object.__setattr__(self, "default", coerced)

    @property
    def dotted(self) -> str:
        return format_path(self.key)

    @property
    def is_nested(self) -> bool:
        return self.type is ValueType.NESTED

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC

    @property
    def is_private(self) -> bool:
        return self.visibility is Visibility.PRIVATE

    @property
    def has_default(self) -> bool:
        return self.default is not ABSENT

    @property
    def parent(self) -> Path | None:
        return self.key[:-1] or None

    def __repr__(self) -> str:
        return f"SchemaEntry({self.dotted}: {self.type.value}, {self.visibility.value})"
