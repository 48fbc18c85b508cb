"""
Value Sources.

A source supplies raw values for configuration paths. Sources are ordered
by precedence rank: when several sources supply the same path, the one
with the higher rank wins.

Design Principle:
    Sources are immutable snapshots. Any I/O (reading a file, copying the
    process environment) happens when the source is constructed, never
    during read().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from stratum.schema.entry import ABSENT, Path


class Source(ABC):
    """
    Base class for configuration value sources.

    Subclasses expose:
    - origin: identifier used for provenance and logging
    - precedence_rank: higher wins
    - read(path): raw value or ABSENT
    - paths(): every path this source can supply
    """

    origin: str
    precedence_rank: int

    @abstractmethod
    def read(self, path: Path) -> Any:
        """Return the raw value for a path, or ABSENT."""

    @abstractmethod
    def paths(self) -> Iterable[Path]:
        """Paths this source supplies a value for."""

    def rejected_keys(self) -> list[str]:
        """External keys this source saw but could not map to a path."""
        return []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(origin={self.origin!r}, rank={self.precedence_rank})"


def _key_to_path(key: str | Path) -> Path:
    if isinstance(key, str):
        return tuple(key.split("."))
    return tuple(key)


def flatten(tree: Mapping[str, Any], prefix: Path = ()) -> dict[Path, Any]:
    """Flatten nested mappings into {path: leaf value}."""
    flat: dict[Path, Any] = {}
    for key, value in tree.items():
        current = prefix + (str(key),)
        if isinstance(value, Mapping) and value:
            flat.update(flatten(value, current))
        else:
            flat[current] = value
    return flat


class MappingSource(Source):
    """
    In-memory source backed by a {path: raw value} mapping.

    Keys may be dotted strings ("service.baseUrl") or path tuples. The
    mapping is copied at construction; later changes to the caller's dict
    are not observed.

    Example:
        defaults = MappingSource("defaults", 0, {"port": 8080})
        overrides = MappingSource.from_tree("local", 10, {"service": {"baseUrl": "https://x"}})
    """

    def __init__(
        self,
        origin: str,
        precedence_rank: int,
        values: Mapping[str | Path, Any] | None = None,
    ):
        self.origin = origin
        self.precedence_rank = precedence_rank
        self._values: Mapping[Path, Any] = MappingProxyType(
            {_key_to_path(key): value for key, value in (values or {}).items()}
        )

    @classmethod
    def from_tree(cls, origin: str, precedence_rank: int, tree: Mapping[str, Any]) -> MappingSource:
        """Build a source from nested mappings (e.g. a parsed YAML document)."""
        return cls(origin, precedence_rank, flatten(tree))

    @property
    def values(self) -> Mapping[Path, Any]:
        return self._values

    def read(self, path: Path) -> Any:
        return self._values.get(tuple(path), ABSENT)

    def paths(self) -> list[Path]:
        return list(self._values.keys())
