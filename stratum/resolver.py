"""
Configuration Resolver.

Merges ordered sources into one typed, immutable ResolvedConfig.

Algorithm:
    For every value key in the schema (registration order):
    1. Walk sources from highest to lowest precedence rank
    2. The first source returning a value other than ABSENT wins
    3. Otherwise fall back to the schema default
    4. Otherwise fail with MissingRequiredKeyError
    5. Coerce the winning raw value to the declared type

    Keys present in a source but absent from the schema are dropped and
    recorded as warnings. They never become configuration values.

Guarantees:
    - Total: either every key resolves or the pass raises
    - Deterministic: same schema and same source contents give the same
      values (the version number aside)
    - No partial result is ever returned
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from stratum.errors import MissingRequiredKeyError
from stratum.frozen import FrozenMapping
from stratum.schema import ABSENT, SchemaRegistry, format_path
from stratum.sources import Source, SourceLayer

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = "default"
_MASK = "**********"


@dataclass(frozen=True, slots=True)
class ResolvedConfig(Mapping[str, Any]):
    """
    Result of one resolution pass.

    Behaves as a read-only mapping of dotted path -> typed value.

    Attributes:
        version: Monotonic pass number
        values: Dotted path -> typed value, in schema order
        origins: Dotted path -> origin of the winning source (or "default")
        private_keys: Dotted paths whose values must never be shown
        warnings: Dropped unknown keys and other non-fatal findings
    """

    version: int
    values: FrozenMapping
    origins: FrozenMapping = field(default_factory=FrozenMapping)
    private_keys: frozenset[str] = frozenset()
    warnings: tuple[str, ...] = ()

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def origin_of(self, key: str) -> str | None:
        """Which source supplied a key."""
        return self.origins.get(key)

    def redacted(self) -> dict[str, Any]:
        """Plain dict with private values masked, safe to log."""
        return {
            key: _MASK if key in self.private_keys else value
            for key, value in self.values.items()
        }

    def __repr__(self) -> str:
        return f"ResolvedConfig(version={self.version}, values={self.redacted()!r})"


class Resolver:
    """
    Resolves a schema against ordered sources.

    The resolver owns the version counter: every successful pass gets the
    next number. Failed passes do not consume a version.

    Example:
        resolver = Resolver()
        resolved = resolver.resolve(registry, layer.collect(), layer=layer)
        resolved["service.baseUrl"]
    """

    def __init__(self, start_version: int = 1):
        self._versions = itertools.count(start_version)
        self._last_version = start_version - 1

    @property
    def last_version(self) -> int:
        return self._last_version

    def resolve(
        self,
        registry: SchemaRegistry,
        sources: Sequence[Source],
        *,
        layer: SourceLayer | None = None,
    ) -> ResolvedConfig:
        """
        Run one resolution pass.

        Args:
            registry: Schema to resolve
            sources: Sources, highest precedence first
            layer: Source layer used for unknown-key detection; a temporary
                one over `registry` is used when omitted

        Raises:
            MissingRequiredKeyError: If a required key has no value
            TypeMismatchError: If a value cannot be coerced
        """
        ordered = sorted(sources, key=lambda source: -source.precedence_rank)
        warnings = self._collect_warnings(ordered, layer or SourceLayer(registry))

        values: dict[str, Any] = {}
        origins: dict[str, str] = {}
        private_keys: set[str] = set()

        for entry in registry.leaves():
            dotted = entry.dotted
            raw, origin = self._first_value(entry.key, ordered)
            if raw is ABSENT:
                if not entry.has_default:
                    raise MissingRequiredKeyError(entry.key)
                values[dotted] = entry.default
                origins[dotted] = DEFAULT_ORIGIN
            else:
                values[dotted] = entry.type.coerce(raw, entry.key, redact=entry.is_private)
                origins[dotted] = origin
            if entry.is_private:
                private_keys.add(dotted)

        version = next(self._versions)
        self._last_version = version
        resolved = ResolvedConfig(
            version=version,
            values=FrozenMapping(values),
            origins=FrozenMapping(origins),
            private_keys=frozenset(private_keys),
            warnings=tuple(warnings),
        )
        logger.debug(
            f"[resolver] Resolved version={version}: {len(values)} keys "
            f"from {len(ordered)} sources ({len(warnings)} warnings)"
        )
        return resolved

    @staticmethod
    def _first_value(path: tuple[str, ...], sources: Sequence[Source]) -> tuple[Any, str]:
        for source in sources:
            raw = source.read(path)
            if raw is not ABSENT:
                return raw, source.origin
        return ABSENT, DEFAULT_ORIGIN

    @staticmethod
    def _collect_warnings(sources: Sequence[Source], layer: SourceLayer) -> list[str]:
        warnings: list[str] = []
        for source in sources:
            for path in layer.unknown_paths(source):
                warnings.append(f"{source.origin}: dropped unknown key '{format_path(path)}'")
            for name in source.rejected_keys():
                warnings.append(f"{source.origin}: dropped unrecognized variable '{name}'")
        for message in warnings:
            logger.warning(f"[resolver] {message}")
        return warnings
