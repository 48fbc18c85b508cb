"""
Schema Registry for Stratum.

The registry declares every recognized configuration key.

Design Principle:
    Keys are registered once at process start and are read-only afterwards.
    The engine seals the registry before its first resolution pass; no
    interface can add keys later.

Usage:
    registry = SchemaRegistry()
    registry.register([
        SchemaEntry(key=("service",), type=ValueType.NESTED, visibility=Visibility.PUBLIC),
        SchemaEntry(key=("service", "baseUrl"), visibility=Visibility.PUBLIC),
        SchemaEntry(key=("apiKey",)),
    ])
    registry.seal()

    entry = registry.lookup("service.baseUrl")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from stratum.errors import (
    DuplicateKeyError,
    KeyNotFoundError,
    RegistrySealedError,
    SchemaError,
    UnmappablePathError,
    VisibilityConflictError,
)

from .entry import Path, SchemaEntry, parse_path

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Registry of schema entries keyed by full path.

    Entries keep their registration order, which fixes the iteration order
    of every ResolvedConfig built from this registry.
    """

    def __init__(self, entries: Iterable[SchemaEntry] | None = None) -> None:
        self._entries: dict[Path, SchemaEntry] = {}
        self._sealed = False
        if entries is not None:
            self.register(entries)

    def register(self, entries: Iterable[SchemaEntry]) -> None:
        """
        Register a batch of entries.

        The batch is atomic: if any entry is rejected, none are added.

        Raises:
            RegistrySealedError: If the registry was sealed
            DuplicateKeyError: If a path is registered twice
            VisibilityConflictError: If a public key sits under a private parent
            SchemaError: If a key sits under a non-nested parent
        """
        if self._sealed:
            raise RegistrySealedError()

        batch = list(entries)
        combined = dict(self._entries)
        for entry in batch:
            if entry.key in combined:
                raise DuplicateKeyError(entry.key)
            combined[entry.key] = entry

        for entry in batch:
            self._check_ancestors(entry, combined)
            self._check_descendants(entry, combined)

        self._entries = combined
        logger.debug(f"[schema] Registered {len(batch)} entries ({len(combined)} total)")

    @staticmethod
    def _check_ancestors(entry: SchemaEntry, entries: dict[Path, SchemaEntry]) -> None:
        for depth in range(1, len(entry.key)):
            ancestor = entries.get(entry.key[:depth])
            if ancestor is None:
                continue
            if not ancestor.is_nested:
                raise SchemaError(
                    entry.key, f"parent '{ancestor.dotted}' is a {ancestor.type.value}, not nested"
                )
            if ancestor.is_private and entry.is_public:
                raise VisibilityConflictError(entry.key, ancestor.key)

    @staticmethod
    def _check_descendants(entry: SchemaEntry, entries: dict[Path, SchemaEntry]) -> None:
        size = len(entry.key)
        for key, other in entries.items():
            if len(key) <= size or key[:size] != entry.key:
                continue
            if not entry.is_nested:
                raise SchemaError(key, f"parent '{entry.dotted}' is a {entry.type.value}, not nested")
            if entry.is_private and other.is_public:
                raise VisibilityConflictError(key, entry.key)

    def seal(self) -> None:
        """Make the registry read-only."""
        if not self._sealed:
            self._sealed = True
            logger.info(f"[schema] Sealed with {len(self._entries)} keys")

    @property
    def sealed(self) -> bool:
        return self._sealed

    def lookup(self, path: str | Path) -> SchemaEntry | None:
        """
        Get an entry by path.

        Returns:
            SchemaEntry or None if the path is not declared
        """
        return self._entries.get(parse_path(path))

    def require(self, path: str | Path) -> SchemaEntry:
        """
        Get an entry by path, raising if not declared.

        Raises:
            KeyNotFoundError: If the path is not declared
        """
        entry = self.lookup(path)
        if entry is None:
            raise KeyNotFoundError(path)
        return entry

    def leaves(self) -> list[SchemaEntry]:
        """Value-carrying (non-nested) entries in registration order."""
        return [entry for entry in self._entries.values() if not entry.is_nested]

    def children(self, path: str | Path) -> list[SchemaEntry]:
        """Direct children of a path."""
        parent = parse_path(path)
        return [
            entry
            for key, entry in self._entries.items()
            if len(key) == len(parent) + 1 and key[:-1] == parent
        ]

    def ancestors(self, path: Path) -> list[SchemaEntry]:
        """Declared ancestors of a path, outermost first."""
        found = []
        for depth in range(1, len(path)):
            entry = self._entries.get(path[:depth])
            if entry is not None:
                found.append(entry)
        return found

    def paths(self) -> list[Path]:
        return list(self._entries.keys())

    def __iter__(self) -> Iterator[SchemaEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, tuple)):
            return False
        try:
            return parse_path(path) in self._entries
        except UnmappablePathError:
            return False
