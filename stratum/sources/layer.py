"""
Source Layer.

Collects the sources taking part in a resolution pass and orders them by
precedence.

Sources can be registered either as ready-made Source objects or as
zero-argument providers. Providers are called again on every pass, so a
reload picks up freshly read values while each pass still works on
immutable snapshots.

Usage:
    layer = SourceLayer(registry)
    layer.add(MappingSource("defaults", 0, {...}))
    layer.add(lambda: EnvironmentSource(naming, os.environ, precedence_rank=100))

    sources = layer.collect()   # highest rank first
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from stratum.errors import DuplicateKeyError
from stratum.schema import Path, SchemaRegistry

from .base import Source

logger = logging.getLogger(__name__)

SourceProvider = Callable[[], Source]


class SourceLayer:
    """
    Ordered set of value sources validated against a schema registry.

    Ordering:
        Descending precedence_rank. Sources with equal rank are ordered
        by registration, the later registration winning.
    """

    def __init__(self, registry: SchemaRegistry):
        self._registry = registry
        self._entries: list[Source | SourceProvider] = []
        self._origins: set[str] = set()

    def add(self, source: Source | SourceProvider) -> None:
        """
        Register a source or a source provider.

        Raises:
            DuplicateKeyError: If a source with the same origin is registered
        """
        if isinstance(source, Source):
            if source.origin in self._origins:
                raise DuplicateKeyError(source.origin, kind="source origin")
            self._origins.add(source.origin)
            logger.debug(f"[source_layer] Registered source: {source!r}")
        elif not callable(source):
            raise TypeError(f"Expected Source or provider callable, got {type(source).__name__}")
        self._entries.append(source)

    def collect(self) -> list[Source]:
        """
        Materialize every source for one resolution pass.

        Returns:
            Sources ordered by descending precedence

        Raises:
            DuplicateKeyError: If two sources share an origin
        """
        materialized: list[tuple[int, Source]] = []
        seen: set[str] = set()
        for index, entry in enumerate(self._entries):
            source = entry if isinstance(entry, Source) else entry()
            if not isinstance(source, Source):
                raise TypeError(
                    f"Source provider returned {type(source).__name__}, expected Source"
                )
            if source.origin in seen:
                raise DuplicateKeyError(source.origin, kind="source origin")
            seen.add(source.origin)
            materialized.append((index, source))

        materialized.sort(key=lambda item: (-item[1].precedence_rank, -item[0]))
        return [source for _, source in materialized]

    def unknown_paths(self, source: Source) -> list[Path]:
        """Paths a source supplies that the schema does not declare as value keys."""
        unknown = []
        for path in source.paths():
            if path not in self._registry:
                unknown.append(path)
                continue
            entry = self._registry.lookup(path)
            if entry is not None and entry.is_nested:
                unknown.append(path)
        return unknown

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    def __len__(self) -> int:
        return len(self._entries)
