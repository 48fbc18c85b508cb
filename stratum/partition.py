"""
Public/Private Partitioner.

Derives the public view of a ResolvedConfig.

Rules:
    - Membership is decided by the schema, never by the values: a private
      key is excluded even if its value equals a public one
    - A key is public only if it and every declared ancestor are public
    - Private keys under a public parent are excluded entirely; the nested
      form of the public view simply omits them
    - Every value placed in the view passes the Serialization Guard; the
      first failure aborts the whole view (fail-closed)
"""

from __future__ import annotations

import logging
from typing import Any

from stratum.frozen import FrozenMapping
from stratum.guard import SerializationGuard
from stratum.resolver import ResolvedConfig
from stratum.schema import SchemaEntry, SchemaRegistry

logger = logging.getLogger(__name__)


class Partitioner:
    """
    Builds public views from resolved configuration.

    Example:
        partitioner = Partitioner(registry)
        public = partitioner.derive_public_view(resolved)
    """

    def __init__(self, registry: SchemaRegistry, guard: SerializationGuard | None = None):
        self._registry = registry
        self._guard = guard if guard is not None else SerializationGuard()

    def is_public(self, entry: SchemaEntry) -> bool:
        """Whether an entry may appear in the public view."""
        if not entry.is_public:
            return False
        return all(ancestor.is_public for ancestor in self._registry.ancestors(entry.key))

    def public_keys(self) -> list[str]:
        return [entry.dotted for entry in self._registry.leaves() if self.is_public(entry)]

    def derive_public_view(self, resolved: ResolvedConfig) -> FrozenMapping:
        """
        Derive the public-only view.

        Returns:
            Read-only mapping of dotted path -> value for public keys

        Raises:
            BoundaryViolationError: If a public value is not wire-safe
        """
        view: dict[str, Any] = {}
        for dotted in self.public_keys():
            value = resolved.values[dotted]
            self._guard.ensure(value, path=dotted)
            view[dotted] = value

        logger.debug(
            f"[partition] Public view for version={resolved.version}: "
            f"{len(view)}/{len(resolved)} keys"
        )
        return FrozenMapping(view)


def to_tree(view: FrozenMapping) -> FrozenMapping:
    """Nest a flat {dotted path: value} view into nested mappings."""
    tree: dict[str, Any] = {}
    for dotted, value in view.items():
        node = tree
        *parents, leaf = dotted.split(".")
        for segment in parents:
            node = node.setdefault(segment, {})
        node[leaf] = value
    return FrozenMapping(tree)
