"""
Binding of the public configuration into a Store.

The store is republished on every snapshot swap, so accessors derived
from it stay live across reloads instead of holding a point-in-time copy.
"""

from __future__ import annotations

import logging

from stratum.errors import BoundaryViolationError
from stratum.guard import SerializationGuard
from stratum.snapshot import Snapshot, SnapshotCache

from .bindings import Store

logger = logging.getLogger(__name__)


class PublicConfigStore(Store):
    """
    Store holding the public view of the current snapshot.

    Example:
        public = bind_public_config(engine.cache)
        base_url = public.select("service.baseUrl")
        engine.reload()
        base_url.get()   # reflects the new snapshot
    """

    def __init__(self, cache: SnapshotCache, *, guard: SerializationGuard | None = None):
        current = cache.current
        super().__init__(
            current.public_view if current is not None else {},
            name="public_config",
            guard=guard,
        )
        self.snapshot_version = current.version if current is not None else 0
        self._unsubscribe = cache.subscribe(self._on_snapshot)

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        try:
            self.publish(snapshot.public_view)
        except BoundaryViolationError:
            logger.warning(
                f"[public_config] Kept version={self.snapshot_version}, "
                f"version={snapshot.version} was rejected"
            )
            raise
        self.snapshot_version = snapshot.version

    def close(self) -> None:
        """Stop following the snapshot cache."""
        self._unsubscribe()


def bind_public_config(
    cache: SnapshotCache, *, guard: SerializationGuard | None = None
) -> PublicConfigStore:
    """Create a store that follows the cache's public view."""
    return PublicConfigStore(cache, guard=guard)
