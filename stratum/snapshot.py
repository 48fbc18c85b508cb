"""
Snapshot Cache.

Holds the current immutable Snapshot and a bounded history of recent ones.

Publishing:
    A snapshot is fully built (resolved config + guarded public view)
    before the `current` pointer is swapped, so readers never observe a
    partially built snapshot. If building fails, the previous snapshot
    stays current.

Listeners:
    Callables registered with subscribe() are invoked with every newly
    published snapshot, after the swap.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from stratum.frozen import FrozenMapping
from stratum.partition import Partitioner, to_tree
from stratum.resolver import ResolvedConfig

logger = logging.getLogger(__name__)

SnapshotListener = Callable[["Snapshot"], None]


def _utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """
    Immutable, versioned view of resolved configuration.

    Consumers receive read-only references; a snapshot stays valid for
    anyone holding it after newer snapshots are published.
    """

    resolved: ResolvedConfig
    public_view: FrozenMapping
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def version(self) -> int:
        return self.resolved.version

    def public_tree(self) -> FrozenMapping:
        """Public view as nested mappings."""
        return to_tree(self.public_view)

    def to_dict(self) -> dict[str, object]:
        """Serialize snapshot metadata for logging (no private values)."""
        return {
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "keys": len(self.resolved),
            "public_keys": len(self.public_view),
            "warnings": list(self.resolved.warnings),
        }

    def __repr__(self) -> str:
        return f"Snapshot(version={self.version}, public_keys={len(self.public_view)})"


class SnapshotCache:
    """
    Current-pointer cache of snapshots with bounded history.

    Example:
        cache = SnapshotCache(partitioner)
        snapshot = cache.publish(resolved)   # may raise BoundaryViolationError
        cache.current.public_view
        cache.get(snapshot.version)
    """

    def __init__(self, partitioner: Partitioner, *, max_history: int = 8):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self._partitioner = partitioner
        self._max_history = max_history
        self._history: OrderedDict[int, Snapshot] = OrderedDict()
        self._current: Snapshot | None = None
        self._listeners: list[SnapshotListener] = []

    @property
    def current(self) -> Snapshot | None:
        return self._current

    def publish(self, resolved: ResolvedConfig) -> Snapshot:
        """
        Build and publish a snapshot.

        Raises:
            BoundaryViolationError: If the public view fails the guard; the
                previous snapshot remains current
        """
        if self._current is not None and resolved.version <= self._current.version:
            raise ValueError(
                f"Snapshot version {resolved.version} is not newer than "
                f"current version {self._current.version}"
            )

        public_view = self._partitioner.derive_public_view(resolved)
        snapshot = Snapshot(resolved=resolved, public_view=public_view)

        self._history[snapshot.version] = snapshot
        while len(self._history) > self._max_history:
            self._history.popitem(last=False)
        self._current = snapshot

        logger.info(f"[snapshot] Published version={snapshot.version}")
        self._notify(snapshot)
        return snapshot

    def get(self, version: int) -> Snapshot | None:
        """Get a recent snapshot by version, if still in history."""
        return self._history.get(version)

    def versions(self) -> list[int]:
        return list(self._history.keys())

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a listener for published snapshots.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: Snapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # The swap has already happened; remaining listeners still run.
                logger.exception(f"[snapshot] Listener failed for version={snapshot.version}")

    def __len__(self) -> int:
        return len(self._history)
