"""
Config Context for Stratum.

The context is the explicit, process-scoped handle consumers receive in
place of a global configuration object. It pins one snapshot; a consumer
that wants newer configuration asks the engine for a new context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from stratum.frozen import FrozenMapping
from stratum.resolver import ResolvedConfig
from stratum.snapshot import Snapshot


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ConfigContext:
    """
    Snapshot-pinned configuration handle passed to consumers.

    Provides:
    - get_public_config(): safe to forward across the trust boundary
    - get_config(): full view, for server-side callers only
    - version of the pinned snapshot
    """

    snapshot: Snapshot
    issued_at: datetime = field(default_factory=_utc_now)

    @property
    def version(self) -> int:
        return self.snapshot.version

    def get_public_config(self) -> FrozenMapping:
        return self.snapshot.public_view

    def get_config(self) -> ResolvedConfig:
        return self.snapshot.resolved

    def get(self, key: str, default: Any = None) -> Any:
        """Read one key from the full view."""
        return self.snapshot.resolved.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "issued_at": self.issued_at.isoformat(),
            "snapshot": self.snapshot.to_dict(),
        }
