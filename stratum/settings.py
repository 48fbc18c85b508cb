"""
Engine settings.

Settings of the engine itself, as opposed to the application keys it
resolves. Read from STRATUM_* environment variables by from_env().
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field


class EngineSettings(BaseModel):
    """
    Engine settings model.

    Attributes:
        namespace: Prefix of environment variable names (APP -> APP_SERVICE_BASEURL)
        env_precedence: Precedence rank of the environment source
        guard_max_depth: Nesting depth the Serialization Guard accepts
        snapshot_history: Number of recent snapshots kept by version
    """

    namespace: str = Field(default="APP", pattern=r"^[A-Za-z0-9_]+$")
    env_precedence: int = Field(default=100)
    guard_max_depth: int = Field(default=64, ge=1)
    snapshot_history: int = Field(default=8, ge=1)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineSettings:
        """Build settings from STRATUM_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        overrides = {
            "namespace": env.get("STRATUM_NAMESPACE"),
            "env_precedence": env.get("STRATUM_ENV_PRECEDENCE"),
            "guard_max_depth": env.get("STRATUM_GUARD_MAX_DEPTH"),
            "snapshot_history": env.get("STRATUM_SNAPSHOT_HISTORY"),
        }
        return cls(**{key: value for key, value in overrides.items() if value is not None})
