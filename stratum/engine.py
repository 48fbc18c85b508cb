"""
Configuration Engine.

Ties the pipeline together and owns its lifecycle:

    SchemaRegistry -> SourceLayer -> Resolver -> Partitioner -> SnapshotCache

Lifecycle:
    1. Construct: schema and sources are registered; environment naming
       is validated (registration errors are fatal here)
    2. start(): seals the registry and runs the first pass. Any error
       propagates to the caller and aborts startup
    3. reload(): runs a new pass. Failures leave the last good snapshot
       current and are reported in the returned ReloadResult
    4. Consumers read through get_config() / get_public_config() or an
       explicit ConfigContext

Concurrency:
    Passes never overlap. A reload requested while a pass is running
    (for example from a source provider) is queued and runs right after
    it. areload() serializes coroutines with an asyncio.Lock.

Usage:
    engine = ConfigEngine.from_declaration(
        {
            "service": {"type": "nested", "visibility": "public"},
            "service.baseUrl": {"type": "string", "visibility": "public"},
            "apiKey": {"type": "string"},
        },
        sources=[MappingSource("defaults", 0, {"service.baseUrl": "https://x"})],
    )
    engine.start()
    engine.get_public_config()   # {"service.baseUrl": "https://x"}
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path as FilePath
from typing import Any

from stratum.context import ConfigContext
from stratum.errors import StratumError
from stratum.frozen import FrozenMapping
from stratum.guard import SerializationGuard
from stratum.partition import Partitioner
from stratum.resolver import ResolvedConfig, Resolver
from stratum.schema import SchemaDeclaration, SchemaRegistry, load_declaration
from stratum.settings import EngineSettings
from stratum.snapshot import Snapshot, SnapshotCache
from stratum.sources import (
    EnvironmentNaming,
    EnvironmentSource,
    Source,
    SourceLayer,
    SourceProvider,
)

logger = logging.getLogger(__name__)

EnvironReader = Callable[[], Mapping[str, str]]


@dataclass
class ReloadResult:
    """
    Outcome of a reload signal.

    Attributes:
        version: Version of the snapshot current after the reload
        success: Whether this call published a new snapshot; False for a
            queued request, whose pass runs after the one in flight
        error: Error message if the pass failed
        exception: The error itself, for callers that want to re-raise
        queued: True if the request was queued behind a running pass
    """

    version: int
    success: bool = True
    error: str | None = None
    exception: Exception | None = field(default=None, repr=False)
    queued: bool = False
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "success": self.success,
            "error": self.error,
            "queued": self.queued,
            "warnings": list(self.warnings),
        }


class ConfigEngine:
    """
    Process-scoped configuration engine.

    There is no module-level instance: construct one at startup and pass
    it (or the ConfigContext it issues) to whoever needs configuration.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        sources: Iterable[Source | SourceProvider] = (),
        *,
        settings: EngineSettings | None = None,
        environ: Mapping[str, str] | EnvironReader | None = None,
        use_environment: bool = True,
    ):
        """
        Initialize the engine.

        Args:
            registry: Schema registry (sealed by start())
            sources: Sources or zero-argument source providers
            settings: Engine settings (defaults to EngineSettings())
            environ: Environment mapping, or a callable returning one on
                every pass (defaults to os.environ)
            use_environment: Whether to add the environment source

        Raises:
            UnmappablePathError: If schema paths collide in environment naming
            DuplicateKeyError: If two sources share an origin
        """
        self.settings = settings or EngineSettings()
        self.registry = registry
        self.guard = SerializationGuard(max_depth=self.settings.guard_max_depth)
        self.layer = SourceLayer(registry)
        self.resolver = Resolver()
        self.cache = SnapshotCache(
            Partitioner(registry, self.guard),
            max_history=self.settings.snapshot_history,
        )

        for source in sources:
            self.layer.add(source)

        self.naming: EnvironmentNaming | None = None
        if use_environment:
            self.naming = EnvironmentNaming(self.settings.namespace, registry.paths())
            self.layer.add(self._environment_provider(environ))

        self._in_flight = False
        self._pending = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_declaration(
        cls,
        declaration: Mapping[str, Any] | SchemaDeclaration | str | FilePath,
        sources: Iterable[Source | SourceProvider] = (),
        **kwargs: Any,
    ) -> ConfigEngine:
        """
        Build an engine from a declaration mapping, model or file path.

        Raises:
            RegistrationError: If the declaration is invalid
        """
        if isinstance(declaration, (str, FilePath)):
            declaration = load_declaration(declaration)
        elif not isinstance(declaration, SchemaDeclaration):
            declaration = SchemaDeclaration.from_mapping(dict(declaration))
        return cls(declaration.to_registry(), sources, **kwargs)

    def _environment_provider(
        self, environ: Mapping[str, str] | EnvironReader | None
    ) -> SourceProvider:
        naming = self.naming
        rank = self.settings.env_precedence

        def read_environment() -> Source:
            if environ is None:
                env: Mapping[str, str] = os.environ
            elif callable(environ):
                env = environ()
            else:
                env = environ
            return EnvironmentSource(naming, env, precedence_rank=rank)

        return read_environment

    # ==================== Lifecycle ====================

    @property
    def started(self) -> bool:
        return self.cache.current is not None

    def start(self) -> Snapshot:
        """
        Seal the schema and publish the first snapshot.

        Raises:
            StratumError: Any registration, resolution or boundary error
        """
        if self.started:
            raise RuntimeError("Engine already started")
        self.registry.seal()
        snapshot = self._run_pass()
        logger.info(
            f"[engine] Started at version={snapshot.version} "
            f"({len(snapshot.resolved)} keys, {len(snapshot.public_view)} public)"
        )
        return snapshot

    def reload(self, *, raise_errors: bool = False) -> ReloadResult:
        """
        Run a new resolution pass.

        Args:
            raise_errors: Re-raise pass errors instead of reporting them

        Returns:
            ReloadResult with the version current after the reload
            (the last pass, when requests were queued behind it)
        """
        if not self.started:
            raise RuntimeError("Engine not started; call start() first")

        if self._in_flight:
            self._pending = True
            logger.debug("[engine] Reload queued behind running pass")
            return ReloadResult(version=self.version, success=False, queued=True)

        result = self._reload_once()
        while self._pending:
            self._pending = False
            result = self._reload_once()

        if not result.success and raise_errors and result.exception is not None:
            raise result.exception
        return result

    async def areload(self, *, raise_errors: bool = False) -> ReloadResult:
        """Reload, serialized with other coroutines calling areload()."""
        async with self._lock:
            return self.reload(raise_errors=raise_errors)

    def _reload_once(self) -> ReloadResult:
        previous = self.version
        try:
            snapshot = self._run_pass()
        except StratumError as e:
            logger.warning(
                f"[engine] Reload failed, keeping version={previous}: "
                f"{type(e).__name__}: {e}"
            )
            return ReloadResult(
                version=previous,
                success=False,
                error=str(e),
                exception=e,
            )
        except Exception as e:
            # Raised outside the pipeline, e.g. by a source provider
            logger.exception(f"[engine] Reload failed, keeping version={previous}")
            return ReloadResult(
                version=previous,
                success=False,
                error=str(e),
                exception=e,
            )
        logger.info(f"[engine] Reloaded version={previous} -> {snapshot.version}")
        return ReloadResult(version=snapshot.version, warnings=snapshot.resolved.warnings)

    def _run_pass(self) -> Snapshot:
        self._in_flight = True
        try:
            sources = self.layer.collect()
            resolved = self.resolver.resolve(self.registry, sources, layer=self.layer)
            return self.cache.publish(resolved)
        finally:
            self._in_flight = False

    # ==================== Accessors ====================

    @property
    def snapshot(self) -> Snapshot:
        """Current snapshot."""
        current = self.cache.current
        if current is None:
            raise RuntimeError("Engine not started; call start() first")
        return current

    @property
    def version(self) -> int:
        return self.snapshot.version

    def get_public_config(self) -> FrozenMapping:
        """Public view, safe to hand to any downstream consumer."""
        return self.snapshot.public_view

    def get_config(self) -> ResolvedConfig:
        """Full view, for server-side callers only."""
        return self.snapshot.resolved

    def context(self) -> ConfigContext:
        """Issue a context pinned to the current snapshot."""
        return ConfigContext(self.snapshot)
