"""
Stratum - layered configuration resolution with a strict public/private boundary.

Stratum resolves configuration from several ranked sources against a
declared schema and publishes immutable snapshots with:

- **Precedence Resolution**: Higher-ranked sources win, defaults fill gaps
- **Typed Values**: String, number and boolean coercion with clear errors
- **Boundary Partition**: A public view that never contains private keys
- **Serialization Guard**: Wire-safety checks for everything crossing the boundary
- **Versioned Snapshots**: Atomic swap on reload, last good snapshot kept on failure
- **Reactive Contracts**: Guarded stores, transient bindings, live derived accessors

Quick Start:
    >>> from stratum import ConfigEngine, MappingSource
    >>>
    >>> engine = ConfigEngine.from_declaration(
    ...     {
    ...         "service": {"type": "nested", "visibility": "public"},
    ...         "service.baseUrl": {"type": "string", "visibility": "public"},
    ...         "apiKey": {"type": "string"},
    ...     },
    ...     sources=[MappingSource("local", 10, {"service.baseUrl": "https://x", "apiKey": "k"})],
    ... )
    >>> engine.start()
    >>> dict(engine.get_public_config())
    {'service.baseUrl': 'https://x'}
"""

__version__ = "0.1.0"

from stratum.context import ConfigContext
from stratum.engine import ConfigEngine, ReloadResult
from stratum.errors import (
    BoundaryViolationError,
    DuplicateKeyError,
    KeyNotFoundError,
    MirroredStateError,
    MissingRequiredKeyError,
    RegistrationError,
    RegistrySealedError,
    ResolutionError,
    SchemaError,
    StratumError,
    TypeMismatchError,
    UnmappablePathError,
    VisibilityConflictError,
)
from stratum.guard import SerializationGuard, SerializationViolation, ViolationReason
from stratum.partition import Partitioner
from stratum.resolver import ResolvedConfig, Resolver
from stratum.schema import SchemaEntry, SchemaRegistry, ValueType, Visibility
from stratum.settings import EngineSettings
from stratum.snapshot import Snapshot, SnapshotCache
from stratum.sources import EnvironmentNaming, EnvironmentSource, MappingSource, SourceLayer

__all__ = [
    "__version__",
    # Engine
    "ConfigEngine",
    "ConfigContext",
    "ReloadResult",
    "EngineSettings",
    # Schema
    "SchemaEntry",
    "SchemaRegistry",
    "ValueType",
    "Visibility",
    # Sources
    "MappingSource",
    "EnvironmentNaming",
    "EnvironmentSource",
    "SourceLayer",
    # Pipeline
    "Resolver",
    "ResolvedConfig",
    "Partitioner",
    "Snapshot",
    "SnapshotCache",
    "SerializationGuard",
    "SerializationViolation",
    "ViolationReason",
    # Errors
    "StratumError",
    "RegistrationError",
    "DuplicateKeyError",
    "VisibilityConflictError",
    "UnmappablePathError",
    "SchemaError",
    "RegistrySealedError",
    "KeyNotFoundError",
    "ResolutionError",
    "MissingRequiredKeyError",
    "TypeMismatchError",
    "BoundaryViolationError",
    "MirroredStateError",
]
