"""
Environment Variable Source.

Maps configuration paths to environment variable names with a fixed
naming convention:

    path ("service", "baseUrl"), namespace "APP"  ->  APP_SERVICE_BASEURL

Each segment is upper-cased, segments are joined with underscores and the
namespace is prefixed.

Bijectivity:
    Upper-casing and joining lose information in general ("a_b" and "a.b"
    both map to NS_A_B). EnvironmentNaming therefore builds the reverse
    index over the registered paths and rejects any collision up front,
    which makes map/unmap a bijection over the registered key set.

Usage:
    naming = EnvironmentNaming("APP", registry.paths())
    source = EnvironmentSource(naming, os.environ, precedence_rank=100)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from stratum.errors import UnmappablePathError
from stratum.schema.entry import ABSENT, Path, format_path, parse_path

from .base import Source

logger = logging.getLogger(__name__)


def external_name(path: str | Path, namespace: str) -> str:
    """
    Derive the environment variable name for a path.

    Raises:
        UnmappablePathError: If the path or namespace has characters
            outside [A-Za-z0-9_]
    """
    segments = parse_path(path)
    prefix = _check_namespace(namespace)
    return "_".join((prefix, *(segment.upper() for segment in segments)))


def _check_namespace(namespace: str) -> str:
    try:
        parse_path((namespace,))
    except UnmappablePathError:
        raise UnmappablePathError(namespace, "namespace must match [A-Za-z0-9_]+") from None
    return namespace.upper()


class EnvironmentNaming:
    """
    Bijective mapping between registered paths and environment names.

    Raises:
        UnmappablePathError: If a path is not identifier-safe or two paths
            map to the same environment name
    """

    def __init__(self, namespace: str, paths: Iterable[str | Path]):
        self.namespace = _check_namespace(namespace)
        self._forward: dict[Path, str] = {}
        self._reverse: dict[str, Path] = {}
        for raw in paths:
            path = parse_path(raw)
            name = external_name(path, self.namespace)
            existing = self._reverse.get(name)
            if existing is not None and existing != path:
                raise UnmappablePathError(
                    path, f"collides with '{format_path(existing)}' on {name}"
                )
            self._forward[path] = name
            self._reverse[name] = path

    @property
    def prefix(self) -> str:
        return f"{self.namespace}_"

    def map(self, path: str | Path) -> str:
        """Environment name for a registered path."""
        key = parse_path(path)
        name = self._forward.get(key)
        if name is None:
            raise UnmappablePathError(key, "path is not registered with this naming")
        return name

    def unmap(self, name: str) -> Path | None:
        """Registered path for an environment name, or None."""
        return self._reverse.get(name)

    def owns(self, name: str) -> bool:
        """Whether a name falls inside this namespace."""
        return name.startswith(self.prefix)

    def __len__(self) -> int:
        return len(self._forward)


class EnvironmentSource(Source):
    """
    Read-only source backed by environment variables.

    The relevant variables are copied at construction. Names inside the
    namespace that match no registered path are kept aside by name only;
    their values are discarded and never surfaced as configuration.
    """

    def __init__(
        self,
        naming: EnvironmentNaming,
        environ: Mapping[str, str] | None = None,
        *,
        precedence_rank: int = 100,
        origin: str = "env",
    ):
        self.origin = origin
        self.precedence_rank = precedence_rank
        self._naming = naming

        env = os.environ if environ is None else environ
        values: dict[Path, Any] = {}
        rejected: list[str] = []
        for name in sorted(env):
            if not naming.owns(name):
                continue
            path = naming.unmap(name)
            if path is None:
                rejected.append(name)
                continue
            values[path] = env[name]

        self._values: Mapping[Path, Any] = MappingProxyType(values)
        self._rejected = rejected
        logger.debug(
            f"[env_source] Captured {len(values)} variables under {naming.prefix}* "
            f"({len(rejected)} unrecognized)"
        )

    @property
    def naming(self) -> EnvironmentNaming:
        return self._naming

    def read(self, path: Path) -> Any:
        return self._values.get(tuple(path), ABSENT)

    def paths(self) -> list[Path]:
        return list(self._values.keys())

    def rejected_keys(self) -> list[str]:
        return list(self._rejected)
