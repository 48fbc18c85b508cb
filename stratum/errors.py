"""
Error taxonomy for Stratum.

Registration errors abort startup, resolution errors abort a single pass,
boundary violations reject only the offending snapshot or publish.

Security:
    No exception in this module carries the content of a private value.
    Messages name paths, declared types and type names only.
"""

from __future__ import annotations

from typing import Any


def _dotted(path: Any) -> str:
    if isinstance(path, tuple):
        return ".".join(str(part) for part in path)
    return str(path)


class StratumError(Exception):
    """Base exception for all Stratum errors."""


# =============================================================================
# Registration-time errors (fatal)
# =============================================================================


class RegistrationError(StratumError):
    """Raised when the schema or a source cannot be registered."""


class DuplicateKeyError(RegistrationError):
    """Raised when the same path (or source origin) is registered twice."""

    def __init__(self, path: Any, *, kind: str = "key"):
        self.path = _dotted(path)
        self.kind = kind
        super().__init__(f"Duplicate {kind} '{self.path}'")


class VisibilityConflictError(RegistrationError):
    """Raised when a private parent contains a declared-public child."""

    def __init__(self, path: Any, parent: Any):
        self.path = _dotted(path)
        self.parent = _dotted(parent)
        super().__init__(
            f"Public key '{self.path}' cannot live under private parent '{self.parent}'"
        )


class UnmappablePathError(RegistrationError):
    """Raised when a path cannot be mapped to an external (environment) name."""

    def __init__(self, path: Any, reason: str):
        self.path = _dotted(path)
        self.reason = reason
        super().__init__(f"Path '{self.path}' is not mappable: {reason}")


class SchemaError(RegistrationError):
    """Raised for structurally invalid schema declarations."""

    def __init__(self, path: Any, message: str):
        self.path = _dotted(path)
        super().__init__(f"[{self.path}] {message}")


class RegistrySealedError(RegistrationError):
    """Raised when registering after the registry was sealed."""

    def __init__(self) -> None:
        super().__init__("Schema registry is sealed; keys cannot be added at runtime")


class KeyNotFoundError(RegistrationError):
    """Raised by strict lookups of an undeclared path."""

    def __init__(self, path: Any):
        self.path = _dotted(path)
        super().__init__(f"Key '{self.path}' is not declared in the schema")


# =============================================================================
# Resolution-time errors (fatal for the pass)
# =============================================================================


class ResolutionError(StratumError):
    """Raised when a resolution pass cannot produce a ResolvedConfig."""


class MissingRequiredKeyError(ResolutionError):
    """Raised when no source supplies a key that has no default."""

    def __init__(self, path: Any):
        self.path = _dotted(path)
        super().__init__(f"Missing required configuration key '{self.path}'")


class TypeMismatchError(ResolutionError):
    """
    Raised when a raw value cannot be coerced to its declared type.

    Attributes:
        path: Dotted path of the offending key
        expected: Declared type name
        got: Description of the raw value (redacted for private keys)
    """

    def __init__(self, path: Any, expected: str, got: str):
        self.path = _dotted(path)
        self.expected = expected
        self.got = got
        super().__init__(f"Key '{self.path}' expected {expected}, got {got}")


# =============================================================================
# Boundary errors (recoverable)
# =============================================================================


class BoundaryViolationError(StratumError):
    """
    Raised when a value bound for the public side is not wire-safe.

    Only the path, the violation reason and the value's type name are
    reported. The value itself is never included.
    """

    def __init__(self, path: str, reason: str, *, type_name: str | None = None):
        self.path = path
        self.reason = reason
        self.type_name = type_name
        message = f"Boundary violation at '{path}': {reason}"
        if type_name:
            message += f" ({type_name})"
        super().__init__(message)


class MirroredStateError(StratumError):
    """Raised when a tracked accessor is copied into a local mutable cell."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"'{name}' tracks its source and cannot be mirrored into a local cell; "
            "expose it through a derived accessor instead"
        )
