"""
Derived accessors.

A Derived value is computed from other readables and stays live: it is
re-evaluated lazily, on read, when one of its dependencies has changed.

Dependency modes:
    EXPLICIT (default): dependencies are declared up front. The function
        receives their values as arguments and re-evaluates only when one
        of them changes. Other readables touched inside the function are
        not tracked.
    IMPLICIT: no declaration. Every readable read during the last
        evaluation is logged, and a change to any of them triggers
        re-evaluation. Convenient, but reads made only for logging or
        formatting also count as dependencies.

Usage:
    base_url = store.select("service.baseUrl")
    endpoint = derived(lambda url: f"{url}/v1", base_url)

    banner = tracked(lambda: f"{title.get()} ({env.get()})")
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from stratum.frozen import strict_equal

from .tracking import DependencyLog, Readable, tracking, untracked


class DependencyMode(str, Enum):
    EXPLICIT = "explicit"
    IMPLICIT = "implicit"


class Derived(Readable):
    """
    Lazily evaluated value derived from other readables.

    Args:
        fn: Evaluation function. EXPLICIT mode calls fn(*dep_values);
            IMPLICIT mode calls fn()
        deps: Declared dependencies (EXPLICIT mode only)
        mode: Dependency mode, EXPLICIT unless requested otherwise
        name: Label for logging and errors

    Raises:
        ValueError: If EXPLICIT mode has no deps, or IMPLICIT mode has deps
        TypeError: If a dependency is not a Readable
    """

    tracks_source = True

    def __init__(
        self,
        fn: Callable[..., Any],
        deps: Sequence[Readable] | None = None,
        *,
        mode: DependencyMode = DependencyMode.EXPLICIT,
        name: str = "",
    ):
        mode = DependencyMode(mode)
        if mode is DependencyMode.EXPLICIT and deps is None:
            raise ValueError(
                "Explicit derived values need declared deps; pass mode=DependencyMode.IMPLICIT "
                "to track reads automatically"
            )
        if mode is DependencyMode.IMPLICIT and deps:
            raise ValueError("Implicit derived values discover their dependencies; do not pass deps")
        for dep in deps or ():
            if not isinstance(dep, Readable):
                raise TypeError(f"Dependency must be a Readable, got {type(dep).__name__}")

        self.name = name
        self.mode = mode
        self._fn = fn
        self._deps: tuple[Readable, ...] = tuple(deps or ())
        self._seen: list[tuple[Readable, int]] = []
        self._value: Any = None
        self._version = 0
        self._evaluated = False
        self._evaluating = False
        self.evaluations = 0

    @property
    def version(self) -> int:
        self._refresh()
        return self._version

    @property
    def dependencies(self) -> list[Readable]:
        """Dependencies seen at the last evaluation."""
        return [readable for readable, _ in self._seen]

    def peek(self) -> Any:
        self._refresh()
        return self._value

    def invalidate(self) -> None:
        """Force re-evaluation on the next read."""
        self._evaluated = False

    def _is_stale(self) -> bool:
        if not self._evaluated:
            return True
        return any(readable.version != seen for readable, seen in self._seen)

    def _refresh(self) -> None:
        if self._evaluating:
            raise RuntimeError(f"Derived value {self!r} depends on itself")
        if not self._is_stale():
            return

        self._evaluating = True
        try:
            if self.mode is DependencyMode.EXPLICIT:
                value, reads = self._evaluate_explicit()
            else:
                value, reads = self._evaluate_implicit()
        finally:
            self._evaluating = False

        self.evaluations += 1
        changed = not self._evaluated or not strict_equal(value, self._value)
        self._seen = [(readable, readable.version) for readable in reads]
        self._value = value
        self._evaluated = True
        if changed:
            self._version += 1

    def _evaluate_explicit(self) -> tuple[Any, Sequence[Readable]]:
        with untracked():
            args = [dep.peek() for dep in self._deps]
            return self._fn(*args), self._deps

    def _evaluate_implicit(self) -> tuple[Any, Sequence[Readable]]:
        log = DependencyLog()
        with tracking(log):
            value = self._fn()
        return value, log.reads


def derived(fn: Callable[..., Any], *deps: Readable, name: str = "") -> Derived:
    """Explicit-mode derived value over the given dependencies."""
    return Derived(fn, deps=list(deps), name=name)


def tracked(fn: Callable[[], Any], *, name: str = "") -> Derived:
    """Implicit-mode derived value that tracks every read."""
    return Derived(fn, mode=DependencyMode.IMPLICIT, name=name)
