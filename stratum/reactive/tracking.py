"""
Dependency tracking primitives.

Every reactive value is a Readable with a version counter that increases
whenever its value changes. Derived values remember the versions they saw
and re-evaluate when one of them moves.

Implicit tracking uses an explicit dependency-read log: while a derived
value evaluates, every Readable.get() call appends the readable to the
active log. Nothing is proxied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any


class DependencyLog:
    """Ordered, de-duplicated record of readables read during one evaluation."""

    def __init__(self) -> None:
        self._reads: dict[int, Readable] = {}

    def record(self, readable: Readable) -> None:
        self._reads.setdefault(id(readable), readable)

    @property
    def reads(self) -> list[Readable]:
        return list(self._reads.values())

    def __len__(self) -> int:
        return len(self._reads)


_active_log: ContextVar[DependencyLog | None] = ContextVar("stratum_dependency_log", default=None)


@contextmanager
def tracking(log: DependencyLog | None) -> Iterator[DependencyLog | None]:
    """Route reads to `log` (or nowhere, for None) for the duration of the block."""
    token = _active_log.set(log)
    try:
        yield log
    finally:
        _active_log.reset(token)


def untracked() -> Any:
    """Suspend read recording for the duration of the block."""
    return tracking(None)


class Readable(ABC):
    """Base class for values that derived accessors can depend on."""

    name: str = ""
    tracks_source: bool = False

    @property
    @abstractmethod
    def version(self) -> int:
        """Counter that increases whenever the value changes."""

    @abstractmethod
    def peek(self) -> Any:
        """Current value, without recording a read."""

    def get(self) -> Any:
        """Current value, recorded in the active dependency log."""
        log = _active_log.get()
        if log is not None:
            log.record(self)
        return self.peek()

    @property
    def value(self) -> Any:
        return self.get()

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<{self.__class__.__name__}{label}>"
