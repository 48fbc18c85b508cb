"""
Transient bindings and stores.

Two state categories:

- TransientBinding: logic-local, reusable state. May hold anything,
  including callables and non-serializable handles. Never guarded and
  never seen by the Snapshot Cache.
- Store: shared application state. Every published value must be
  wire-safe; a rejected publish leaves the previous value in place.

Values that must keep tracking a store are exposed through derived
accessors (see derived.py). Copying a tracked accessor into a local
mutable cell is refused with MirroredStateError.
"""

from __future__ import annotations

import logging
from typing import Any

from stratum.errors import MirroredStateError
from stratum.frozen import freeze, strict_equal
from stratum.guard import SerializationGuard

from .derived import Derived
from .tracking import Readable

logger = logging.getLogger(__name__)


class TransientBinding(Readable):
    """
    Mutable, logic-local cell.

    Example:
        on_submit = TransientBinding(lambda form: form.validate(), name="on_submit")
        counter = TransientBinding(0)
        counter.set(counter.peek() + 1)
    """

    def __init__(self, value: Any = None, *, name: str = ""):
        self.name = name
        self._check_not_tracked(value)
        self._value = value
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def peek(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        """
        Replace the value.

        Raises:
            MirroredStateError: If value is a store or derived accessor
        """
        self._check_not_tracked(value)
        if value is self._value:
            return
        self._value = value
        self._version += 1

    def _check_not_tracked(self, value: Any) -> None:
        if isinstance(value, Readable) and value.tracks_source:
            raise MirroredStateError(value.name or self.name or type(value).__name__)


class Store(Readable):
    """
    Shared, wire-safe state container.

    Published values are guarded, then deep-frozen (read-only mappings
    and tuples) so readers cannot mutate shared state in place.

    Example:
        settings = Store({"a": 0}, name="settings")
        settings.publish({"a": 1, "b": lambda: None})   # BoundaryViolationError
        settings.peek()                                  # still {"a": 0}
    """

    tracks_source = True

    def __init__(
        self,
        initial: Any = None,
        *,
        name: str = "",
        guard: SerializationGuard | None = None,
    ):
        self.name = name
        self._guard = guard if guard is not None else SerializationGuard()
        self._guard.ensure(initial, path=self.name)
        self._value = freeze(initial)
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def peek(self) -> Any:
        return self._value

    def publish(self, value: Any) -> bool:
        """
        Publish a new value.

        Returns:
            True if the stored value changed

        Raises:
            BoundaryViolationError: If the value is not wire-safe; the
                previous value is kept
        """
        violation = self._guard.check(value)
        if violation is not None:
            error = violation.to_error(self.name)
            logger.warning(f"[store] Rejected publish to '{self.name or '<store>'}': {error}")
            raise error

        frozen = freeze(value)
        if strict_equal(frozen, self._value):
            return False
        self._value = frozen
        self._version += 1
        return True

    def select(self, key: str, default: Any = None, *, name: str = "") -> Derived:
        """Derived accessor for one key of a mapping-valued store."""
        return Derived(
            lambda current: current.get(key, default) if hasattr(current, "get") else default,
            deps=[self],
            name=name or (f"{self.name}.{key}" if self.name else key),
        )
