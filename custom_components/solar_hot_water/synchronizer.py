"""Combine independently arriving input values into synchronized tuples."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

_LOGGER = logging.getLogger(__name__)

_MISSING = object()


class InputSynchronizer:
    """Hold the latest value of each named input and deliver combined tuples.

    A tuple is delivered to the callback only once every input has a value,
    and afterwards only when at least one input changed. An input repeating
    its previous value is suppressed. Delivery is synchronous and ordered;
    updating the synchronizer from inside the callback is rejected.
    """

    def __init__(
        self,
        names: Iterable[str],
        callback: Callable[[Tuple[Any, ...]], None],
    ) -> None:
        """Initialize with the ordered input names and the delivery callback."""
        self._names: Tuple[str, ...] = tuple(names)
        if len(set(self._names)) != len(self._names):
            raise ValueError(f"Duplicate input names: {self._names}")
        self._callback = callback
        self._values: Dict[str, Any] = {name: _MISSING for name in self._names}
        self._delivering = False
        self.delivered = 0

    @property
    def names(self) -> Tuple[str, ...]:
        """Return the input names in delivery order."""
        return self._names

    @property
    def complete(self) -> bool:
        """Return True when every input has a value."""
        return all(value is not _MISSING for value in self._values.values())

    @property
    def latest(self) -> Optional[Tuple[Any, ...]]:
        """Return the current combined tuple, or None if incomplete."""
        if not self.complete:
            return None
        return tuple(self._values[name] for name in self._names)

    def value(self, name: str, default: Any = None) -> Any:
        """Return the latest value of a single input."""
        value = self._values[name]
        return default if value is _MISSING else value

    def update(self, name: str, value: Any) -> bool:
        """Record a new value for one input.

        Returns True if a combined tuple was delivered.
        """
        return self.update_many({name: value})

    def update_many(self, values: Mapping[str, Any]) -> bool:
        """Record several values at once, delivering at most one tuple."""
        if self._delivering:
            raise RuntimeError("Input synchronizer updated during delivery")

        unknown = [name for name in values if name not in self._values]
        if unknown:
            raise KeyError(f"Unknown input: {', '.join(unknown)}")

        changed = False
        for name, value in values.items():
            if self._values[name] is not _MISSING and self._values[name] == value:
                _LOGGER.debug("Suppressed duplicate value for %s: %s", name, value)
                continue
            self._values[name] = value
            changed = True

        if not changed or not self.complete:
            return False

        combined = tuple(self._values[name] for name in self._names)
        self._delivering = True
        try:
            self._callback(combined)
        finally:
            self._delivering = False
        self.delivered += 1
        return True

    def reset(self) -> None:
        """Forget all values."""
        self._values = {name: _MISSING for name in self._names}
