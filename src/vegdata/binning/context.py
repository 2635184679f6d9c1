"""Variable lookup and per-bin state for the binning lifecycle.

Two services sit at the boundary of every aggregator:
- VariableContext resolves variable names to positions in an observation record
- BinContext is a per-bin key/value store that lives for one bin's full
  spatial + temporal processing cycle

BinState is the typed payload an aggregator keeps in the BinContext for one
variable. A bin's context is owned by exactly one worker at a time.
"""

from __future__ import annotations

from typing import Any, Iterable

import numpy as np

from vegdata.binning.growable import DEFAULT_CAPACITY, GrowableBuffer


class VariableContext:
    """Name-to-index lookup for the fields of an observation record.

    Args:
        names: Variable names in record order
    """

    def __init__(self, names: Iterable[str]) -> None:
        self._names = list(names)
        self._index: dict[str, int] = {}
        for i, name in enumerate(self._names):
            if name in self._index:
                raise ValueError(f"Duplicate variable name: {name!r}")
            self._index[name] = i

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def variable_index(self, name: str | None) -> int | None:
        """Return the index of ``name``, or None if it cannot be resolved."""
        if name is None:
            return None
        return self._index.get(name)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"VariableContext({self._names!r})"


class BinContext:
    """Scratch store for a single spatial bin.

    Args:
        index: Identifier of the bin this context belongs to
    """

    def __init__(self, index: int) -> None:
        self.index = index
        self._store: dict[str, Any] = {}

    def put(self, key: str, value: Any) -> None:
        self._store[key] = value

    def get(self, key: str) -> Any:
        """Return the value stored under ``key``.

        Raises:
            KeyError: If nothing was put under ``key`` for this bin
        """
        try:
            return self._store[key]
        except KeyError:
            raise KeyError(f"No state {key!r} in bin {self.index}") from None

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __repr__(self) -> str:
        return f"BinContext(index={self.index}, keys={sorted(self._store)})"


class BinState:
    """Paired measurement/time series accumulated for one (bin, variable).

    Both buffers are only ever appended together, so they always have the
    same length and index i of one corresponds to index i of the other.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.measurements = GrowableBuffer(capacity)
        self.times = GrowableBuffer(capacity)

    def append(self, value: float, time: float) -> None:
        self.measurements.append(value)
        self.times.append(time)

    def __len__(self) -> int:
        return len(self.measurements)

    def arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Return (measurements, times) as float32 arrays."""
        return self.measurements.elements(), self.times.elements()

    def __repr__(self) -> str:
        return f"BinState(n={len(self)})"
