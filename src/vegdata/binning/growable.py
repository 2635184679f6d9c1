"""Append-only float32 buffer used to hold per-bin time series."""

from __future__ import annotations

import numpy as np

DEFAULT_CAPACITY = 256


class GrowableBuffer:
    """Dynamic float32 array with amortized O(1) append.

    Args:
        capacity: Initial capacity hint (must be positive)
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._data = np.empty(capacity, dtype=np.float32)
        self._size = 0

    def __len__(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return len(self._data)

    def append(self, value: float) -> None:
        if self._size == len(self._data):
            grown = np.empty(2 * len(self._data), dtype=np.float32)
            grown[: self._size] = self._data
            self._data = grown
        self._data[self._size] = value
        self._size += 1

    def elements(self) -> np.ndarray:
        """Return a contiguous copy of the appended values."""
        return self._data[: self._size].copy()

    def __repr__(self) -> str:
        return f"GrowableBuffer(size={self._size}, capacity={self.capacity})"
