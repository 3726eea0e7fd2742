"""Moving-window statistics over scalar and vector streams."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np


class DspError(ValueError):
    """Raised when a DSP block is given an invalid size or input."""


def _check_dimensions(width: int, window: int) -> None:
    if width < 1:
        raise DspError(f"input vector size needs to be positive: {width}")
    if window < 0:
        raise DspError(f"window size needs to be non-negative: {window}")


def _as_vector(values: Sequence[float], width: int) -> np.ndarray:
    vector = np.array(values, dtype=float)
    if vector.ndim != 1 or vector.shape[0] != width:
        raise DspError(f"input vector size is not the expected size: {width}")
    return vector


class MovingAverage:
    """Moving mean of a scalar stream.

    The running sum is recomputed from the window once per window length
    so that rounding errors cannot accumulate.  Integer input gives an
    integer average truncated toward zero.
    """

    def __init__(self, size: int = 0) -> None:
        self.set_size(size)

    @property
    def size(self) -> int:
        return self._size

    def set_size(self, size: int) -> None:
        """Resize the window and clear all state."""
        if size < 0:
            raise DspError(f"array size needs to be non negative: {size}")
        self._size = size
        self._buffer: list = [0] * size
        self._sum = 0
        self._pos = 0
        self._until_resum = size - 1
        self._scale = 1.0 / size if size else 0.0
        self.value = 0

    def update(self, value):
        """Add a sample and return the new average."""
        if self._size <= 0:
            self._sum = value
            self.value = value
            return value

        self._sum = self._sum - self._buffer[self._pos]
        self._sum = self._sum + value
        self._buffer[self._pos] = value

        if self._until_resum > 0:
            self._until_resum -= 1
        else:
            self._sum = sum(self._buffer)
            self._until_resum = self._size - 1

        self._pos = (self._pos + 1) % self._size
        average = self._sum * self._scale
        if isinstance(self._sum, int):
            average = int(average)
        self.value = average
        return average


class MovingMax:
    """Moving maximum of a scalar stream; NaN samples are ignored."""

    def __init__(self, size: int = 0) -> None:
        self.set_size(size)

    @property
    def size(self) -> int:
        return self._size

    def set_size(self, size: int) -> None:
        """Resize the window and clear all state."""
        if size < 0:
            raise DspError(f"window size needs to be non-negative: {size}")
        self._size = size
        self.flush()

    def flush(self) -> None:
        """Clear the window to zeros."""
        self._window = [0.0] * self._size
        self._start = 0
        self.value = 0.0

    def update(self, value: float) -> float:
        """Add a sample and return the maximum over the window."""
        if math.isnan(value):
            return self.value
        if self._size == 0:
            self.value = value
            return self.value
        if value > self.value:
            self.value = value
        outgoing = self._window[self._start]
        self._window[self._start] = value
        if outgoing >= self.value:
            self.value = max(self._window)
        self._start = (self._start + 1) % self._size
        return self.value

    def update_many(self, values: Iterable[float]) -> float:
        """Add the largest non-NaN value of a block as one window entry."""
        finite = [v for v in values if not math.isnan(v)]
        if not finite:
            return self.value
        return self.update(max(finite))


class VectorMovingAverage:
    """Element-wise moving mean of a stream of fixed-width vectors."""

    def __init__(self, width: int, window: int) -> None:
        self.set_size(width, window)

    @property
    def size(self) -> tuple[int, int]:
        return (self._width, self._window)

    @property
    def history(self) -> np.ndarray:
        """Copy of the window contents, one row per vector element."""
        return self._history.copy()

    def set_size(self, width: int, window: int) -> None:
        """Resize and clear all state."""
        _check_dimensions(width, window)
        self._width = width
        self._window = window
        self._scale = 1.0 / window if window > 0 else 0.0
        self.flush()

    def flush(self) -> None:
        """Clear the window to zeros."""
        self._history = np.zeros((self._width, self._window))
        self._sums = np.zeros(self._width)
        self.value = np.zeros(self._width)
        self._start = 1 % self._window if self._window else 0

    def update(self, values: Sequence[float]) -> np.ndarray:
        """Add a vector and return the element-wise average."""
        vector = _as_vector(values, self._width)
        if self._window == 0:
            self.value = vector
            return self.value

        if self._start == 0:
            self._history[:, 0] = vector
            self._sums = self._history.sum(axis=1)
        else:
            self._sums = self._sums - self._history[:, self._start] + vector
            self._history[:, self._start] = vector
        self.value = self._sums * self._scale
        self._start = (self._start + 1) % self._window
        return self.value


class VectorMovingVariance:
    """Element-wise moving sample variance of a stream of vectors."""

    def __init__(self, width: int, window: int) -> None:
        self._first = VectorMovingAverage(width, window)
        self._second = VectorMovingAverage(width, window)
        self.set_size(width, window)

    @property
    def size(self) -> tuple[int, int]:
        return (self._width, self._window)

    @property
    def mean(self) -> np.ndarray:
        """The element-wise moving mean that goes with the variance."""
        return self._first.value

    def set_size(self, width: int, window: int) -> None:
        """Resize and clear all state."""
        self._first.set_size(width, window)
        self._second.set_size(width, window)
        self._width = width
        self._window = window
        self._scale = 0.0 if window < 2 else window / (window - 1)
        self.flush()

    def flush(self) -> None:
        """Clear the window to zeros."""
        self._first.flush()
        self._second.flush()
        self.value = np.zeros(self._width)

    def update(self, values: Sequence[float]) -> np.ndarray:
        """Add a vector and return the element-wise variance."""
        vector = _as_vector(values, self._width)
        second = self._second.update(vector * vector)
        first = self._first.update(vector)
        self.value = self._scale * (second - first * first)
        return self.value


class _VectorMovingExtreme:
    """Shared machinery for the moving maximum and minimum.

    Subclasses set ``_better`` to the comparison that makes a candidate
    replace the current extreme and ``_pick_index`` to the matching
    arg-function.
    """

    _better = staticmethod(np.greater)
    _pick_index = staticmethod(np.argmax)

    @property
    def size(self) -> tuple[int, int]:
        return (self._width, self._window)

    @property
    def history(self) -> np.ndarray:
        """Copy of the window contents, one row per vector element."""
        return self._history.copy()

    def _resize(self, width: int, window: int) -> None:
        _check_dimensions(width, window)
        self._width = width
        self._window = window
        self._clear()

    def _clear(self) -> None:
        self._history = np.zeros((self._width, self._window))
        self.value = np.zeros(self._width)
        self.index = np.zeros(self._width, dtype=int)
        self._start = 0

    def _push(self, values: Sequence[float]) -> np.ndarray:
        vector = _as_vector(values, self._width)
        if self._window == 0:
            self.value = vector
            return self.value

        start = self._start
        valid = ~np.isnan(vector)
        better = valid & self._better(vector, self.value)
        self.value[better] = vector[better]
        self.index[better] = start

        outgoing = self._history[:, start].copy()
        self._history[valid, start] = vector[valid]
        stale = valid & ~self._better(self.value, outgoing)
        if stale.any():
            rows = np.flatnonzero(stale)
            positions = self._pick_index(self._history[rows], axis=1)
            self.index[rows] = positions
            self.value[rows] = self._history[rows, positions]

        self._start = (start + 1) % self._window
        return self.value


class VectorMovingMax(_VectorMovingExtreme):
    """Element-wise moving maximum; ``index`` holds each maximum's slot."""

    _better = staticmethod(np.greater)
    _pick_index = staticmethod(np.argmax)

    def __init__(self, width: int, window: int) -> None:
        self.set_size(width, window)

    def set_size(self, width: int, window: int) -> None:
        """Resize and clear all state."""
        self._resize(width, window)

    def flush(self) -> None:
        """Clear the window to zeros."""
        self._clear()

    def update(self, values: Sequence[float]) -> np.ndarray:
        """Add a vector; NaN elements leave their row untouched."""
        return self._push(values)


class VectorMovingMin(_VectorMovingExtreme):
    """Element-wise moving minimum; ``index`` holds each minimum's slot."""

    _better = staticmethod(np.less)
    _pick_index = staticmethod(np.argmin)

    def __init__(self, width: int, window: int) -> None:
        self.set_size(width, window)

    def set_size(self, width: int, window: int) -> None:
        """Resize and clear all state."""
        self._resize(width, window)

    def flush(self) -> None:
        """Clear the window to zeros."""
        self._clear()

    def update(self, values: Sequence[float]) -> np.ndarray:
        """Add a vector; NaN elements leave their row untouched."""
        return self._push(values)


class VectorMovingMinWithAssociate(VectorMovingMin):
    """Moving minimum that also reports a value stored alongside each minimum."""

    def __init__(self, width: int, window: int) -> None:
        self.set_size(width, window)

    def set_size(self, width: int, window: int) -> None:
        """Resize and clear all state."""
        _check_dimensions(width, window)
        self._associate_history = np.zeros((width, window))
        self.associate = np.zeros(width)
        super().set_size(width, window)

    def update(self, values: Sequence[float], associate: Sequence[float]) -> np.ndarray:
        """Add a vector and its companion; return the element-wise minimum."""
        companion = _as_vector(associate, self._width)
        start = self._start
        minimum = super().update(values)
        if self._window == 0:
            self.associate = companion
            return minimum
        self._associate_history[:, start] = companion
        self.associate = self._associate_history[np.arange(self._width), self.index]
        return minimum