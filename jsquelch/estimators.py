"""Per-bin noise and signal level estimators for spectral frames."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from jsquelch.moving import (
    DspError,
    MovingAverage,
    VectorMovingAverage,
    VectorMovingMinWithAssociate,
    VectorMovingVariance,
)


class MovingSignalEstimator:
    """Estimates per-bin signal-to-noise ratio from normalized magnitudes.

    ``value`` holds the smoothed per-bin estimate and
    ``voice_snr_estimate`` the smoothed peak over the voice bins
    ``[min_voice_bin, max_voice_bin)``.
    """

    def __init__(
        self,
        width: int = 257,
        stats_window: int = 8,
        min_voice_bin: int = 3,
        max_voice_bin: int = 96,
        snr_window: int = 62,
        output_window: int = 8,
    ) -> None:
        self.set_size(width, stats_window, min_voice_bin, max_voice_bin, snr_window, output_window)

    def set_size(
        self,
        width: int,
        stats_window: int,
        min_voice_bin: int,
        max_voice_bin: int,
        snr_window: int,
        output_window: int,
    ) -> None:
        """Resize and clear all state."""
        if not 0 <= min_voice_bin < width:
            raise DspError(f"start_index out of bounds: {min_voice_bin}")
        if not 0 <= max_voice_bin < width:
            raise DspError(f"end_index out of bounds: {max_voice_bin}")
        if max_voice_bin < min_voice_bin:
            raise DspError(f"end_index is less than start_index: {max_voice_bin}")
        self.width = width
        self._stats = VectorMovingVariance(width, stats_window)
        self._snr = MovingAverage(snr_window)
        self._output = VectorMovingAverage(width, output_window)
        self._start = min_voice_bin
        self._end = max_voice_bin
        self.voice_snr_estimate = 0.0

    @property
    def value(self) -> np.ndarray:
        return self._output.value

    def update(self, values: Sequence[float]) -> np.ndarray:
        """Add a normalized magnitude frame and return the per-bin estimate."""
        variance = self._stats.update(values)
        mean = self._stats.mean
        power = mean * mean + variance - 1.0
        if self._end > self._start:
            band = power[self._start : self._end]
        else:
            band = power[self._end : self._end + 1]
        self.voice_snr_estimate = self._snr.update(float(np.max(band)))
        return self._output.update(power)


class MovingNoiseEstimator:
    """Tracks the per-bin noise level of a magnitude stream.

    The level is the root of the squared moving minimum of the bin mean
    plus the variance seen when that minimum occurred, then smoothed.
    """

    def __init__(
        self,
        width: int = 257,
        stats_window: int = 16,
        minimum_window: int = 16,
        output_window: int = 62,
    ) -> None:
        self.set_size(width, stats_window, minimum_window, output_window)

    def set_size(self, width: int, stats_window: int, minimum_window: int, output_window: int) -> None:
        """Resize and clear all state."""
        self._stats = VectorMovingVariance(width, stats_window)
        self._minimum = VectorMovingMinWithAssociate(width, minimum_window)
        self._output = VectorMovingAverage(width, output_window)
        self.width = width

    @property
    def value(self) -> np.ndarray:
        return self._output.value

    def update(self, values: Sequence[float]) -> np.ndarray:
        """Add a magnitude frame and return the per-bin noise level."""
        frame = np.asarray(values, dtype=float)
        if frame.shape != (self.width,):
            raise DspError(f"input vector size is not the expected size: {frame.size}")
        variance = self._stats.update(frame)
        minimum = self._minimum.update(self._stats.mean, variance)
        with np.errstate(invalid="ignore"):
            level = np.sqrt(minimum * minimum + self._minimum.associate)
        return self._output.update(level)