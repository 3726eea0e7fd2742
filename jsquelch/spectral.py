"""Overlapped real FFT analysis and overlap-add resynthesis."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from jsquelch.moving import DspError


def _require_power_of_two(n: int, what: str) -> None:
    if n <= 0 or n & (n - 1):
        raise DspError(f"{what} size needs to be a power of 2: {n}")


def hann(n: int) -> np.ndarray:
    """Symmetric Hann window of length ``n``; a single point window is 1."""
    return np.hanning(max(n, 0)).astype(float)


def correction_window(n: int) -> np.ndarray:
    """Window that flattens the overlap-add of two halves of ``hann(2 * n)``."""
    if n <= 0:
        return np.zeros(0)
    window = hann(2 * n)
    overlap = window[:n] + window[n:]
    return np.divide(1.0, overlap, out=np.ones(n), where=overlap != 0)


class OverlappedRealFFT:
    """Half-overlapped, Hann windowed, zero padded FFT of a real stream.

    Each update takes ``in_size`` new samples, windows the last
    ``2 * in_size`` samples, pads them to ``4 * in_size`` and transforms.
    ``spectrum`` holds the full complex result and ``magnitude`` the
    ``2 * in_size + 1`` non-redundant magnitudes.
    """

    def __init__(self, size: int = 128) -> None:
        self.set_in_size(size)

    @property
    def in_size(self) -> int:
        return self._n

    @property
    def out_size(self) -> int:
        return 2 * self._n + 1

    def set_in_size(self, size: int) -> None:
        """Set the block size and clear all state."""
        if size < 0:
            raise DspError(f"fft size needs to be non-negative: {size}")
        self._n = size
        self._window = hann(2 * size)
        self._buffer = np.zeros(2 * size)
        self.spectrum = np.zeros(4 * size, dtype=complex)
        self.magnitude = np.zeros(2 * size + 1)

    def update(self, samples: Sequence[float]) -> np.ndarray:
        """Add a block of samples and return the new magnitudes."""
        n = self._n
        _require_power_of_two(n, "fft")
        block = np.asarray(samples, dtype=float)
        if block.shape != (n,):
            raise DspError(f"input vector size is not the expected size: {n}")
        self._buffer = np.concatenate((self._buffer[n:], block))
        padded = np.zeros(4 * n)
        padded[: 2 * n] = self._buffer * self._window
        self.spectrum = np.fft.fft(padded)
        self.magnitude = np.abs(self.spectrum[: 2 * n + 1])
        return self.magnitude

    def _factors(self, values: Sequence[float]) -> np.ndarray:
        factors = np.asarray(values, dtype=float)
        if factors.shape != (self.out_size,):
            raise DspError(f"gain vector size is not the expected size: {self.out_size}")
        return factors

    def _mirrored(self, factors: np.ndarray) -> np.ndarray:
        """Expand per-bin factors to the full conjugate-symmetric spectrum."""
        n = self._n
        return np.concatenate((factors, factors[2 * n - 1 : 0 : -1]))

    def scale(self, gains: Sequence[float]) -> None:
        """Multiply each bin, and its mirror image, by a real gain."""
        factors = self._factors(gains)
        self.magnitude = self.magnitude * factors
        self.spectrum = self.spectrum * self._mirrored(factors)

    def divide(self, divisors: Sequence[float]) -> None:
        """Divide each bin, and its mirror image, by a real value."""
        factors = self._factors(divisors)
        with np.errstate(divide="ignore", invalid="ignore"):
            self.magnitude = self.magnitude / factors
            self.spectrum = self.spectrum / self._mirrored(factors)


class InverseOverlappedRealFFT:
    """Overlap-add resynthesis of spectra made by :class:`OverlappedRealFFT`.

    The output lags the analysis input by one block.
    """

    def __init__(self, size: int = 128) -> None:
        self.set_out_size(size)

    @property
    def size(self) -> int:
        return self._n

    def set_out_size(self, size: int) -> None:
        """Set the output block size and clear all state."""
        if size < 0:
            raise DspError(f"ifft size needs to be non-negative: {size}")
        self._n = size
        self.value = np.zeros(size)
        self._tail = np.zeros(size)
        self._window = correction_window(size)

    def update(self, spectrum: Sequence[complex]) -> np.ndarray:
        """Take a full ``4 * size`` spectrum and return ``size`` samples."""
        n = self._n
        _require_power_of_two(n, "ifft")
        full = np.asarray(spectrum, dtype=complex)
        if full.shape != (4 * n,):
            raise DspError(f"input vector size is not the expected size: {n}")
        signal = np.fft.ifft(full).real
        self.value = (signal[:n] + self._tail) * self._window
        self._tail = signal[n : 2 * n].copy()
        return self.value