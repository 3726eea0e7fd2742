"""Automatic gain control driven by a moving peak of the signal power."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from jsquelch.moving import DspError, MovingMax

_ERROR_LIMIT = 100.0


@dataclass
class AGCSettings:
    """Loop step, target peak level, gain ceiling, peak window and delay."""

    k: float = 0.01
    level: float = 1.0
    max_gain: float = 100.0
    max_window: int = 128
    delay: int = 128


class AGC:
    """Log-domain AGC that scales a delayed copy of the input.

    The gain adapts so that the moving peak of the output reaches
    ``level``; the delay lets the gain react before a loud sample is
    played out.
    """

    def __init__(self, settings: AGCSettings | None = None) -> None:
        self.set_settings(settings if settings is not None else AGCSettings())

    def set_settings(self, settings: AGCSettings) -> None:
        """Apply new settings and reset the gain to unity."""
        if settings.max_gain <= 0:
            raise DspError(f"max gain needs to be positive: {settings.max_gain}")
        if settings.level <= 0:
            raise DspError(f"agc level needs to be positive: {settings.level}")
        if settings.delay < 0:
            raise DspError(f"delay line size needs to be non-negative: {settings.delay}")
        self.settings = settings
        self._peak = MovingMax(settings.max_window)
        self._delay: deque[float] = deque([0.0] * settings.delay, maxlen=settings.delay)
        self._max_log_gain = math.log(settings.max_gain)
        self._target = 2.0 * math.log(settings.level)
        self._log_gain = 0.0

    @property
    def gain(self) -> float:
        """Current linear gain."""
        return math.exp(self._log_gain)

    def _delayed(self, value: float) -> float:
        if not self._delay.maxlen:
            return value
        oldest = self._delay[0]
        self._delay.append(value)
        return oldest

    def update(self, samples: Sequence[float], adjust: bool = True) -> np.ndarray:
        """Return the gain-controlled, delayed samples; adapt if ``adjust``."""
        output = np.empty(len(samples))
        for i, raw in enumerate(samples):
            value = float(raw)
            peak = self._peak.update(value * value)
            value = self._delayed(value)
            scaled = value * math.exp(self._log_gain)
            power = peak * math.exp(2.0 * self._log_gain)
            if power > 0:
                error = self._target - math.log(power)
            elif power == 0:
                error = math.inf
            else:
                error = math.nan
            if math.isnan(error):
                error = 0.0
            error = max(-_ERROR_LIMIT, min(_ERROR_LIMIT, error))
            if adjust:
                self._log_gain += self.settings.k * error
            self._log_gain = min(self._log_gain, self._max_log_gain)
            output[i] = scaled
        return output