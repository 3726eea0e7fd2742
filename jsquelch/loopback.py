"""Elastic ring buffer between a capture stream and a playback stream.

Captured 16-bit samples are handed to a processing callback and whatever
it returns is queued for playback.  Playback reads through a slowly
adapting fractional interpolator so that small clock differences between
capture and playback are absorbed.  When the reader drifts a whole
sample away, it skips or repeats a sample instead of overrunning the
writer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from jsquelch.moving import DspError

ProcessFn = Callable[[List[float]], Sequence[float]]

_FULL_SCALE = 32768.0
_INT16_MIN = -32768
_INT16_MAX = 32767

# Smoothing of the measured fill level and of the interpolation phase.
_FILL_ALPHA = 0.001
_PHASE_ALPHA = 0.0005
# Attenuation applied to the held sample when there is nothing to play.
_UNDERRUN_DECAY = 0.75


def _to_int16(value: float) -> int:
    """Truncate toward zero and clamp into the 16-bit range."""
    return max(_INT16_MIN, min(_INT16_MAX, int(value)))


@dataclass
class LoopbackSettings:
    """Playback chunk limit, ring buffer length and sample rate."""

    max_frames_per_read: int = 64
    buffer_size: int = 4096
    sample_rate: float = 8000.0


class LoopbackBuffer:
    """Ring buffer that joins audio capture to audio playback.

    ``process`` receives each captured block as floats in ``[-1, 1)`` and
    returns the samples to queue for playback.  Without a callback the
    captured audio is queued unchanged.
    """

    def __init__(
        self,
        settings: Optional[LoopbackSettings] = None,
        process: Optional[ProcessFn] = None,
    ) -> None:
        self.settings = settings if settings is not None else LoopbackSettings()
        if self.settings.buffer_size < 1:
            raise DspError(f"buffer size needs to be positive: {self.settings.buffer_size}")
        if self.settings.max_frames_per_read < 1:
            raise DspError(
                f"max frames per read needs to be positive: {self.settings.max_frames_per_read}"
            )
        self.process = process
        self.clear()

    def clear(self) -> None:
        """Empty the buffer to silence, half full, and reset the interpolator."""
        size = self.settings.buffer_size
        self._buffer = [0] * size
        self._head = 0
        self._tail = size // 2
        self._phase = 0.0
        self._fill = 0.0

    @property
    def queued(self) -> int:
        """Number of slots between the read position and the write position."""
        return (self._head - self._tail) % len(self._buffer)

    def write(self, samples: Sequence[int]) -> int:
        """Process captured 16-bit samples and queue the result.

        Returns the number of captured samples consumed.  When the buffer
        is full the newest slot is overwritten rather than passing the
        reader.
        """
        block = [float(s) / _FULL_SCALE for s in samples]
        output = self.process(block) if self.process is not None else block
        size = len(self._buffer)
        for value in output:
            if size - self.queued > 1:
                self._head = (self._head + 1) % size
            self._buffer[self._head] = _to_int16(value * _FULL_SCALE)
        return len(block)

    def read(self, max_samples: int) -> List[int]:
        """Return up to ``max_samples`` 16-bit samples for playback.

        At most ``max_frames_per_read`` samples are returned.  When the
        buffer has run dry a single, progressively quieter sample is
        returned.
        """
        size = len(self._buffer)
        wanted = min(self.settings.max_frames_per_read, max_samples)

        forward = self.queued
        self._fill = self._fill * (1.0 - _FILL_ALPHA) + _FILL_ALPHA * (
            2.0 * forward / size - 1.0
        )

        wanted = min(forward - 1, wanted)
        if wanted < 1:
            held = _to_int16(self._buffer[self._tail] * _UNDERRUN_DECAY)
            self._buffer[self._tail] = held
            return [held]

        out: List[int] = []
        for _ in range(wanted):
            early = self._buffer[self._tail]
            prompt = self._buffer[(self._tail + 1) % size]
            late = self._buffer[(self._tail + 2) % size]

            self._phase = self._phase * (1.0 - _PHASE_ALPHA) + _PHASE_ALPHA * self._fill
            x = self._phase
            if x < 0:
                y = (1.0 + x) * prompt - x * early
            else:
                y = (1.0 - x) * prompt + x * late

            if self._phase < -0.5:
                # Playing fast: hold the read position for one sample.
                self._phase += 1.0
            else:
                if self._phase > 0.5:
                    # Playing slow: skip one extra sample.
                    self._phase -= 1.0
                    forward -= 1
                    if forward < 1:
                        break
                    self._tail = (self._tail + 1) % size
                forward -= 1
                if forward < 1:
                    break
                self._tail = (self._tail + 1) % size

            out.append(_to_int16(y))
        return out