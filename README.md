# jsquelch

Building blocks for a spectral voice squelch. Audio is split into
half-overlapped FFT frames, the noise floor and the voice signal-to-noise
ratio are estimated per frequency bin, the spectrum is scaled by those
estimates and the audio is put back together by overlap-add. An automatic
gain control and an elastic ring buffer for joining a capture stream to a
playback stream are included.

## Install

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Modules

- `jsquelch.moving` – windowed running statistics.
  - `MovingAverage(size)` – scalar moving mean; the running sum is recomputed
    once per window length. Integer input gives an integer average truncated
    toward zero. A size of 0 passes the input straight through.
  - `MovingMax(size)` – scalar moving maximum, ignoring NaN;
    `update_many(values)` adds the largest non-NaN value of a block.
  - `VectorMovingAverage(width, window)`, `VectorMovingVariance(width, window)`
    (with `mean`), `VectorMovingMax(width, window)`,
    `VectorMovingMin(width, window)` – element-wise statistics over a stream
    of fixed-width vectors. The max/min classes keep the window slot of each
    extreme in `index` and skip NaN elements.
  - `VectorMovingMinWithAssociate(width, window)` – moving minimum whose
    `update(values, associate)` also reports, in `associate`, the companion
    value stored with each minimum.
  - Every class has `set_size(...)`, a `size` property and a `value` holding
    the latest result. Bad sizes or input lengths raise `DspError`
    (a `ValueError`).
- `jsquelch.spectral`
  - `hann(n)` – symmetric Hann window.
  - `correction_window(n)` – window that flattens the overlap-add of the two
    halves of `hann(2 * n)`.
  - `OverlappedRealFFT(size)` – each `update` takes `size` new samples,
    windows the last `2 * size`, zero-pads to `4 * size` and transforms.
    `spectrum` holds the full complex result and `magnitude` the
    `2 * size + 1` non-redundant magnitudes. `scale(gains)` and
    `divide(divisors)` apply per-bin real factors to both the bins and their
    mirror images.
  - `InverseOverlappedRealFFT(size)` – takes a `4 * size` spectrum and returns
    `size` reconstructed samples, one block behind the analysis input.
  - Block sizes must be powers of two; otherwise `update` raises `DspError`.
- `jsquelch.estimators`
  - `MovingNoiseEstimator(width=257, stats_window=16, minimum_window=16, output_window=62)`
    – per-bin noise level from the moving minimum of the bin mean and the
    variance seen at that minimum, then smoothed.
  - `MovingSignalEstimator(width=257, stats_window=8, min_voice_bin=3, max_voice_bin=96, snr_window=62, output_window=8)`
    – per-bin SNR estimate from normalized magnitudes; `voice_snr_estimate`
    is the smoothed peak over the voice bins.
- `jsquelch.agc` – `AGC(settings)` with `AGCSettings(k, level, max_gain, max_window, delay)`.
  `update(samples, adjust=True)` returns a new array of delayed,
  gain-controlled samples; the gain adapts in the log domain so that the
  moving peak of the output power reaches `level`, capped at `max_gain`.
- `jsquelch.loopback` – `LoopbackBuffer(settings, process)` with
  `LoopbackSettings(max_frames_per_read, buffer_size, sample_rate)`.
  `write(samples)` converts captured 16-bit samples to floats in `[-1, 1)`,
  passes them through the optional `process` callback and queues the result;
  `read(max_samples)` returns up to `max_frames_per_read` 16-bit samples
  through a slowly adapting interpolator that skips or repeats a sample to
  absorb clock drift. When the buffer has run dry, `read` returns a single,
  progressively quieter sample. `queued` tells how many slots are waiting and
  `clear()` resets the buffer to silence, half full.

## Example

```python
import numpy as np
from jsquelch.spectral import OverlappedRealFFT, InverseOverlappedRealFFT
from jsquelch.estimators import MovingNoiseEstimator, MovingSignalEstimator

fft = OverlappedRealFFT(128)
ifft = InverseOverlappedRealFFT(128)
noise = MovingNoiseEstimator(257, 16, 16, 62)
signal = MovingSignalEstimator(257, 8, 3, 96, 62, 8)

rng = np.random.default_rng(1)
for _ in range(100):
    block = rng.normal(size=128)
    magnitude = fft.update(block)
    fft.divide(noise.update(magnitude))
    fft.scale(signal.update(fft.magnitude))
    out = ifft.update(fft.spectrum)
```

## What it does not do

The package is a library of processing blocks only. It does not open sound
cards or other audio devices, write compressed audio files, or provide a
command-line program or a graphical interface; `LoopbackBuffer` only holds
and paces samples that the caller moves to and from its own audio streams.