import pytest

from jsquelch.loopback import LoopbackBuffer, LoopbackSettings
from jsquelch.moving import DspError


def test_defaults_match_source():
    settings = LoopbackSettings()
    assert settings.max_frames_per_read == 64
    assert settings.buffer_size == 4096
    assert settings.sample_rate == 8000


def test_starts_half_full_of_silence():
    loop = LoopbackBuffer()
    assert loop.queued == 4096 // 2
    out = loop.read(1000)
    assert len(out) == 64
    assert all(s == 0 for s in out)


def test_read_limited_by_request():
    loop = LoopbackBuffer()
    assert len(loop.read(10)) == 10


def test_read_consumes_queued_samples():
    loop = LoopbackBuffer()
    before = loop.queued
    out = loop.read(64)
    assert loop.queued == before - len(out)


def test_write_queues_each_output_sample():
    loop = LoopbackBuffer()
    before = loop.queued
    consumed = loop.write([100] * 100)
    assert consumed == 100
    assert loop.queued == before + 100


def test_write_passes_scaled_input_to_process():
    seen = []

    def process(block):
        seen.append(list(block))
        return block

    loop = LoopbackBuffer(process=process)
    before = loop.queued
    consumed = loop.write([16384, -32768])
    assert consumed == 2
    assert loop.queued == before + 2
    assert seen == [[0.5, -1.0]]


def test_write_reports_input_count_when_process_drops_output():
    loop = LoopbackBuffer(process=lambda block: [])
    before = loop.queued
    assert loop.write([1, 2, 3, 4, 5]) == 5
    assert loop.queued == before


def test_full_buffer_never_passes_reader():
    loop = LoopbackBuffer(LoopbackSettings(buffer_size=8))
    loop.write([500] * 20)
    assert loop.queued == 8 - 1


def test_samples_pass_through_to_playback():
    loop = LoopbackBuffer(LoopbackSettings(buffer_size=16))
    loop.write([1000] * 7)
    out = loop.read(64)
    assert out[0] == 0
    assert abs(out[-1] - 1000) <= 1
    assert len(out) == 16 - 2


def test_underrun_returns_single_sample():
    loop = LoopbackBuffer(LoopbackSettings(buffer_size=8))
    while loop.queued > 1:
        loop.read(64)
    before = loop.queued
    out = loop.read(64)
    assert out == [0]
    assert loop.queued == before


def test_clear_resets_fill():
    loop = LoopbackBuffer(LoopbackSettings(buffer_size=32))
    loop.write([7] * 10)
    loop.clear()
    assert loop.queued == 16
    assert all(s == 0 for s in loop.read(64))


def test_output_is_clamped_to_int16():
    loop = LoopbackBuffer(
        LoopbackSettings(buffer_size=8), process=lambda block: [2.0] * 5
    )
    loop.write([0])
    out = loop.read(64)
    assert max(out) <= 32767


@pytest.mark.parametrize("size", [0, -1])
def test_invalid_buffer_size_raises(size):
    with pytest.raises(DspError):
        LoopbackBuffer(LoopbackSettings(buffer_size=size))


def test_invalid_frames_per_read_raises():
    with pytest.raises(DspError):
        LoopbackBuffer(LoopbackSettings(max_frames_per_read=0))