import numpy as np
import pytest

from lephonk.filters import ProcessSpec
from lephonk.ott import OTT, OTTWithMultiplier

RATE = 44100.0
BLOCK = 512
SPEC = ProcessSpec(sample_rate=RATE, maximum_block_size=BLOCK, num_channels=2)


def _sine(freq, blocks, amplitude):
    t = np.arange(blocks * BLOCK) / RATE
    wave = amplitude * np.sin(2.0 * np.pi * freq * t)
    signal = np.vstack([wave, wave])
    return [signal[:, i * BLOCK:(i + 1) * BLOCK] for i in range(blocks)]


def _rms(block):
    return float(np.sqrt(np.mean(np.square(block))))


def _prepared(**kwargs):
    ott = OTT(**kwargs)
    ott.prepare(SPEC)
    return ott


def test_disabled_passes_input_through():
    ott = _prepared(mix=100.0, enabled=False)
    block = _sine(500.0, 1, 0.3)[0]
    assert np.array_equal(ott.process(block), block)


def test_output_shape_and_finite():
    ott = _prepared(mix=100.0)
    block = _sine(1000.0, 1, 0.5)[0]
    out = ott.process(block)
    assert out.shape == block.shape
    assert np.all(np.isfinite(out))


def test_zero_depth_keeps_level_of_mid_band_tone():
    ott = _prepared(mix=0.0)
    blocks = _sine(500.0, 10, 0.3)
    outputs = [ott.process(block) for block in blocks]
    assert _rms(outputs[-1]) == pytest.approx(_rms(blocks[-1]), rel=0.15)


def test_full_depth_raises_quiet_signal():
    ott = _prepared(mix=100.0)
    blocks = _sine(500.0, 10, 0.01)
    outputs = [ott.process(block) for block in blocks]
    assert _rms(outputs[-1]) > 1.5 * _rms(blocks[-1])


def test_processing_is_deterministic():
    first = _prepared(mix=60.0)
    second = _prepared(mix=60.0)
    block = _sine(300.0, 1, 0.2)[0]
    assert np.allclose(first.process(block), second.process(block))


def test_time_setting_changes_output():
    fast = _prepared(mix=100.0, time=10.0)
    slow = _prepared(mix=100.0, time=400.0)
    block = _sine(300.0, 1, 0.2)[0]
    assert not np.allclose(fast.process(block), slow.process(block))


def test_process_requires_prepare():
    with pytest.raises(RuntimeError):
        OTT().process(np.zeros((2, 16)))


def test_block_longer_than_prepared_is_rejected():
    with pytest.raises(ValueError):
        _prepared().process(np.zeros((2, BLOCK + 1)))


def test_multiplier_one_matches_single_stage():
    single = _prepared(mix=80.0, time=50.0)
    stacked = OTTWithMultiplier(mix=80.0, time=50.0)
    stacked.prepare(SPEC)
    for block in _sine(700.0, 2, 0.1):
        assert np.allclose(stacked.process(block), single.process(block))


def test_multiplier_two_matches_two_stages_in_series():
    first = _prepared(mix=100.0)
    second = _prepared(mix=100.0)
    stacked = OTTWithMultiplier(mix=100.0)
    stacked.multiplier = 2
    stacked.prepare(SPEC)
    for block in _sine(700.0, 2, 0.1):
        expected = second.process(first.process(block))
        assert np.allclose(stacked.process(block), expected)


def test_multiplier_disabled_is_identity():
    stacked = OTTWithMultiplier(mix=100.0, enabled=False)
    stacked.multiplier = 5
    stacked.prepare(SPEC)
    block = _sine(200.0, 1, 0.4)[0]
    assert np.array_equal(stacked.process(block), block)


@pytest.mark.parametrize("value", [0, 6])
def test_multiplier_out_of_range(value):
    stacked = OTTWithMultiplier()
    with pytest.raises(ValueError):
        stacked.multiplier = value
    assert stacked.multiplier == 1