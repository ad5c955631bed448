import numpy as np
import pytest

from lephonk.distortions import Dist1
from lephonk.filters import ProcessSpec
from lephonk.zekete import (
    Dist5,
    Dist6,
    Zekete,
    rational_clip_shaper,
    triangle_shaper,
)

SPEC = ProcessSpec(48000.0, 2048, 2)


def _noise(seed=0, n=2048):
    return np.random.default_rng(seed).uniform(-0.5, 0.5, size=(2, n))


def test_rational_clip_peaks_at_limit():
    assert float(rational_clip_shaper(2.0)) == pytest.approx(1.0)


def test_rational_clip_is_flat_beyond_limit():
    values = rational_clip_shaper(np.array([2.0, 5.0, 100.0]))
    np.testing.assert_allclose(values, values[0])


def test_rational_clip_is_odd():
    x = np.linspace(-3, 3, 61)
    np.testing.assert_allclose(rational_clip_shaper(-x), -rational_clip_shaper(x))


def test_triangle_values_and_period():
    assert float(triangle_shaper(1.0)) == pytest.approx(1.0)
    assert float(triangle_shaper(0.0)) == pytest.approx(0.0)
    x = np.linspace(-5, 5, 101)
    np.testing.assert_allclose(triangle_shaper(x + 4.0), triangle_shaper(x), atol=1e-12)


def test_triangle_stays_within_unit_range():
    y = triangle_shaper(np.linspace(-20, 20, 1001))
    assert y.max() <= 1.0 + 1e-12
    assert y.min() >= -1.0 - 1e-12


@pytest.mark.parametrize("cls", [Dist5, Dist6])
def test_distortion_process_keeps_shape_and_is_finite(cls):
    dist = cls(amount=60.0)
    dist.prepare(SPEC)
    out = dist.process(_noise())
    assert out.shape == (2, 2048)
    assert np.all(np.isfinite(out))


@pytest.mark.parametrize("cls", [Dist5, Dist6])
def test_distort_at_zero_param_matches_shaper(cls):
    dist = cls()
    assert dist.distort(0.3, 0.0) == pytest.approx(float(cls.shaper(0.3)))


@pytest.mark.parametrize("cls", [Dist5, Dist6])
def test_x_axis_starts_at_one(cls):
    assert cls().x_axis(0.0) == pytest.approx(1.0)
    assert cls().x_axis(1.0) < 1.0


def test_zekete_distort_delegates_to_selected_flavour():
    zekete = Zekete()
    for index, dist in enumerate(zekete.distortions):
        assert zekete.distort(index, 0.4, 0.5) == pytest.approx(dist.distort(0.4, 0.5))
        assert zekete.x_axis(index, 0.5) == pytest.approx(dist.x_axis(0.5))


def test_zekete_has_six_flavours():
    assert len(Zekete().distortions) == 6


@pytest.mark.parametrize("index", [-1, 6])
def test_zekete_rejects_bad_index(index):
    with pytest.raises(IndexError):
        Zekete().distort(index, 0.1, 0.0)
    with pytest.raises(IndexError):
        Zekete(select=index)


def test_zekete_amount_reaches_every_flavour():
    zekete = Zekete(amount=42.0)
    assert all(dist.amount == 42.0 for dist in zekete.distortions)


def test_zekete_requires_prepare():
    with pytest.raises(RuntimeError):
        Zekete().process(_noise())


def test_zekete_full_wet_equals_distortion():
    zekete = Zekete(amount=50.0, mix=100.0, select=0)
    zekete.prepare(SPEC)
    reference = Dist1(amount=50.0)
    reference.prepare(SPEC)
    block = _noise(1)
    np.testing.assert_allclose(zekete.process(block), reference.process(block), atol=1e-12)


def test_zekete_fully_dry_returns_input_after_ramp():
    zekete = Zekete(amount=80.0, mix=0.0, select=4)
    zekete.prepare(SPEC)
    for seed in range(2):
        zekete.process(_noise(seed))
    block = _noise(7)
    np.testing.assert_allclose(zekete.process(block), block, atol=1e-12)


def test_zekete_rejects_one_dimensional_block():
    zekete = Zekete()
    zekete.prepare(SPEC)
    with pytest.raises(ValueError):
        zekete.process(np.zeros(16))