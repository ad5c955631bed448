"""The Zekete stage: six selectable distortion flavours blended with the dry signal."""

from __future__ import annotations

import numpy as np

from lephonk.distortions import Dist1, Dist2, Dist3, Dist4, Distortion
from lephonk.filters import BiquadCoefficients, DryWetMixer, MixingRule, ProcessSpec
from lephonk.params import map_to_log10

CLIP_LIMIT = 2.0
_CLIP_LIMIT_SQR = (1.0 / CLIP_LIMIT) ** 2


def rational_clip_shaper(x):
    """Hard-limit to +-2, then bend with x / (1 + x^2 / 4); peaks at +-1."""
    x = np.clip(np.asarray(x, dtype=np.float64), -CLIP_LIMIT, CLIP_LIMIT)
    return x / (1.0 + x * x * _CLIP_LIMIT_SQR)


def triangle_shaper(x):
    """Triangle wave of period 4 passing through 0 at 0 and 1 at 1."""
    x = 0.25 * (np.asarray(x, dtype=np.float64) + 1.0)
    return 4.0 * np.abs(x - np.floor(x + 0.5)) - 1.0


class Dist5(Distortion):
    """Rational soft clipping with a low boost and a high-shelf cut, after four all-passes."""

    shaper = staticmethod(rational_clip_shaper)
    avg_gain = 0.18
    all_pass_cutoffs = tuple(200.0 + 40.0 * i for i in range(4))

    def _before_designs(self, sample_rate):
        return [
            BiquadCoefficients.make_peak_filter(sample_rate, 150.0, 0.4, 2.0),
            BiquadCoefficients.make_high_shelf(sample_rate, 15000.0, 0.5, 0.6),
        ]

    def _after_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 150.0, 0.4, 1.0 / 2.0)]

    def x_axis(self, param: float) -> float:
        return map_to_log10(param, 1.0, 0.3)


class Dist6(Distortion):
    """Triangle wavefolding with a strong low boost, after three all-passes."""

    shaper = staticmethod(triangle_shaper)
    avg_gain = 0.18
    all_pass_cutoffs = tuple(200.0 + 50.0 * i for i in range(3))

    def _before_designs(self, sample_rate):
        return [
            BiquadCoefficients.make_peak_filter(sample_rate, 150.0, 0.4, 3.0),
            BiquadCoefficients.make_high_shelf(sample_rate, 15000.0, 0.5, 0.6),
        ]

    def _after_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 150.0, 0.4, 1.0 / 3.0)]

    def _output_gain(self, param: float, intensity_in: float) -> float:
        return self.avg_gain / min(intensity_in * self.avg_gain, 1.0)

    def x_axis(self, param: float) -> float:
        return map_to_log10(param, 1.0, 0.3)


class Zekete:
    """Runs the selected distortion and blends it with the input.

    ``amount`` is the drive in percent, ``mix`` the wet proportion in percent and
    ``select`` the index of the active distortion.
    """

    def __init__(self, amount: float = 0.0, mix: float = 100.0, select: int = 0) -> None:
        self.distortions: tuple[Distortion, ...] = (
            Dist1(),
            Dist2(),
            Dist3(),
            Dist4(),
            Dist5(),
            Dist6(),
        )
        self._mixer = DryWetMixer()
        self._prepared = False
        self.amount = amount
        self.mix = mix
        self.select = select

    @property
    def amount(self) -> float:
        return self._amount

    @amount.setter
    def amount(self, value: float) -> None:
        self._amount = float(value)
        for dist in self.distortions:
            dist.amount = self._amount

    @property
    def select(self) -> int:
        return self._select

    @select.setter
    def select(self, value: float) -> None:
        self._distortion(value)
        self._select = int(value)

    def _distortion(self, index: float) -> Distortion:
        idx = int(index)
        if not 0 <= idx < len(self.distortions):
            raise IndexError(f"distortion index {idx} is out of range")
        return self.distortions[idx]

    def prepare(self, spec: ProcessSpec) -> None:
        for dist in self.distortions:
            dist.prepare(spec)
        self._mixer.prepare(spec)
        self._mixer.set_mixing_rule(MixingRule.SIN_3DB)
        self._prepared = True

    def process(self, block) -> np.ndarray:
        data = np.asarray(block, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError("audio blocks must be shaped (channels, samples)")
        if not self._prepared:
            raise RuntimeError("Zekete has not been prepared")

        self._mixer.set_wet_mix_proportion(self.mix * 0.01)
        self._mixer.push_dry_samples(data)
        wet = self._distortion(self.select).process(data)
        return self._mixer.mix_wet_samples(wet)

    def distort(self, index: int, sample: float, param: float = 0.0) -> float:
        """Transfer curve of distortion ``index`` at slider position ``param`` (0..1)."""
        return self._distortion(index).distort(sample, param)

    def x_axis(self, index: int, param: float) -> float:
        """Half-width of the x range over which distortion ``index`` is drawn."""
        return self._distortion(index).x_axis(param)