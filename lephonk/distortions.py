"""Zekete distortion flavours: waveshapers wrapped in gain staging and EQ."""

from __future__ import annotations

import math
from typing import Callable, Optional

import numpy as np

from lephonk.filters import (
    AllPassFilter,
    BiquadCoefficients,
    IIRFilter,
    ProcessSpec,
    SmoothedGain,
)
from lephonk.params import (
    ZEKETE_MAX_DB,
    NormalisableRange,
    decibels_to_gain,
    jmap,
    map_to_log10,
)

Shaper = Callable[[np.ndarray], np.ndarray]


def _as_block(block) -> np.ndarray:
    data = np.asarray(block, dtype=np.float64)
    if data.ndim != 2:
        raise ValueError("audio blocks must be shaped (channels, samples)")
    return data


def _prepared_filter(coefficients: BiquadCoefficients, spec: ProcessSpec) -> IIRFilter:
    stage = IIRFilter(coefficients)
    stage.prepare(spec)
    return stage


def tanh_shaper(x):
    return np.tanh(x)


def soft_knee_shaper(x):
    """Linear up to 0.5, then a soft knee; scaled so the output peaks at 1."""
    x = np.asarray(x, dtype=np.float64)
    sign = np.copysign(1.0, x)
    magnitude = np.abs(x)
    over = magnitude - 0.5
    magnitude = np.where(magnitude > 0.5, 0.5 + over / (1.0 + (over * 2.0) ** 2), magnitude)
    return sign * magnitude * 1.3333333


def folding_sine_shaper(x):
    x = np.asarray(x, dtype=np.float64)
    y = 1.0 / (np.abs(x) + 1.0) * np.sin(x * (math.pi / 2.0))
    return y + np.tanh(x * 0.2)


class Distortion:
    """A waveshaping chain: all-pass filters, pre-EQ, input gain, shaper, output gain, post-EQ.

    ``amount`` is the drive in percent (0..100). Without a shaper the chain only filters,
    and a bare Distortion passes audio through unchanged.
    """

    shaper: Optional[Shaper] = None
    avg_gain: float = 0.2
    all_pass_cutoffs: tuple = ()
    gain_ramp_seconds: float = 0.005

    def __init__(self, amount: float = 0.0) -> None:
        self.amount = float(amount)
        self._gain_in = SmoothedGain()
        self._gain_out = SmoothedGain()
        self._all_pass: list[IIRFilter] = []
        self._before: list[IIRFilter] = []
        self._after: list[IIRFilter] = []
        self._prepared = False

    def _before_designs(self, sample_rate: float) -> list:
        return []

    def _after_designs(self, sample_rate: float) -> list:
        return []

    def _output_gain(self, param: float, intensity_in: float) -> float:
        return self.avg_gain / float(self.shaper(intensity_in * self.avg_gain))

    def prepare(self, spec: ProcessSpec) -> None:
        for gain in (self._gain_in, self._gain_out):
            gain.prepare(spec)
            gain.set_ramp_duration_seconds(self.gain_ramp_seconds)

        rate = spec.sample_rate
        self._all_pass = [
            _prepared_filter(BiquadCoefficients.make_all_pass(rate, cutoff), spec)
            for cutoff in self.all_pass_cutoffs
        ]
        self._before = [_prepared_filter(c, spec) for c in self._before_designs(rate)]
        self._after = [_prepared_filter(c, spec) for c in self._after_designs(rate)]
        self._prepared = True

    def process(self, block) -> np.ndarray:
        data = _as_block(block)
        if not self._prepared:
            raise RuntimeError("distortion has not been prepared")

        for stage in self._all_pass:
            data = stage.process(data)
        for stage in self._before:
            data = stage.process(data)

        if self.shaper is not None:
            param = self.amount * 0.01
            intensity_in = decibels_to_gain(jmap(param, 0.0, ZEKETE_MAX_DB))
            self._gain_in.set_gain_linear(intensity_in)
            self._gain_out.set_gain_linear(self._output_gain(param, intensity_in))
            data = self._gain_in.process(data)
            data = np.asarray(self.shaper(data), dtype=np.float64)
            data = self._gain_out.process(data)

        for stage in self._after:
            data = stage.process(data)
        return data

    def distort(self, sample: float, param: float = 0.0) -> float:
        """The static transfer curve at a slider position (0..1), for drawing."""
        if self.shaper is None:
            return float(sample)
        gain = decibels_to_gain(jmap(param, 0.0, ZEKETE_MAX_DB))
        return float(self.shaper(sample * gain))

    def x_axis(self, param: float) -> float:
        """Half-width of the x range to draw the curve over."""
        return 1.0


class Dist1(Distortion):
    """tanh saturation around a 555 Hz mid boost."""

    shaper = staticmethod(tanh_shaper)
    avg_gain = 0.2

    def _before_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 555.0, 1.2, 4.0)]

    def _after_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 555.0, 1.2, 1.0 / 4.0)]

    def x_axis(self, param: float) -> float:
        return map_to_log10(param, 1.0, 0.3)


class Dist2(Distortion):
    """Soft-knee clipping after a chain of six all-pass filters."""

    shaper = staticmethod(soft_knee_shaper)
    avg_gain = 0.15
    all_pass_cutoffs = tuple(200.0 + 25.0 * i for i in range(6))

    def _before_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 1000.0, 0.3, 2.0)]

    def _after_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 1000.0, 0.3, 1.0 / 2.0)]

    def x_axis(self, param: float) -> float:
        return map_to_log10(param, 1.0, 0.3)


class Dist3(Distortion):
    """Up to 200 cascaded all-pass filters; the drive chooses how many are active."""

    filter_count = 200

    def __init__(self, amount: float = 0.0) -> None:
        super().__init__(amount)
        self._range = NormalisableRange(0.0, 1.0)
        self._range.set_skew_for_centre(0.2)
        self._filters = [AllPassFilter() for _ in range(self.filter_count)]
        self._gain_out = SmoothedGain()
        self._prev_idx = 0

    @property
    def active_filters(self) -> int:
        return self._prev_idx

    def prepare(self, spec: ProcessSpec) -> None:
        cutoff = 200.0
        for stage in self._filters:
            stage.prepare(spec)
            stage.update_parameters(cutoff)
            cutoff += 3.0

        self._gain_out.prepare(spec)
        self._gain_out.set_ramp_duration_seconds(0.01)
        self._gain_out.set_gain_linear(1.0)
        self._prepared = True

    def process(self, block) -> np.ndarray:
        data = _as_block(block)
        if not self._prepared:
            raise RuntimeError("distortion has not been prepared")

        param = self._range.convert_from_0to1(self.amount * 0.01)
        idx = int(jmap(param, 1.0, float(len(self._filters))))

        # Fade out while the filter count changes, to avoid clicks.
        self._gain_out.set_gain_linear(float(idx == self._prev_idx))

        for stage in self._filters[: self._prev_idx]:
            data = stage.process(data)
        data = self._gain_out.process(data)

        if not self._gain_out.is_smoothing():
            self._prev_idx = idx
        return data

    def distort(self, sample: float, param: float = 0.0) -> float:
        x = float(sample)
        mult_x1 = x * (1.0 + param * 27.0)
        mult_x2 = x * (2.0 + param * 10.0)
        y = 0.4 * (abs(x) + 0.5) * math.sin(mult_x1)
        y += 0.5 * x
        y += 0.3 * math.sin(mult_x2 * math.sin(x * 8.7))
        return x + param * (y - x)

    def x_axis(self, param: float) -> float:
        return map_to_log10(param, 1.0, 0.5)


class Dist4(Distortion):
    """Sine folding blended with gentle tanh, around a 100 Hz boost."""

    shaper = staticmethod(folding_sine_shaper)
    avg_gain = 0.2

    def _before_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 100.0, 0.3, 2.0)]

    def _after_designs(self, sample_rate):
        return [BiquadCoefficients.make_peak_filter(sample_rate, 100.0, 0.3, 1.0 / 2.0)]

    def _output_gain(self, param: float, intensity_in: float) -> float:
        return map_to_log10(param, 0.6, 0.2)

    def x_axis(self, param: float) -> float:
        return map_to_log10(param, 1.0, 0.3)