"""Audio building blocks: biquad filters, smoothed gain, envelope followers and a dry/wet mixer.

Blocks are numpy arrays shaped (channels, samples); processors return a new array.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter

_DEFAULT_Q = 1.0 / math.sqrt(2.0)


@dataclass
class ProcessSpec:
    sample_rate: float
    maximum_block_size: int
    num_channels: int


def _as_block(block) -> np.ndarray:
    arr = np.asarray(block, dtype=np.float64)
    if arr.ndim != 2:
        raise ValueError("audio blocks must be shaped (channels, samples)")
    return arr


@dataclass
class BiquadCoefficients:
    """Normalised second-order coefficients (a0 == 1)."""

    b: tuple
    a: tuple

    @classmethod
    def _normalised(cls, b0, b1, b2, a0, a1, a2) -> "BiquadCoefficients":
        return cls((b0 / a0, b1 / a0, b2 / a0), (1.0, a1 / a0, a2 / a0))

    @classmethod
    def make_low_pass(cls, sample_rate, frequency, q=_DEFAULT_Q):
        n = 1.0 / math.tan(math.pi * frequency / sample_rate)
        n_sq = n * n
        inv_q = 1.0 / q
        c1 = 1.0 / (1.0 + inv_q * n + n_sq)
        return cls((c1, 2.0 * c1, c1), (1.0, c1 * 2.0 * (1.0 - n_sq), c1 * (1.0 - inv_q * n + n_sq)))

    @classmethod
    def make_high_pass(cls, sample_rate, frequency, q=_DEFAULT_Q):
        n = math.tan(math.pi * frequency / sample_rate)
        n_sq = n * n
        inv_q = 1.0 / q
        c1 = 1.0 / (1.0 + inv_q * n + n_sq)
        return cls((c1, -2.0 * c1, c1), (1.0, c1 * 2.0 * (n_sq - 1.0), c1 * (1.0 - inv_q * n + n_sq)))

    @classmethod
    def make_all_pass(cls, sample_rate, frequency, q=_DEFAULT_Q):
        w = 2.0 * math.pi * frequency / sample_rate
        alpha = math.sin(w) / (2.0 * q)
        cs = math.cos(w)
        return cls._normalised(1.0 - alpha, -2.0 * cs, 1.0 + alpha, 1.0 + alpha, -2.0 * cs, 1.0 - alpha)

    @classmethod
    def make_peak_filter(cls, sample_rate, frequency, q, gain_factor):
        a = math.sqrt(max(gain_factor, 1e-6))
        omega = 2.0 * math.pi * frequency / sample_rate
        alpha = math.sin(omega) / (2.0 * q)
        c2 = -2.0 * math.cos(omega)
        return cls._normalised(1.0 + alpha * a, c2, 1.0 - alpha * a, 1.0 + alpha / a, c2, 1.0 - alpha / a)

    @classmethod
    def make_high_shelf(cls, sample_rate, cutoff, q, gain_factor):
        a = math.sqrt(max(gain_factor, 1e-6))
        aminus1 = a - 1.0
        aplus1 = a + 1.0
        omega = 2.0 * math.pi * cutoff / sample_rate
        coso = math.cos(omega)
        beta = math.sin(omega) * math.sqrt(a) / q
        am1_coso = aminus1 * coso
        return cls._normalised(
            a * (aplus1 + am1_coso + beta),
            a * -2.0 * (aminus1 + aplus1 * coso),
            a * (aplus1 + am1_coso - beta),
            aplus1 - am1_coso + beta,
            2.0 * (aminus1 - aplus1 * coso),
            aplus1 - am1_coso - beta,
        )


class IIRFilter:
    """A biquad applied independently to each channel."""

    def __init__(self, coefficients: BiquadCoefficients | None = None) -> None:
        self.coefficients = coefficients or BiquadCoefficients((1.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        self._state = np.zeros((0, 2))

    def prepare(self, spec: ProcessSpec) -> None:
        self._state = np.zeros((spec.num_channels, 2))

    def reset(self) -> None:
        self._state = np.zeros_like(self._state)

    def process(self, block) -> np.ndarray:
        data = _as_block(block)
        if self._state.shape[0] != data.shape[0]:
            self._state = np.zeros((data.shape[0], 2))
        out, self._state = lfilter(self.coefficients.b, self.coefficients.a, data, axis=1, zi=self._state)
        return out


class AllPassFilter:
    """An all-pass biquad over every channel of a block, retunable after preparation."""

    def __init__(self) -> None:
        self.sample_rate = 0.0
        self._filter = IIRFilter()

    def prepare(self, spec: ProcessSpec) -> None:
        self.sample_rate = spec.sample_rate
        self._filter.coefficients = BiquadCoefficients.make_all_pass(self.sample_rate, 200.0)
        self._filter.prepare(spec)

    def process(self, block) -> np.ndarray:
        return self._filter.process(block)

    def update_parameters(self, cutoff: float, q: float = 0.70710678) -> None:
        if self.sample_rate != 0.0:
            self._filter.coefficients = BiquadCoefficients.make_all_pass(self.sample_rate, cutoff, q)


class _LinearSmoother:
    def __init__(self, initial: float = 0.0) -> None:
        self.current = initial
        self.target = initial
        self._steps_to_target = 0
        self._countdown = 0
        self._step = 0.0

    def reset(self, sample_rate: float, ramp_seconds: float) -> None:
        self._steps_to_target = int(math.floor(ramp_seconds * sample_rate))
        self.set_current_and_target(self.target)

    def set_current_and_target(self, value: float) -> None:
        self.current = self.target = value
        self._countdown = 0

    def set_target(self, value: float) -> None:
        if value == self.target:
            return
        if self._steps_to_target <= 0:
            self.set_current_and_target(value)
            return
        self.target = value
        self._countdown = self._steps_to_target
        self._step = (self.target - self.current) / self._countdown

    @property
    def smoothing(self) -> bool:
        return self._countdown > 0

    def next_values(self, count: int) -> np.ndarray:
        if count <= 0:
            return np.zeros(0)
        ramp_len = min(self._countdown, count)
        values = np.full(count, self.target, dtype=np.float64)
        if ramp_len:
            values[:ramp_len] = self.current + self._step * np.arange(1, ramp_len + 1)
            self._countdown -= ramp_len
            if self._countdown == 0:
                values[ramp_len - 1] = self.target
                self.current = self.target
            else:
                self.current = values[ramp_len - 1]
        return values


class SmoothedGain:
    """Linear gain whose changes ramp over a set duration."""

    def __init__(self) -> None:
        self._sample_rate = 0.0
        self._ramp_seconds = 0.0
        self._gain = _LinearSmoother(0.0)

    def prepare(self, spec: ProcessSpec) -> None:
        self._sample_rate = spec.sample_rate
        self._gain.reset(self._sample_rate, self._ramp_seconds)

    def set_ramp_duration_seconds(self, seconds: float) -> None:
        if seconds != self._ramp_seconds:
            self._ramp_seconds = seconds
            self._gain.reset(self._sample_rate, seconds)

    def set_gain_linear(self, gain: float) -> None:
        self._gain.set_target(gain)

    @property
    def gain_linear(self) -> float:
        return self._gain.target

    def is_smoothing(self) -> bool:
        return self._gain.smoothing

    def process(self, block) -> np.ndarray:
        data = _as_block(block)
        if not self._gain.smoothing:
            return data * self._gain.target
        return data * self._gain.next_values(data.shape[1])[np.newaxis, :]


class BallisticsFilter:
    """Envelope follower with separate attack and release times (in ms)."""

    def __init__(self, rms: bool = True) -> None:
        self.rms = rms
        self._exp_factor = 0.0
        self._attack_ms = 1.0
        self._release_ms = 100.0
        self._cte_attack = 0.0
        self._cte_release = 0.0
        self._y_old = np.zeros(0)

    def _cte(self, time_ms: float) -> float:
        return 0.0 if time_ms < 1e-3 else math.exp(self._exp_factor / time_ms)

    def prepare(self, spec: ProcessSpec) -> None:
        self._exp_factor = -2.0 * math.pi * 1000.0 / spec.sample_rate
        self._cte_attack = self._cte(self._attack_ms)
        self._cte_release = self._cte(self._release_ms)
        self._y_old = np.zeros(spec.num_channels)

    def set_attack_time(self, attack_ms: float) -> None:
        self._attack_ms = attack_ms
        self._cte_attack = self._cte(attack_ms)

    def set_release_time(self, release_ms: float) -> None:
        self._release_ms = release_ms
        self._cte_release = self._cte(release_ms)

    def process_sample(self, channel: int, sample: float) -> float:
        level = sample * sample if self.rms else abs(sample)
        old = self._y_old[channel]
        cte = self._cte_attack if level > old else self._cte_release
        result = level + cte * (old - level)
        self._y_old[channel] = result
        return math.sqrt(result) if self.rms else result


class MixingRule(enum.Enum):
    LINEAR = "linear"
    BALANCED = "balanced"
    SIN_3DB = "sin3dB"
    SIN_4P5DB = "sin4p5dB"
    SIN_6DB = "sin6dB"
    SQUARE_ROOT_3DB = "squareRoot3dB"
    SQUARE_ROOT_4P5DB = "squareRoot4p5dB"


def _mix_volumes(rule: MixingRule, p: float) -> tuple[float, float]:
    half_pi = 0.5 * math.pi
    if rule is MixingRule.LINEAR:
        return 1.0 - p, p
    if rule is MixingRule.BALANCED:
        return 2.0 * min(0.5, 1.0 - p), 2.0 * min(0.5, p)
    if rule is MixingRule.SIN_3DB:
        return math.sin(half_pi * (1.0 - p)), math.sin(half_pi * p)
    if rule is MixingRule.SIN_4P5DB:
        return math.sin(half_pi * (1.0 - p)) ** 1.5, math.sin(half_pi * p) ** 1.5
    if rule is MixingRule.SIN_6DB:
        return math.sin(half_pi * (1.0 - p)) ** 2, math.sin(half_pi * p) ** 2
    if rule is MixingRule.SQUARE_ROOT_3DB:
        return math.sqrt(1.0 - p), math.sqrt(p)
    return math.sqrt(1.0 - p) ** 1.5, math.sqrt(p) ** 1.5


class DryWetMixer:
    """Blends a stored dry block with a wet block using a mixing rule and smoothed volumes."""

    _RAMP_SECONDS = 0.05

    def __init__(self) -> None:
        self._rule = MixingRule.LINEAR
        self._proportion = 1.0
        self._dry_volume = _LinearSmoother()
        self._wet_volume = _LinearSmoother()
        self._dry: np.ndarray | None = None
        self._update()

    def _update(self) -> None:
        dry, wet = _mix_volumes(self._rule, self._proportion)
        self._dry_volume.set_target(dry)
        self._wet_volume.set_target(wet)

    def prepare(self, spec: ProcessSpec) -> None:
        self._dry_volume.reset(spec.sample_rate, self._RAMP_SECONDS)
        self._wet_volume.reset(spec.sample_rate, self._RAMP_SECONDS)
        self._dry = None

    def set_mixing_rule(self, rule: MixingRule) -> None:
        self._rule = MixingRule(rule)
        self._update()

    def set_wet_mix_proportion(self, proportion: float) -> None:
        self._proportion = min(max(float(proportion), 0.0), 1.0)
        self._update()

    def push_dry_samples(self, block) -> None:
        data = _as_block(block)
        self._dry = data * self._dry_volume.next_values(data.shape[1])[np.newaxis, :]

    def mix_wet_samples(self, block) -> np.ndarray:
        data = _as_block(block)
        if self._dry is None:
            raise RuntimeError("no dry samples have been pushed")
        if self._dry.shape != data.shape:
            raise ValueError("wet block does not match the dry block")
        out = data * self._wet_volume.next_values(data.shape[1])[np.newaxis, :] + self._dry
        self._dry = None
        return out