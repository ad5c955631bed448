"""Three-band upward/downward compression with a dry/wet depth, optionally stacked."""

from __future__ import annotations

import numpy as np

from lephonk.compressor import UpDownComp
from lephonk.filters import BiquadCoefficients, DryWetMixer, IIRFilter, MixingRule, ProcessSpec
from lephonk.params import OTT_MULT_AMOUNT

HIGH_CROSS = 2500.0
LOW_CROSS = 88.3
Q = 0.7071

# (attack ms, decay ms) per band at 100 % time
_BAND_TIMES = {
    "low": (47.8, 282.0),
    "mid": (22.4, 282.0),
    "high": (13.5, 132.0),
}


class OTT:
    """Splits audio into three bands, compresses each, and blends with the band sum.

    mix is the depth in percent (0..100), time scales attack/decay in percent.
    """

    def __init__(self, mix: float = 0.0, time: float = 100.0, enabled: bool = True) -> None:
        self.mix = mix
        self.time = time
        self.enabled = enabled
        self._comps = {band: UpDownComp() for band in _BAND_TIMES}
        self._filters: dict[str, tuple[IIRFilter, IIRFilter]] = {}
        self._mixer = DryWetMixer()
        self._spec: ProcessSpec | None = None

    def prepare(self, spec: ProcessSpec) -> None:
        for comp in self._comps.values():
            comp.prepare(spec)

        self._comps["high"].update(-35.5, 999.0, -40.8, 4.17, 13.5, 132.0, 12.7)
        self._comps["mid"].update(-30.2, 66.7, -41.8, 4.17, 22.4, 282.0, 10.5)
        self._comps["low"].update(-33.8, 66.7, -40.8, 4.17, 47.8, 282.0, 12.3)

        rate = spec.sample_rate
        designs = {
            "low_lowpass": BiquadCoefficients.make_low_pass(rate, LOW_CROSS, Q),
            "mid_highpass": BiquadCoefficients.make_high_pass(rate, LOW_CROSS, Q),
            "mid_lowpass": BiquadCoefficients.make_low_pass(rate, HIGH_CROSS, Q),
            "high_highpass": BiquadCoefficients.make_high_pass(rate, HIGH_CROSS, Q),
        }
        self._filters = {}
        for name, coefficients in designs.items():
            stages = (IIRFilter(coefficients), IIRFilter(coefficients))
            for stage in stages:
                stage.prepare(spec)
            self._filters[name] = stages

        self._mixer.prepare(spec)
        self._mixer.set_mixing_rule(MixingRule.LINEAR)
        self._spec = spec

    def _filter(self, name: str, block: np.ndarray) -> np.ndarray:
        """Run both cascaded stages, giving a 24 dB/oct slope."""
        for stage in self._filters[name]:
            block = stage.process(block)
        return block

    def process(self, block) -> np.ndarray:
        data = np.asarray(block, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError("audio blocks must be shaped (channels, samples)")
        if not self.enabled:
            return data.copy()
        if self._spec is None:
            raise RuntimeError("OTT has not been prepared")
        if data.shape[0] > self._spec.num_channels:
            raise ValueError("block has more channels than OTT was prepared for")
        if data.shape[1] > self._spec.maximum_block_size:
            raise ValueError("block is longer than the prepared maximum block size")

        scale = self.time / 100.0
        for band, (attack, decay) in _BAND_TIMES.items():
            self._comps[band].update_times(attack * scale, decay * scale)

        low = self._filter("low_lowpass", data)
        mid = self._filter("mid_lowpass", self._filter("mid_highpass", data))
        high = self._filter("high_highpass", data)

        dry = low + mid + high
        wet = (
            self._comps["low"].process(low)
            + self._comps["mid"].process(mid)
            + self._comps["high"].process(high)
        )

        self._mixer.set_wet_mix_proportion(self.mix * 0.01)
        self._mixer.push_dry_samples(dry)
        return self._mixer.mix_wet_samples(wet)


class OTTWithMultiplier:
    """Up to OTT_MULT_AMOUNT OTT stages in series sharing one set of settings."""

    def __init__(self, mix: float = 0.0, time: float = 100.0, enabled: bool = True) -> None:
        self.mix = mix
        self.time = time
        self.enabled = enabled
        self._multiplier = 1
        self._stages = [OTT() for _ in range(OTT_MULT_AMOUNT)]

    @property
    def multiplier(self) -> int:
        return self._multiplier

    @multiplier.setter
    def multiplier(self, value: float) -> None:
        amount = int(value)
        if not 1 <= amount <= OTT_MULT_AMOUNT:
            raise ValueError(f"multiplier must be between 1 and {OTT_MULT_AMOUNT}")
        self._multiplier = amount

    def prepare(self, spec: ProcessSpec) -> None:
        for stage in self._stages:
            stage.prepare(spec)

    def process(self, block) -> np.ndarray:
        data = np.asarray(block, dtype=np.float64)
        for stage in self._stages[: self._multiplier]:
            stage.mix = self.mix
            stage.time = self.time
            stage.enabled = self.enabled
            data = stage.process(data)
        return data