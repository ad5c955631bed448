"""Le Fonz: a driven rational soft clipper with loudness-compensated output."""

from __future__ import annotations

import numpy as np

from lephonk.filters import ProcessSpec, SmoothedGain
from lephonk.params import decibels_to_gain, jmap
from lephonk.zekete import rational_clip_shaper

_MAX_DRIVE_DB = 36.0
_AVG_GAIN = 0.15


class Fonz:
    """Drives the signal up to 36 dB into a soft clipper, then scales it back down.

    ``amount`` is the drive in percent (0..100); when ``enabled`` is false the
    audio passes through untouched.
    """

    def __init__(self, amount: float = 0.0, enabled: bool = True) -> None:
        self.amount = float(amount)
        self.enabled = enabled
        self._gain_in = SmoothedGain()
        self._gain_out = SmoothedGain()
        self._prepared = False

    def prepare(self, spec: ProcessSpec) -> None:
        for gain in (self._gain_in, self._gain_out):
            gain.prepare(spec)
            gain.set_ramp_duration_seconds(0.005)
        self._prepared = True

    def process(self, block) -> np.ndarray:
        data = np.asarray(block, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError("audio blocks must be shaped (channels, samples)")
        if not self.enabled:
            return data.copy()
        if not self._prepared:
            raise RuntimeError("Fonz has not been prepared")

        intensity_in = decibels_to_gain(jmap(self.amount * 0.01, 0.0, _MAX_DRIVE_DB))
        self._gain_in.set_gain_linear(intensity_in)
        intensity_out = _AVG_GAIN / float(rational_clip_shaper(intensity_in * _AVG_GAIN))
        self._gain_out.set_gain_linear(intensity_out)

        data = self._gain_in.process(data)
        data = rational_clip_shaper(data)
        return self._gain_out.process(data)