"""Combined upward/downward compressor driven by an RMS envelope follower."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from lephonk.filters import BallisticsFilter, ProcessSpec
from lephonk.params import decibels_to_gain

LOUDNESS_CUTOFF = 0.000015849  # -96 dB


@dataclass
class CompParams:
    """Threshold (linear), its inverse, and the inverse of the ratio."""

    thresh: float = 1.0
    inv_thresh: float = 1.0
    inv_ratio: float = 1.0

    @classmethod
    def from_decibels(cls, thresh_db: float, ratio: float) -> "CompParams":
        thresh = decibels_to_gain(thresh_db)
        if thresh == 0.0:
            raise ValueError("threshold must be above -100 dB")
        if ratio == 0.0:
            raise ValueError("ratio must not be zero")
        return cls(thresh=thresh, inv_thresh=1.0 / thresh, inv_ratio=1.0 / ratio)


class UpDownComp:
    """Compresses above one threshold and expands quiet material below another."""

    def __init__(self) -> None:
        self.envelope = BallisticsFilter(rms=True)
        self.spike_remover_env = BallisticsFilter(rms=True)
        self.params_down = CompParams()
        self.params_up = CompParams()
        self.out_gain = 1.0
        self._num_channels = 0

    def prepare(self, spec: ProcessSpec) -> None:
        self.envelope.prepare(spec)
        self.spike_remover_env.prepare(spec)
        self._num_channels = spec.num_channels

    def process(self, block) -> np.ndarray:
        """Run every sample of a (channels, samples) block through the compressor."""
        data = np.asarray(block, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError("audio blocks must be shaped (channels, samples)")
        if self._num_channels == 0:
            raise RuntimeError("compressor has not been prepared")
        if data.shape[0] > self._num_channels:
            raise ValueError("block has more channels than the compressor was prepared for")
        out = np.empty_like(data)
        for channel, samples in enumerate(data):
            out[channel] = [self.process_sample(channel, sample) for sample in samples]
        return out

    def update(
        self,
        down_thresh: float,
        down_ratio: float,
        up_thresh: float,
        up_ratio: float,
        attack: float,
        decay: float,
        gain: float,
    ) -> None:
        """Set thresholds (dB), ratios, attack and decay (ms) and output gain (dB)."""
        self.params_down = CompParams.from_decibels(down_thresh, down_ratio)
        self.params_up = CompParams.from_decibels(up_thresh, up_ratio)
        self.update_times(attack, decay)
        self.out_gain = decibels_to_gain(gain)

    def update_times(self, attack: float, decay: float) -> None:
        """Set attack and decay times in milliseconds."""
        self.envelope.set_attack_time(attack * 0.5)
        self.envelope.set_release_time(decay)
        self.spike_remover_env.set_attack_time(decay * 2.0)
        self.spike_remover_env.set_release_time(decay)

    def process_sample(self, channel: int, sample: float) -> float:
        sample = float(sample)
        env = self.envelope.process_sample(channel, sample)

        # Softens the jump in upward gain when sound starts after silence.
        spike_remover = self.spike_remover_env.process_sample(
            channel, float(sample > LOUDNESS_CUTOFF)
        )
        spike_remover = min(spike_remover, 0.5) * 2.0

        down = self.params_down
        up = self.params_up
        gain = 1.0
        if env > down.thresh:
            gain = math.pow(env * down.inv_thresh, down.inv_ratio - 1.0)
        elif LOUDNESS_CUTOFF < env < up.thresh:
            gain = math.pow(env * up.inv_thresh, up.inv_ratio - 1.0)
            gain = 1.0 + spike_remover * (gain - 1.0)

        return sample * gain * self.out_gain