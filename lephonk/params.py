"""Parameter identifiers, value ranges, mapping helpers and value-to-text formatters."""

from __future__ import annotations

import math
from typing import Callable, Optional

ZEKETE_ID = "zekete"
ZEKETE_NAME = "Zekete"
ZEKETE_MAX_DB = 36.0

ZEKETE_MIX_ID = "zeketeMix"
ZEKETE_MIX_NAME = "Zekete Dry/Wet"

OTT_ID = "ott"
OTT_NAME = "Le Ottz"

OTT_TIME_ID = "ottTime"
OTT_TIME_NAME = "Le Ottz Time"

OTT_MULT_ID = "ottMult"
OTT_MULT_NAME = "Le Ottz Multiplier"
OTT_MULT_AMOUNT = 5

OTT_ENABLE_ID = "ottEnable"
OTT_ENABLE_NAME = "Le Ottz Enabled"

FONZ_ID = "fonz"
FONZ_NAME = "Le Fonz"

FONZ_ENABLE_ID = "fonzEnable"
FONZ_ENABLE_NAME = "Le Fonz Enabled"

ENABLE_ID = "enable"
ENABLE_NAME = "Enabled"

GAIN_ID = "gain"
GAIN_NAME = "Output Gain"
GAIN_MIN = -36.0
GAIN_MAX = 12.0

DIST_SELECT_ID = "distSelect"
DIST_SELECT_NAME = "Zekete Type"

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

_MINUS_INFINITY_DB = -100.0

RangeFunction = Callable[[float, float, float], float]


def jmap(value: float, target_min: float, target_max: float) -> float:
    """Map a 0..1 proportion linearly onto target_min..target_max."""
    return target_min + value * (target_max - target_min)


def map_to_log10(value: float, low: float, high: float) -> float:
    """Map a 0..1 proportion onto a logarithmic scale between low and high."""
    return low * math.pow(10.0, math.log10(high / low) * value)


def map_from_log10(value: float, low: float, high: float) -> float:
    """Inverse of map_to_log10: value on the log scale back to 0..1."""
    log_min = math.log10(low)
    return (math.log10(value) - log_min) / (math.log10(high) - log_min)


def decibels_to_gain(decibels: float) -> float:
    """Convert decibels to a linear gain; -100 dB and below count as silence."""
    if decibels > _MINUS_INFINITY_DB:
        return math.pow(10.0, decibels * 0.05)
    return 0.0


class NormalisableRange:
    """A value range with an optional skew or custom mapping to and from 0..1."""

    def __init__(
        self,
        start: float,
        end: float,
        convert_from: Optional[RangeFunction] = None,
        convert_to: Optional[RangeFunction] = None,
    ) -> None:
        if end <= start:
            raise ValueError("range end must be greater than its start")
        self.start = float(start)
        self.end = float(end)
        self.skew = 1.0
        self._convert_from = convert_from
        self._convert_to = convert_to

    def set_skew_for_centre(self, centre: float) -> None:
        """Choose the skew so that 0.5 maps onto the given centre value."""
        if not self.start < centre < self.end:
            raise ValueError("centre must lie strictly inside the range")
        self.skew = math.log(0.5) / math.log((centre - self.start) / (self.end - self.start))

    def convert_from_0to1(self, proportion: float) -> float:
        proportion = min(max(proportion, 0.0), 1.0)
        if self._convert_from is not None:
            return self._convert_from(self.start, self.end, proportion)
        if self.skew != 1.0 and proportion > 0.0:
            proportion = math.exp(math.log(proportion) / self.skew)
        return self.start + (self.end - self.start) * proportion

    def convert_to_0to1(self, value: float) -> float:
        if self._convert_to is not None:
            return min(max(self._convert_to(self.start, self.end, value), 0.0), 1.0)
        proportion = min(max((value - self.start) / (self.end - self.start), 0.0), 1.0)
        if self.skew == 1.0:
            return proportion
        return math.pow(proportion, self.skew)


def create_range(min_val: float, max_val: float, mid_val: float) -> NormalisableRange:
    """A range skewed so that its midpoint sits at mid_val."""
    value_range = NormalisableRange(min_val, max_val)
    value_range.set_skew_for_centre(mid_val)
    return value_range


def create_frequency_range(min_freq: float, max_freq: float) -> NormalisableRange:
    """A logarithmic frequency range."""
    return NormalisableRange(
        min_freq,
        max_freq,
        convert_from=lambda start, end, v: map_to_log10(v, start, end),
        convert_to=lambda start, end, v: map_from_log10(v, start, end),
    )


def create_ratio_range() -> NormalisableRange:
    """Compression ratio range 1..20 centred on 4."""
    return create_range(1.0, 20.0, 4.0)


def frequency_as_text(value: float, max_length: int = 2) -> str:
    if value >= 1000.0:
        return f"{value / 1000.0:.2f} kHz"
    return f"{value:.2f} Hz"


def ms_as_text(value: float, max_length: int = 2) -> str:
    if value >= 1000.0:
        return f"{value / 1000.0:.2f} s"
    return f"{value:.2f} ms"


def value_as_text(value: float, max_length: int = 2) -> str:
    return f"{value:.2f}"


def midi_value_as_note_name(value: float, max_length: int = 2) -> str:
    """Name a MIDI note number, e.g. 60 -> 'C5'."""
    note = int(value)
    if note < 0:
        raise ValueError("MIDI note numbers cannot be negative")
    return f"{NOTE_NAMES[note % 12]}{note // 12}"