"""Colour schemes for the three skins and the manager that switches between them."""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass, replace
from typing import Optional

from lephonk.params import OTT_NAME

SKIN_ID = "Skin"


@dataclass(frozen=True)
class Colour:
    red: int
    green: int
    blue: int
    alpha: int = 255

    def __post_init__(self) -> None:
        for component in (self.red, self.green, self.blue, self.alpha):
            if not 0 <= component <= 255:
                raise ValueError("colour components must be between 0 and 255")

    def with_alpha(self, alpha: float) -> "Colour":
        """A copy with alpha given as a proportion 0..1."""
        return replace(self, alpha=int(round(min(max(alpha, 0.0), 1.0) * 255)))

    @property
    def argb(self) -> int:
        return (self.alpha << 24) | (self.red << 16) | (self.green << 8) | self.blue


WHITE = Colour(255, 255, 255)
GREY = Colour(128, 128, 128)
BLACK = Colour(0, 0, 0)


class Skin(enum.IntEnum):
    HELL = 0
    JUICE = 1
    DRIPPY = 2


class Look:
    """The base look: plain colours and no background image."""

    name = "CustomLook"
    background_image: Optional[str] = None
    accent1 = WHITE
    accent2 = WHITE
    neutral1 = GREY
    base1 = BLACK

    @property
    def section_background(self) -> Colour:
        return BLACK.with_alpha(0.3)


class HellLook(Look):
    name = "HellLook"
    background_image = "hellBG.png"
    accent1 = Colour(210, 82, 74)
    accent2 = accent1
    neutral1 = Colour(64, 45, 44)
    base1 = Colour(27, 16, 15)


class JuiceLook(Look):
    name = "JuiceLook"
    background_image = "juiceBG.png"
    accent1 = Colour(153, 146, 243)
    accent2 = Colour(146, 197, 243)
    neutral1 = Colour(75, 84, 88)
    base1 = Colour(33, 34, 38)


KNOB_IMAGES = (
    "skyKnob.png",
    "peteKnob.png",
    "speechKnob.png",
    "sharkKnob.png",
    "danKnob.png",
    "exylKnob.png",
    "eliKnob.png",
    "au5Knob.png",
)


class DrippyLook(Look):
    """Red skin with picture knobs and a graph image that flashes with the signal."""

    name = "DrippyLook"
    background_image = "drippyBG.png"
    graph_image = "danBG.png"
    accent1 = Colour(255, 14, 0)
    accent2 = accent1
    neutral1 = Colour(64, 45, 44)
    base1 = Colour(27, 16, 15)

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._prev_amp = 0.0
        self._hold = 0
        self.ott_knob_image, self.fonz_knob_image = self.choose_knob_images(rng or random.Random())

    @property
    def section_background(self) -> Colour:
        return Colour(43, 41, 37)

    def choose_knob_images(self, rng: random.Random) -> tuple[str, str]:
        """Pick two different knob pictures at random."""
        first = rng.randrange(len(KNOB_IMAGES))
        second = rng.randrange(len(KNOB_IMAGES) - 1)
        if second >= first:
            second += 1
        self.ott_knob_image = KNOB_IMAGES[first]
        self.fonz_knob_image = KNOB_IMAGES[second]
        return self.ott_knob_image, self.fonz_knob_image

    def knob_image_for(self, description: str) -> str:
        return self.ott_knob_image if description == OTT_NAME else self.fonz_knob_image

    def graph_opacity(self, amplitude: float) -> float:
        """Opacity of the graph image for one frame: peak-hold for 20 frames, then decay."""
        if amplitude > self._prev_amp:
            self._prev_amp = amplitude
            self._hold = 20
        elif self._hold >= 0:
            self._hold -= 1
        else:
            self._prev_amp *= 0.96
        return self._prev_amp * 0.8


class LookManager:
    """Holds one instance of each look and tracks, and remembers, the active one."""

    def __init__(self, settings=None, rng: Optional[random.Random] = None) -> None:
        self.settings = settings
        self.looks: dict[Skin, Look] = {
            Skin.HELL: HellLook(),
            Skin.JUICE: JuiceLook(),
            Skin.DRIPPY: DrippyLook(rng),
        }
        self.current: Look = self.looks[Skin.HELL]

    def update_lnf(self, skin: int) -> Look:
        try:
            choice = Skin(int(skin))
        except ValueError:
            raise ValueError(f"unknown skin index {skin}") from None
        self.current = self.looks[choice]
        if self.settings is not None:
            self.settings.set(SKIN_ID, int(choice))
            self.settings.save_if_needed()
        return self.current