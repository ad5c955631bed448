"""Phonk-style audio effect stages (distortion, multiband compression, saturation) on NumPy blocks, with skins, settings and an update checker."""

__version__ = "1.0.0"