"""Persistent user settings and the editor window's scale handling."""

from __future__ import annotations

import os
import re
import sys
import xml.etree.ElementTree as ElementTree
from pathlib import Path
from typing import Any, Optional

APPLICATION_NAME = "LePhonk"
FILENAME_SUFFIX = ".settings"
FOLDER_NAME = "Xynth"

WIDTH = 400
HEIGHT = 824
MAX_SCALE = 4
WINDOW_SCALE_ID = "WindowScale"
SKIN_ID = "Skin"

_ROOT_TAG = "PROPERTIES"
_VALUE_TAG = "VALUE"
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def default_settings_path() -> Path:
    """Where the per-user settings file lives on this platform."""
    filename = APPLICATION_NAME + FILENAME_SUFFIX
    home = Path.home()
    if sys.platform == "darwin":
        base = home / "Library" / "Application Support"
    elif sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
    else:
        base = home / ".config"
    return base / FOLDER_NAME / filename


def _parse_int(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return repr(value)
    return str(value)


class UserSettings:
    """Key/value settings stored as an XML properties file.

    Values are kept as text; ``get`` converts them to the type of the default given.
    """

    def __init__(self, path: os.PathLike | str | None = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()
        self._values: dict[str, str] = {}
        self._dirty = False
        self._closed = False
        self._load()

    def _load(self) -> None:
        if not self.path.is_file():
            return
        try:
            root = ElementTree.parse(self.path).getroot()
        except ElementTree.ParseError:
            return
        if root.tag != _ROOT_TAG:
            return
        for element in root.iter(_VALUE_TAG):
            name = element.get("name")
            if name is not None:
                self._values[name] = element.get("val", "")

    def __enter__(self) -> "UserSettings":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str, default: Any = None) -> Any:
        """The stored value, converted to the type of ``default`` when one is given."""
        text = self._values.get(key)
        if text is None:
            return default
        if default is None or isinstance(default, str):
            return text
        if isinstance(default, bool):
            number = _parse_int(text)
            return (number is not None and number != 0) or text.strip().lower() == "true"
        if isinstance(default, int):
            number = _parse_int(text)
            return default if number is None else number
        if isinstance(default, float):
            try:
                return float(text)
            except ValueError:
                return default
        return text

    def set(self, key: str, value: Any) -> None:
        if self._closed:
            raise RuntimeError("settings have been closed")
        text = _to_text(value)
        if self._values.get(key) != text:
            self._values[key] = text
            self._dirty = True

    def save_if_needed(self) -> bool:
        """Write the file if anything changed; returns whether it was written."""
        if not self._dirty:
            return False
        root = ElementTree.Element(_ROOT_TAG)
        for name, text in self._values.items():
            ElementTree.SubElement(root, _VALUE_TAG, {"name": name, "val": text})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        ElementTree.ElementTree(root).write(self.path, encoding="UTF-8", xml_declaration=True)
        self._dirty = False
        return True

    def close(self) -> None:
        if not self._closed:
            self.save_if_needed()
            self._closed = True


class EditorWindow:
    """Tracks the editor's size, keeping its aspect ratio and storing its scale."""

    def __init__(self, settings: UserSettings) -> None:
        self.settings = settings
        self.scale = float(settings.get(WINDOW_SCALE_ID, 1.0))
        self.width = int(WIDTH * self.scale)
        self.height = int(HEIGHT * self.scale)
        self.skin = int(settings.get(SKIN_ID, 0))

    @property
    def aspect_ratio(self) -> float:
        return WIDTH / HEIGHT

    def resized(self, width: int) -> float:
        """Derive and store the scale for a new window width."""
        self.scale = width / WIDTH
        self.width = int(width)
        self.height = int(round(HEIGHT * self.scale))
        self.settings.set(WINDOW_SCALE_ID, self.scale)
        self.settings.save_if_needed()
        return self.scale

    def constrain(self, width: int, height: int) -> tuple[int, int]:
        """The nearest allowed size: fixed aspect ratio, between half and MAX_SCALE times."""
        scale = max(width / WIDTH, height / HEIGHT)
        scale = min(max(scale, 0.5), float(MAX_SCALE))
        return int(round(WIDTH * scale)), int(round(HEIGHT * scale))