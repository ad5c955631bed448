import xml.etree.ElementTree as ElementTree

import pytest

from lephonk.settings import (
    APPLICATION_NAME,
    FILENAME_SUFFIX,
    HEIGHT,
    MAX_SCALE,
    WIDTH,
    WINDOW_SCALE_ID,
    EditorWindow,
    UserSettings,
    default_settings_path,
)


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "sub" / "test.settings"


def test_round_trip_of_values(settings_path):
    settings = UserSettings(settings_path)
    settings.set("Scale", 1.75)
    settings.set("Skin", 2)
    settings.set("Flag", True)
    settings.set("Name", "hello")
    assert settings.save_if_needed() is True

    reloaded = UserSettings(settings_path)
    assert reloaded.get("Scale", 1.0) == 1.75
    assert reloaded.get("Skin", 0) == 2
    assert reloaded.get("Flag", False) is True
    assert reloaded.get("Name", "") == "hello"


def test_missing_key_returns_default(settings_path):
    settings = UserSettings(settings_path)
    assert settings.get("Nothing", 3) == 3
    assert settings.get("Nothing") is None


def test_save_only_when_changed(settings_path):
    settings = UserSettings(settings_path)
    assert settings.save_if_needed() is False
    assert not settings_path.exists()
    settings.set("A", 1)
    assert settings.save_if_needed() is True
    settings.set("A", 1)
    assert settings.save_if_needed() is False


def test_file_is_properties_xml(settings_path):
    settings = UserSettings(settings_path)
    settings.set("Skin", 1)
    settings.save_if_needed()
    root = ElementTree.parse(settings_path).getroot()
    assert root.tag == "PROPERTIES"
    values = {e.get("name"): e.get("val") for e in root.iter("VALUE")}
    assert values == {"Skin": "1"}


def test_close_saves_and_blocks_further_writes(settings_path):
    with UserSettings(settings_path) as settings:
        settings.set("Key", "value")
    assert UserSettings(settings_path).get("Key") == "value"
    with pytest.raises(RuntimeError):
        settings.set("Key", "other")


def test_malformed_file_is_ignored(settings_path):
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text("not xml <<<")
    assert UserSettings(settings_path).get("Skin", 5) == 5


def test_default_path_names_application():
    path = default_settings_path()
    assert path.name == APPLICATION_NAME + FILENAME_SUFFIX
    assert path.parent.name == "Xynth"


def test_editor_defaults(settings_path):
    window = EditorWindow(UserSettings(settings_path))
    assert window.scale == 1.0
    assert (window.width, window.height) == (WIDTH, HEIGHT)
    assert window.skin == 0


def test_resized_stores_scale(settings_path):
    window = EditorWindow(UserSettings(settings_path))
    scale = window.resized(WIDTH * 2)
    assert scale == 2.0
    assert UserSettings(settings_path).get(WINDOW_SCALE_ID, 1.0) == 2.0
    again = EditorWindow(UserSettings(settings_path))
    assert (again.width, again.height) == (WIDTH * 2, HEIGHT * 2)


def test_constrain_limits_and_aspect(settings_path):
    window = EditorWindow(UserSettings(settings_path))
    assert window.constrain(1, 1) == (WIDTH // 2, HEIGHT // 2)
    assert window.constrain(100000, 5) == (WIDTH * MAX_SCALE, HEIGHT * MAX_SCALE)
    width, height = window.constrain(WIDTH * 3, HEIGHT)
    assert width / height == pytest.approx(WIDTH / HEIGHT, rel=1e-2)