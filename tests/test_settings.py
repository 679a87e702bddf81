import json
from copy import deepcopy

import pytest

from watermark_layout import settings as settings_mod
from watermark_layout.models import Gravity, Size, TextPanel


def _path():
    return settings_mod._settings_path()


def test_missing_file_writes_defaults():
    data = settings_mod.load_settings()
    assert data == settings_mod.DEFAULT_SETTINGS
    envelope = json.loads(_path().read_text(encoding="utf-8"))
    assert envelope["version"] == 1
    assert envelope["settings"]["gravity"] == "SouthEast"


def test_round_trip():
    data = deepcopy(settings_mod.DEFAULT_SETTINGS)
    data["opacity_percent"] = 70
    data["panel"]["left"] = 0.5
    settings_mod.save_settings(data)
    assert settings_mod.load_settings() == data


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps({"settings": {}}),
    json.dumps({"version": 1, "settings": {"size_ratio": 0.2}}),
])
def test_corrupt_file_restores_defaults(content):
    path = _path()
    path.write_text(content, encoding="utf-8")
    assert settings_mod.load_settings() == settings_mod.DEFAULT_SETTINGS
    assert json.loads(path.read_text(encoding="utf-8"))["settings"] == settings_mod.DEFAULT_SETTINGS


def test_invalid_values_restore_defaults():
    data = deepcopy(settings_mod.DEFAULT_SETTINGS)
    data["size_ratio"] = 3
    _path().write_text(json.dumps({"version": 1, "settings": data}), encoding="utf-8")
    assert settings_mod.load_settings() == settings_mod.DEFAULT_SETTINGS


@pytest.mark.parametrize("key, value, fragment", [
    ("size_ratio", 0, "size_ratio"),
    ("margin_ratio", 1.5, "margin_ratio"),
    ("gravity", "Up", "gravity"),
    ("logo", "", "logo"),
    ("font", 12, "font"),
    ("panel", {"left": 0.9, "right": 0.1, "top": 0.4, "bottom": 0.8, "padding": 10}, "panel"),
    ("panel", {"width": 3}, "panel"),
])
def test_validate_reports_errors(key, value, fragment):
    data = deepcopy(settings_mod.DEFAULT_SETTINGS)
    data[key] = value
    errors = settings_mod.validate_settings(data)
    assert errors
    assert any(fragment in e for e in errors)


def test_validate_missing_keys():
    errors = settings_mod.validate_settings({"gravity": "Center"})
    assert len(errors) == 1
    assert errors[0].startswith("missing keys:")


def test_save_rejects_invalid():
    with pytest.raises(ValueError, match="Invalid settings"):
        settings_mod.save_settings({"size_ratio": 0.2})


def test_conversions():
    data = deepcopy(settings_mod.DEFAULT_SETTINGS)
    spec = settings_mod.watermark_spec(data, Size(50, 50), gravity="NorthWest", opacity_percent=None)
    assert spec.gravity is Gravity.NORTH_WEST
    assert spec.opacity_percent == 100
    assert settings_mod.text_panel(data) == TextPanel()
    options = settings_mod.render_options(data, quality=80, font=None)
    assert options.quality == 80
    assert options.font is None
