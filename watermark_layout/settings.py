"""
Settings persistence: load, save, and validate watermark defaults.

Runtime settings are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``).  On first use (or if the file is
missing/corrupt), the file is created from DEFAULT_SETTINGS.

The on-disk format uses a versioned envelope::

    {"version": 1, "settings": { ... }}

Helpers at the bottom turn a settings dict into the layout input types.
"""

import json
import logging
from copy import deepcopy
from pathlib import Path

from watermark_layout.config import (
    TEXT_COLOR_DEFAULT,
    TEXT_PANEL_BOTTOM,
    TEXT_PANEL_COLOR_DEFAULT,
    TEXT_PANEL_LEFT,
    TEXT_PANEL_PADDING,
    TEXT_PANEL_RIGHT,
    TEXT_PANEL_TOP,
    WATERMARK_GRAVITY,
    WATERMARK_MARGIN_RATIO,
    WATERMARK_OPACITY,
    WATERMARK_SIZE_RATIO,
    config_dir,
)
from watermark_layout.errors import LayoutError
from watermark_layout.models import RenderOptions, Size, TextPanel, WatermarkSpec

logger = logging.getLogger(__name__)

_SETTINGS_FILENAME = "settings.json"
_FORMAT_VERSION = 1

DEFAULT_SETTINGS = {
    "size_ratio": WATERMARK_SIZE_RATIO,
    "margin_ratio": WATERMARK_MARGIN_RATIO,
    "opacity_percent": WATERMARK_OPACITY,
    "gravity": WATERMARK_GRAVITY,
    "logo": "watermark.png",
    "panel": {
        "left": TEXT_PANEL_LEFT,
        "right": TEXT_PANEL_RIGHT,
        "top": TEXT_PANEL_TOP,
        "bottom": TEXT_PANEL_BOTTOM,
        "padding": TEXT_PANEL_PADDING,
    },
    "text_color": TEXT_COLOR_DEFAULT,
    "panel_color": TEXT_PANEL_COLOR_DEFAULT,
    "font": None,
}

_REQUIRED_KEYS = set(DEFAULT_SETTINGS)
_STRING_KEYS = ("gravity", "logo", "text_color", "panel_color")


# =============================================================================
# Validation
# =============================================================================
def validate_settings(data: object) -> list[str]:
    """
    Validate a settings dict.

    Returns a list of error strings (empty means valid).  Range checks are
    delegated to the model constructors so the rules live in one place.
    """
    errors: list[str] = []

    if not isinstance(data, dict):
        errors.append("Settings must be a dict")
        return errors

    missing = _REQUIRED_KEYS - data.keys()
    if missing:
        errors.append(f"missing keys: {', '.join(sorted(missing))}")
        return errors

    for key in _STRING_KEYS:
        val = data.get(key)
        if not isinstance(val, str) or not val.strip():
            errors.append(f"{key} must be a non-empty string, got {val!r}")

    font = data.get("font")
    if font is not None and (not isinstance(font, str) or not font.strip()):
        errors.append(f"font must be null or a non-empty string, got {font!r}")

    try:
        watermark_spec(data, Size(1, 1))
    except LayoutError as exc:
        errors.append(f"watermark: {exc}")

    panel = data.get("panel")
    if not isinstance(panel, dict):
        errors.append("panel must be a dict")
    else:
        try:
            text_panel(data)
        except (LayoutError, TypeError) as exc:
            errors.append(f"panel: {exc}")

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def _settings_path() -> Path:
    """Return the full path to settings.json."""
    return config_dir() / _SETTINGS_FILENAME


def load_settings() -> dict:
    """
    Load settings from settings.json.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _settings_path()

    if not path.exists():
        logger.info("settings.json not found — creating with defaults at %s", path)
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read settings.json (%s) — restoring defaults", exc)
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "settings" not in raw:
        logger.warning("settings.json missing version envelope — restoring defaults")
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    data = raw["settings"]
    errors = validate_settings(data)
    if errors:
        logger.warning(
            "settings.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    return data


def save_settings(settings: dict) -> None:
    """
    Validate and write settings to settings.json in versioned envelope.

    Raises ValueError if validation fails.
    Raises OSError if the file cannot be written.
    """
    errors = validate_settings(settings)
    if errors:
        raise ValueError("Invalid settings:\n  " + "\n  ".join(errors))

    envelope = {"version": _FORMAT_VERSION, "settings": settings}
    path = _settings_path()
    path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved settings to %s", path)


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_SETTINGS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "settings": deepcopy(DEFAULT_SETTINGS)}
        path.write_text(
            json.dumps(envelope, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.error("Could not write default settings to %s: %s", path, exc)


# =============================================================================
# Conversions
# =============================================================================
def watermark_spec(settings: dict, logo_size: Size, **overrides) -> WatermarkSpec:
    """Build a WatermarkSpec from settings, letting keyword overrides win."""
    values = {
        "size_ratio": settings["size_ratio"],
        "margin_ratio": settings["margin_ratio"],
        "opacity_percent": settings["opacity_percent"],
        "gravity": settings["gravity"],
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return WatermarkSpec(logo_size, **values)


def text_panel(settings: dict) -> TextPanel:
    return TextPanel(**settings["panel"])


def render_options(settings: dict, **overrides) -> RenderOptions:
    values = {
        "font": settings.get("font"),
        "text_color": settings["text_color"],
        "panel_color": settings["panel_color"],
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return RenderOptions(**values)
