"""
Application constants and configuration.

Layout defaults (watermark size and margin ratios, the text panel region)
live here, along with ImageMagick detection.  Runtime overrides are loaded
from settings.json via the settings module.

The ``config_dir()`` helper returns the platform-appropriate config
directory used by the settings module.
"""

import os
import subprocess
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "watermark-layout"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# WATERMARK DEFAULTS
# =============================================================================
# Fractions of the canvas's shorter side
WATERMARK_SIZE_RATIO = 0.2
WATERMARK_MARGIN_RATIO = 0.05
WATERMARK_OPACITY = 100
WATERMARK_GRAVITY = "SouthEast"

# Base image defaults
BACKGROUND_DEFAULT = "transparent"
BACKGROUND_TRANSPARENT = "rgba(255, 255, 255, 0.0)"
BACKGROUND_OPAQUE = "white"
BASE_GRAVITY = "Center"

# Formats without an alpha channel get an opaque padding colour
FORMATS_WITHOUT_ALPHA = {"jpg", "jpeg", "bmp"}

# =============================================================================
# TEXT PANEL — right-hand translucent box, fractions of canvas width/height
# =============================================================================
TEXT_PANEL_LEFT = 0.6
TEXT_PANEL_RIGHT = 1.0
TEXT_PANEL_TOP = 0.4
TEXT_PANEL_BOTTOM = 0.8
TEXT_PANEL_PADDING = 10

# Font sizes and spacing as fractions of the panel height
TEXT_SMALL_RATIO = 1 / 6
TEXT_LARGE_RATIO = 1 / 4
TEXT_SPACING_RATIO = 1 / 8
TEXT_MAX_LINES = 3

TEXT_COLOR_DEFAULT = "white"
TEXT_PANEL_COLOR_DEFAULT = "rgba(0, 0, 0, 0.5)"

# Canvases shorter than this cannot fit legible text
MIN_TEXT_CANVAS_HEIGHT = 50

# Seconds before an ImageMagick invocation is abandoned
COMMAND_TIMEOUT = 120

# ---------------------------------------------------------------------------
# ImageMagick availability detection
# ---------------------------------------------------------------------------
# v7 uses a single ``magick`` binary; v6 uses ``convert``/``identify`` etc.
HAS_MAGICK = False
MAGICK_VERSION = 0  # Major version (6 or 7)

for _cmd, _ver in [("magick", 7), ("convert", 6)]:
    try:
        _magick_check = subprocess.run(
            [_cmd, "--version"], capture_output=True, timeout=5,
        )
        if _magick_check.returncode == 0:
            HAS_MAGICK = True
            MAGICK_VERSION = _ver
            break
    except (OSError, subprocess.SubprocessError):
        pass


def magick_cmd(*args: str) -> list[str]:
    """Build an ImageMagick command line that works on both v6 and v7.

    Usage examples::

        magick_cmd("identify", "-format", "%w", "file.png")
        # v7 → ["magick", "identify", "-format", "%w", "file.png"]
        # v6 → ["identify", "-format", "%w", "file.png"]

        magick_cmd("in.png", "-resize", "300x200", "out.png")
        # v7 → ["magick", "in.png", "-resize", "300x200", "out.png"]
        # v6 → ["convert", "in.png", "-resize", "300x200", "out.png"]

    When the first arg is a known v6 subcommand (identify, composite, mogrify),
    it's kept as-is for v6 and prefixed with ``magick`` for v7.  Otherwise
    the args are treated as ``convert``/``magick`` arguments.
    """
    _V6_SUBCOMMANDS = {"identify", "composite", "mogrify"}
    args_list = list(args)
    if MAGICK_VERSION >= 7:
        return ["magick"] + args_list
    # v6: first arg may be a subcommand name, or implicit "convert"
    if args_list and args_list[0] in _V6_SUBCOMMANDS:
        return args_list  # e.g. ["identify", ...]
    return ["convert"] + args_list


# Supported input extensions (PSD is read through psd-tools)
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp", ".gif", ".psd"}

# Output format options accepted by the processor
OUTPUT_FORMATS = ["png", "jpg", "jpeg", "webp", "gif", "tiff", "bmp"]
