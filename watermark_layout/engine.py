"""
ImageMagick command construction and execution.

Turns layout geometry into ImageMagick argument lists, runs them, and reads
image dimensions with Pillow (psd-tools for PSD files).  All pixel work
happens in the external tool; this module only builds argv lists and
reports failures.
"""

import io
import logging
import shlex
import subprocess
from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

from watermark_layout.config import COMMAND_TIMEOUT, HAS_MAGICK, magick_cmd
from watermark_layout.errors import EngineError
from watermark_layout.models import (
    BaseGeometry,
    LogoGeometry,
    PlacementMode,
    RenderOptions,
    Size,
    TextGeometry,
)

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

_PSD_SIGNATURE = b"8BPS"


# =============================================================================
# Image dimensions
# =============================================================================
def get_image_size(path: Path) -> Size:
    """Get image dimensions without fully loading/compositing."""
    path = Path(path)
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return Size(psd.width, psd.height)
    with Image.open(path) as img:
        return Size(*img.size)


def get_asset_size(data: bytes) -> Size:
    """Get the dimensions of an in-memory asset (e.g. a resolved logo)."""
    if data[:4] == _PSD_SIGNATURE:
        psd = PSDImage.open(io.BytesIO(data))
        return Size(psd.width, psd.height)
    with Image.open(io.BytesIO(data)) as img:
        return Size(*img.size)


# =============================================================================
# Command construction
# =============================================================================
def _output_args(options: RenderOptions) -> list[str]:
    args = []
    if options.strip:
        args.append("-strip")
    if options.quality is not None:
        args += ["-quality", str(options.quality)]
    return args


def base_command(src: Path, dst: Path, base: BaseGeometry, options: RenderOptions | None = None) -> list[str]:
    """Resize ``src`` to exactly the canvas size.

    Fill resizes to cover (``^``) and crops with ``-extent``; Fit resizes to
    contain and pads with the background colour.
    """
    options = options or RenderOptions()
    size = str(base.canvas)
    args = [str(src), *options.extra_args]
    if base.mode is PlacementMode.FILL:
        args += ["-resize", f"{size}^"]
    else:
        args += ["-resize", size, "-background", base.background]
    args += ["-gravity", base.gravity.value, "-extent", size]
    return magick_cmd(*args, *_output_args(options), str(dst))


def logo_command(
    src: Path, logo_path: Path, dst: Path, logo: LogoGeometry, options: RenderOptions | None = None,
) -> list[str]:
    """Composite the scaled logo at its absolute position with the given opacity."""
    options = options or RenderOptions()
    args = [
        str(src),
        "(", str(logo_path), "-resize", f"{logo.size}!", ")",
        "-gravity", "NorthWest",
        "-geometry", f"+{logo.position.x}+{logo.position.y}",
    ]
    if logo.opacity < 100:
        args += ["-compose", "dissolve", "-define", f"compose:args={logo.opacity}"]
    else:
        args += ["-compose", "over"]
    args.append("-composite")
    return magick_cmd(*args, *_output_args(options), str(dst))


def escape_text(content: str) -> str:
    """Make ``content`` literal for ``-annotate``.

    ImageMagick reads a file for text starting with ``@`` and expands
    ``%`` escapes anywhere in the string.
    """
    content = content.replace("\\", "\\\\").replace("%", "%%")
    if content.startswith("@"):
        content = "\\" + content
    return content


def text_command(
    src: Path, dst: Path, text: TextGeometry, options: RenderOptions | None = None,
) -> list[str]:
    """Draw the translucent panel, then annotate each line at its baseline."""
    options = options or RenderOptions()
    panel = text.panel
    args = [
        str(src),
        "-fill", options.panel_color,
        "-draw", f"rectangle {panel.x},{panel.y} {panel.right - 1},{panel.bottom - 1}",
    ]
    if options.font:
        args += ["-font", options.font]
    args += ["-fill", options.text_color]
    for box in text.boxes:
        args += [
            "-pointsize", f"{box.font_size:.2f}",
            "-annotate", f"+{box.x}+{box.y}", escape_text(box.content),
        ]
    return magick_cmd(*args, *_output_args(options), str(dst))


def format_command(src: Path, dst: Path) -> list[str]:
    return magick_cmd(str(src), str(dst))


# =============================================================================
# Execution
# =============================================================================
def run_command(argv: list[str], timeout: int = COMMAND_TIMEOUT) -> None:
    """Run an ImageMagick command, raising EngineError on failure."""
    if not HAS_MAGICK:
        raise EngineError(
            "ImageMagick is required for watermarking.\n"
            "Install from: https://imagemagick.org/"
        )
    logger.debug("Running %s", shlex.join(argv))
    try:
        result = subprocess.run(argv, capture_output=True, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise EngineError(f"ImageMagick timed out after {timeout}s") from exc
    except OSError as exc:
        raise EngineError(f"Could not start ImageMagick: {exc}") from exc
    if result.returncode != 0:
        raise EngineError(f"ImageMagick failed: {result.stderr.decode(errors='replace')}")


def convert_format(
    src: Path, fmt: str, options: RenderOptions | None = None, dst: Path | None = None,
) -> Path:
    """Write ``src`` in another file format and return the new path.

    Without ``dst`` the converted file lands next to ``src``.
    """
    options = options or RenderOptions()
    src = Path(src)
    dst = Path(dst) if dst else src.with_suffix("." + fmt.lower().lstrip("."))
    if dst == src:
        return src
    run_command(format_command(src, dst), options.timeout)
    logger.info("Converted %s to %s", src.name, dst.suffix)
    return dst
