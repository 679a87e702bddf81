"""
Watermark processor: the entry point an attachment library calls.

A ``Watermark`` is bound to one ``Operation``.  Calling it with a file and
canvas dimensions computes the layout, then runs the ImageMagick commands
that realise it.  Logos are fetched through an injected asset resolver, and
command customisation goes through ``RenderOptions``.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable

from watermark_layout.config import (
    BACKGROUND_DEFAULT,
    BASE_GRAVITY,
    IMAGE_EXTENSIONS,
    OUTPUT_FORMATS,
)
from watermark_layout.engine import (
    base_command,
    convert_format,
    get_asset_size,
    get_image_size,
    logo_command,
    run_command,
    text_command,
)
from watermark_layout.layout import compute_layout
from watermark_layout.models import (
    LayoutResult,
    Operation,
    RenderOptions,
    Size,
    TextLine,
    default_text_lines,
)
from watermark_layout.settings import DEFAULT_SETTINGS, text_panel, watermark_spec

logger = logging.getLogger(__name__)

AssetResolver = Callable[[str], bytes]


class DirectoryAssetResolver:
    """Resolve logical asset names to files under a root directory."""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def __call__(self, name: str) -> bytes:
        path = (self.root / name).resolve()
        if self.root not in path.parents:
            raise FileNotFoundError(f"asset {name!r} is outside {self.root}")
        if not path.is_file():
            raise FileNotFoundError(f"asset {name!r} not found in {self.root}")
        return path.read_bytes()


def _text_lines(text) -> tuple[TextLine, ...]:
    """Three plain strings get the default small/small/large layout."""
    lines = tuple(text)
    if len(lines) == 3 and all(isinstance(line, str) for line in lines):
        return default_text_lines(*lines)
    return tuple(line if isinstance(line, TextLine) else TextLine(str(line)) for line in lines)


class Watermark:
    """Processor for one watermark operation.

    ``resolve_asset`` maps a logo name to its bytes and is only needed for
    the watermark-image operations.  ``settings`` defaults to the built-in
    defaults; pass ``load_settings()`` to honour the user's settings file.
    """

    def __init__(
        self,
        operation: Operation | str,
        resolve_asset: AssetResolver | None = None,
        options: RenderOptions | None = None,
        settings: dict | None = None,
    ):
        self.operation = Operation.parse(operation)
        self.resolve_asset = resolve_asset
        self.options = options or RenderOptions()
        self.settings = settings or DEFAULT_SETTINGS

    def layout(
        self,
        canvas: Size,
        source_size: Size | None = None,
        logo_size: Size | None = None,
        *,
        background: str = BACKGROUND_DEFAULT,
        gravity: str = BASE_GRAVITY,
        text=(),
        fmt: str | None = None,
        **watermark_overrides,
    ) -> LayoutResult:
        """Compute the layout this processor would render, without touching files."""
        spec = None
        if logo_size is not None:
            spec = watermark_spec(self.settings, logo_size, **watermark_overrides)
        return compute_layout(
            self.operation,
            canvas,
            source_size=source_size,
            watermark=spec,
            text_lines=_text_lines(text),
            background=background,
            gravity=gravity,
            panel=text_panel(self.settings),
            fmt=fmt,
        )

    def __call__(
        self,
        path: Path,
        width: int,
        height: int,
        *,
        format: str | None = None,
        background: str = BACKGROUND_DEFAULT,
        gravity: str = BASE_GRAVITY,
        logo: str | None = None,
        text=(),
        output: Path | None = None,
        **watermark_overrides,
    ) -> Path:
        """Process ``path`` and return the path of the result.

        Without ``output`` the file is rewritten in place (or, when
        ``format`` is given, written next to it with the new extension).
        With both, the intermediate conversion goes to a temporary file and
        nothing is written beside the input.
        """
        src = Path(path)
        if src.suffix.lower() not in IMAGE_EXTENSIONS:
            raise ValueError(f"unsupported image type {src.suffix or src.name!r}")
        if format and format.lower().lstrip(".") not in OUTPUT_FORMATS:
            raise ValueError(
                f"unsupported output format {format!r}; choose from {', '.join(OUTPUT_FORMATS)}"
            )
        canvas = Size(width, height)

        if not format:
            dst = Path(output) if output else src
            return self._render(src, dst, canvas, background, gravity, logo, text, watermark_overrides)
        if not output:
            src = convert_format(src, format, self.options)
            return self._render(src, src, canvas, background, gravity, logo, text, watermark_overrides)

        fd, tmp_name = tempfile.mkstemp(suffix="." + format.lower().lstrip("."))
        os.close(fd)
        try:
            converted = convert_format(src, format, self.options, dst=Path(tmp_name))
            return self._render(
                converted, Path(output), canvas, background, gravity, logo, text, watermark_overrides,
            )
        finally:
            os.unlink(tmp_name)

    def _render(self, src, dst, canvas, background, gravity, logo, text, watermark_overrides) -> Path:
        source_size = get_image_size(src)

        logo_data = None
        logo_size = None
        logo_name = None
        if self.operation in (Operation.FILL_WATERMARK_IMAGE, Operation.FIT_WATERMARK_IMAGE):
            if self.resolve_asset is None:
                raise ValueError(f"{self.operation.value} needs an asset resolver")
            logo_name = logo or self.settings["logo"]
            logo_data = self.resolve_asset(logo_name)
            logo_size = get_asset_size(logo_data)

        result = self.layout(
            canvas, source_size, logo_size,
            background=background, gravity=gravity, text=text,
            fmt=dst.suffix or None, **watermark_overrides,
        )

        timeout = self.options.timeout
        run_command(base_command(src, dst, result.base, self.options), timeout)

        if result.logo is not None:
            suffix = Path(logo_name).suffix or ".png"
            fd, tmp_name = tempfile.mkstemp(suffix=suffix)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(logo_data)
                run_command(logo_command(dst, Path(tmp_name), dst, result.logo, self.options), timeout)
            finally:
                os.unlink(tmp_name)

        if result.text is not None:
            run_command(text_command(dst, dst, result.text, self.options), timeout)

        logger.info("Applied %s to %s (%s)", self.operation.value, src.name, canvas)
        return dst
