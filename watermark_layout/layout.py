"""
Layout calculator: pure geometry for base images, logos and overlay text.

Nothing here touches pixels or files.  Every function validates its input,
then returns frozen geometry that the engine turns into ImageMagick
arguments.  Offsets are measured from the gravity's edges, the same way
ImageMagick's ``-gravity``/``-geometry`` pair reads them; absolute positions
are clamped so overlays never leave the canvas.
"""

import logging
import math
from dataclasses import replace

from watermark_layout.config import (
    BACKGROUND_DEFAULT,
    BACKGROUND_OPAQUE,
    BACKGROUND_TRANSPARENT,
    FORMATS_WITHOUT_ALPHA,
    MIN_TEXT_CANVAS_HEIGHT,
    TEXT_MAX_LINES,
    TEXT_SPACING_RATIO,
)
from watermark_layout.errors import InvalidDimension, LayoutError, TextOverflow
from watermark_layout.models import (
    BaseGeometry,
    Gravity,
    LayoutResult,
    LogoGeometry,
    Operation,
    PlacementMode,
    Point,
    Rect,
    Size,
    TextBox,
    TextGeometry,
    TextLine,
    TextPanel,
    WatermarkSpec,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================
def resolve_background(background: str = BACKGROUND_DEFAULT, fmt: str | None = None) -> str:
    """Map ``"transparent"`` to an ImageMagick colour, or to white for formats without alpha."""
    if background != "transparent":
        return background
    if fmt and fmt.lower().lstrip(".") in FORMATS_WITHOUT_ALPHA:
        return BACKGROUND_OPAQUE
    return BACKGROUND_TRANSPARENT


def _axis(direction: int, outer: int, inner: int, offset: int) -> int:
    """Place ``inner`` within ``outer`` along one axis, clamped to stay inside."""
    if direction < 0:
        pos = offset
    elif direction > 0:
        pos = outer - inner - offset
    else:
        pos = (outer - inner) // 2 + offset
    return max(0, min(pos, outer - inner))


def anchor_position(gravity: Gravity, outer: Size, inner: Size, offset: Point = Point()) -> Point:
    """Top-left corner of ``inner`` anchored at ``gravity`` inside ``outer``.

    On a centered axis the offset shifts ``inner`` right or down, as
    ImageMagick does.  ``inner`` must not be larger than ``outer``.
    """
    return Point(
        _axis(gravity.horizontal, outer.width, inner.width, offset.x),
        _axis(gravity.vertical, outer.height, inner.height, offset.y),
    )


def contain(source: Size, box: Size) -> Size:
    """Largest size with ``source``'s aspect ratio that fits inside ``box``."""
    scale = min(box.width / source.width, box.height / source.height)
    return Size(
        max(1, min(box.width, int(round(source.width * scale)))),
        max(1, min(box.height, int(round(source.height * scale)))),
    )


def cover(source: Size, box: Size) -> Size:
    """Smallest size with ``source``'s aspect ratio that covers ``box``."""
    scale = max(box.width / source.width, box.height / source.height)
    return Size(
        max(box.width, int(round(source.width * scale))),
        max(box.height, int(round(source.height * scale))),
    )


def _check_canvas(canvas: Size) -> None:
    if not isinstance(canvas, Size):
        raise InvalidDimension(f"canvas must be a Size, got {canvas!r}")


# =============================================================================
# Base image
# =============================================================================
def compute_fill_base(
    canvas: Size,
    background: str = BACKGROUND_DEFAULT,
    gravity: Gravity | str = Gravity.CENTER,
    source_size: Size | None = None,
    mode: PlacementMode = PlacementMode.FILL,
    fmt: str | None = None,
) -> BaseGeometry:
    """Geometry that turns a source image into exactly ``canvas`` pixels.

    Fill covers the canvas and crops the overflow; Fit contains the source
    and pads the remainder with ``background``.  Either way the result is
    anchored at ``gravity``.
    """
    _check_canvas(canvas)
    gravity = Gravity.parse(gravity)
    mode = PlacementMode(mode)
    bg = resolve_background(background, fmt)

    if source_size is None:
        return BaseGeometry(mode, canvas, bg, gravity)

    if mode is PlacementMode.FILL:
        scaled = cover(source_size, canvas)
        origin = anchor_position(gravity, scaled, canvas)
        crop = Rect(origin.x, origin.y, canvas.width, canvas.height)
        return BaseGeometry(mode, canvas, bg, gravity, scaled=scaled, crop=crop)

    scaled = contain(source_size, canvas)
    placement = anchor_position(gravity, canvas, scaled)
    return BaseGeometry(mode, canvas, bg, gravity, scaled=scaled, placement=placement)


def compute_fit_base(
    canvas: Size,
    background: str = BACKGROUND_DEFAULT,
    gravity: Gravity | str = Gravity.CENTER,
    source_size: Size | None = None,
    fmt: str | None = None,
) -> BaseGeometry:
    """Scale to fit inside ``canvas`` and pad the rest."""
    return compute_fill_base(canvas, background, gravity, source_size, PlacementMode.FIT, fmt)


# =============================================================================
# Logo
# =============================================================================
def _fit_logo_size(logo: Size, limit: int) -> Size:
    """Scale ``logo`` into a ``limit`` x ``limit`` square, preserving aspect ratio."""
    if logo.width >= logo.height:
        return Size(limit, max(1, min(limit, int(round(logo.height * limit / logo.width)))))
    return Size(max(1, min(limit, int(round(logo.width * limit / logo.height)))), limit)


def compute_logo_overlay(canvas: Size, watermark: WatermarkSpec) -> LogoGeometry:
    """Size and position of a logo composited onto ``canvas``.

    Fill keeps the logo's native size (shrunk only when it is larger than
    the canvas) and offsets it by the pixel margins.  Fit bounds the logo to
    ``size_ratio`` of the canvas's shorter side and offsets it by
    ``margin_ratio`` of the same.
    """
    _check_canvas(canvas)
    gravity = watermark.anchor
    logo = watermark.asset_intrinsic_size

    if watermark.mode is PlacementMode.FILL:
        if logo.width > canvas.width or logo.height > canvas.height:
            logo = contain(logo, canvas)
        offset = Point(watermark.horizontal_margin, watermark.vertical_margin)
        margin = None
    else:
        shorter = canvas.shorter_side
        limit = int(shorter * watermark.size_ratio)
        if limit < 1:
            raise InvalidDimension(
                f"watermark limit is below one pixel for a {canvas} canvas "
                f"at size_ratio {watermark.size_ratio}"
            )
        logo = _fit_logo_size(logo, limit)
        margin = shorter * watermark.margin_ratio
        # Half-pixel margins round up
        px = math.floor(margin + 0.5)
        offset = Point(px, px)

    position = anchor_position(gravity, canvas, logo, offset)
    return LogoGeometry(logo, gravity, offset, position, margin, watermark.opacity_percent)


# =============================================================================
# Text
# =============================================================================
def compute_text_overlay(
    canvas: Size,
    text_lines,
    gravity: Gravity | str = Gravity.CENTER,
    panel: TextPanel | None = None,
) -> TextGeometry:
    """Panel rectangle and baseline positions for up to three lines of text.

    The panel fractions describe a south-east leaning box; a west or north
    gravity mirrors it to the opposite side of that axis.

    Lines are stacked upward from the panel bottom in reverse order, so the
    last line sits lowest.  Margin and spacing are an eighth of the panel
    height; font sizes scale with it.
    """
    _check_canvas(canvas)
    if canvas.height < MIN_TEXT_CANVAS_HEIGHT:
        raise InvalidDimension(
            f"text needs a canvas at least {MIN_TEXT_CANVAS_HEIGHT}px tall, got {canvas}"
        )
    gravity = Gravity.parse(gravity)
    panel = panel or TextPanel()
    lines = [line if isinstance(line, TextLine) else TextLine(str(line)) for line in text_lines]
    if len(lines) > TEXT_MAX_LINES:
        raise TextOverflow(f"at most {TEXT_MAX_LINES} text lines fit the panel, got {len(lines)}")

    left_f, right_f = panel.left, panel.right
    if gravity.horizontal < 0:
        left_f, right_f = 1 - panel.right, 1 - panel.left
    top_f, bottom_f = panel.top, panel.bottom
    if gravity.vertical < 0:
        top_f, bottom_f = 1 - panel.bottom, 1 - panel.top

    left = int(round(canvas.width * left_f))
    right = int(round(canvas.width * right_f))
    top = int(round(canvas.height * top_f))
    bottom = int(round(canvas.height * bottom_f))
    box_height = bottom - top
    if box_height < 1 or right - left < 1:
        raise InvalidDimension(f"text panel is empty on a {canvas} canvas")
    rect = Rect(left, top, right - left, box_height)

    spacing = box_height * TEXT_SPACING_RATIO
    cursor = bottom - spacing
    boxes = []
    for line in reversed(lines):
        font_size = box_height * line.relative_font_size
        if int(round(font_size)) < 1:
            raise InvalidDimension(
                f"font size rounds to zero on a {canvas} canvas; use a taller canvas"
            )
        line_top = cursor - font_size
        if line_top < top:
            raise TextOverflow(f"text line {line.content!r} does not fit in the panel")
        x = left + panel.padding if line.inset else left
        if x >= right:
            raise TextOverflow(f"panel padding {panel.padding}px exceeds the panel width")
        boxes.append(TextBox(x, int(round(cursor)), font_size, line.content))
        cursor = line_top - spacing

    boxes.reverse()
    return TextGeometry(rect, tuple(boxes))


# =============================================================================
# Dispatch
# =============================================================================
def compute_layout(
    operation: Operation | str,
    canvas: Size,
    *,
    source_size: Size | None = None,
    watermark: WatermarkSpec | None = None,
    text_lines=(),
    background: str = BACKGROUND_DEFAULT,
    gravity: Gravity | str = Gravity.CENTER,
    panel: TextPanel | None = None,
    fmt: str | None = None,
) -> LayoutResult:
    """Compute the full layout for one processor operation."""
    operation = Operation.parse(operation)
    fill = operation in (
        Operation.FILL, Operation.FILL_WATERMARK_IMAGE, Operation.FILL_WATERMARK_TEXT,
    )
    mode = PlacementMode.FILL if fill else PlacementMode.FIT
    base = compute_fill_base(canvas, background, gravity, source_size, mode, fmt)

    if operation in (Operation.FILL, Operation.FIT):
        result = LayoutResult(base)
    elif operation in (Operation.FILL_WATERMARK_IMAGE, Operation.FIT_WATERMARK_IMAGE):
        if watermark is None:
            raise LayoutError(f"{operation.value} requires a watermark spec")
        logo = compute_logo_overlay(canvas, replace(watermark, mode=mode))
        result = LayoutResult(base, logo=logo)
    elif operation is Operation.FILL_WATERMARK_TEXT:
        result = LayoutResult(base, text=compute_text_overlay(canvas, text_lines, gravity, panel))
    else:
        raise LayoutError(f"unsupported operation {operation!r}")

    logger.debug("Layout for %s on %s: %s", operation.value, canvas, result)
    return result
