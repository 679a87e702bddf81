"""
Data models for watermark layout.

Inputs (Size, WatermarkSpec, TextLine, TextPanel) and computed geometry
(BaseGeometry, LogoGeometry, TextGeometry, LayoutResult) are frozen
dataclasses, so identical inputs produce equal, hashable results.  The enums
carry ImageMagick's own names as values so the engine can pass them through
unchanged.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum

from watermark_layout.config import (
    COMMAND_TIMEOUT,
    TEXT_COLOR_DEFAULT,
    TEXT_LARGE_RATIO,
    TEXT_PANEL_COLOR_DEFAULT,
    TEXT_PANEL_BOTTOM,
    TEXT_PANEL_LEFT,
    TEXT_PANEL_PADDING,
    TEXT_PANEL_RIGHT,
    TEXT_PANEL_TOP,
    TEXT_SMALL_RATIO,
    WATERMARK_MARGIN_RATIO,
    WATERMARK_OPACITY,
    WATERMARK_SIZE_RATIO,
)
from watermark_layout.errors import InvalidDimension, InvalidGravity, InvalidRatio


# =============================================================================
# Enums
# =============================================================================
class Gravity(Enum):
    """Anchor point for placement, named as ImageMagick's -gravity values."""
    CENTER = "Center"
    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"
    NORTH_EAST = "NorthEast"
    NORTH_WEST = "NorthWest"
    SOUTH_EAST = "SouthEast"
    SOUTH_WEST = "SouthWest"

    @classmethod
    def parse(cls, value: "Gravity | str") -> "Gravity":
        """Accept a Gravity or a name like ``"SouthEast"``, ``"south_east"`` or ``"south-east"``."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidGravity(f"gravity must be a string, got {value!r}")
        key = value.replace("_", "").replace("-", "").replace(" ", "").lower()
        for gravity in cls:
            if gravity.value.lower() == key:
                return gravity
        raise InvalidGravity(f"unknown gravity {value!r}")

    @property
    def horizontal(self) -> int:
        """-1 for west-anchored, 1 for east-anchored, 0 for centered."""
        if self.value.endswith("West"):
            return -1
        if self.value.endswith("East"):
            return 1
        return 0

    @property
    def vertical(self) -> int:
        """-1 for north-anchored, 1 for south-anchored, 0 for centered."""
        if self.value.startswith("North"):
            return -1
        if self.value.startswith("South"):
            return 1
        return 0


class PlacementMode(Enum):
    FILL = "fill"
    FIT = "fit"


class Operation(Enum):
    """Processor operations, one per watermark variant."""
    FILL = "fill"
    FIT = "fit"
    FILL_WATERMARK_IMAGE = "fill_watermark_image"
    FIT_WATERMARK_IMAGE = "fit_watermark_image"
    FILL_WATERMARK_TEXT = "fill_watermark_text"

    @classmethod
    def parse(cls, value: "Operation | str") -> "Operation":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ", ".join(op.value for op in cls)
            raise ValueError(f"unknown operation {value!r} (expected one of: {names})") from None


# =============================================================================
# Geometry primitives
# =============================================================================
@dataclass(frozen=True)
class Size:
    """Pixel dimensions; both sides must be positive."""
    width: int
    height: int

    def __post_init__(self):
        for name in ("width", "height"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise InvalidDimension(f"{name} must be a positive integer, got {val!r}")

    @property
    def shorter_side(self) -> int:
        return min(self.width, self.height)

    @classmethod
    def parse(cls, text: str) -> "Size":
        """Parse ImageMagick-style ``"WxH"``."""
        parts = text.lower().split("x")
        if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
            raise InvalidDimension(f"expected WIDTHxHEIGHT, got {text!r}")
        return cls(int(parts[0]), int(parts[1]))

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


# Target output dimensions
Canvas = Size


@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0


@dataclass(frozen=True)
class Rect:
    """Rectangle in canvas coordinates."""
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


# =============================================================================
# Inputs
# =============================================================================
def _check_ratio(name: str, value: float, low: float, high: float,
                 low_inclusive: bool, high_inclusive: bool) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRatio(f"{name} must be a number, got {value!r}")
    above = value >= low if low_inclusive else value > low
    below = value <= high if high_inclusive else value < high
    if not (above and below):
        lo = "[" if low_inclusive else "("
        hi = "]" if high_inclusive else ")"
        raise InvalidRatio(f"{name} must be in {lo}{low}, {high}{hi}, got {value!r}")


@dataclass(frozen=True)
class WatermarkSpec:
    """How a logo is sized and placed on the canvas.

    ``size_ratio`` and ``margin_ratio`` are fractions of the canvas's shorter
    side and only apply to Fit placement.  Fill placement keeps the logo's
    native size and offsets it by the pixel margins instead.
    """
    asset_intrinsic_size: Size
    mode: PlacementMode = PlacementMode.FIT
    gravity: Gravity = Gravity.SOUTH_EAST
    margin_ratio: float = WATERMARK_MARGIN_RATIO
    opacity_percent: int = WATERMARK_OPACITY
    size_ratio: float = WATERMARK_SIZE_RATIO
    horizontal_margin: int = 0
    vertical_margin: int = 0
    logo_gravity: Gravity | None = None

    def __post_init__(self):
        if not isinstance(self.asset_intrinsic_size, Size):
            raise InvalidDimension(
                f"asset_intrinsic_size must be a Size, got {self.asset_intrinsic_size!r}"
            )
        object.__setattr__(self, "mode", PlacementMode(self.mode))
        object.__setattr__(self, "gravity", Gravity.parse(self.gravity))
        if self.logo_gravity is not None:
            object.__setattr__(self, "logo_gravity", Gravity.parse(self.logo_gravity))
        _check_ratio("margin_ratio", self.margin_ratio, 0, 1, True, False)
        _check_ratio("size_ratio", self.size_ratio, 0, 1, False, True)
        if isinstance(self.opacity_percent, bool) or not isinstance(self.opacity_percent, int):
            raise InvalidRatio(f"opacity_percent must be an integer, got {self.opacity_percent!r}")
        _check_ratio("opacity_percent", self.opacity_percent, 0, 100, True, True)
        for name in ("horizontal_margin", "vertical_margin"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or val < 0:
                raise InvalidDimension(f"{name} must be a non-negative integer, got {val!r}")

    @property
    def anchor(self) -> Gravity:
        """Gravity used for the logo itself."""
        return self.logo_gravity or self.gravity


@dataclass(frozen=True)
class TextLine:
    """One line of overlay text; ``inset`` lines are indented by the panel padding."""
    content: str
    relative_font_size: float = TEXT_SMALL_RATIO
    inset: bool = True

    def __post_init__(self):
        _check_ratio("relative_font_size", self.relative_font_size, 0, 1, False, True)


def default_text_lines(first: str, second: str, title: str) -> tuple[TextLine, TextLine, TextLine]:
    """Two small inset lines stacked above one large line at the panel's left edge."""
    return (
        TextLine(first, TEXT_SMALL_RATIO),
        TextLine(second, TEXT_SMALL_RATIO),
        TextLine(title, TEXT_LARGE_RATIO, inset=False),
    )


@dataclass(frozen=True)
class TextPanel:
    """Text panel region as fractions of the canvas, plus an inset in pixels."""
    left: float = TEXT_PANEL_LEFT
    right: float = TEXT_PANEL_RIGHT
    top: float = TEXT_PANEL_TOP
    bottom: float = TEXT_PANEL_BOTTOM
    padding: int = TEXT_PANEL_PADDING

    def __post_init__(self):
        for name in ("left", "right", "top", "bottom"):
            _check_ratio(name, getattr(self, name), 0, 1, True, True)
        if self.left >= self.right or self.top >= self.bottom:
            raise InvalidRatio(
                f"panel must have left < right and top < bottom, got "
                f"{self.left}-{self.right} x {self.top}-{self.bottom}"
            )
        if isinstance(self.padding, bool) or not isinstance(self.padding, int) or self.padding < 0:
            raise InvalidDimension(f"padding must be a non-negative integer, got {self.padding!r}")


@dataclass(frozen=True)
class RenderOptions:
    """Every ImageMagick setting the engine supports beyond the geometry.

    ``extra_args`` are inserted right after the input file of the base
    command, for settings not covered by a dedicated field.
    """
    font: str | None = None
    text_color: str = TEXT_COLOR_DEFAULT
    panel_color: str = TEXT_PANEL_COLOR_DEFAULT
    quality: int | None = None
    strip: bool = False
    extra_args: tuple[str, ...] = ()
    timeout: int = COMMAND_TIMEOUT

    def __post_init__(self):
        if self.quality is not None and not 1 <= self.quality <= 100:
            raise ValueError(f"quality must be between 1 and 100, got {self.quality!r}")
        object.__setattr__(self, "extra_args", tuple(str(a) for a in self.extra_args))


# =============================================================================
# Computed geometry
# =============================================================================
@dataclass(frozen=True)
class BaseGeometry:
    """How the base image becomes exactly ``canvas`` sized.

    ``scaled``, ``crop`` and ``placement`` are only known when the source
    size was supplied: Fill records the window cut from the scaled source,
    Fit records where the scaled source lands on the padded canvas.
    """
    mode: PlacementMode
    canvas: Size
    background: str
    gravity: Gravity
    scaled: Size | None = None
    crop: Rect | None = None
    placement: Point | None = None

    @property
    def resize(self) -> Size:
        return self.canvas


@dataclass(frozen=True)
class LogoGeometry:
    """Scaled logo size and where it is composited.

    ``offset`` is relative to ``gravity`` (ImageMagick ``-geometry``);
    ``position`` is the resulting top-left corner on the canvas.  ``margin``
    is the unrounded ratio-derived margin of Fit placement, None for Fill.
    """
    size: Size
    gravity: Gravity
    offset: Point
    position: Point
    margin: float | None
    opacity: int


@dataclass(frozen=True)
class TextBox:
    """A line of text; ``y`` is the baseline."""
    x: int
    y: int
    font_size: float
    content: str


@dataclass(frozen=True)
class TextGeometry:
    panel: Rect
    boxes: tuple[TextBox, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LayoutResult:
    base: BaseGeometry
    logo: LogoGeometry | None = None
    text: TextGeometry | None = None

    def to_dict(self) -> dict:
        """JSON-safe representation with enums replaced by their values."""
        return _plain(asdict(self))


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value
