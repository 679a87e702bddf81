import pytest

from watermark_layout.errors import InvalidDimension, InvalidGravity, InvalidRatio, LayoutError
from watermark_layout.models import (
    Gravity,
    Operation,
    PlacementMode,
    RenderOptions,
    Size,
    TextLine,
    TextPanel,
    WatermarkSpec,
    default_text_lines,
)


@pytest.mark.parametrize("name, expected", [
    ("SouthEast", Gravity.SOUTH_EAST),
    ("southeast", Gravity.SOUTH_EAST),
    ("south_east", Gravity.SOUTH_EAST),
    ("North-West", Gravity.NORTH_WEST),
    ("center", Gravity.CENTER),
    (Gravity.EAST, Gravity.EAST),
])
def test_gravity_parse(name, expected):
    assert Gravity.parse(name) is expected


@pytest.mark.parametrize("bad", ["Up", "", "NorthSouth", 3, None])
def test_gravity_parse_rejects(bad):
    with pytest.raises(InvalidGravity):
        Gravity.parse(bad)


def test_gravity_axes():
    assert (Gravity.NORTH_WEST.horizontal, Gravity.NORTH_WEST.vertical) == (-1, -1)
    assert (Gravity.SOUTH_EAST.horizontal, Gravity.SOUTH_EAST.vertical) == (1, 1)
    assert (Gravity.CENTER.horizontal, Gravity.CENTER.vertical) == (0, 0)
    assert (Gravity.EAST.horizontal, Gravity.EAST.vertical) == (1, 0)
    assert (Gravity.SOUTH.horizontal, Gravity.SOUTH.vertical) == (0, 1)


@pytest.mark.parametrize("width, height", [(0, 10), (10, -1), (1.5, 10), (True, 10)])
def test_size_rejects_non_positive_integers(width, height):
    with pytest.raises(InvalidDimension):
        Size(width, height)


def test_size_parse_and_str():
    size = Size.parse("1920x1080")
    assert size == Size(1920, 1080)
    assert str(size) == "1920x1080"
    assert size.shorter_side == 1080
    with pytest.raises(InvalidDimension):
        Size.parse("1920by1080")


def test_layout_errors_are_value_errors():
    assert issubclass(LayoutError, ValueError)
    with pytest.raises(ValueError):
        Size(0, 0)


class TestWatermarkSpec:
    def test_defaults(self):
        spec = WatermarkSpec(Size(10, 10))
        assert spec.mode is PlacementMode.FIT
        assert spec.gravity is Gravity.SOUTH_EAST
        assert spec.size_ratio == 0.2
        assert spec.margin_ratio == 0.05
        assert spec.opacity_percent == 100
        assert spec.anchor is Gravity.SOUTH_EAST

    def test_names_are_parsed(self):
        spec = WatermarkSpec(Size(10, 10), mode="fill", gravity="north", logo_gravity="west")
        assert spec.mode is PlacementMode.FILL
        assert spec.gravity is Gravity.NORTH
        assert spec.anchor is Gravity.WEST

    @pytest.mark.parametrize("kwargs", [
        {"margin_ratio": 1.0},
        {"margin_ratio": -0.1},
        {"size_ratio": 0},
        {"size_ratio": 1.01},
        {"opacity_percent": 101},
        {"opacity_percent": -1},
        {"opacity_percent": 50.5},
    ])
    def test_ratio_bounds(self, kwargs):
        with pytest.raises(InvalidRatio):
            WatermarkSpec(Size(10, 10), **kwargs)

    def test_ratio_edges_accepted(self):
        WatermarkSpec(Size(10, 10), margin_ratio=0, size_ratio=1, opacity_percent=0)

    def test_negative_pixel_margin(self):
        with pytest.raises(InvalidDimension):
            WatermarkSpec(Size(10, 10), horizontal_margin=-1)

    def test_asset_size_must_be_size(self):
        with pytest.raises(InvalidDimension):
            WatermarkSpec((10, 10))

    def test_bad_gravity(self):
        with pytest.raises(InvalidGravity):
            WatermarkSpec(Size(10, 10), gravity="Top")


def test_text_panel_validation():
    with pytest.raises(InvalidRatio):
        TextPanel(left=0.8, right=0.6)
    with pytest.raises(InvalidRatio):
        TextPanel(top=1.2)
    with pytest.raises(InvalidDimension):
        TextPanel(padding=-3)


def test_text_line_font_ratio():
    with pytest.raises(InvalidRatio):
        TextLine("x", 0)


def test_default_text_lines():
    first, second, title = default_text_lines("a", "b", "c")
    assert first.relative_font_size == pytest.approx(1 / 6)
    assert first.inset and second.inset
    assert title.relative_font_size == 0.25
    assert not title.inset


def test_render_options():
    options = RenderOptions(extra_args=["-density", 300])
    assert options.extra_args == ("-density", "300")
    with pytest.raises(ValueError):
        RenderOptions(quality=0)


def test_operation_parse():
    assert Operation.parse("FIT_WATERMARK_IMAGE") is Operation.FIT_WATERMARK_IMAGE
    assert Operation.parse(Operation.FILL) is Operation.FILL
    with pytest.raises(ValueError):
        Operation.parse("watermark")
