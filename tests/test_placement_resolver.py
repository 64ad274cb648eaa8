import pytest

from watermark_studio.exceptions import InvalidGeometry, PlacementOutOfBounds
from watermark_studio.models.options import WatermarkOptions
from watermark_studio.models.placement import AnchoredPlacement, CustomFractionPlacement, CustomPixelPlacement
from watermark_studio.placement import Placement, resolve_placement, target_logo_size


@pytest.mark.parametrize(
    ("base_size", "logo_size", "scale", "expected"),
    [
        ((640, 480), (300, 120), 0.5, (150, 60)),
        ((1000, 800), (200, 100), 0.15, (30, 15)),
        ((50, 50), (400, 100), 1.0, (400, 100)),
        ((1920, 1080), (512, 512), 0.25, (128, 128)),
    ],
)
def test_target_size_is_fraction_of_logo_width_with_logo_aspect(base_size, logo_size, scale, expected) -> None:
    options = WatermarkOptions(scale_fraction=scale)
    assert target_logo_size(base_size, logo_size, options) == expected


def test_base_relative_scale_is_capped_at_logo_natural_width() -> None:
    options = WatermarkOptions(scale_fraction=0.5, scale_reference="base")
    assert target_logo_size((4000, 3000), (200, 50), options) == (200, 50)
    assert target_logo_size((200, 300), (400, 100), options) == (100, 25)


@pytest.mark.parametrize(
    ("corner", "expected"),
    [
        ("top-left", (0, 0)),
        ("top-right", (800, 0)),
        ("bottom-left", (0, 700)),
        ("bottom-right", (800, 700)),
    ],
)
def test_anchored_corners_touch_base_corners_without_margin(corner, expected) -> None:
    options = WatermarkOptions(scale_fraction=1.0, margin_fraction=0.0)
    placement = resolve_placement((1000, 800), (200, 100), AnchoredPlacement(corner=corner), options)
    assert (placement.x_pixels, placement.y_pixels) == expected
    assert (placement.width_pixels, placement.height_pixels) == (200, 100)


def test_anchored_margin_uses_shorter_base_side() -> None:
    options = WatermarkOptions(scale_fraction=1.0, margin_fraction=0.02)
    placement = resolve_placement((1000, 800), (200, 100), AnchoredPlacement(corner="top-left"), options)
    assert (placement.x_pixels, placement.y_pixels) == (16, 16)


def test_bottom_right_scenario_with_logo_relative_scale() -> None:
    options = WatermarkOptions(scale_fraction=0.15, margin_fraction=0.02)
    placement = resolve_placement((1000, 800), (200, 100), AnchoredPlacement(corner="bottom-right"), options)
    assert placement == Placement(x_pixels=954, y_pixels=769, width_pixels=30, height_pixels=15)


def test_bottom_right_scenario_with_base_relative_scale() -> None:
    options = WatermarkOptions(scale_fraction=0.15, margin_fraction=0.02, scale_reference="base")
    placement = resolve_placement((1000, 800), (200, 100), AnchoredPlacement(corner="bottom-right"), options)
    assert placement == Placement(x_pixels=834, y_pixels=709, width_pixels=150, height_pixels=75)


def test_custom_fraction_is_logo_center() -> None:
    options = WatermarkOptions(scale_fraction=0.5)
    spec = CustomFractionPlacement(x_fraction=50, y_fraction=50)
    placement = resolve_placement((1000, 800), (200, 100), spec, options)
    assert (placement.x_pixels, placement.y_pixels) == (450, 375)


@pytest.mark.parametrize("logo_size", [(10, 10), (200, 100), (999, 20)])
def test_custom_fraction_at_origin_clamps_to_zero(logo_size) -> None:
    spec = CustomFractionPlacement(x_fraction=0, y_fraction=0)
    placement = resolve_placement((1000, 800), logo_size, spec, WatermarkOptions(scale_fraction=1.0))
    assert (placement.x_pixels, placement.y_pixels) == (0, 0)


def test_custom_fraction_at_far_corner_clamps_inside() -> None:
    spec = CustomFractionPlacement(x_fraction=100, y_fraction=100)
    placement = resolve_placement((1000, 800), (200, 100), spec, WatermarkOptions(scale_fraction=1.0))
    assert (placement.x_pixels, placement.y_pixels) == (800, 700)


def test_custom_pixels_are_top_left_without_centering() -> None:
    spec = CustomPixelPlacement(x_pixels=10, y_pixels=20)
    placement = resolve_placement((200, 200), (50, 50), spec, WatermarkOptions(scale_fraction=1.0))
    assert (placement.x_pixels, placement.y_pixels) == (10, 20)


def test_custom_pixels_outside_base_are_clamped() -> None:
    spec = CustomPixelPlacement(x_pixels=-30, y_pixels=500)
    placement = resolve_placement((200, 200), (50, 50), spec, WatermarkOptions(scale_fraction=1.0))
    assert (placement.x_pixels, placement.y_pixels) == (0, 150)


def test_logo_larger_than_base_warns_and_pins_to_origin() -> None:
    spec = AnchoredPlacement(corner="bottom-right")
    with pytest.warns(PlacementOutOfBounds):
        placement = resolve_placement((200, 100), (300, 300), spec, WatermarkOptions(scale_fraction=1.0))
    assert (placement.x_pixels, placement.y_pixels) == (0, 0)
    assert placement.overflows is True


def test_zero_sized_inputs_raise_invalid_geometry() -> None:
    spec = AnchoredPlacement()
    with pytest.raises(InvalidGeometry):
        resolve_placement((0, 100), (20, 20), spec, WatermarkOptions())
    with pytest.raises(InvalidGeometry):
        resolve_placement((100, 100), (20, 0), spec, WatermarkOptions())


def test_resolution_is_deterministic() -> None:
    spec = CustomFractionPlacement(x_fraction=33.3, y_fraction=66.6)
    options = WatermarkOptions(scale_fraction=0.37)
    first = resolve_placement((1234, 987), (321, 123), spec, options)
    second = resolve_placement((1234, 987), (321, 123), spec, options)
    assert first == second


def test_scaled_placement_and_hit_test() -> None:
    placement = Placement(x_pixels=100, y_pixels=40, width_pixels=60, height_pixels=20)
    preview = placement.scaled(0.5)
    assert preview == Placement(x_pixels=50, y_pixels=20, width_pixels=30, height_pixels=10)
    assert preview.contains(65, 25)
    assert not preview.contains(10, 10)


def test_fractional_custom_pixels_round_the_same_for_every_logo_width() -> None:
    spec = CustomPixelPlacement(x_pixels=16.5, y_pixels=16.5)
    options = WatermarkOptions(scale_fraction=1.0)
    corners = {
        (placement.x_pixels, placement.y_pixels)
        for placement in (resolve_placement((1000, 800), (width, 20), spec, options) for width in range(10, 60))
    }
    assert corners == {(16, 16)}


@pytest.mark.parametrize("logo_width", [10, 11, 25, 37, 58, 59])
def test_fractional_anchored_margin_is_symmetric(logo_width) -> None:
    options = WatermarkOptions(scale_fraction=1.0, margin_fraction=0.02)
    placement = resolve_placement((1000, 825), (logo_width, 31), AnchoredPlacement(corner="top-left"), options)
    assert placement.x_pixels == placement.y_pixels
    reference = resolve_placement((1000, 825), (10, 31), AnchoredPlacement(corner="top-left"), options)
    assert placement.x_pixels == reference.x_pixels
