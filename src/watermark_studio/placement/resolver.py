"""Pure placement math: placement spec + options -> pixel box for the logo.

Every spec variant is first converted to a single canonical form, the exact
logo top-left in source pixels, and rounded only once from there.  Percent
specs name the logo center and are the only ones converted.  Scale is always
applied relative to the logo's natural width; base relative scales are converted by
:meth:`WatermarkOptions.logo_scale_for`.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass

from watermark_studio.exceptions import InvalidGeometry, PlacementOutOfBounds
from watermark_studio.models.options import WatermarkOptions
from watermark_studio.models.placement import (
    AnchoredPlacement,
    CustomFractionPlacement,
    CustomPixelPlacement,
    PlacementSpec,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Placement:
    x_pixels: int
    y_pixels: int
    width_pixels: int
    height_pixels: int
    overflows: bool = False

    @property
    def box(self) -> tuple[int, int, int, int]:
        return (
            self.x_pixels,
            self.y_pixels,
            self.x_pixels + self.width_pixels,
            self.y_pixels + self.height_pixels,
        )

    def scaled(self, factor: float) -> Placement:
        """Map this placement into a surface scaled by *factor* (e.g. a preview)."""
        if factor == 1:
            return self
        return Placement(
            x_pixels=round(self.x_pixels * factor),
            y_pixels=round(self.y_pixels * factor),
            width_pixels=max(1, round(self.width_pixels * factor)),
            height_pixels=max(1, round(self.height_pixels * factor)),
            overflows=self.overflows,
        )

    def contains(self, x: float, y: float) -> bool:
        left, top, right, bottom = self.box
        return left <= x <= right and top <= y <= bottom


def _check_size(size: tuple[int, int], label: str) -> None:
    width, height = size
    if width <= 0 or height <= 0:
        raise InvalidGeometry(f"{label} has zero-sized geometry: {width}x{height}")


def target_logo_size(
    base_size: tuple[int, int],
    logo_size: tuple[int, int],
    options: WatermarkOptions,
) -> tuple[int, int]:
    """Scaled logo size; the height always follows the logo's own aspect ratio."""
    _check_size(base_size, "base image")
    _check_size(logo_size, "logo")
    logo_width, logo_height = logo_size

    scale = options.logo_scale_for(base_size, logo_size)
    exact_width = logo_width * scale
    width = max(1, round(exact_width))
    height = max(1, round(exact_width * logo_height / logo_width))
    return width, height


def top_left_for(
    base_size: tuple[int, int],
    logo_box_size: tuple[int, int],
    spec: PlacementSpec,
    margin_fraction: float,
) -> tuple[float, float]:
    """Canonical form of *spec*: the exact, unrounded logo top-left in source pixels.

    Only percent specs are converted (center -> top-left); pixel and anchored
    specs already denote the top-left and pass through unchanged.
    """
    base_width, base_height = base_size
    logo_width, logo_height = logo_box_size

    if isinstance(spec, CustomFractionPlacement):
        return center_to_top_left(base_size, logo_box_size, (spec.x_fraction, spec.y_fraction))
    if isinstance(spec, CustomPixelPlacement):
        return spec.x_pixels, spec.y_pixels
    if isinstance(spec, AnchoredPlacement):
        margin = min(base_width, base_height) * margin_fraction
        left = margin if spec.corner.endswith("left") else base_width - logo_width - margin
        top = margin if spec.corner.startswith("top") else base_height - logo_height - margin
        return left, top
    raise TypeError(f"Unsupported placement spec: {type(spec).__name__}")


def center_to_top_left(
    base_size: tuple[int, int],
    logo_box_size: tuple[int, int],
    center: tuple[float, float],
) -> tuple[float, float]:
    """Convert a logo center in percent of the base into an exact top-left."""
    return (
        center[0] / 100 * base_size[0] - logo_box_size[0] / 2,
        center[1] / 100 * base_size[1] - logo_box_size[1] / 2,
    )


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


def resolve_top_left(
    base_size: tuple[int, int],
    logo_box_size: tuple[int, int],
    top_left: tuple[float, float],
    warn: bool = True,
) -> Placement:
    """Round *top_left* to whole pixels and clamp the box into the base.

    With ``warn=False`` an oversized logo is still clamped and flagged through
    ``Placement.overflows`` but nothing is logged or warned.
    """
    base_width, base_height = base_size
    logo_width, logo_height = logo_box_size

    overflows = logo_width > base_width or logo_height > base_height
    if overflows and warn:
        message = (
            f"Logo {logo_width}x{logo_height} is larger than base {base_width}x{base_height}; "
            "clamping to the top-left edge"
        )
        logger.warning(message)
        warnings.warn(message, PlacementOutOfBounds, stacklevel=3)

    return Placement(
        x_pixels=_clamp(round(top_left[0]), max(0, base_width - logo_width)),
        y_pixels=_clamp(round(top_left[1]), max(0, base_height - logo_height)),
        width_pixels=logo_width,
        height_pixels=logo_height,
        overflows=overflows,
    )


def resolve_placement(
    base_size: tuple[int, int],
    logo_size: tuple[int, int],
    spec: PlacementSpec,
    options: WatermarkOptions,
) -> Placement:
    """Resolve *spec* to the pixel box at which the logo is drawn on the base."""
    logo_box_size = target_logo_size(base_size, logo_size, options)
    top_left = top_left_for(base_size, logo_box_size, spec, options.margin_fraction)
    return resolve_top_left(base_size, logo_box_size, top_left)
