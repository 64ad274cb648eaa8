from __future__ import annotations

from PIL import Image

from watermark_studio.exceptions import InvalidGeometry
from watermark_studio.imaging.raster import RasterImage
from watermark_studio.models.options import WatermarkOptions
from watermark_studio.models.placement import PlacementSpec
from watermark_studio.placement.resolver import Placement, resolve_placement


def _opacity_table(opacity_fraction: float) -> list[int]:
    return [round(value * opacity_fraction) for value in range(256)]


def _prepare_logo(logo: Image.Image, size: tuple[int, int], opacity_fraction: float) -> Image.Image:
    if logo.size == size:
        prepared = logo.copy()
    else:
        prepared = logo.resize(size, Image.Resampling.LANCZOS)

    if opacity_fraction < 1:
        alpha = prepared.getchannel("A").point(_opacity_table(opacity_fraction))
        prepared.putalpha(alpha)
    return prepared


def composite(
    base: RasterImage,
    logo: RasterImage,
    placement: Placement,
    opacity_fraction: float,
) -> RasterImage:
    """Draw *logo* over *base* inside the placement box and return a new raster.

    The output always has the base's exact dimensions.  Each logo pixel's alpha
    is multiplied by *opacity_fraction* before standard "over" compositing.
    Neither input is modified.
    """
    base.ensure_non_empty("base image")
    logo.ensure_non_empty("logo")
    if placement.width_pixels <= 0 or placement.height_pixels <= 0:
        raise InvalidGeometry(
            f"Placement box has zero-sized geometry: {placement.width_pixels}x{placement.height_pixels}"
        )
    if not 0.0 <= opacity_fraction <= 1.0:
        raise ValueError(f"opacity_fraction must be within [0, 1], got {opacity_fraction}")

    canvas = base.image.copy()
    if opacity_fraction == 0:
        return RasterImage(canvas)

    overlay = _prepare_logo(
        logo.image,
        (placement.width_pixels, placement.height_pixels),
        opacity_fraction,
    )
    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    layer.paste(overlay, (placement.x_pixels, placement.y_pixels))
    return RasterImage(Image.alpha_composite(canvas, layer))


def compose_watermark(
    base: RasterImage,
    logo: RasterImage,
    spec: PlacementSpec,
    options: WatermarkOptions,
) -> RasterImage:
    """Resolve *spec* against the two rasters and composite at source resolution."""
    base.ensure_non_empty("base image")
    logo.ensure_non_empty("logo")
    placement = resolve_placement(base.size, logo.size, spec, options)
    return composite(base, logo, placement, options.opacity_fraction)
