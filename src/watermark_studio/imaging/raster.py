"""Decoded raster surfaces and the byte-level decode/encode adapters.

A :class:`RasterImage` wraps a Pillow image in RGBA mode.  It is never
mutated after construction: compositing and thumbnailing return new rasters.
The pixel handle is released explicitly through :meth:`RasterImage.release`
when the owning asset or editor session goes away.
"""

from __future__ import annotations

import io
import logging
import warnings

from PIL import Image, ImageOps, UnidentifiedImageError

from watermark_studio.exceptions import DecodeFailure, EncodeFailure, InvalidGeometry, RasterReleasedError
from watermark_studio.models.options import EncoderSettings

logger = logging.getLogger(__name__)


class RasterImage:
    __slots__ = ("_image", "_size")

    def __init__(self, image: Image.Image) -> None:
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        self._image: Image.Image | None = image
        self._size: tuple[int, int] = image.size

    @property
    def width(self) -> int:
        return self._size[0]

    @property
    def height(self) -> int:
        return self._size[1]

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def released(self) -> bool:
        return self._image is None

    @property
    def image(self) -> Image.Image:
        """The underlying RGBA surface. Callers must treat it as read-only."""
        if self._image is None:
            raise RasterReleasedError("Raster has already been released")
        return self._image

    def ensure_non_empty(self, label: str = "raster") -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidGeometry(f"{label} has zero-sized geometry: {self.width}x{self.height}")

    def release(self) -> None:
        """Close the pixel handle. Safe to call more than once."""
        if self._image is None:
            return
        self._image.close()
        self._image = None

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"RasterImage({self.width}x{self.height}, {state})"


def decode_raster(data: bytes) -> RasterImage:
    """Decode *data* into an RGBA raster with EXIF orientation applied."""
    if not data:
        raise DecodeFailure("Image data is empty", reason="empty")

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(data)) as opened:
                oriented = ImageOps.exif_transpose(opened)
                rgba = oriented.convert("RGBA")
                rgba.load()
    except (Image.DecompressionBombError, Image.DecompressionBombWarning) as exc:
        raise DecodeFailure(f"Image exceeds the decompression size limit: {exc}", reason="too_large") from exc
    except UnidentifiedImageError as exc:
        raise DecodeFailure("Data is not a recognised image format", reason="unsupported_format") from exc
    except (OSError, SyntaxError, ValueError) as exc:
        raise DecodeFailure(f"Image data is corrupt or truncated: {exc}", reason="corrupt_data") from exc

    logger.debug("Decoded raster %sx%s", rgba.width, rgba.height)
    return RasterImage(rgba)


def encode_raster(raster: RasterImage, settings: EncoderSettings | None = None) -> bytes:
    """Serialize *raster* as PNG, preserving full resolution and alpha."""
    settings = settings or EncoderSettings()
    raster.ensure_non_empty("composited surface")

    buffer = io.BytesIO()
    try:
        raster.image.save(
            buffer,
            format="PNG",
            compress_level=settings.compress_level,
            optimize=settings.optimize,
        )
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"Unable to encode {raster.width}x{raster.height} surface as PNG: {exc}") from exc
    return buffer.getvalue()


def make_thumbnail(raster: RasterImage, max_edge: int = 1024) -> RasterImage:
    """Downscale *raster* so its longest edge is at most *max_edge*; never upscales."""
    raster.ensure_non_empty()
    thumb = raster.image.copy()
    thumb.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)
    return RasterImage(thumb)


def resize_raster(raster: RasterImage, size: tuple[int, int]) -> RasterImage:
    width, height = size
    if width <= 0 or height <= 0:
        raise InvalidGeometry(f"Target size must be positive, got {width}x{height}")
    if (width, height) == raster.size:
        return RasterImage(raster.image.copy())
    return RasterImage(raster.image.resize((width, height), Image.Resampling.LANCZOS))
