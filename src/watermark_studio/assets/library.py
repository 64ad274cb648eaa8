from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from uuid import uuid4

from watermark_studio.imaging.raster import RasterImage, decode_raster, make_thumbnail

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_MAX_EDGE = 1024


@dataclass(slots=True)
class ImageAsset:
    id: str
    filename: str
    source_bytes: bytes
    preview: RasterImage | None = None
    processed: RasterImage | None = None
    processed_bytes: bytes | None = None

    @property
    def is_processed(self) -> bool:
        return self.processed_bytes is not None

    def mark_processed(self, raster: RasterImage, data: bytes) -> None:
        """Replace the output of any earlier run with *raster*/*data*."""
        previous = self.processed
        self.processed, self.processed_bytes = raster, data
        if previous is not None and previous is not raster:
            previous.release()

    def release(self) -> None:
        for raster in (self.preview, self.processed):
            if raster is not None:
                raster.release()
        self.preview = None
        self.processed = None
        self.processed_bytes = None


@dataclass(slots=True)
class LogoAsset:
    id: str
    display_name: str
    source_bytes: bytes
    preview: RasterImage | None = None

    def release(self) -> None:
        if self.preview is not None:
            self.preview.release()
        self.preview = None


def is_image_payload(filename: str, content_type: str | None = None) -> bool:
    if content_type:
        return content_type.lower().startswith("image/")
    guessed, _ = mimetypes.guess_type(filename)
    return bool(guessed and guessed.startswith("image/"))


def _decode_preview(data: bytes, max_edge: int) -> RasterImage:
    full = decode_raster(data)
    try:
        return make_thumbnail(full, max_edge)
    finally:
        full.release()


class AssetLibrary:
    """In-session registry of uploaded images and logos.

    Nothing here is persisted; removing an asset releases its rasters.
    """

    def __init__(self, preview_max_edge: int = DEFAULT_PREVIEW_MAX_EDGE) -> None:
        self.preview_max_edge = preview_max_edge
        self._images: dict[str, ImageAsset] = {}
        self._logos: dict[str, LogoAsset] = {}
        self._selected_logo_id: str | None = None

    @property
    def images(self) -> list[ImageAsset]:
        return list(self._images.values())

    @property
    def logos(self) -> list[LogoAsset]:
        return list(self._logos.values())

    @property
    def selected_logo(self) -> LogoAsset | None:
        if self._selected_logo_id is None:
            return None
        return self._logos.get(self._selected_logo_id)

    def get_image(self, image_id: str) -> ImageAsset:
        try:
            return self._images[image_id]
        except KeyError as exc:
            raise KeyError(f"Unknown image id: {image_id}") from exc

    def get_logo(self, logo_id: str) -> LogoAsset:
        try:
            return self._logos[logo_id]
        except KeyError as exc:
            raise KeyError(f"Unknown logo id: {logo_id}") from exc

    def add_image(self, filename: str, data: bytes, content_type: str | None = None) -> ImageAsset | None:
        if not is_image_payload(filename, content_type):
            logger.warning("Skipping non-image upload %s (%s)", filename, content_type or "unknown type")
            return None

        asset = ImageAsset(
            id=uuid4().hex,
            filename=filename,
            source_bytes=data,
            preview=_decode_preview(data, self.preview_max_edge),
        )
        self._images[asset.id] = asset
        logger.info("Added image %s as %s", filename, asset.id)
        return asset

    def add_logo(self, filename: str, data: bytes, content_type: str | None = None) -> LogoAsset | None:
        if not is_image_payload(filename, content_type):
            logger.warning("Skipping non-image logo upload %s (%s)", filename, content_type or "unknown type")
            return None

        asset = LogoAsset(
            id=f"logo-{uuid4().hex}",
            display_name=filename,
            source_bytes=data,
            preview=_decode_preview(data, self.preview_max_edge),
        )
        self._logos[asset.id] = asset
        if self._selected_logo_id is None:
            self._selected_logo_id = asset.id
        logger.info("Added logo %s as %s", filename, asset.id)
        return asset

    def select_logo(self, logo_id: str) -> LogoAsset:
        logo = self.get_logo(logo_id)
        self._selected_logo_id = logo.id
        return logo

    def remove_image(self, image_id: str) -> None:
        asset = self._images.pop(image_id, None)
        if asset is None:
            return
        asset.release()
        logger.info("Removed image %s", image_id)

    def remove_logo(self, logo_id: str) -> None:
        asset = self._logos.pop(logo_id, None)
        if asset is None:
            return
        asset.release()
        if self._selected_logo_id == logo_id:
            self._selected_logo_id = None
        logger.info("Removed logo %s", logo_id)

    def clear_images(self) -> None:
        for image_id in list(self._images):
            self.remove_image(image_id)

    def processed_images(self) -> list[ImageAsset]:
        return [asset for asset in self._images.values() if asset.is_processed]

    def close(self) -> None:
        self.clear_images()
        for logo_id in list(self._logos):
            self.remove_logo(logo_id)
