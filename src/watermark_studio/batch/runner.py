"""Sequential batch compositing.

:meth:`BatchRunner.run` is a generator: each image is decoded, composited,
encoded and committed to its :class:`ImageAsset` before the next one starts,
so at most one base image is held in memory alongside the shared logo.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Literal

from watermark_studio.assets.library import ImageAsset, LogoAsset
from watermark_studio.exceptions import WatermarkStudioError
from watermark_studio.imaging.compositor import compose_watermark
from watermark_studio.imaging.raster import RasterImage, decode_raster, encode_raster
from watermark_studio.models.options import EncoderSettings, WatermarkOptions
from watermark_studio.models.placement import PlacementSpec

logger = logging.getLogger(__name__)

BatchStatus = Literal["processed", "failed"]


@dataclass(frozen=True, slots=True)
class BatchEvent:
    image_id: str
    filename: str
    status: BatchStatus
    index: int
    total: int
    output_bytes: bytes | None = None
    error: WatermarkStudioError | None = None

    @property
    def progress(self) -> float:
        return (self.index + 1) / self.total

    @property
    def error_kind(self) -> str | None:
        return type(self.error).__name__ if self.error is not None else None


class BatchRunner:
    def __init__(
        self,
        logo: LogoAsset,
        spec: PlacementSpec,
        options: WatermarkOptions,
        encoder: EncoderSettings | None = None,
    ) -> None:
        self.logo = logo
        self.spec = spec
        self.options = options
        self.encoder = encoder or EncoderSettings()
        self.cancelled = False

    def _process_one(self, asset: ImageAsset, logo_raster: RasterImage) -> bytes:
        base = decode_raster(asset.source_bytes)
        try:
            composed = compose_watermark(base, logo_raster, self.spec, self.options)
        finally:
            base.release()
        try:
            data = encode_raster(composed, self.encoder)
        except WatermarkStudioError:
            composed.release()
            raise
        asset.mark_processed(composed, data)
        return data

    def run(
        self,
        images: Sequence[ImageAsset],
        should_cancel: Callable[[], bool] | None = None,
    ) -> Iterator[BatchEvent]:
        """Yield one :class:`BatchEvent` per image, in input order.

        Per-image failures are logged and reported as ``failed`` events; the
        batch carries on.  A logo that cannot be decoded fails the whole run
        before any image is touched.
        """
        total = len(images)
        if total == 0:
            return

        logo_raster = decode_raster(self.logo.source_bytes)
        logger.info("Batch started: %d image(s), logo %s", total, self.logo.display_name)
        try:
            for index, asset in enumerate(images):
                if should_cancel is not None and should_cancel():
                    self.cancelled = True
                    logger.info("Batch cancelled before image %d of %d", index + 1, total)
                    return

                try:
                    data = self._process_one(asset, logo_raster)
                except WatermarkStudioError as exc:
                    logger.warning("Failed to process image %s (%s): %s", asset.filename, type(exc).__name__, exc)
                    yield BatchEvent(
                        image_id=asset.id,
                        filename=asset.filename,
                        status="failed",
                        index=index,
                        total=total,
                        error=exc,
                    )
                    continue

                logger.info("Processed image %s (%d/%d)", asset.filename, index + 1, total)
                yield BatchEvent(
                    image_id=asset.id,
                    filename=asset.filename,
                    status="processed",
                    index=index,
                    total=total,
                    output_bytes=data,
                )
        finally:
            logo_raster.release()
        logger.info("Batch completed: %d image(s)", total)
