"""Interactive placement editor for one image/logo pair.

The session owns two renderings of the same placement model: a preview scaled
down to fit the viewport, re-rendered on every change, and the full-resolution
composite produced once on :meth:`InteractiveSession.commit`.  Logo position is
stored as the logo center in percent of the source dimensions, so it does not
depend on the preview scale.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from watermark_studio.assets.library import ImageAsset, LogoAsset
from watermark_studio.exceptions import DecodeFailure, InvalidSessionState
from watermark_studio.imaging.compositor import composite
from watermark_studio.imaging.raster import RasterImage, decode_raster, encode_raster, resize_raster
from watermark_studio.models.config import EditorDefaults
from watermark_studio.models.options import EncoderSettings, ViewportSettings, WatermarkOptions
from watermark_studio.placement.resolver import Placement, center_to_top_left, resolve_top_left, target_logo_size

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    INITIALIZING = "initializing"
    READY = "ready"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    DISCARDED = "discarded"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SessionState.COMMITTED, SessionState.DISCARDED, SessionState.FAILED})


@dataclass(frozen=True, slots=True)
class EditorSnapshot:
    position_x: float
    position_y: float
    scale_fraction: float
    opacity_fraction: float


def display_scale_for(size: tuple[int, int], viewport: ViewportSettings) -> float:
    width, height = size
    return min(viewport.max_display_width / width, viewport.max_display_height / height, 1.0)


class InteractiveSession:
    def __init__(
        self,
        image: ImageAsset,
        logo: LogoAsset,
        viewport: ViewportSettings | None = None,
        defaults: EditorDefaults | None = None,
        encoder: EncoderSettings | None = None,
    ) -> None:
        self.image = image
        self.logo = logo
        self.viewport = viewport or ViewportSettings()
        self.defaults = defaults or EditorDefaults()
        self.encoder = encoder or EncoderSettings()

        self.state = SessionState.INITIALIZING
        self.error: DecodeFailure | None = None
        self.display_scale = 1.0
        self.position_x = self.defaults.position_x
        self.position_y = self.defaults.position_y
        self.scale_fraction = self.defaults.scale_fraction
        self.opacity_fraction = self.defaults.opacity_fraction

        self._base: RasterImage | None = None
        self._logo: RasterImage | None = None
        self._preview_base: RasterImage | None = None
        self._preview: RasterImage | None = None
        self._drag_offset = (0.0, 0.0)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> InteractiveSession:
        """Decode both rasters and render the first preview.

        A decode failure moves the session to ``FAILED`` and is re-raised.
        """
        self._require(SessionState.INITIALIZING)
        try:
            base = decode_raster(self.image.source_bytes)
        except DecodeFailure as exc:
            self._fail(exc, "image", self.image.filename)
            raise
        try:
            logo = decode_raster(self.logo.source_bytes)
        except DecodeFailure as exc:
            base.release()
            self._fail(exc, "logo", self.logo.display_name)
            raise

        self._base, self._logo = base, logo
        self.state = SessionState.READY
        self._rebuild_preview_base()
        self._check_fit()
        logger.info(
            "Editor session opened for %s (%sx%s, display scale %.3f)",
            self.image.filename,
            base.width,
            base.height,
            self.display_scale,
        )
        return self

    def commit(self) -> bytes:
        """Render at full source resolution, store it on the image and return PNG bytes."""
        self._require(SessionState.READY)
        snapshot = self.snapshot()
        base, logo = self._rasters()

        composed = composite(base, logo, self._placement_for(snapshot, warn=True), snapshot.opacity_fraction)
        data = encode_raster(composed, self.encoder)
        self.image.mark_processed(composed, data)

        self.state = SessionState.COMMITTED
        self._release_rasters()
        logger.info(
            "Editor session committed for %s at (%.1f%%, %.1f%%), scale %.2f, opacity %.2f",
            self.image.filename,
            snapshot.position_x,
            snapshot.position_y,
            snapshot.scale_fraction,
            snapshot.opacity_fraction,
        )
        return data

    def discard(self) -> None:
        if self.state in TERMINAL_STATES:
            raise InvalidSessionState(f"Cannot discard a session in state {self.state.value}")
        self.state = SessionState.DISCARDED
        self._release_rasters()
        logger.info("Editor session discarded for %s", self.image.filename)

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------

    @property
    def margin_percent(self) -> float:
        return self.defaults.margin_fraction * 100

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(
            position_x=self.position_x,
            position_y=self.position_y,
            scale_fraction=self.scale_fraction,
            opacity_fraction=self.opacity_fraction,
        )

    def set_position(self, x_percent: float, y_percent: float) -> None:
        self._require(SessionState.READY, SessionState.DRAGGING)
        self.position_x = self._clamp_percent(x_percent)
        self.position_y = self._clamp_percent(y_percent)
        self._render_preview()

    def set_scale(self, scale_fraction: float) -> None:
        self._require(SessionState.READY)
        if not 0.0 < scale_fraction <= 1.0:
            raise ValueError(f"scale_fraction must be within (0, 1], got {scale_fraction}")
        self.scale_fraction = scale_fraction
        self._render_preview()
        self._check_fit()

    def set_opacity(self, opacity_fraction: float) -> None:
        self._require(SessionState.READY)
        if not 0.0 <= opacity_fraction <= 1.0:
            raise ValueError(f"opacity_fraction must be within [0, 1], got {opacity_fraction}")
        self.opacity_fraction = opacity_fraction
        self._render_preview()

    def set_viewport(self, max_display_width: int, max_display_height: int) -> None:
        self._require(SessionState.READY)
        self.viewport = ViewportSettings(
            max_display_width=max_display_width,
            max_display_height=max_display_height,
        )
        self._rebuild_preview_base()

    def reset(self) -> None:
        self._require(SessionState.READY)
        self.position_x = self.defaults.position_x
        self.position_y = self.defaults.position_y
        self.scale_fraction = self.defaults.scale_fraction
        self.opacity_fraction = self.defaults.opacity_fraction
        self._render_preview()
        self._check_fit()

    # ------------------------------------------------------------------
    # Pointer handling (preview pixel coordinates)
    # ------------------------------------------------------------------

    def preview_to_percent(self, preview_x: float, preview_y: float) -> tuple[float, float]:
        base, _ = self._rasters()
        source_x = preview_x / self.display_scale
        source_y = preview_y / self.display_scale
        return source_x / base.width * 100, source_y / base.height * 100

    def pointer_down(self, preview_x: float, preview_y: float) -> bool:
        """Start dragging if the pointer is over the logo; return whether it did."""
        self._require(SessionState.READY)
        if not self.preview_placement().contains(preview_x, preview_y):
            return False
        pointer_x, pointer_y = self.preview_to_percent(preview_x, preview_y)
        self._drag_offset = (pointer_x - self.position_x, pointer_y - self.position_y)
        self.state = SessionState.DRAGGING
        return True

    def pointer_move(self, preview_x: float, preview_y: float) -> None:
        if self.state is not SessionState.DRAGGING:
            return
        pointer_x, pointer_y = self.preview_to_percent(preview_x, preview_y)
        self.set_position(pointer_x - self._drag_offset[0], pointer_y - self._drag_offset[1])

    def pointer_up(self) -> None:
        if self.state is not SessionState.DRAGGING:
            return
        self._drag_offset = (0.0, 0.0)
        self.state = SessionState.READY

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @property
    def preview(self) -> RasterImage:
        self._require(SessionState.READY, SessionState.DRAGGING)
        if self._preview is None:
            raise InvalidSessionState("Preview has not been rendered")
        return self._preview

    def source_placement(self) -> Placement:
        return self._placement_for(self.snapshot())

    def preview_placement(self) -> Placement:
        return self.source_placement().scaled(self.display_scale)

    def _placement_for(self, snapshot: EditorSnapshot, warn: bool = False) -> Placement:
        base, logo = self._rasters()
        options = WatermarkOptions(scale_fraction=snapshot.scale_fraction, opacity_fraction=snapshot.opacity_fraction)
        logo_box = target_logo_size(base.size, logo.size, options)
        top_left = center_to_top_left(base.size, logo_box, (snapshot.position_x, snapshot.position_y))
        return resolve_top_left(base.size, logo_box, top_left, warn=warn)

    def _check_fit(self) -> None:
        # Preview renders stay silent; an oversized logo is reported once per scale change.
        self._placement_for(self.snapshot(), warn=True)

    def _rebuild_preview_base(self) -> None:
        base, _ = self._rasters()
        self.display_scale = display_scale_for(base.size, self.viewport)
        preview_size = (
            max(1, round(base.width * self.display_scale)),
            max(1, round(base.height * self.display_scale)),
        )
        if self._preview_base is not None:
            self._preview_base.release()
        self._preview_base = resize_raster(base, preview_size)
        self._render_preview()

    def _render_preview(self) -> None:
        if self._preview_base is None:
            return
        _, logo = self._rasters()
        rendered = composite(self._preview_base, logo, self.preview_placement(), self.opacity_fraction)
        if self._preview is not None:
            self._preview.release()
        self._preview = rendered

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clamp_percent(self, value: float) -> float:
        return max(self.margin_percent, min(100 - self.margin_percent, value))

    def _rasters(self) -> tuple[RasterImage, RasterImage]:
        if self._base is None or self._logo is None:
            raise InvalidSessionState(f"Session has no decoded rasters in state {self.state.value}")
        return self._base, self._logo

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            expected = ", ".join(state.value for state in states)
            raise InvalidSessionState(f"Operation requires state {expected}; session is {self.state.value}")

    def _fail(self, exc: DecodeFailure, label: str, name: str) -> None:
        self.state = SessionState.FAILED
        self.error = exc
        logger.error("Editor session failed to decode %s %s: %s", label, name, exc)

    def _release_rasters(self) -> None:
        for raster in (self._preview, self._preview_base, self._base, self._logo):
            if raster is not None:
                raster.release()
        self._preview = None
        self._preview_base = None
        self._base = None
        self._logo = None
