from __future__ import annotations

from pydantic import BaseModel, Field

from .options import EncoderSettings, ViewportSettings, WatermarkOptions
from .placement import AnchoredPlacement, PlacementSpec


class EditorDefaults(BaseModel):
    position_x: float = Field(default=80.0, ge=0.0, le=100.0)
    position_y: float = Field(default=80.0, ge=0.0, le=100.0)
    scale_fraction: float = Field(default=0.15, gt=0.0, le=1.0)
    opacity_fraction: float = Field(default=0.9, ge=0.0, le=1.0)
    margin_fraction: float = Field(default=0.05, ge=0.0, lt=0.5)


class WatermarkConfig(BaseModel):
    placement: PlacementSpec = Field(default_factory=AnchoredPlacement)
    options: WatermarkOptions = Field(default_factory=WatermarkOptions)
    encoder: EncoderSettings = Field(default_factory=EncoderSettings)
    viewport: ViewportSettings = Field(default_factory=ViewportSettings)
    editor: EditorDefaults = Field(default_factory=EditorDefaults)
    preview_max_edge: int = Field(default=1024, gt=0)
