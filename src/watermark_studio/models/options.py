from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class WatermarkOptions(BaseModel):
    scale_fraction: float = Field(default=0.15, gt=0.0, le=1.0)
    opacity_fraction: float = Field(default=0.8, ge=0.0, le=1.0)
    margin_fraction: float = Field(default=0.02, ge=0.0, lt=1.0)
    # "logo": fraction of the logo's natural width.
    # "base": fraction of the base width, capped at the logo's natural width.
    scale_reference: Literal["logo", "base"] = "logo"

    def logo_scale_for(self, base_size: tuple[int, int], logo_size: tuple[int, int]) -> float:
        """Return the scale expressed as a fraction of the logo's natural width."""
        if self.scale_reference == "logo":
            return self.scale_fraction
        base_width = base_size[0]
        logo_width = logo_size[0]
        target_width = min(base_width * self.scale_fraction, logo_width)
        return target_width / logo_width


class EncoderSettings(BaseModel):
    compress_level: int = Field(default=6, ge=0, le=9)
    optimize: bool = False


class ViewportSettings(BaseModel):
    max_display_width: int = Field(default=960, gt=0)
    max_display_height: int = Field(default=600, gt=0)
