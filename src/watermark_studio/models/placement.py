from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

Corner = Literal["top-left", "top-right", "bottom-left", "bottom-right"]

CORNERS: tuple[Corner, ...] = ("top-left", "top-right", "bottom-left", "bottom-right")


class AnchoredPlacement(BaseModel):
    """Logo pinned to a named corner of the base image, inset by the margin."""

    kind: Literal["anchored"] = "anchored"
    corner: Corner = "bottom-right"


class CustomFractionPlacement(BaseModel):
    """Logo center given as a percentage of the base image width and height."""

    kind: Literal["custom_fraction"] = "custom_fraction"
    x_fraction: float = Field(ge=0.0, le=100.0)
    y_fraction: float = Field(ge=0.0, le=100.0)


class CustomPixelPlacement(BaseModel):
    """Logo top-left corner given in source pixels."""

    kind: Literal["custom_pixels"] = "custom_pixels"
    x_pixels: float
    y_pixels: float


PlacementSpec = Annotated[
    Union[AnchoredPlacement, CustomFractionPlacement, CustomPixelPlacement],
    Field(discriminator="kind"),
]
