from .resolver import (
    Placement,
    center_to_top_left,
    resolve_placement,
    resolve_top_left,
    target_logo_size,
    top_left_for,
)

__all__ = [
    "Placement",
    "center_to_top_left",
    "resolve_placement",
    "resolve_top_left",
    "target_logo_size",
    "top_left_for",
]
