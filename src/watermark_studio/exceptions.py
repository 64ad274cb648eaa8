"""
Domain-specific exceptions for the watermark compositing engine.

Every failure path raises a distinct subclass so callers (the batch runner, the
interactive editor, the CLI) can report a precise reason.  All exceptions
inherit from ``WatermarkStudioError`` so callers can also use a single broad
catch when needed.
"""

from __future__ import annotations


class WatermarkStudioError(Exception):
    """Base exception for all compositing errors."""


class DecodeFailure(WatermarkStudioError):
    """Raised when input bytes cannot be decoded into a raster.

    Attributes
    ----------
    reason:
        Short machine-readable cause: ``empty``, ``unsupported_format``,
        ``corrupt_data`` or ``too_large``.
    """

    def __init__(self, message: str, reason: str = "corrupt_data") -> None:
        super().__init__(message)
        self.reason = reason


class InvalidGeometry(WatermarkStudioError):
    """Raised when a surface or placement box has zero width or height."""


class EncodeFailure(WatermarkStudioError):
    """Raised when a composited surface cannot be serialized."""


class RasterReleasedError(WatermarkStudioError):
    """Raised when a raster is used after its pixel handle was released."""


class InvalidSessionState(WatermarkStudioError):
    """Raised when an editor session operation is invoked in the wrong state."""


class ConfigurationError(WatermarkStudioError):
    """Raised when required configuration (config files, env vars) is missing."""


class PlacementOutOfBounds(UserWarning):
    """Issued when the scaled logo is larger than the base image.

    This is a warning category, not an error: the placement is clamped to the
    top-left edge and the logo overflows visibly.
    """
