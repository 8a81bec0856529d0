"""
Error types raised by the stitching pipeline.

Every failure of a run is one of the kinds below; the pipeline never
returns a partial result.
"""


class StitchError(Exception):
    """Base class for all stitching failures."""


class DecodeFailure(StitchError, IOError):
    """The source image could not be decoded into a pixel matrix."""


class EmptyFeatureSet(StitchError, ValueError):
    """No features were found in the masked region of an image."""

    def __init__(self, side, message=None):
        self.side = side
        super().__init__(message or f"No features detected in the {side} image")


class InsufficientMatches(StitchError, ValueError):
    """Too few matches to fit a homography, or no consensus was reached."""

    def __init__(self, count, message=None):
        self.count = count
        super().__init__(message or f"Not enough matches to compute homography ({count})")


class InvalidConfiguration(StitchError, ValueError):
    """A configuration parameter is out of range."""
