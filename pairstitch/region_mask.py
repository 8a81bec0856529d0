"""
Column-range masks restricting where features may be detected.
"""

import numpy as np

from .errors import InvalidConfiguration


def validate_fractions(min_fraction, max_fraction):
    """Raise InvalidConfiguration unless 0 <= min_fraction <= max_fraction <= 1."""
    if not 0.0 <= min_fraction <= max_fraction <= 1.0:
        raise InvalidConfiguration(
            f"Mask fractions must satisfy 0 <= min <= max <= 1, "
            f"got min={min_fraction}, max={max_fraction}"
        )


def build_mask(matrix, min_fraction, max_fraction):
    """
    Create a detection mask for an image.

    The mask is 1 for all columns i where min_fraction * n <= i < max_fraction * n
    and 0 elsewhere, where n is the number of columns.

    Args:
        matrix: Image the mask is built for (only its shape is used)
        min_fraction: Lower column bound as a fraction of the width
        max_fraction: Upper column bound as a fraction of the width

    Returns:
        mask: uint8 array (H x W) of zeros and ones
    """
    validate_fractions(min_fraction, max_fraction)

    rows, cols = matrix.shape[:2]
    x_min = int(min_fraction * cols)
    x_max = int(max_fraction * cols)

    mask = np.zeros((rows, cols), dtype=np.uint8)
    mask[:, x_min:x_max] = 1

    return mask
