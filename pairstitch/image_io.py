"""
Image I/O utilities using PIL (Pillow).

Converts source images into normalized pixel matrices (RGBA uint8 numpy
arrays) and back into Pillow images for display or saving.
"""

import io
import logging
import os

import numpy as np
from PIL import Image

from .errors import DecodeFailure, InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 1024

# ITU-R BT.601 luma weights
GRAY_WEIGHTS = np.array([0.299, 0.587, 0.114])

# 32-bit integer and float modes, read as samples in the 16-bit range
WIDE_MODES = ('I', 'F')


def normalize(raw_image, max_dimension=DEFAULT_MAX_DIMENSION):
    """
    Convert a source image to a normalized pixel matrix.

    Images whose larger side exceeds ``max_dimension`` are uniformly
    downscaled with bilinear interpolation so that the larger side
    becomes ``max_dimension``.

    Args:
        raw_image: PIL image, file path, encoded bytes, binary file object
            or uint8/uint16 numpy array (H x W, H x W x 3 or H x W x 4).
            16-bit sources are rescaled to 8 bits
        max_dimension: Maximum allowed width or height

    Returns:
        RGBA image as uint8 numpy array (H x W x 4)
    """
    if max_dimension < 1:
        raise InvalidConfiguration(f"max_dimension must be positive, got {max_dimension}")

    img = _decode(raw_image).convert('RGBA')

    w, h = img.size
    scale = max_dimension / max(w, h)

    if scale < 1.0:
        new_size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
        logger.debug("Downscaling %dx%d image to %dx%d", w, h, new_size[0], new_size[1])
        img = img.resize(new_size, Image.BILINEAR)

    return np.array(img)


def to_image(matrix):
    """
    Convert a pixel matrix to a PIL image.

    Args:
        matrix: uint8 numpy array (H x W), (H x W x 3) or (H x W x 4)

    Returns:
        PIL Image in mode L, RGB or RGBA
    """
    if matrix.dtype != np.uint8:
        matrix = np.clip(matrix, 0, 255).astype(np.uint8)

    return Image.fromarray(np.ascontiguousarray(matrix))


def to_grayscale(matrix):
    """Convert a pixel matrix to a single-channel uint8 matrix."""
    if matrix.ndim == 2:
        return matrix.copy()

    gray = np.dot(matrix[..., :3].astype(np.float64), GRAY_WEIGHTS)
    return np.clip(np.rint(gray), 0, 255).astype(np.uint8)


def read_image(filepath, max_dimension=DEFAULT_MAX_DIMENSION):
    """
    Read image from file.

    Args:
        filepath: Path to image file
        max_dimension: Maximum allowed width or height

    Returns:
        Normalized RGBA image as numpy array (H x W x 4)
    """
    return normalize(os.fspath(filepath), max_dimension)


def read_images(filepaths, max_dimension=DEFAULT_MAX_DIMENSION):
    """Read multiple images."""
    return [read_image(filepath, max_dimension) for filepath in filepaths]


def write_image(filepath, image):
    """
    Write image to file.

    Args:
        filepath: Path to save image
        image: Image as numpy array
    """
    try:
        to_image(image).save(filepath)
    except (OSError, ValueError) as e:
        raise IOError(f"Failed to write image to {filepath}: {e}") from e


def _decode(raw_image):
    """Turn any supported image source into a loaded 8-bit PIL image."""
    if isinstance(raw_image, Image.Image):
        img = raw_image
    elif isinstance(raw_image, np.ndarray):
        img = _from_array(raw_image)
    else:
        if isinstance(raw_image, (bytes, bytearray)):
            raw_image = io.BytesIO(raw_image)
        try:
            img = Image.open(raw_image)
            img.load()
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise DecodeFailure(f"Failed to decode image: {e}") from e

    if img.width < 1 or img.height < 1:
        raise DecodeFailure(f"Image has no pixels ({img.width}x{img.height})")

    # Pillow clips rather than rescales these modes when converting to RGBA
    if img.mode in WIDE_MODES or img.mode.startswith('I;16'):
        img = Image.fromarray(_to_8bit(np.asarray(img)))

    return img


def _to_8bit(array):
    """Rescale 16-bit range samples to 8 bits by keeping the high byte."""
    if array.dtype != np.uint16:
        array = np.clip(array, 0, 65535).astype(np.uint16)
    return (array >> 8).astype(np.uint8)


def _from_array(array):
    if array.dtype == np.uint16:
        array = _to_8bit(array)

    if array.dtype != np.uint8:
        raise DecodeFailure(f"Unsupported pixel type {array.dtype}, expected uint8 or uint16")

    if array.ndim == 3 and array.shape[2] == 1:
        array = array[:, :, 0]

    if array.ndim not in (2, 3) or (array.ndim == 3 and array.shape[2] not in (3, 4)):
        raise DecodeFailure(f"Unsupported image shape {array.shape}")

    if array.size == 0:
        raise DecodeFailure(f"Image has no pixels {array.shape}")

    return Image.fromarray(np.ascontiguousarray(array))
