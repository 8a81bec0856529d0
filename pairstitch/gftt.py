"""
Shi-Tomasi "good features to track" corner detector
using NumPy and SciPy.
"""

import numpy as np
from scipy.ndimage import correlate1d, maximum_filter, sobel

from .errors import InvalidConfiguration
from .features import Keypoint


class GFTT:
    """
    Corner detector based on the minimum eigenvalue of the structure tensor.

    The pipeline is:
    1. Sobel gradients and block-summed structure tensor
    2. Minimum eigenvalue response
    3. Quality threshold relative to the strongest response inside the mask
    4. 3x3 non-maximum suppression
    5. Greedy minimum-distance filtering, strongest corners first
    """

    def __init__(self, max_corners=1000, quality_level=0.01, min_distance=5.0,
                 block_size=3):
        """
        Initialize GFTT detector.

        Args:
            max_corners: Maximum number of corners to return
            quality_level: Fraction of the best response a corner must exceed
            min_distance: Minimum Euclidean distance between returned corners
            block_size: Size of the window summing the structure tensor
        """
        if max_corners < 1:
            raise InvalidConfiguration(f"max_corners must be positive, got {max_corners}")
        if not 0.0 < quality_level < 1.0:
            raise InvalidConfiguration(f"quality_level must be in (0, 1), got {quality_level}")
        if min_distance < 0:
            raise InvalidConfiguration(f"min_distance must be non-negative, got {min_distance}")
        if block_size < 1:
            raise InvalidConfiguration(f"block_size must be positive, got {block_size}")

        self.max_corners = int(max_corners)
        self.quality_level = quality_level
        self.min_distance = min_distance
        self.block_size = int(block_size)

    def detect(self, image, mask=None):
        """
        Detect corners in a grayscale image.

        Args:
            image: Grayscale image (2D numpy array)
            mask: Optional array of the same size; corners are only
                reported where it is non-zero

        Returns:
            keypoints: List of Keypoint, strongest first
        """
        response = self.corner_response(image)

        if mask is None:
            allowed = np.ones(response.shape, dtype=bool)
        else:
            allowed = np.asarray(mask) != 0

        if not np.any(allowed):
            return []

        max_response = response[allowed].max()
        if max_response <= 0:
            return []

        # Local maxima above the quality threshold
        threshold = max_response * self.quality_level
        is_peak = response == maximum_filter(response, size=3)
        candidates = is_peak & allowed & (response > threshold)

        ys, xs = np.nonzero(candidates)
        order = np.argsort(-response[ys, xs], kind='stable')

        corners = self._enforce_min_distance(ys[order], xs[order], response.shape)

        return [
            Keypoint(float(x), float(y), float(self.block_size), -1.0,
                     float(response[y, x]), 0)
            for y, x in corners
        ]

    def corner_response(self, image):
        """Minimum eigenvalue of the structure tensor at every pixel."""
        image = np.asarray(image, dtype=np.float64)

        gx = sobel(image, axis=1)
        gy = sobel(image, axis=0)

        a = self._block_sum(gx * gx)
        b = self._block_sum(gx * gy)
        c = self._block_sum(gy * gy)

        half_trace = (a + c) / 2.0
        return half_trace - np.sqrt(((a - c) / 2.0) ** 2 + b ** 2)

    def _block_sum(self, values):
        weights = np.ones(self.block_size)
        summed = correlate1d(values, weights, axis=0)
        return correlate1d(summed, weights, axis=1)

    def _enforce_min_distance(self, ys, xs, shape):
        """Greedily accept corners that keep min_distance to accepted ones."""
        if self.min_distance <= 0:
            return list(zip(ys[:self.max_corners], xs[:self.max_corners]))

        h, w = shape
        r = int(np.ceil(self.min_distance))
        dy, dx = np.mgrid[-r:r + 1, -r:r + 1]
        disk = dx ** 2 + dy ** 2 < self.min_distance ** 2

        occupied = np.zeros(shape, dtype=bool)
        accepted = []

        for y, x in zip(ys, xs):
            if occupied[y, x]:
                continue

            accepted.append((y, x))
            if len(accepted) >= self.max_corners:
                break

            y0, y1 = max(0, y - r), min(h, y + r + 1)
            x0, x1 = max(0, x - r), min(w, x + r + 1)
            occupied[y0:y1, x0:x1] |= disk[y0 - y + r:y1 - y + r, x0 - x + r:x1 - x + r]

        return accepted
