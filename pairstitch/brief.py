"""
BRIEF binary descriptor using NumPy and SciPy.
"""

import numpy as np
from scipy.ndimage import gaussian_filter

from .errors import InvalidConfiguration


class BRIEF:
    """
    Binary Robust Independent Elementary Features.

    Each bit of a descriptor is the outcome of one intensity comparison
    between two points of a smoothed patch centred on the keypoint. The
    point pairs are drawn once from an isotropic Gaussian, so two
    instances built with the same parameters produce comparable
    descriptors.
    """

    def __init__(self, num_bits=256, patch_size=31, smoothing_sigma=2.0, seed=0):
        """
        Initialize BRIEF descriptor.

        Args:
            num_bits: Descriptor length in bits (multiple of 8)
            patch_size: Side of the square sampling patch (odd)
            smoothing_sigma: Gaussian smoothing applied before sampling
            seed: Seed for the sampling pattern
        """
        if num_bits < 8 or num_bits % 8 != 0:
            raise InvalidConfiguration(f"num_bits must be a positive multiple of 8, got {num_bits}")
        if patch_size < 5 or patch_size % 2 == 0:
            raise InvalidConfiguration(f"patch_size must be odd and at least 5, got {patch_size}")
        if smoothing_sigma < 0:
            raise InvalidConfiguration(f"smoothing_sigma must be non-negative, got {smoothing_sigma}")

        self.num_bits = num_bits
        self.patch_size = patch_size
        self.smoothing_sigma = smoothing_sigma
        self.radius = patch_size // 2
        self.pattern = self._sampling_pattern(seed)

    @property
    def descriptor_size(self):
        """Number of bytes per descriptor."""
        return self.num_bits // 8

    def compute(self, image, keypoints):
        """
        Compute descriptors for keypoints.

        Keypoints whose patch does not fit inside the image are dropped.

        Args:
            image: Grayscale image (2D numpy array)
            keypoints: List of Keypoint

        Returns:
            keypoints: Keypoints that received a descriptor
            descriptors: Packed bit array (N x num_bits / 8), uint8
        """
        h, w = image.shape
        r = self.radius

        xs = np.array([int(round(kp.x)) for kp in keypoints], dtype=np.intp)
        ys = np.array([int(round(kp.y)) for kp in keypoints], dtype=np.intp)

        inside = (xs >= r) & (xs < w - r) & (ys >= r) & (ys < h - r)
        kept = [kp for kp, ok in zip(keypoints, inside) if ok]

        if not kept:
            return [], np.zeros((0, self.descriptor_size), dtype=np.uint8)

        xs = xs[inside][:, np.newaxis]
        ys = ys[inside][:, np.newaxis]

        smoothed = gaussian_filter(image.astype(np.float64), self.smoothing_sigma)

        x1, y1, x2, y2 = self.pattern.T
        first = smoothed[ys + y1, xs + x1]
        second = smoothed[ys + y2, xs + x2]

        return kept, np.packbits(first < second, axis=1)

    def _sampling_pattern(self, seed):
        """Point pairs (x1, y1, x2, y2) relative to the patch centre."""
        rng = np.random.default_rng(seed)
        offsets = rng.normal(0.0, self.patch_size / 5.0, size=(self.num_bits, 4))
        offsets = np.clip(np.rint(offsets), -self.radius, self.radius)
        return offsets.astype(np.intp)
