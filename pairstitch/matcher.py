"""
Brute-force nearest-neighbour feature matching with a best-distance filter.
"""

import logging
from collections import namedtuple

import numpy as np

from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

Match = namedtuple('Match', ['query_idx', 'train_idx', 'distance'])

NORMS = ('hamming', 'l2')


class FeatureMatcher:
    """
    Matches every left descriptor to its nearest right descriptor, then
    keeps the matches that are at most ``threshold`` times worse than the
    best one.

    This is a one-sided filter: matches are neither cross-checked nor
    ratio-tested against the second-best neighbour.

    The ``min_distance_floor`` only matters when the best distance is below
    1. Otherwise the cutoff is exactly ``threshold`` times the best distance.
    """

    def __init__(self, threshold=3.0, norm='hamming', min_distance_floor=1.0):
        """
        Initialize feature matcher.

        Args:
            threshold: Keep matches with distance < threshold * best distance
            norm: 'hamming' for packed binary descriptors, 'l2' for float ones
            min_distance_floor: Lower bound applied to the best distance, so
                that a perfect match does not reject all others
        """
        if threshold <= 0:
            raise InvalidConfiguration(f"Match threshold must be positive, got {threshold}")
        if norm not in NORMS:
            raise InvalidConfiguration(f"Unknown norm {norm!r}, expected one of {NORMS}")
        if min_distance_floor < 0:
            raise InvalidConfiguration(
                f"min_distance_floor must be non-negative, got {min_distance_floor}"
            )

        self.threshold = threshold
        self.norm = norm
        self.min_distance_floor = min_distance_floor

    def match(self, descriptors1, descriptors2):
        """
        Match features between two sets of descriptors.

        Args:
            descriptors1: Descriptors from the left image (N x D)
            descriptors2: Descriptors from the right image (M x D)

        Returns:
            matches: List of Match sorted by ascending distance
        """
        candidates = self.nearest_neighbors(descriptors1, descriptors2)

        if not candidates:
            return []

        min_distance = min(m.distance for m in candidates)
        cutoff = self.threshold * max(min_distance, self.min_distance_floor)

        matches = [m for m in candidates if m.distance < cutoff]
        matches.sort(key=lambda m: m.distance)

        logger.debug("Kept %d of %d candidate matches (best distance %.1f)",
                     len(matches), len(candidates), min_distance)

        return matches

    def nearest_neighbors(self, descriptors1, descriptors2):
        """One candidate Match per left descriptor, unfiltered."""
        if len(descriptors1) == 0 or len(descriptors2) == 0:
            return []

        distances = self.distance_matrix(descriptors1, descriptors2)

        # argmin picks the lowest index on ties
        best = np.argmin(distances, axis=1)
        best_distances = distances[np.arange(len(best)), best]

        return [
            Match(i, int(j), float(d))
            for i, (j, d) in enumerate(zip(best, best_distances))
        ]

    def distance_matrix(self, descriptors1, descriptors2):
        """
        Compute the distance between every pair of descriptors.

        Returns:
            distances: N x M matrix where distances[i, j] is the distance
                       between descriptors1[i] and descriptors2[j]
        """
        if self.norm == 'hamming':
            return self._hamming_distance_matrix(descriptors1, descriptors2)
        return self._l2_distance_matrix(descriptors1, descriptors2)

    def _hamming_distance_matrix(self, desc1, desc2):
        # Number of differing bits = bits - agreeing ones - agreeing zeros
        bits1 = np.unpackbits(np.asarray(desc1, dtype=np.uint8), axis=1).astype(np.float32)
        bits2 = np.unpackbits(np.asarray(desc2, dtype=np.uint8), axis=1).astype(np.float32)

        agree = bits1 @ bits2.T + (1 - bits1) @ (1 - bits2).T
        return np.rint(bits1.shape[1] - agree)

    def _l2_distance_matrix(self, desc1, desc2):
        # ||a - b||^2 = ||a||^2 + ||b||^2 - 2*a·b
        desc1 = np.asarray(desc1, dtype=np.float64)
        desc2 = np.asarray(desc2, dtype=np.float64)

        sq_norms1 = np.sum(desc1 ** 2, axis=1, keepdims=True)
        sq_norms2 = np.sum(desc2 ** 2, axis=1, keepdims=True)

        sq_distances = sq_norms1 + sq_norms2.T - 2 * np.dot(desc1, desc2.T)

        return np.sqrt(np.maximum(sq_distances, 0))
