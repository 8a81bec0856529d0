"""
Keypoint and feature containers shared by the detector, descriptor and matcher.
"""

from collections import namedtuple
from collections.abc import Sequence

import numpy as np


class Keypoint(namedtuple('Keypoint', ['x', 'y', 'size', 'angle', 'response', 'octave'])):
    """Detected image location with detector metadata."""

    __slots__ = ()

    @property
    def pt(self):
        """(x, y) coordinates"""
        return (self.x, self.y)

    def __repr__(self):
        return (f"Keypoint(pt=({self.x:.1f}, {self.y:.1f}), size={self.size:.2f}, "
                f"response={self.response:.4g})")


Feature = namedtuple('Feature', ['keypoint', 'descriptor'])


class FeatureSet(Sequence):
    """
    Ordered, read-only collection of features detected in one image.

    The position of a feature is its identity for the rest of the run;
    matches refer to features by index.
    """

    def __init__(self, keypoints, descriptors):
        """
        Args:
            keypoints: List of Keypoint
            descriptors: Array with one descriptor row per keypoint
        """
        descriptors = np.array(descriptors)

        if len(keypoints) != len(descriptors):
            raise ValueError(
                f"Got {len(keypoints)} keypoints but {len(descriptors)} descriptors"
            )

        descriptors.setflags(write=False)
        self._descriptors = descriptors
        self._features = tuple(
            Feature(kp, desc) for kp, desc in zip(keypoints, descriptors)
        )

    @classmethod
    def empty(cls, descriptor_size, dtype=np.uint8):
        return cls([], np.zeros((0, descriptor_size), dtype=dtype))

    def __getitem__(self, index):
        return self._features[index]

    def __len__(self):
        return len(self._features)

    def __repr__(self):
        return f"FeatureSet({len(self)} features)"

    @property
    def keypoints(self):
        return [feature.keypoint for feature in self._features]

    @property
    def descriptors(self):
        """Descriptors stacked into one (N x D) array."""
        return self._descriptors

    def points(self, indices=None):
        """Keypoint coordinates as an (N x 2) float array."""
        features = self._features if indices is None else [self._features[i] for i in indices]
        if not features:
            return np.zeros((0, 2))
        return np.array([feature.keypoint.pt for feature in features], dtype=np.float64)
