"""
Feature extraction: GFTT corners described with BRIEF.
"""

import logging

from .brief import BRIEF
from .features import FeatureSet
from .gftt import GFTT

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """
    Detects keypoints inside a mask and describes them.

    Both images of one run must go through the same extractor so their
    descriptors are comparable.
    """

    # Distance norm suited to the descriptors this extractor produces
    norm = 'hamming'

    def __init__(self, detector_params=None, descriptor_params=None):
        """
        Initialize feature extractor.

        Args:
            detector_params: Parameters for the GFTT detector
            descriptor_params: Parameters for the BRIEF descriptor
        """
        self.detector = GFTT(**(detector_params or {}))
        self.descriptor = BRIEF(**(descriptor_params or {}))

    def detect(self, image, mask=None):
        """
        Detect and describe features.

        Args:
            image: Grayscale image (2D uint8 numpy array)
            mask: Optional detection mask of the same size

        Returns:
            FeatureSet, possibly empty
        """
        if image.ndim != 2:
            raise ValueError(f"Feature detection requires a grayscale image, got shape {image.shape}")

        if mask is not None and mask.shape != image.shape:
            raise ValueError(f"Mask shape {mask.shape} does not match image shape {image.shape}")

        keypoints = self.detector.detect(image, mask)
        described, descriptors = self.descriptor.compute(image, keypoints)

        logger.debug("Detected %d corners, %d described", len(keypoints), len(described))

        return FeatureSet(described, descriptors)
