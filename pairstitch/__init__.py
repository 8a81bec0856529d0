"""
Two-image panorama stitching with NumPy, SciPy and Pillow.

Main components:
- GFTT + BRIEF: corner detection and binary descriptors
- Feature Matching: Brute-force Hamming matcher with a best-distance filter
- Homography: RANSAC-based homography estimation
- Compositor: Warp the right image and paste the left image over it

Example usage:
    from pairstitch.image_io import write_image
    from pairstitch.panorama_stitcher import PanoramaStitcher

    stitcher = PanoramaStitcher()
    result = stitcher.run('left.jpg', 'right.jpg')
    write_image('panorama.png', result.panorama)
"""

__version__ = '1.0.0'

from .brief import BRIEF
from .compositor import Compositor
from .errors import (DecodeFailure, EmptyFeatureSet, InsufficientMatches,
                     InvalidConfiguration, StitchError)
from .extractor import FeatureExtractor
from .features import Feature, FeatureSet, Keypoint
from .gftt import GFTT
from .homography import Homography, HomographyEstimator, warp_perspective
from .image_io import normalize, read_image, read_images, to_grayscale, to_image, write_image
from .matcher import FeatureMatcher, Match
from .panorama_stitcher import NUM_STEPS, PanoramaStitcher, StitchResult
from .region_mask import build_mask

__all__ = [
    'BRIEF',
    'Compositor',
    'DecodeFailure',
    'EmptyFeatureSet',
    'Feature',
    'FeatureExtractor',
    'FeatureMatcher',
    'FeatureSet',
    'GFTT',
    'Homography',
    'HomographyEstimator',
    'InsufficientMatches',
    'InvalidConfiguration',
    'Keypoint',
    'Match',
    'NUM_STEPS',
    'PanoramaStitcher',
    'StitchError',
    'StitchResult',
    'build_mask',
    'normalize',
    'read_image',
    'read_images',
    'to_grayscale',
    'to_image',
    'warp_perspective',
    'write_image',
]
