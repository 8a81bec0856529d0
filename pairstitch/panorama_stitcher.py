"""
Two-image stitching pipeline.

The pipeline normalizes both images, detects features in the halves
most likely to overlap, matches them, fits a homography with RANSAC and
composites the right image into the left image's frame. Every stage
also produces an image for inspection.
"""

import logging
from collections.abc import Sequence

from .compositor import Compositor
from .errors import EmptyFeatureSet, InvalidConfiguration
from .extractor import FeatureExtractor
from .homography import HomographyEstimator
from .image_io import DEFAULT_MAX_DIMENSION, normalize, to_grayscale, to_image
from .matcher import FeatureMatcher
from .region_mask import build_mask, validate_fractions
from .visualize import draw_keypoints, draw_matches, merge_side_by_side

logger = logging.getLogger(__name__)

STEP_NAMES = ('original', 'features', 'matches', 'inliers', 'stitched')
NUM_STEPS = len(STEP_NAMES)

# Left photo overlaps with its right half, right photo with its left half
LEFT_MASK = (0.5, 1.0)
RIGHT_MASK = (0.0, 0.5)


class StitchResult(Sequence):
    """
    The five step images of one run, indexable 0..4:

    0. both normalized color images side by side
    1. grayscale images with detected keypoints
    2. grayscale images with all filtered matches
    3. grayscale images with the matches used for the homography
    4. the stitched image

    The features, matches and homography of the run are kept for inspection.
    """

    def __init__(self, steps, features_left, features_right, matches, homography):
        steps = tuple(steps)
        if len(steps) != NUM_STEPS:
            raise ValueError(f"Expected {NUM_STEPS} step images, got {len(steps)}")

        for step in steps:
            step.setflags(write=False)

        self._steps = steps
        self.features_left = features_left
        self.features_right = features_right
        self.matches = tuple(matches)
        self.homography = homography

    def __getitem__(self, index):
        return self._steps[index]

    def __len__(self):
        return len(self._steps)

    @property
    def panorama(self):
        return self._steps[-1]

    def step(self, name):
        """Step image by name, see STEP_NAMES."""
        return self._steps[STEP_NAMES.index(name)]

    def images(self):
        """Step images as PIL images."""
        return [to_image(step) for step in self._steps]


class PanoramaStitcher:
    """
    Complete two-image stitching pipeline.

    This class coordinates all components:
    1. Image normalization
    2. GFTT/BRIEF feature detection in the overlap regions
    3. Feature matching
    4. Homography estimation with RANSAC
    5. Warping and compositing

    ``run`` is blocking; callers that must stay responsive should submit
    it to a worker (see ``stitch_cli.submit_run``). Instances hold only
    configuration, so one stitcher can serve any number of runs.
    """

    def __init__(self,
                 detector_params=None,
                 descriptor_params=None,
                 matcher_params=None,
                 ransac_params=None,
                 max_dimension=DEFAULT_MAX_DIMENSION,
                 left_mask=LEFT_MASK,
                 right_mask=RIGHT_MASK):
        """
        Initialize Panorama Stitcher.

        Args:
            detector_params: Parameters for the GFTT detector
            descriptor_params: Parameters for the BRIEF descriptor
            matcher_params: Parameters for the feature matcher
            ransac_params: Parameters for RANSAC
            max_dimension: Larger images are downscaled to this size
            left_mask: (min, max) column fractions searched in the left image
            right_mask: (min, max) column fractions searched in the right image
        """
        if max_dimension < 1:
            raise InvalidConfiguration(f"max_dimension must be positive, got {max_dimension}")

        for fractions in (left_mask, right_mask):
            if len(fractions) != 2:
                raise InvalidConfiguration(f"Mask must be a (min, max) pair, got {fractions!r}")
            validate_fractions(*fractions)

        self.max_dimension = max_dimension
        self.left_mask = tuple(left_mask)
        self.right_mask = tuple(right_mask)

        self.extractor = FeatureExtractor(detector_params, descriptor_params)

        matcher_params = dict(matcher_params or {})
        matcher_params.setdefault('norm', self.extractor.norm)
        self.matcher = FeatureMatcher(**matcher_params)

        self.homography_estimator = HomographyEstimator(**(ransac_params or {}))
        self.compositor = Compositor()

    def run(self, img1, img2):
        """
        Stitch two images together.

        Args:
            img1: Left image, in any form accepted by image_io.normalize
            img2: Right image

        Returns:
            StitchResult with the five step images
        """
        color1 = normalize(img1, self.max_dimension)
        color2 = normalize(img2, self.max_dimension)
        gray1 = to_grayscale(color1)
        gray2 = to_grayscale(color2)

        original = merge_side_by_side(color1, color2)

        logger.info("Detecting features in left image...")
        features1 = self._detect(gray1, self.left_mask, 'left')
        logger.info("Detecting features in right image...")
        features2 = self._detect(gray2, self.right_mask, 'right')

        keypoints1 = features1.keypoints
        keypoints2 = features2.keypoints

        detected = merge_side_by_side(draw_keypoints(gray1, keypoints1),
                                      draw_keypoints(gray2, keypoints2))

        logger.info("Matching features...")
        matches = self.matcher.match(features1.descriptors, features2.descriptors)
        logger.info("Found %d matches", len(matches))

        matched = draw_matches(gray1, keypoints1, gray2, keypoints2, matches)

        logger.info("Computing homography with RANSAC...")
        homography = self.homography_estimator.estimate(features1, features2, matches)
        logger.info("Found %d inliers out of %d matches", homography.num_inliers, len(matches))

        used = draw_matches(gray1, keypoints1, gray2, keypoints2, homography.inliers)

        logger.info("Compositing images...")
        stitched = self.compositor.compose(color1, color2, homography.matrix)

        return StitchResult(
            [original, detected, matched, used, stitched],
            features1, features2, matches, homography,
        )

    def _detect(self, gray, fractions, side):
        mask = build_mask(gray, *fractions)
        features = self.extractor.detect(gray, mask)

        logger.info("Found %d keypoints in %s image", len(features), side)

        if len(features) == 0:
            raise EmptyFeatureSet(side)

        return features
