"""End-to-end tests of the stitching pipeline."""

import numpy as np
import pytest

from pairstitch.errors import (DecodeFailure, EmptyFeatureSet, InsufficientMatches,
                               InvalidConfiguration)
from pairstitch.image_io import normalize
from pairstitch.panorama_stitcher import NUM_STEPS, PanoramaStitcher, StitchResult

SHIFT = 50


@pytest.fixture(scope='module')
def shifted_result(shifted_pair):
    return PanoramaStitcher().run(*shifted_pair)


def test_features_are_found_in_masked_halves(shifted_result):
    assert len(shifted_result.features_left) >= 1
    assert len(shifted_result.features_right) >= 1
    assert all(kp.x >= 400 for kp in shifted_result.features_left.keypoints)
    assert all(kp.x < 400 for kp in shifted_result.features_right.keypoints)


def test_shifted_pair_has_inliers(shifted_result):
    homography = shifted_result.homography

    assert homography.num_inliers >= 1
    assert len(homography) == len(shifted_result.matches)


def test_homography_is_the_shift(shifted_result):
    right_points = np.array([[0.0, 0.0], [400.0, 300.0], [799.0, 599.0]])

    left_points = shifted_result.homography.apply(right_points)

    np.testing.assert_allclose(left_points, right_points + [SHIFT, 0.0], atol=0.05)


def test_composite_keeps_left_image(shifted_pair, shifted_result):
    left, _ = shifted_pair
    panorama = shifted_result.panorama

    assert panorama.shape == (600, 1600, 4)
    np.testing.assert_array_equal(panorama[:, :800], normalize(left))


def test_composite_continues_the_scene(shifted_pair, shifted_result):
    _, right = shifted_pair
    panorama = shifted_result.panorama

    np.testing.assert_array_equal(panorama[:, 800:850, :3], right[:, 750:800])
    assert not panorama[:, 850:].any()


def test_five_step_images(shifted_pair, shifted_result):
    left, right = shifted_pair

    assert len(shifted_result) == NUM_STEPS == 5
    assert all(step.dtype == np.uint8 and step.shape[2] == 4 for step in shifted_result)

    original = shifted_result[0]
    assert original.shape == (600, 1600, 4)
    np.testing.assert_array_equal(original[:, :800], normalize(left))
    np.testing.assert_array_equal(original[:, 800:], normalize(right))

    for index in (1, 2, 3):
        assert shifted_result[index].shape == (600, 1600, 4)

    assert shifted_result.step('stitched') is shifted_result.panorama
    assert [img.size for img in shifted_result.images()] == [(1600, 600)] * 5


def test_step_images_are_read_only(shifted_result):
    with pytest.raises(ValueError):
        shifted_result[4][0, 0, 0] = 1


def test_runs_are_reproducible(small_pair):
    stitcher = PanoramaStitcher()

    first = stitcher.run(*small_pair)
    second = stitcher.run(*small_pair)

    np.testing.assert_array_equal(first.homography.matrix, second.homography.matrix)
    np.testing.assert_array_equal(first.homography.inlier_mask, second.homography.inlier_mask)
    np.testing.assert_array_equal(first.panorama, second.panorama)


def test_unrelated_images_fail_cleanly():
    """Noise either fails with InsufficientMatches or yields a result with few inliers."""
    rng = np.random.default_rng(21)
    left = rng.integers(0, 256, (200, 240, 3), dtype=np.uint8)
    right = rng.integers(0, 256, (200, 240, 3), dtype=np.uint8)

    try:
        result = PanoramaStitcher().run(left, right)
    except InsufficientMatches:
        return

    assert isinstance(result, StitchResult)
    assert result.homography.num_inliers <= len(result.matches)
    assert result.panorama.shape == (200, 480, 4)


def test_featureless_image_fails():
    flat = np.full((120, 160, 3), 90, dtype=np.uint8)

    with pytest.raises(EmptyFeatureSet) as excinfo:
        PanoramaStitcher().run(flat, flat)

    assert excinfo.value.side == 'left'


def test_undecodable_input_fails():
    with pytest.raises(DecodeFailure):
        PanoramaStitcher().run(b'not an image', b'not an image either')


@pytest.mark.parametrize('kwargs', [
    {'left_mask': (0.6, 0.4)},
    {'right_mask': (0.0, 1.5)},
    {'left_mask': (0.5,)},
    {'max_dimension': 0},
    {'matcher_params': {'threshold': -1.0}},
    {'ransac_params': {'ransac_reproj_threshold': 0.0}},
    {'detector_params': {'quality_level': 2.0}},
])
def test_invalid_configuration_is_rejected_up_front(kwargs):
    with pytest.raises(InvalidConfiguration):
        PanoramaStitcher(**kwargs)
