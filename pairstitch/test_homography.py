"""Tests for RANSAC homography estimation and perspective warping."""

import numpy as np
import pytest

from pairstitch.errors import InsufficientMatches, InvalidConfiguration
from pairstitch.features import FeatureSet, Keypoint
from pairstitch.homography import (HomographyEstimator, apply_homography,
                                   warp_perspective)
from pairstitch.matcher import Match

H_TRUE = np.array([
    [1.02, 0.01, 30.0],
    [0.005, 0.98, -12.0],
    [1e-5, 2e-5, 1.0],
])


def random_points(n, seed=0):
    return np.random.default_rng(seed).uniform(0, 500, size=(n, 2))


def feature_set(points):
    keypoints = [Keypoint(float(x), float(y), 3.0, -1.0, 1.0, 0) for x, y in points]
    return FeatureSet(keypoints, np.zeros((len(points), 32), dtype=np.uint8))


def test_perfect_correspondences_recover_ground_truth():
    src = random_points(20)
    dst = apply_homography(src, H_TRUE)

    H, mask = HomographyEstimator().find_homography(src, dst)

    assert mask.all()
    np.testing.assert_allclose(H, H_TRUE, rtol=1e-6, atol=1e-8)


def test_four_points_are_enough():
    src = np.array([[0.0, 0.0], [100.0, 0.0], [100.0, 80.0], [0.0, 80.0]])
    dst = apply_homography(src, H_TRUE)

    H, mask = HomographyEstimator().find_homography(src, dst)

    assert mask.tolist() == [True] * 4
    np.testing.assert_allclose(apply_homography(src, H), dst, atol=1e-6)


def test_outliers_are_flagged():
    src = random_points(40, seed=1)
    dst = apply_homography(src, H_TRUE)
    dst[30:] = random_points(10, seed=2)

    H, mask = HomographyEstimator().find_homography(src, dst)

    assert mask[:30].all()
    assert not mask[30:].any()
    np.testing.assert_allclose(H, H_TRUE, rtol=1e-6, atol=1e-8)


def test_same_seed_same_result():
    src = random_points(60, seed=3)
    dst = apply_homography(src, H_TRUE) + np.random.default_rng(4).normal(0, 0.4, (60, 2))
    dst[40:] = random_points(20, seed=5)

    H1, mask1 = HomographyEstimator(seed=7).find_homography(src, dst)
    H2, mask2 = HomographyEstimator(seed=7).find_homography(src, dst)

    np.testing.assert_array_equal(H1, H2)
    np.testing.assert_array_equal(mask1, mask2)


def test_fewer_than_four_points():
    src = random_points(3)

    with pytest.raises(InsufficientMatches) as excinfo:
        HomographyEstimator().find_homography(src, src)

    assert excinfo.value.count == 3


def test_no_consensus():
    src = random_points(12, seed=8)
    dst = random_points(12, seed=9)

    with pytest.raises(InsufficientMatches):
        HomographyEstimator(min_inliers=10).find_homography(src, dst)


def test_collinear_points_have_no_model():
    src = np.column_stack([np.arange(10.0), np.arange(10.0)])

    with pytest.raises(InsufficientMatches):
        HomographyEstimator().find_homography(src, src + 5)


def test_estimate_flags_every_match():
    """Right keypoints are mapped onto left keypoints."""
    right_points = random_points(10, seed=10)
    left_points = apply_homography(right_points, H_TRUE)
    matches = [Match(i, 9 - i, 0.0) for i in range(10)]

    homography = HomographyEstimator().estimate(
        feature_set(left_points), feature_set(right_points[::-1]), matches
    )

    assert len(homography) == len(matches)
    assert homography.inlier_mask.tolist() == [True] * 10
    assert homography.inliers == matches
    assert homography.num_inliers == 10
    np.testing.assert_allclose(homography.apply(right_points), left_points, atol=1e-6)
    with pytest.raises(ValueError):
        homography.matrix[0, 0] = 2.0


def test_estimate_needs_four_matches():
    points = random_points(3)
    matches = [Match(i, i, 0.0) for i in range(3)]

    with pytest.raises(InsufficientMatches):
        HomographyEstimator().estimate(feature_set(points), feature_set(points), matches)


@pytest.mark.parametrize('params', [
    {'ransac_reproj_threshold': 0},
    {'max_iters': 0},
    {'confidence': 1.0},
    {'min_matches': 3},
    {'min_inliers': 2},
])
def test_invalid_configuration(params):
    with pytest.raises(InvalidConfiguration):
        HomographyEstimator(**params)


def test_warp_identity():
    image = np.random.default_rng(0).integers(0, 256, (20, 30, 4), dtype=np.uint8)

    np.testing.assert_array_equal(warp_perspective(image, np.eye(3), (20, 30)), image)


def test_warp_translation():
    image = np.random.default_rng(0).integers(0, 256, (20, 30), dtype=np.uint8)
    shift = np.array([[1.0, 0.0, 5.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])

    warped = warp_perspective(image, shift, (20, 30))

    assert warped.shape == (20, 30)
    np.testing.assert_array_equal(warped[:, 5:], image[:, :-5])
    assert not warped[:, :5].any()


def test_warp_singular_matrix_gives_background():
    image = np.full((10, 10, 4), 200, dtype=np.uint8)

    warped = warp_perspective(image, np.zeros((3, 3)), (10, 20))

    assert warped.shape == (10, 20, 4)
    assert not warped.any()
