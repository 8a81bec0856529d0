"""
Homography estimation with RANSAC and perspective warping
using only NumPy.
"""

import logging
import math
from collections import namedtuple
from itertools import combinations

import numpy as np

from .errors import InsufficientMatches, InvalidConfiguration

logger = logging.getLogger(__name__)

ScoredMatch = namedtuple('ScoredMatch', ['match', 'inlier'])

MIN_POINTS = 4

# Source coordinates this close outside the image still sample the edge pixel
EDGE_TOLERANCE = 1e-6


class Homography:
    """
    3x3 projective transform mapping right-image coordinates into
    left-image coordinates, together with the matches it was fitted on.
    """

    def __init__(self, matrix, scored_matches):
        """
        Args:
            matrix: Homography matrix (3 x 3)
            scored_matches: One ScoredMatch per input match, in input order
        """
        matrix = np.array(matrix, dtype=np.float64)
        matrix.setflags(write=False)
        self.matrix = matrix
        self.scored_matches = tuple(scored_matches)

    def __len__(self):
        return len(self.scored_matches)

    def __repr__(self):
        return f"Homography({self.num_inliers}/{len(self)} inliers)"

    @property
    def inlier_mask(self):
        return np.array([s.inlier for s in self.scored_matches], dtype=bool)

    @property
    def inliers(self):
        return [s.match for s in self.scored_matches if s.inlier]

    @property
    def num_inliers(self):
        return sum(1 for s in self.scored_matches if s.inlier)

    def apply(self, points):
        return apply_homography(points, self.matrix)


class HomographyEstimator:
    """
    Homography matrix estimation using RANSAC algorithm.

    A homography is a 3x3 matrix that describes the projective transformation
    between two planes (images).

    Sampling uses a generator seeded from ``seed`` at every call, so the
    same input always gives the same result unless ``seed`` is None.
    """

    def __init__(self, ransac_reproj_threshold=1.0, max_iters=2000,
                 confidence=0.995, min_matches=MIN_POINTS, min_inliers=MIN_POINTS,
                 seed=0):
        """
        Initialize Homography Estimator.

        Args:
            ransac_reproj_threshold: Maximum reprojection error to be considered inlier
            max_iters: Maximum number of RANSAC iterations
            confidence: Desired confidence level for RANSAC
            min_matches: Minimum number of matches accepted as input
            min_inliers: Minimum size of the consensus set
            seed: Seed for sample selection, None for OS entropy
        """
        if ransac_reproj_threshold <= 0:
            raise InvalidConfiguration(
                f"RANSAC threshold must be positive, got {ransac_reproj_threshold}"
            )
        if max_iters < 1:
            raise InvalidConfiguration(f"max_iters must be positive, got {max_iters}")
        if not 0.0 < confidence < 1.0:
            raise InvalidConfiguration(f"confidence must be in (0, 1), got {confidence}")
        if min_matches < MIN_POINTS:
            raise InvalidConfiguration(f"min_matches must be at least {MIN_POINTS}, got {min_matches}")
        if min_inliers < MIN_POINTS:
            raise InvalidConfiguration(f"min_inliers must be at least {MIN_POINTS}, got {min_inliers}")

        self.ransac_reproj_threshold = ransac_reproj_threshold
        self.max_iters = int(max_iters)
        self.confidence = confidence
        self.min_matches = min_matches
        self.min_inliers = min_inliers
        self.seed = seed

    def estimate(self, features_left, features_right, matches):
        """
        Fit the homography mapping right keypoints onto left keypoints.

        Args:
            features_left: FeatureSet of the left image (match query side)
            features_right: FeatureSet of the right image (match train side)
            matches: List of Match

        Returns:
            Homography with one inlier flag per match
        """
        if len(matches) < self.min_matches:
            raise InsufficientMatches(len(matches))

        dst_points = features_left.points([m.query_idx for m in matches])
        src_points = features_right.points([m.train_idx for m in matches])

        H, inliers = self.find_homography(src_points, dst_points)

        return Homography(H, [ScoredMatch(m, bool(flag)) for m, flag in zip(matches, inliers)])

    def find_homography(self, src_points, dst_points):
        """
        Find homography matrix using RANSAC.

        Args:
            src_points: Source points (N x 2)
            dst_points: Destination points (N x 2)

        Returns:
            H: Homography matrix (3 x 3)
            mask: Inlier mask (N,)
        """
        src_points = np.array(src_points, dtype=np.float64).reshape(-1, 2)
        dst_points = np.array(dst_points, dtype=np.float64).reshape(-1, 2)

        if len(src_points) != len(dst_points):
            raise ValueError("Source and destination points must have same length")

        n_points = len(src_points)
        if n_points < MIN_POINTS:
            raise InsufficientMatches(n_points)

        rng = np.random.default_rng(self.seed)

        best_H = None
        best_inliers = None
        best_num_inliers = 0

        iterations_needed = self.max_iters
        iteration = 0

        while iteration < iterations_needed:
            iteration += 1

            indices = rng.choice(n_points, MIN_POINTS, replace=False)
            src_sample = src_points[indices]
            dst_sample = dst_points[indices]

            if self._is_degenerate(src_sample) or self._is_degenerate(dst_sample):
                continue

            H = self._compute_homography_dlt(src_sample, dst_sample)
            if H is None:
                continue

            inliers = self._get_inliers(src_points, dst_points, H)
            num_inliers = int(np.sum(inliers))

            if num_inliers > best_num_inliers:
                best_num_inliers = num_inliers
                best_inliers = inliers
                best_H = H
                iterations_needed = min(iterations_needed,
                                        self._required_iterations(num_inliers / n_points))

        logger.debug("RANSAC stopped after %d iterations with %d/%d inliers",
                     iteration, best_num_inliers, n_points)

        if best_H is None or best_num_inliers < self.min_inliers:
            raise InsufficientMatches(
                best_num_inliers,
                f"RANSAC found no consensus set of at least {self.min_inliers} "
                f"matches (best {best_num_inliers} of {n_points})"
            )

        # Refine homography using all inliers
        refined = self._compute_homography_dlt(src_points[best_inliers], dst_points[best_inliers])
        if refined is not None:
            refined_inliers = self._get_inliers(src_points, dst_points, refined)
            if np.sum(refined_inliers) >= best_num_inliers:
                best_H, best_inliers = refined, refined_inliers

        return best_H, best_inliers

    def _required_iterations(self, inlier_ratio):
        """Number of samples needed to hit an all-inlier sample with the desired confidence."""
        p = inlier_ratio ** MIN_POINTS
        if p >= 1.0:
            return 0

        denom = math.log1p(-p)
        if denom >= 0:
            return self.max_iters

        return min(self.max_iters, int(math.ceil(math.log(1 - self.confidence) / denom)))

    def _is_degenerate(self, points):
        """True if any three of the sample points are collinear."""
        for a, b, c in combinations(points, 3):
            cross = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
            if abs(cross) < 1e-6:
                return True
        return False

    def _compute_homography_dlt(self, src_pts, dst_pts):
        """
        Compute homography using Direct Linear Transform.

        For each point correspondence (x, y) -> (x', y'), we have:
        x' = (h11*x + h12*y + h13) / (h31*x + h32*y + h33)
        y' = (h21*x + h22*y + h23) / (h31*x + h32*y + h33)

        This gives us 2 equations per point correspondence.
        We need at least 4 points (8 equations) to solve for 8 unknowns.
        """
        n = len(src_pts)

        if n < MIN_POINTS:
            return None

        # Normalize points for better numerical stability
        src_pts_norm, T_src = self._normalize_points(src_pts)
        dst_pts_norm, T_dst = self._normalize_points(dst_pts)

        x, y = src_pts_norm[:, 0], src_pts_norm[:, 1]
        xp, yp = dst_pts_norm[:, 0], dst_pts_norm[:, 1]
        zeros = np.zeros(n)
        ones = np.ones(n)

        # Two rows per correspondence
        A = np.empty((2 * n, 9))
        A[0::2] = np.column_stack([-x, -y, -ones, zeros, zeros, zeros, x * xp, y * xp, xp])
        A[1::2] = np.column_stack([zeros, zeros, zeros, -x, -y, -ones, x * yp, y * yp, yp])

        try:
            _, _, Vt = np.linalg.svd(A)
            H = Vt[-1].reshape(3, 3)

            # Denormalize
            H = np.linalg.inv(T_dst) @ H @ T_src
        except np.linalg.LinAlgError:
            return None

        if not np.all(np.isfinite(H)) or abs(H[2, 2]) < 1e-12:
            return None

        return H / H[2, 2]

    def _normalize_points(self, points):
        """
        Normalize points for better numerical stability.

        Translates points so centroid is at origin and scales so
        average distance from origin is sqrt(2).
        """
        centroid = np.mean(points, axis=0)
        points_centered = points - centroid

        avg_dist = np.mean(np.sqrt(np.sum(points_centered ** 2, axis=1)))
        if avg_dist < 1e-10:
            avg_dist = 1.0

        scale = np.sqrt(2) / avg_dist

        T = np.array([
            [scale, 0, -scale * centroid[0]],
            [0, scale, -scale * centroid[1]],
            [0, 0, 1]
        ])

        return points_centered * scale, T

    def _get_inliers(self, src_pts, dst_pts, H):
        """
        Get inlier mask based on reprojection error.

        Args:
            src_pts: Source points (N x 2)
            dst_pts: Destination points (N x 2)
            H: Homography matrix (3 x 3)

        Returns:
            mask: Boolean mask indicating inliers
        """
        dst_projected = apply_homography(src_pts, H)

        with np.errstate(invalid='ignore'):
            errors = np.sqrt(np.sum((dst_pts - dst_projected) ** 2, axis=1))
            return errors <= self.ransac_reproj_threshold


def apply_homography(points, H):
    """
    Apply homography transformation to points.

    Points mapped to infinity come back as non-finite values.

    Args:
        points: Points to transform (N x 2)
        H: Homography matrix (3 x 3)

    Returns:
        Transformed points (N x 2)
    """
    points = np.array(points, dtype=np.float64).reshape(-1, 2)

    points_homogeneous = np.hstack([points, np.ones((len(points), 1))])
    transformed = points_homogeneous @ np.asarray(H, dtype=np.float64).T

    with np.errstate(divide='ignore', invalid='ignore'):
        return transformed[:, :2] / transformed[:, 2:3]


def warp_perspective(image, H, output_shape):
    """
    Warp image using homography matrix.

    Every output pixel is looked up in the source image through the
    inverse homography; pixels that map outside the source stay zero.

    Args:
        image: Input image (H x W x C) or (H x W)
        H: Homography matrix (3 x 3) mapping source to output coordinates
        output_shape: Output image shape (height, width)

    Returns:
        Warped image with the dtype of the input
    """
    h, w = output_shape

    squeeze = image.ndim == 2
    if squeeze:
        image = image[:, :, np.newaxis]

    try:
        H_inv = np.linalg.inv(H)
    except np.linalg.LinAlgError:
        output = np.zeros((h, w, image.shape[2]), dtype=image.dtype)
        return output[:, :, 0] if squeeze else output

    # Backward mapping of the output grid
    y_coords, x_coords = np.mgrid[0:h, 0:w]
    coords = np.stack([x_coords.ravel(), y_coords.ravel(), np.ones(h * w)]).astype(np.float64)
    src = H_inv @ coords

    with np.errstate(divide='ignore', invalid='ignore'):
        src_x = (src[0] / src[2]).reshape(h, w)
        src_y = (src[1] / src[2]).reshape(h, w)

    output = bilinear_interpolate(image, src_x, src_y)

    return output[:, :, 0] if squeeze else output


def bilinear_interpolate(image, x, y):
    """
    Bilinear interpolation for image warping.

    Args:
        image: Input image (H x W x C)
        x: X coordinates (H' x W'), may contain non-finite values
        y: Y coordinates (H' x W')

    Returns:
        Interpolated values (H' x W' x C), zero where (x, y) is outside the image
    """
    h, w = image.shape[:2]
    eps = EDGE_TOLERANCE

    with np.errstate(invalid='ignore'):
        inside = (x >= -eps) & (x <= w - 1 + eps) & (y >= -eps) & (y <= h - 1 + eps)

    # Park unusable coordinates on pixel 0 so the integer cast is safe
    x = np.clip(np.where(inside, x, 0.0), 0, w - 1)
    y = np.clip(np.where(inside, y, 0.0), 0, h - 1)

    x0 = np.floor(x).astype(np.intp)
    y0 = np.floor(y).astype(np.intp)
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)

    fx = x - x0
    fy = y - y0

    w00 = (1 - fx) * (1 - fy)
    w01 = (1 - fx) * fy
    w10 = fx * (1 - fy)
    w11 = fx * fy

    channels = image.shape[2]
    output = np.zeros(x.shape + (channels,), dtype=image.dtype)

    for c in range(channels):
        plane = image[:, :, c].astype(np.float64)
        values = (w00 * plane[y0, x0] + w01 * plane[y1, x0] +
                  w10 * plane[y0, x1] + w11 * plane[y1, x1])
        output[:, :, c] = np.where(inside, np.rint(values), 0).astype(image.dtype)

    return output
