"""
Compositing of the warped right image and the left image.
"""

import logging

import numpy as np

from .homography import warp_perspective

logger = logging.getLogger(__name__)


class Compositor:
    """
    Places two images on one canvas.

    The right image is warped into the left image's frame on a canvas of
    size (height_left, width_left + width_right); the left image is then
    copied unchanged into the top-left corner. There is no blending across
    the seam, the left image simply wins.
    """

    def compose(self, img1, img2, H):
        """
        Composite two images.

        Args:
            img1: Left image (H1 x W1 x C)
            img2: Right image (H2 x W2 x C)
            H: Homography matrix (3 x 3) mapping img2 into img1's coordinates

        Returns:
            canvas: Composite image (H1 x (W1 + W2) x C)
        """
        if img1.shape[2:] != img2.shape[2:]:
            raise ValueError(
                f"Images must have the same channel layout, got {img1.shape} and {img2.shape}"
            )

        h1, w1 = img1.shape[:2]
        w2 = img2.shape[1]

        canvas = warp_perspective(img2, np.asarray(H), (h1, w1 + w2))
        canvas[:h1, :w1] = img1

        logger.debug("Composited canvas of %dx%d", w1 + w2, h1)

        return canvas
