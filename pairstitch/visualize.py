"""
Rendering of the intermediate pipeline steps with Pillow.
"""

import numpy as np
from PIL import ImageDraw

from .image_io import to_image

COLOR_MATCH = (255, 0, 0, 255)
KEYPOINT_RADIUS = 3


def merge_side_by_side(img1, img2):
    """
    Place two images next to each other on a zero-filled canvas.

    Args:
        img1: Left image (H1 x W1 [x C])
        img2: Right image (H2 x W2 [x C]) with the same channel layout

    Returns:
        merged: max(H1, H2) x (W1 + W2) [x C] image
    """
    h1, w1 = img1.shape[:2]
    h2, w2 = img2.shape[:2]

    merged = np.zeros((max(h1, h2), w1 + w2) + img1.shape[2:], dtype=img1.dtype)
    merged[:h1, :w1] = img1
    merged[:h2, w1:w1 + w2] = img2

    return merged


def draw_keypoints(image, keypoints, color=COLOR_MATCH):
    """
    Draw a circle around each keypoint.

    Args:
        image: Grayscale or color image
        keypoints: List of Keypoint

    Returns:
        RGBA image as numpy array
    """
    canvas = _rgba_canvas(image)
    draw = ImageDraw.Draw(canvas)

    for kp in keypoints:
        _draw_circle(draw, kp.x, kp.y, color)

    return np.array(canvas)


def draw_matches(img1, keypoints1, img2, keypoints2, matches, color=COLOR_MATCH):
    """
    Draw matches as lines between two side-by-side images.

    Only matched keypoints are marked.

    Args:
        img1: Left image
        keypoints1: Keypoints of the left image (match query side)
        img2: Right image
        keypoints2: Keypoints of the right image (match train side)
        matches: List of Match

    Returns:
        RGBA image as numpy array
    """
    offset = img1.shape[1]
    canvas = _rgba_canvas(merge_side_by_side(img1, img2))
    draw = ImageDraw.Draw(canvas)

    for match in matches:
        kp1 = keypoints1[match.query_idx]
        kp2 = keypoints2[match.train_idx]
        pt1 = (kp1.x, kp1.y)
        pt2 = (kp2.x + offset, kp2.y)

        draw.line([pt1, pt2], fill=color, width=1)
        _draw_circle(draw, pt1[0], pt1[1], color)
        _draw_circle(draw, pt2[0], pt2[1], color)

    return np.array(canvas)


def _rgba_canvas(image):
    return to_image(image).convert('RGBA')


def _draw_circle(draw, x, y, color, radius=KEYPOINT_RADIUS):
    draw.ellipse([x - radius, y - radius, x + radius, y + radius], outline=color)
