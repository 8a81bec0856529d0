"""Synthetic images shared by the test modules."""

import numpy as np
import pytest
from scipy.ndimage import gaussian_filter


def make_texture(height, width, seed=0, sigma=3.0):
    """Smooth random texture with corners everywhere, as uint8."""
    rng = np.random.default_rng(seed)
    field = gaussian_filter(rng.random((height, width)), sigma)
    field -= field.min()
    field /= field.max()
    return np.rint(field * 255).astype(np.uint8)


def make_scene(height, width, seed=0):
    """RGB scene built from three independent textures."""
    return np.dstack([make_texture(height, width, seed + i) for i in range(3)])


def make_shifted_pair(height, width, shift, seed=0):
    """
    Left and right photos of one scene; the right photo starts ``shift``
    pixels further right, so right (x, y) shows left (x + shift, y).
    """
    scene = make_scene(height, width + shift, seed)
    return scene[:, :width].copy(), scene[:, shift:shift + width].copy()


def square_image(size=100, top_left=20, bottom_right=60):
    image = np.zeros((size, size), dtype=np.uint8)
    image[top_left:bottom_right, top_left:bottom_right] = 255
    return image


@pytest.fixture
def texture():
    return make_texture(240, 320, seed=3)


@pytest.fixture
def small_pair():
    return make_shifted_pair(300, 400, 40, seed=11)


@pytest.fixture(scope='session')
def shifted_pair():
    return make_shifted_pair(600, 800, 50, seed=5)
