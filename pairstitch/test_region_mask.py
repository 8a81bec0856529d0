"""Tests for the column-range detection mask."""

import numpy as np
import pytest

from pairstitch.errors import InvalidConfiguration
from pairstitch.region_mask import build_mask


@pytest.mark.parametrize('min_fraction, max_fraction, cols', [
    (0.5, 1.0, 800),
    (0.0, 0.5, 800),
    (0.0, 0.5, 799),
    (0.25, 0.75, 333),
    (0.0, 1.0, 17),
    (0.1, 0.3, 1),
])
def test_allowed_column_count(min_fraction, max_fraction, cols):
    mask = build_mask(np.zeros((7, cols)), min_fraction, max_fraction)

    allowed_cols = int(np.sum(np.any(mask, axis=0)))
    expected = int(np.floor(max_fraction * cols)) - int(np.floor(min_fraction * cols))

    assert mask.shape == (7, cols)
    assert abs(allowed_cols - expected) <= 1


def test_right_half_mask():
    mask = build_mask(np.zeros((4, 10, 4), dtype=np.uint8), 0.5, 1.0)

    assert mask.dtype == np.uint8
    assert np.all(mask[:, :5] == 0)
    assert np.all(mask[:, 5:] == 1)


def test_every_row_is_identical():
    mask = build_mask(np.zeros((50, 64)), 0.2, 0.7)
    assert np.all(mask == mask[0])


def test_equal_fractions_give_empty_mask():
    mask = build_mask(np.zeros((10, 10)), 0.5, 0.5)
    assert not np.any(mask)


@pytest.mark.parametrize('min_fraction, max_fraction', [
    (0.6, 0.4),
    (-0.1, 0.5),
    (0.5, 1.1),
])
def test_invalid_fractions(min_fraction, max_fraction):
    with pytest.raises(InvalidConfiguration):
        build_mask(np.zeros((10, 10)), min_fraction, max_fraction)
