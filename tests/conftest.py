"""Pytest configuration and fixtures."""

import numpy as np
import pytest

from fotoloc.types import Coord


def square_path(side: int = 100, origin=(0, 0)):
    """Closed clockwise outline of a square, 4 * side points, first point a corner."""
    ox, oy = origin
    top = [Coord(ox + i, oy) for i in range(side)]
    right = [Coord(ox + side, oy + i) for i in range(side)]
    bottom = [Coord(ox + side - i, oy + side) for i in range(side)]
    left = [Coord(ox, oy + side - i) for i in range(side)]
    return top + right + bottom + left


@pytest.fixture
def square_outline():
    """400 point outline of a 100x100 square with corners at indices 0, 100, 200, 300."""
    return square_path(100)


@pytest.fixture
def square_image():
    """9x9 black RGB image with a 5x5 white square at (2, 2)-(6, 6)."""
    image = np.zeros((9, 9, 3), dtype=np.uint8)
    image[2:7, 2:7] = [255, 255, 255]
    return image


@pytest.fixture
def page_image():
    """White 300x300 page with a dark 160x120 photo on it."""
    image = np.full((300, 300, 3), 250, dtype=np.uint8)
    image[50:170, 60:220] = [40, 60, 90]
    return image
