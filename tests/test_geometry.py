"""Tests for geometry helpers and coordinate types."""

import numpy as np
import pytest

from fotoloc.geometry import average, distance, point_line_distance, point_line_distances, stdev
from fotoloc.types import DEFAULT_COORD, Coord, Extent, Rect


class TestDistances:
    """Test cases for distance functions."""

    def test_distance(self):
        assert distance((0, 0), (3, 4)) == 5.0
        assert distance(Coord(1, 1), Coord(1, 1)) == 0.0

    def test_point_line_distance(self):
        """Test perpendicular distance to a horizontal and a diagonal line."""
        assert point_line_distance((0, 0), (10, 0), (5, 3)) == pytest.approx(3.0)
        assert point_line_distance((0, 0), (10, 10), (10, 0)) == pytest.approx(np.sqrt(50))
        # Beyond the endpoints still measures to the infinite line
        assert point_line_distance((0, 0), (10, 0), (20, -2)) == pytest.approx(2.0)

    def test_collinear_points_are_exactly_zero(self):
        points = np.array([[2, 6], [5, 15], [-1, -3]])
        np.testing.assert_array_equal(point_line_distances((0, 0), (1, 3), points), [0.0, 0.0, 0.0])

    def test_coincident_line_points_rejected(self):
        with pytest.raises(ValueError):
            point_line_distances((1, 1), (1, 1), np.array([[0, 0]]))

    def test_average_and_stdev(self):
        assert average([]) == 0.0
        assert stdev([]) == 0.0
        assert average([1, 2, 3]) == 2.0
        assert stdev([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0


class TestCoord:
    """Test cases for Coord ordering."""

    def test_row_major_order(self):
        """Test y is compared before x."""
        assert Coord(5, 0) < Coord(0, 1)
        assert Coord(0, 1) > Coord(5, 0)
        assert Coord(1, 2) < Coord(2, 2)
        assert Coord(2, 2) <= Coord(2, 2)
        assert sorted([Coord(0, 3), Coord(9, 1), Coord(2, 1)]) == [Coord(2, 1), Coord(9, 1), Coord(0, 3)]

    def test_addition_and_equality(self):
        assert Coord(1, 2) + Coord(3, -1) == Coord(4, 1)
        assert Coord(1, 2) == (1, 2)
        assert str(Coord(1, 2)) == "(1, 2)"


class TestExtentAndRect:
    """Test cases for Extent and Rect."""

    def test_empty_extent(self):
        assert Extent().first == DEFAULT_COORD
        assert Extent().is_empty
        assert not Extent(Coord(0, 0), Coord(1, 1)).is_empty

    def test_extent_span(self):
        assert Extent(Coord(0, 0), Coord(30, 40)).span == 50.0

    def test_rect_inside_is_inclusive(self):
        rect = Rect(Coord(1, 1), Coord(3, 4))

        assert rect.inside(Coord(1, 1))
        assert rect.inside(Coord(3, 4))
        assert not rect.inside(Coord(0, 2))
        assert not rect.inside(Coord(2, 5))
        assert rect.width == 3
        assert rect.height == 4
