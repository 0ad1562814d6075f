"""Tests for blob detection."""

import numpy as np
import pytest
from scipy import ndimage

from fotoloc.blobs import BlobIndex
from fotoloc.disjoint_set import NOT_FOUND, DisjointSet
from fotoloc.types import BACKGROUND_LABEL, BlobCorruptionError, Coord, Extent


def brute_force_starting_in(blobs, p1, p2):
    """All first points inside the inclusive rectangle, by checking every blob."""
    return [
        extent.first
        for extent in blobs
        if p1[0] <= extent.first.x <= p2[0] and p1[1] <= extent.first.y <= p2[1]
    ]


class TestBlobLabels:
    """Test cases for labeling blobs."""

    def test_square_on_background(self, square_image):
        """Test a 5x5 square on a background color yields exactly one blob."""
        blobs = BlobIndex(square_image, background=(0, 0, 0))

        assert len(blobs) == 1

        label = blobs.label_at(Coord(4, 4))
        assert label != BACKGROUND_LABEL
        assert blobs.extent_of(label) == Extent(Coord(2, 2), Coord(6, 6))

        # Background pixels stay unlabeled
        assert blobs.label_at(Coord(0, 0)) == BACKGROUND_LABEL
        assert blobs.mask(label).sum() == 25

    def test_background_is_a_blob_when_not_excluded(self, square_image):
        """Test that without a background color every pixel is labeled."""
        blobs = BlobIndex(square_image)

        assert len(blobs) == 2
        assert np.all(blobs.labels != BACKGROUND_LABEL)

        extents = list(blobs)
        assert extents[0] == Extent(Coord(0, 0), Coord(8, 8))
        assert extents[1] == Extent(Coord(2, 2), Coord(6, 6))

    def test_up_left_diagonal_merges(self):
        """Test pixels touching through the up-left neighbor share a label."""
        grid = np.zeros((4, 4), dtype=np.uint8)
        grid[1, 1] = 7
        grid[2, 2] = 7

        blobs = BlobIndex(grid, background=0)

        assert len(blobs) == 1
        assert blobs.label_at((1, 1)) == blobs.label_at((2, 2))

    def test_up_right_diagonal_merges(self):
        """Test pixels touching through the up-right neighbor share a label."""
        grid = np.zeros((4, 4), dtype=np.uint8)
        grid[1, 2] = 7
        grid[2, 1] = 7

        blobs = BlobIndex(grid, background=0)

        assert len(blobs) == 1
        assert blobs.label_at((2, 1)) == blobs.label_at((1, 2))

    def test_pixels_outside_neighborhood_do_not_merge(self):
        """Test pixels a knight's move apart stay separate blobs."""
        grid = np.zeros((4, 4), dtype=np.uint8)
        grid[0, 0] = 7
        grid[1, 2] = 7
        grid[3, 3] = 7

        blobs = BlobIndex(grid, background=0)

        assert len(blobs) == 3
        assert blobs.label_at((0, 0)) != blobs.label_at((2, 1))
        assert blobs.label_at((2, 1)) != blobs.label_at((3, 3))

    def test_u_shape_merges_late(self):
        """Test two arms labeled separately are joined where they meet."""
        grid = np.array(
            [
                [1, 0, 0, 1],
                [1, 0, 0, 1],
                [1, 0, 0, 1],
                [1, 1, 1, 1],
            ],
            dtype=np.uint8,
        )

        blobs = BlobIndex(grid, background=0)

        assert len(blobs) == 1
        label = blobs.label_at((0, 0))
        assert blobs.label_at((3, 0)) == label
        assert blobs.extent_of(label) == Extent(Coord(0, 0), Coord(3, 3))

    def test_checkerboard_is_two_blobs(self):
        """Test a checkerboard connects diagonally into one blob per color."""
        grid = (np.indices((6, 6)).sum(axis=0) % 2).astype(np.uint8)

        blobs = BlobIndex(grid)

        assert len(blobs) == 2

    def test_colors_compared_on_all_channels(self):
        """Test pixels differing in one channel are different blobs."""
        image = np.zeros((2, 2, 3), dtype=np.uint8)
        image[:, 1] = [0, 0, 1]

        blobs = BlobIndex(image)

        assert len(blobs) == 2
        assert blobs.label_at((0, 0)) != blobs.label_at((1, 0))

    def test_matches_eight_connected_components(self):
        """Test same-colored chains of causal neighbors end with one label."""
        rng = np.random.default_rng(7)
        image = rng.integers(0, 3, size=(40, 50), dtype=np.uint8)

        blobs = BlobIndex(image)
        structure = np.ones((3, 3), dtype=int)

        total = 0
        for color in range(3):
            components, count = ndimage.label(image == color, structure=structure)
            total += count
            for component in range(1, count + 1):
                ours = np.unique(blobs.labels[components == component])
                assert len(ours) == 1

        assert len(blobs) == total

    def test_extents_follow_scan_order(self):
        """Test first <= last and extents match each blob's mask."""
        rng = np.random.default_rng(11)
        image = rng.integers(0, 4, size=(30, 30), dtype=np.uint8)

        blobs = BlobIndex(image)

        previous = None
        for label, extent in blobs.items():
            assert extent.first <= extent.last

            ys, xs = np.nonzero(blobs.mask(label))
            assert extent.first == Coord(int(xs[0]), int(ys[0]))
            assert extent.last == Coord(int(xs[-1]), int(ys[-1]))

            # Discovery order is scan order
            if previous is not None:
                assert previous < extent.first
            previous = extent.first

    def test_grayscale_and_empty_images(self):
        """Test 2D input and an image with no pixels."""
        assert len(BlobIndex(np.zeros((3, 3), dtype=np.uint8))) == 1
        assert len(BlobIndex(np.zeros((0, 0), dtype=np.uint8))) == 0

    def test_labels_are_read_only(self, square_image):
        """Test the label grid cannot be modified after construction."""
        blobs = BlobIndex(square_image)

        with pytest.raises(ValueError):
            blobs.labels[0, 0] = 5

    def test_unresolvable_label_is_reported(self, monkeypatch):
        """Test a label without representative raises instead of becoming background."""
        monkeypatch.setattr(DisjointSet, "find", lambda self, label: NOT_FOUND)

        with pytest.raises(BlobCorruptionError):
            BlobIndex(np.zeros((3, 3), dtype=np.uint8))


class TestBlobQueries:
    """Test cases for BlobIndex queries."""

    def test_label_at_out_of_bounds(self, square_image):
        """Test points outside the image are background."""
        blobs = BlobIndex(square_image)

        assert blobs.label_at(Coord(-1, 0)) == BACKGROUND_LABEL
        assert blobs.label_at(Coord(0, 9)) == BACKGROUND_LABEL
        assert blobs.label_at(Coord(9, 9)) == BACKGROUND_LABEL

    def test_extent_of_unknown_label(self, square_image):
        """Test unknown labels give an empty extent."""
        blobs = BlobIndex(square_image)

        assert blobs.extent_of(12345) == Extent()
        assert blobs.extent_of(12345).is_empty

    def test_blobs_touching(self, square_image):
        """Test blobs with a pixel inside the half-open rectangle are found once."""
        blobs = BlobIndex(square_image, background=(0, 0, 0))

        assert blobs.blobs_touching(Coord(3, 3), Coord(8, 8)) == [Coord(2, 2)]
        assert blobs.blobs_touching(Coord(0, 0), Coord(2, 2)) == []
        # Right and bottom edges are exclusive
        assert blobs.blobs_touching(Coord(7, 0), Coord(9, 9)) == []

    def test_blobs_touching_in_scan_order(self):
        """Test several blobs come back in the order the rectangle is scanned."""
        grid = np.zeros((6, 6), dtype=np.uint8)
        grid[4, 0] = 1
        grid[1, 3] = 2
        grid[1:3, 5] = 3

        blobs = BlobIndex(grid, background=0)
        found = blobs.blobs_touching(Coord(0, 0), Coord(6, 6))

        assert found == [Coord(3, 1), Coord(5, 1), Coord(0, 4)]

    def test_blobs_starting_in(self, square_image):
        """Test the inclusive rectangle on first points."""
        blobs = BlobIndex(square_image)

        assert blobs.blobs_starting_in(Coord(2, 2), Coord(2, 2)) == [Coord(2, 2)]
        assert blobs.blobs_starting_in(Coord(0, 0), Coord(8, 8)) == [Coord(0, 0), Coord(2, 2)]
        assert blobs.blobs_starting_in(Coord(3, 3), Coord(8, 8)) == []

    def test_blobs_starting_in_matches_brute_force(self):
        """Test the early-exit search agrees with checking every blob."""
        rng = np.random.default_rng(3)
        image = rng.integers(0, 5, size=(25, 25), dtype=np.uint8)
        blobs = BlobIndex(image)

        rects = [
            (Coord(0, 0), Coord(24, 24)),
            (Coord(5, 5), Coord(10, 10)),
            (Coord(0, 3), Coord(24, 3)),
            (Coord(20, 0), Coord(24, 12)),
            (Coord(12, 20), Coord(12, 24)),
        ]
        for p1, p2 in rects:
            assert blobs.blobs_starting_in(p1, p2) == brute_force_starting_in(blobs, p1, p2)
