"""Blob detection: label every same-colored connected region of an image.

Labeling is classic two-pass connected-component labeling. The first raster
scan gives each pixel the label of a matching causal neighbor (left, up-left,
up, up-right) and records label equivalences in a disjoint set; the second
pass replaces every label by its representative and notes where each blob is
first and last seen.

    blobs = BlobIndex(quantized)
    for extent in blobs:
        print(extent.first)
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np

from .disjoint_set import NOT_FOUND, DisjointSet
from .types import (
    BACKGROUND_LABEL,
    BlobCorruptionError,
    Color,
    Coord,
    Extent,
    ImageArray,
    Rect,
)

logger = logging.getLogger(__name__)


def _same_color(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Elementwise exact color equality of two (H, W, C) arrays."""
    return np.all(a == b, axis=2)


def _neighbor_matches(pixels: np.ndarray):
    """Boolean grids telling whether each pixel matches a causal neighbor.

    Returns four (H, W) arrays for the left, up-left, up and up-right
    neighbors. Neighbors outside the image never match.
    """
    h, w = pixels.shape[:2]

    left = np.zeros((h, w), dtype=bool)
    up_left = np.zeros((h, w), dtype=bool)
    up = np.zeros((h, w), dtype=bool)
    up_right = np.zeros((h, w), dtype=bool)

    left[:, 1:] = _same_color(pixels[:, 1:], pixels[:, :-1])
    up_left[1:, 1:] = _same_color(pixels[1:, 1:], pixels[:-1, :-1])
    up[1:, :] = _same_color(pixels[1:, :], pixels[:-1, :])
    up_right[1:, :-1] = _same_color(pixels[1:, :-1], pixels[:-1, 1:])

    return left, up_left, up, up_right


class BlobIndex:
    """Labeled blobs of an image plus the first/last pixel of each blob.

    The label grid is read-only once construction finishes, so an index can
    be shared between threads for queries.

    Args:
        image: (H, W) or (H, W, C) array, colors are compared exactly
        background: Optional color whose pixels are left unlabeled
    """

    def __init__(self, image: ImageArray, background: Optional[Color] = None):
        pixels = np.asarray(image)

        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.ndim != 3:
            raise ValueError(f"Expected a 2D or 3D image array, got {pixels.ndim}D")

        self._height, self._width = pixels.shape[:2]

        unlabeled = np.zeros((self._height, self._width), dtype=bool)
        if background is not None:
            color = np.asarray(background, dtype=pixels.dtype).reshape(1, 1, -1)
            unlabeled = np.all(pixels == color, axis=2)

        disjoint = DisjointSet()
        scanned = self._scan(pixels, unlabeled, disjoint)
        self._labels, self._objects = self._resolve(scanned, disjoint)

        logger.debug(
            f"Found {len(self._objects)} blobs in {self._width}x{self._height} image "
            f"({len(disjoint)} provisional labels)"
        )

    @staticmethod
    def _scan(pixels: np.ndarray, unlabeled: np.ndarray, disjoint: DisjointSet) -> List[List[int]]:
        """First pass: provisional labels plus equivalences in disjoint."""
        h, w = pixels.shape[:2]
        left, up_left, up, up_right = (m.tolist() for m in _neighbor_matches(pixels))
        skip = unlabeled.tolist()

        labels = [[BACKGROUND_LABEL] * w for _ in range(h)]
        next_label = BACKGROUND_LABEL + 1

        for y in range(h):
            row = labels[y]
            above = labels[y - 1] if y > 0 else None
            row_left, row_up_left = left[y], up_left[y]
            row_up, row_up_right = up[y], up_right[y]
            row_skip = skip[y]

            for x in range(w):
                if row_skip[x]:
                    continue

                # Labels of same-colored neighbors that were already visited
                matches = []
                if row_left[x]:
                    matches.append(row[x - 1])
                if row_up_left[x]:
                    matches.append(above[x - 1])
                if row_up[x]:
                    matches.append(above[x])
                if row_up_right[x]:
                    matches.append(above[x + 1])

                if not matches:
                    row[x] = next_label
                    disjoint.add(next_label)
                    next_label += 1
                    continue

                label = matches[0]
                row[x] = label

                for other in matches[1:]:
                    if other != label:
                        disjoint.join(label, other)

        return labels

    def _resolve(self, scanned: List[List[int]], disjoint: DisjointSet):
        """Second pass: map labels to representatives and record extents."""
        grid = np.array(scanned, dtype=np.int64).reshape(self._height, self._width)

        if grid.size == 0:
            grid.setflags(write=False)
            return grid, {}

        # Every provisional label is small, so a lookup table replaces find()
        # per pixel
        lookup = np.zeros(int(grid.max()) + 1, dtype=np.int64)
        for label in range(BACKGROUND_LABEL + 1, len(lookup)):
            representative = disjoint.find(label)
            if representative == NOT_FOUND:
                raise BlobCorruptionError(f"Couldn't find representative of label {label}")
            lookup[label] = representative
        lookup[BACKGROUND_LABEL] = BACKGROUND_LABEL

        resolved = lookup[grid]
        resolved.setflags(write=False)

        flat = resolved.ravel()
        labels, first_index = np.unique(flat, return_index=True)
        _, reverse_index = np.unique(flat[::-1], return_index=True)
        last_index = flat.size - 1 - reverse_index

        # Store extents in order of discovery, which is scan order
        objects: Dict[int, Extent] = {}
        for k in np.argsort(first_index, kind="stable"):
            label = int(labels[k])
            if label == BACKGROUND_LABEL:
                continue
            first_y, first_x = divmod(int(first_index[k]), self._width)
            last_y, last_x = divmod(int(last_index[k]), self._width)
            objects[label] = Extent(Coord(first_x, first_y), Coord(last_x, last_y))

        return resolved, objects

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def labels(self) -> np.ndarray:
        """Read-only (H, W) label grid."""
        return self._labels

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[Extent]:
        return iter(self._objects.values())

    def items(self):
        """(label, extent) pairs in scan order."""
        return self._objects.items()

    def label_at(self, point: Sequence[int]) -> int:
        """Label at point, BACKGROUND_LABEL when out of bounds or unlabeled."""
        x, y = point[0], point[1]
        if 0 <= x < self._width and 0 <= y < self._height:
            return int(self._labels[y, x])
        return BACKGROUND_LABEL

    def extent_of(self, label: int) -> Extent:
        """First/last point of a blob, an empty Extent for unknown labels."""
        return self._objects.get(label, Extent())

    def mask(self, label: int) -> np.ndarray:
        """Boolean (H, W) mask of the pixels of one blob."""
        return self._labels == label

    def blobs_touching(self, p1: Coord, p2: Coord) -> List[Coord]:
        """First points of all blobs with a pixel in the rectangle [p1, p2).

        p1 must be above and to the left of p2; the rectangle is not
        normalized for you.
        """
        window = self._labels[p1[1]:p2[1], p1[0]:p2[0]].ravel()
        if window.size == 0:
            return []

        # Distinct labels in the order the rectangle is scanned
        labels, first_index = np.unique(window, return_index=True)
        subset = []
        for k in np.argsort(first_index, kind="stable"):
            label = int(labels[k])
            if label == BACKGROUND_LABEL:
                continue
            subset.append(self._objects[label].first)

        return subset

    def blobs_starting_in(self, p1: Coord, p2: Coord) -> List[Coord]:
        """First points that fall inside the rectangle around p1 and p2.

        Assumes p2 is down and to the right of p1, both corners inclusive.
        """
        rect = Rect(Coord(*p1), Coord(*p2))
        subset = []

        for extent in self._objects.values():
            if rect.inside(extent.first):
                subset.append(extent.first)
            # Extents are in scan order, nothing later can start in the rectangle
            elif extent.first.y > rect.br.y:
                break

        return subset
