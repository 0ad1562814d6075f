"""Boundary tracing for blobs found by BlobIndex."""

import logging
from typing import List, Optional

import cv2
import numpy as np

from .blobs import BlobIndex
from .types import BACKGROUND_LABEL, ContourError, Coord

logger = logging.getLogger(__name__)


def _signed_area(contour: np.ndarray) -> float:
    x = contour[:, 0].astype(np.float64)
    y = contour[:, 1].astype(np.float64)
    return float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y)) / 2


def trace_outline(blobs: BlobIndex, start: Coord, max_length: Optional[int] = None) -> List[Coord]:
    """Walk the outer boundary of the blob containing start.

    The boundary comes from OpenCV border following on the blob's mask
    (external contour only, every boundary pixel kept). It is returned
    clockwise in image coordinates, beginning at start. start should be the
    first pixel of the blob in scan order (its extent's first point); any
    other pixel not on the boundary starts the walk at that first pixel.

    Args:
        blobs: Blob index of the image
        start: First point of the blob
        max_length: Maximum number of steps to walk (default 2 * W * H)

    Returns:
        Boundary points in walking order, the start point only once. Empty if
        start is not on a blob.

    Raises:
        ContourError: If OpenCV fails on the mask
    """
    start = Coord(int(start[0]), int(start[1]))
    label = blobs.label_at(start)

    if label == BACKGROUND_LABEL:
        return []

    if max_length is None:
        max_length = 2 * blobs.width * blobs.height

    mask = blobs.mask(label).astype(np.uint8)

    try:
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
    except cv2.error as e:
        raise ContourError(f"Contour detection failed for blob {label}: {e}") from e

    if not contours:
        raise ContourError(f"No contour found for blob {label}")

    # One 8-connected blob has one external contour
    contour = max(contours, key=len).reshape(-1, 2)

    # Shoelace sum is positive for a clockwise walk when y grows downward.
    # OpenCV walks outer borders the other way; reverse, keeping the first pixel
    if _signed_area(contour) < 0:
        contour = np.roll(contour[::-1], 1, axis=0)

    hits = np.flatnonzero((contour[:, 0] == start.x) & (contour[:, 1] == start.y))
    if len(hits):
        contour = np.roll(contour, -int(hits[0]), axis=0)

    points = [Coord(int(x), int(y)) for x, y in contour]

    if len(points) > max_length + 1:
        logger.warning(f"Outline from {start} not closed after {max_length} steps")
        points = points[: max_length + 1]

    return points
