"""Draw located outlines and line segments on top of an image."""

import logging
from pathlib import Path
from typing import Iterable, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from .types import Coord, ImageArray, LineSegment

logger = logging.getLogger(__name__)

# How big to make the marks
MARK_SIZE = 5
# Color of marks on a normal image, marks on a dimmed image are black
MARK_COLOR = (127, 127, 127)
DIM_MARK_COLOR = (0, 0, 0)


def _as_rgb(image: ImageArray) -> ImageArray:
    image = np.asarray(image)
    if image.ndim == 2:
        image = np.stack([image] * 3, axis=-1)
    return np.ascontiguousarray(image[:, :, :3], dtype=np.uint8)


def dim(image: ImageArray) -> ImageArray:
    """Lighten an image so marks drawn on it stand out (255 - 255/3 = 170)."""
    return (170 + _as_rgb(image) // 3).astype(np.uint8)


def draw_marks(
    image: ImageArray,
    points: Iterable[Sequence[int]],
    color: Tuple[int, int, int] = MARK_COLOR,
    size: int = MARK_SIZE,
) -> ImageArray:
    """Draw a cross of arm length `size` at each point (a single pixel for size 1)."""
    canvas = _as_rgb(image).copy()
    h, w = canvas.shape[:2]

    for point in points:
        x, y = int(point[0]), int(point[1])
        if not (0 <= x < w and 0 <= y < h):
            continue
        if size > 1:
            cv2.drawMarker(canvas, (x, y), color, markerType=cv2.MARKER_CROSS, markerSize=2 * size - 1, thickness=1)
        else:
            canvas[y, x] = color

    return canvas


def draw_outline(
    image: ImageArray,
    points: Sequence[Coord],
    color: Tuple[int, int, int] = MARK_COLOR,
) -> ImageArray:
    """Mark every boundary point of an outline."""
    canvas = _as_rgb(image).copy()

    if len(points) == 0:
        return canvas

    xy = np.asarray(points, dtype=np.int64).reshape(-1, 2)
    h, w = canvas.shape[:2]
    keep = (xy[:, 0] >= 0) & (xy[:, 0] < w) & (xy[:, 1] >= 0) & (xy[:, 1] < h)
    canvas[xy[keep, 1], xy[keep, 0]] = color

    return canvas


def draw_segments(
    image: ImageArray,
    segments: Iterable[LineSegment],
    color: Tuple[int, int, int] = MARK_COLOR,
) -> ImageArray:
    """Draw each segment as a one pixel line with its endpoints marked."""
    canvas = _as_rgb(image).copy()
    segments = list(segments)

    for segment in segments:
        p1 = (int(segment.p1.x), int(segment.p1.y))
        p2 = (int(segment.p2.x), int(segment.p2.y))
        cv2.line(canvas, p1, p2, color, thickness=1)

    endpoints = [p for segment in segments for p in (segment.p1, segment.p2)]
    return draw_marks(canvas, endpoints, color)


def save_image(image: ImageArray, path: Union[str, Path]) -> Path:
    """Save an image array with Pillow, creating the parent directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(_as_rgb(image)).save(path)
    logger.info(f"Saved {path}")
    return path
