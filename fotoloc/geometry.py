"""Distance helpers shared by blob filtering and line fitting."""

import math
from typing import Sequence

import numpy as np


def distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Euclidean distance between two points."""
    return math.hypot(float(p2[0]) - float(p1[0]), float(p2[1]) - float(p1[1]))


def point_line_distances(a: Sequence[float], b: Sequence[float], points: np.ndarray) -> np.ndarray:
    """Perpendicular distances from points to the infinite line through a and b.

    Each point is projected onto the direction of (b - a); what remains after
    removing that component is the perpendicular offset, whose magnitude is
    the cross product divided by the line length. For integer input the cross
    product is exact, so collinear points come out as exactly zero.

    Args:
        a: First point on the line (x, y)
        b: Second point on the line (x, y)
        points: Array of shape (N, 2)

    Returns:
        Array of N distances

    Raises:
        ValueError: If a and b coincide (the line is undefined)
    """
    dx = float(b[0]) - float(a[0])
    dy = float(b[1]) - float(a[1])
    length = math.hypot(dx, dy)

    if length == 0:
        raise ValueError("Cannot measure distance to a line through coincident points")

    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    cross = dx * (points[:, 1] - float(a[1])) - dy * (points[:, 0] - float(a[0]))

    return np.abs(cross) / length


def point_line_distance(a: Sequence[float], b: Sequence[float], p: Sequence[float]) -> float:
    """Perpendicular distance from a single point p to the line through a and b."""
    return float(point_line_distances(a, b, np.array([p], dtype=np.float64))[0])


def average(values: np.ndarray) -> float:
    """Mean of values, 0.0 when there are none."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return 0.0
    return float(values.mean())


def stdev(values: np.ndarray) -> float:
    """Population standard deviation of values, 0.0 when there are none."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return 0.0
    return float(values.std())
