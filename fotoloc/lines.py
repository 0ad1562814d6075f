"""Split a closed boundary path into straight line segments.

Two greedy searches are provided. Both look at how far the points between
two path indices i and j fall from the straight line through path[i] and
path[j], relative to the length of that line:

- halving-and-extending: find a window that is a line, grow it one point at
  a time while it stays a line, then keep looking from where it ended;
- extending-with-decreasing-error: grow a window while its line error keeps
  dropping, allowing a few worse points before giving up.

Paths are circular, so indices are taken modulo the path length. Neither
search is globally optimal; parts of the path may stay unsegmented.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .geometry import average, distance, point_line_distances, stdev
from .types import Coord, LineSegment, SegmentStrategy

logger = logging.getLogger(__name__)

Path = Union[Sequence[Coord], np.ndarray]

# Minimum window sizes, in path points (roughly pixels for traced outlines)
HALVING_MIN_LENGTH = 10
EXTENDING_MIN_LENGTH = 100

# Max number of points to look ahead when the error is increasing
MAX_LOOK_AHEAD = 25


def _as_points(path: Path) -> np.ndarray:
    """Path as an (S, 2) float array."""
    points = np.asarray(path, dtype=np.float64)
    if points.size == 0:
        return points.reshape(0, 2)
    return points.reshape(-1, 2)


def _window(size: int, i: int, j: int) -> Tuple[int, int]:
    """Reduce i and j modulo size so that walking forward from i reaches j."""
    i %= size
    j %= size
    if j < i:
        j += size
    return i, j


def _deviations(points: np.ndarray, i: int, j: int) -> Tuple[np.ndarray, float]:
    """Distances of the points strictly between i and j to the line i-j.

    Returns the distances and the line length; the distances are None when
    the endpoints coincide.
    """
    size = len(points)
    a = points[i % size]
    b = points[j % size]
    length = distance(a, b)

    if length == 0:
        return None, 0.0

    between = points[np.arange(i + 1, j) % size]
    return point_line_distances(a, b, between), length


def _is_line(points: np.ndarray, i: int, j: int, max_error: float) -> bool:
    size = len(points)
    if size == 0:
        return False

    i, j = _window(size, i, j)
    if i == j:
        return False

    dist, length = _deviations(points, i, j)
    if dist is None:
        return False

    # Allowed average distance grows with the line so short segments are not
    # favored; the spread has to stay within half of that
    avg_thresh = length * max_error
    stddev_thresh = avg_thresh / 2

    return average(dist) < avg_thresh and stdev(dist) < stddev_thresh


def _line_error(points: np.ndarray, i: int, j: int) -> float:
    size = len(points)
    if size == 0:
        return float("inf")

    i, j = _window(size, i, j)
    if i == j:
        return float("inf")

    dist, length = _deviations(points, i, j)
    if dist is None:
        return float("inf")

    return average(dist) / length


def is_line(path: Path, i: int, j: int, max_error: float) -> bool:
    """Whether the points between path[i] and path[j] lie close to a line.

    The average perpendicular distance must be below max_error times the
    distance between the endpoints (e.g. 1% for max_error=0.01) and the
    standard deviation below half of that.
    """
    return _is_line(_as_points(path), i, j, max_error)


def line_error(path: Path, i: int, j: int) -> float:
    """Average distance from the line between path[i] and path[j], as a
    fraction of the line's length. Infinite when the endpoints coincide."""
    return _line_error(_as_points(path), i, j)


def _segment(points: np.ndarray, i: int, j: int) -> LineSegment:
    size = len(points)
    p1 = points[i % size]
    p2 = points[j % size]
    return LineSegment(
        Coord(int(p1[0]), int(p1[1])),
        Coord(int(p2[0]), int(p2[1])),
        start=i,
        end=j,
    )


def _probe(points: np.ndarray, min_length: int, qualifies: Callable[[int, int], bool]):
    """Find the first window that qualifies, trying shorter windows each time.

    Starts with windows of half the path and slides them along the whole
    path; if none qualifies the window is halved, until it would be shorter
    than min_length.

    Returns:
        (start, length) of the window found, or None
    """
    size = len(points)
    length = size // 2

    while length >= min_length:
        # Every start index is tried before halving, not just the current one
        for i in range(size):
            if qualifies(i, i + length):
                return i, length
        length //= 2

    return None


def _extend_while_line(points: np.ndarray, start: int, length: int, max_error: float, max_length: int) -> int:
    """Grow the window one point at a time while it is still a line."""
    while length < max_length and _is_line(points, start, start + length + 1, max_error):
        length += 1
    return length


def _check_arguments(max_error: float, min_length: int) -> None:
    if max_error <= 0:
        raise ValueError(f"max_error must be > 0, got {max_error}")
    if min_length < 1:
        raise ValueError(f"min_length must be >= 1, got {min_length}")


def find_lines_halving_extending(
    path: Path,
    max_error: float,
    min_length: int = HALVING_MIN_LENGTH,
) -> List[LineSegment]:
    """Non-overlapping halving and extending line search.

    Args:
        path: Closed path of (x, y) points
        max_error: Maximum average distance of the points from a line as a
                   fraction of the line's length
        min_length: Shortest window, in path points, worth calling a line

    Returns:
        Segments in path order, possibly empty
    """
    _check_arguments(max_error, min_length)

    points = _as_points(path)
    size = len(points)
    lines: List[LineSegment] = []

    if size == 0:
        return lines

    # If the whole path is a line, we're done
    whole_length = distance(points[0], points[size - 1])
    if _is_line(points, 0, size - 1, max_error) and whole_length > min_length:
        lines.append(_segment(points, 0, size - 1))
        return lines

    first = _probe(points, min_length, lambda i, j: _is_line(points, i, j, max_error))
    if first is None:
        return lines

    first_start, length = first
    length = _extend_while_line(points, first_start, length, max_error, size - 1)
    lines.append(_segment(points, first_start, first_start + length))

    # Keep segmenting the rest of the path, up to where the first line began
    cursor = first_start + length
    limit = first_start + size

    while cursor + min_length <= limit:
        if _is_line(points, cursor, cursor + min_length, max_error):
            length = _extend_while_line(points, cursor, min_length, max_error, limit - cursor)
            lines.append(_segment(points, cursor, cursor + length))
            cursor += length
        else:
            cursor += 1

    return lines


def find_larger_length(
    path: Path,
    current_error: float,
    start: int,
    current_length: int,
    max_look_ahead: int = MAX_LOOK_AHEAD,
    max_length: Optional[int] = None,
) -> int:
    """Extend a line while its error does not rise.

    After the error stops dropping, up to max_look_ahead more points are
    tried; if none of them beats the best error seen so far, the length of
    the best line is returned. An equal error counts as an improvement, not
    only a strictly lower one, so a run with zero error keeps growing.

    Args:
        path: Closed path of (x, y) points
        current_error: line_error of the window (start, start + current_length)
        start: Index of the first point of the line
        current_length: Length of the window, in path points
        max_look_ahead: Number of worse points tolerated in a row
        max_length: Longest window allowed (default: one point short of the
                    whole path)

    Returns:
        Length of the best window found, at least current_length
    """
    points = _as_points(path)
    size = len(points)

    if max_length is None:
        max_length = size - 1

    best = current_length
    increasing = 0

    for candidate in range(current_length + 1, max_length + 1):
        error = _line_error(points, start, start + candidate)

        # Equal error counts as better so exactly straight runs keep growing
        if error <= current_error:
            current_error = error
            best = candidate
            increasing = 0
        elif increasing < max_look_ahead:
            increasing += 1
        else:
            break

    return best


def find_lines_extending_decreasing_error(
    path: Path,
    max_error: float,
    min_length: int = EXTENDING_MIN_LENGTH,
    max_look_ahead: int = MAX_LOOK_AHEAD,
) -> List[LineSegment]:
    """Non-overlapping extending-while-decreasing-error line search.

    Args:
        path: Closed path of (x, y) points
        max_error: Maximum line_error for a window to start a line
        min_length: Shortest window, in path points, worth calling a line
        max_look_ahead: Worse points tolerated while extending a line

    Returns:
        Segments in path order, possibly empty
    """
    _check_arguments(max_error, min_length)

    points = _as_points(path)
    size = len(points)
    lines: List[LineSegment] = []

    if size == 0:
        return lines

    first = _probe(points, min_length, lambda i, j: _line_error(points, i, j) < max_error)
    if first is None:
        return lines

    first_start, length = first
    larger = find_larger_length(
        points,
        _line_error(points, first_start, first_start + length),
        first_start,
        length,
        max_look_ahead,
        size - 1,
    )
    lines.append(_segment(points, first_start, first_start + larger))

    # The first line is about the longest this path has; shorter windows
    # that get extended should find the rest
    length //= 2

    if length < min_length:
        return lines

    cursor = first_start + larger
    limit = first_start + size

    while cursor + length <= limit:
        error = _line_error(points, cursor, cursor + length)

        if error < max_error:
            larger = find_larger_length(points, error, cursor, length, max_look_ahead, limit - cursor)
            lines.append(_segment(points, cursor, cursor + larger))
            cursor += larger
        else:
            cursor += 1

    return lines


def segment_path(
    path: Path,
    max_error: float,
    strategy: Union[SegmentStrategy, str] = SegmentStrategy.EXTENDING_DECREASING_ERROR,
    min_length: Optional[int] = None,
    max_look_ahead: int = MAX_LOOK_AHEAD,
) -> List[LineSegment]:
    """Split a closed path into line segments with the chosen search.

    Args:
        path: Closed path of (x, y) points
        max_error: Maximum average distance from a line as a fraction of its length
        strategy: SegmentStrategy or its value ("halving", "extending")
        min_length: Shortest window; defaults depend on the strategy
        max_look_ahead: Only used by the extending strategy

    Returns:
        Non-overlapping segments in path order
    """
    strategy = SegmentStrategy(strategy)

    if strategy is SegmentStrategy.HALVING_EXTENDING:
        lines = find_lines_halving_extending(
            path,
            max_error,
            HALVING_MIN_LENGTH if min_length is None else min_length,
        )
    else:
        lines = find_lines_extending_decreasing_error(
            path,
            max_error,
            EXTENDING_MIN_LENGTH if min_length is None else min_length,
            max_look_ahead,
        )

    logger.debug(f"{strategy.value}: {len(lines)} lines from {len(path)} points")

    return lines
