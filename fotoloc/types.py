"""Common types, configuration and exceptions for fotoloc."""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np

from .geometry import distance

# Type aliases
ImageArray = np.ndarray
Color = Union[Tuple[int], Tuple[int, int, int], Tuple[int, int, int, int]]

# Label given to pixels that belong to no blob (and to anything out of bounds)
BACKGROUND_LABEL = 0


class Coord(NamedTuple):
    """Integer image coordinate.

    Comparison is row-major (y first, then x) so that sorting coordinates
    gives the order in which a raster scan visits them.
    """

    x: int
    y: int

    def __add__(self, other):
        return Coord(self.x + other[0], self.y + other[1])

    def __lt__(self, other):
        return (self.y, self.x) < (other[1], other[0])

    def __le__(self, other):
        return (self.y, self.x) <= (other[1], other[0])

    def __gt__(self, other):
        return (self.y, self.x) > (other[1], other[0])

    def __ge__(self, other):
        return (self.y, self.x) >= (other[1], other[0])

    def __str__(self):
        return f"({self.x}, {self.y})"


DEFAULT_COORD = Coord(-1, -1)


class Extent(NamedTuple):
    """First and last pixel of a blob in scan order."""

    first: Coord = DEFAULT_COORD
    last: Coord = DEFAULT_COORD

    @property
    def is_empty(self) -> bool:
        return self.first == DEFAULT_COORD

    @property
    def span(self) -> float:
        """Distance between first and last point (height, width or diagonal)."""
        return distance(self.first, self.last)


class Rect(NamedTuple):
    """Rectangle given by its top-left and bottom-right corners (inclusive)."""

    tl: Coord = DEFAULT_COORD
    br: Coord = DEFAULT_COORD

    def inside(self, point) -> bool:
        return self.tl.x <= point[0] <= self.br.x and self.tl.y <= point[1] <= self.br.y

    @property
    def width(self) -> int:
        return self.br.x - self.tl.x + 1

    @property
    def height(self) -> int:
        return self.br.y - self.tl.y + 1

    def __str__(self):
        return f"{{ {self.tl}, {self.br} }}"


@dataclass(frozen=True)
class LineSegment:
    """Straight segment fitted to part of a boundary path.

    Segments order by length alone: two different segments of the same
    length are <= each other without being equal. ``start`` and ``end`` are
    the indices of the endpoints on the walk along the source path; ``end``
    may exceed the path length when the segment wraps past the path's first
    point.
    """

    p1: Coord
    p2: Coord
    length: float = -1.0
    start: int = field(default=-1, compare=False)
    end: int = field(default=-1, compare=False)

    def __post_init__(self):
        if self.length < 0:
            object.__setattr__(self, "length", distance(self.p1, self.p2))

    def __lt__(self, other):
        if not isinstance(other, LineSegment):
            return NotImplemented
        return self.length < other.length

    def __le__(self, other):
        if not isinstance(other, LineSegment):
            return NotImplemented
        return self.length <= other.length

    def __gt__(self, other):
        if not isinstance(other, LineSegment):
            return NotImplemented
        return self.length > other.length

    def __ge__(self, other):
        if not isinstance(other, LineSegment):
            return NotImplemented
        return self.length >= other.length

    def __str__(self):
        return f"{self.p1} {self.p2} Len: {self.length:g}"


class SegmentStrategy(Enum):
    """Line search used to split a boundary path into segments."""

    HALVING_EXTENDING = "halving"
    EXTENDING_DECREASING_ERROR = "extending"


@dataclass
class LocatorConfig:
    """Configuration for the photo locating pipeline."""

    # Preprocessing
    blur_radius: int = 2
    quantizer: str = "uniform"  # "uniform" or "kmeans"
    quantize_levels: int = 10
    n_colors: int = 8  # kmeans only

    # Blob detection
    background: Optional[Color] = None
    min_blob_distance: float = 100.0

    # Boundary tracing, None = 2 * width * height
    max_outline_length: Optional[int] = None

    # Line fitting: average distance from the line as a fraction of its length
    max_line_error: float = 0.04
    strategy: SegmentStrategy = SegmentStrategy.EXTENDING_DECREASING_ERROR

    def __post_init__(self):
        if isinstance(self.strategy, str):
            self.strategy = SegmentStrategy(self.strategy)
        if self.quantizer not in ("uniform", "kmeans"):
            raise ValueError(f"quantizer must be 'uniform' or 'kmeans', got {self.quantizer!r}")
        if self.quantize_levels < 2:
            raise ValueError(f"quantize_levels must be >= 2, got {self.quantize_levels}")
        if self.n_colors < 2:
            raise ValueError(f"n_colors must be >= 2, got {self.n_colors}")
        if self.blur_radius < 0:
            raise ValueError(f"blur_radius must be >= 0, got {self.blur_radius}")
        if self.max_line_error <= 0:
            raise ValueError(f"max_line_error must be > 0, got {self.max_line_error}")
        if self.background is not None:
            self.background = tuple(int(c) for c in self.background)


class FotolocError(Exception):
    """Base exception for fotoloc errors."""

    pass


class LabelError(FotolocError):
    """Exception raised when a label is misused in a disjoint set."""

    pass


class BlobCorruptionError(FotolocError):
    """Exception raised when a scanned label has no representative."""

    pass


class ImageLoadError(FotolocError):
    """Exception raised when an image cannot be read."""

    pass


class QuantizationError(FotolocError):
    """Exception raised during color quantization."""

    pass


class ContourError(FotolocError):
    """Exception raised when a blob outline cannot be traced."""

    pass
