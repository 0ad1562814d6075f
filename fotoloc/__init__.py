"""fotoloc: locate photos on scanned pages.

Finds same-colored blobs in a raster image with two-pass connected-component
labeling, traces their outlines and approximates each outline with straight
line segments.
"""

from .blobs import BlobIndex
from .disjoint_set import NOT_FOUND, DisjointSet
from .lines import (
    find_larger_length,
    find_lines_extending_decreasing_error,
    find_lines_halving_extending,
    is_line,
    line_error,
    segment_path,
)
from .outline import trace_outline
from .pipeline import BlobOutline, LocatorPipeline, LocatorResult
from .types import (
    BACKGROUND_LABEL,
    DEFAULT_COORD,
    BlobCorruptionError,
    ContourError,
    Coord,
    Extent,
    FotolocError,
    ImageLoadError,
    LabelError,
    LineSegment,
    LocatorConfig,
    QuantizationError,
    Rect,
    SegmentStrategy,
)

__version__ = "0.1.0"
__all__ = [
    "BlobIndex",
    "DisjointSet",
    "NOT_FOUND",
    "find_larger_length",
    "find_lines_extending_decreasing_error",
    "find_lines_halving_extending",
    "is_line",
    "line_error",
    "segment_path",
    "trace_outline",
    "BlobOutline",
    "LocatorPipeline",
    "LocatorResult",
    "BACKGROUND_LABEL",
    "DEFAULT_COORD",
    "BlobCorruptionError",
    "ContourError",
    "Coord",
    "Extent",
    "FotolocError",
    "ImageLoadError",
    "LabelError",
    "LineSegment",
    "LocatorConfig",
    "QuantizationError",
    "Rect",
    "SegmentStrategy",
]
