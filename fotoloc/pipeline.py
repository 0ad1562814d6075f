"""Main pipeline: find blobs in an image and fit lines to their outlines."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from .blobs import BlobIndex
from .lines import segment_path
from .outline import trace_outline
from .pixels import blur, load_image, quantize, quantize_kmeans
from .render import DIM_MARK_COLOR, dim, draw_outline, draw_segments
from .types import Coord, Extent, FotolocError, ImageArray, LineSegment, LocatorConfig

logger = logging.getLogger(__name__)


@dataclass
class BlobOutline:
    """Boundary of one blob and the lines fitted to it."""

    label: int
    extent: Extent
    points: List[Coord]
    segments: List[LineSegment] = field(default_factory=list)


@dataclass
class LocatorResult:
    """Everything found in one image."""

    blobs: BlobIndex
    outlines: List[BlobOutline]
    quantized: ImageArray

    @property
    def segments(self) -> List[LineSegment]:
        return [segment for outline in self.outlines for segment in outline.segments]


class LocatorPipeline:
    """Blur, quantize, label blobs, trace and segment their outlines."""

    def __init__(self, config: Optional[LocatorConfig] = None):
        """Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration. Uses defaults if None.
        """
        self.config = config or LocatorConfig()
        self.debug_stages: List[Tuple[str, np.ndarray]] = []

    def process(self, image: Union[str, Path, ImageArray], debug: bool = False) -> LocatorResult:
        """Process an image (array or file path).

        Args:
            image: Image array or path to an image file
            debug: If True, keep intermediate images in debug_stages

        Returns:
            LocatorResult

        Raises:
            FileNotFoundError: If input file doesn't exist
            FotolocError: If processing fails
        """
        self.debug_stages = []

        try:
            if isinstance(image, (str, Path)):
                image = load_image(image)
            image = np.asarray(image)

            if debug:
                self.debug_stages.append(("1_original", image))

            prepared = self._prepare(image, debug)
            blobs = self._find_blobs(prepared)
            outlines = self._outline_blobs(blobs)

            logger.info(
                f"{len(blobs)} blobs, {len(outlines)} outlined, "
                f"{sum(len(o.segments) for o in outlines)} lines"
            )

            return LocatorResult(blobs=blobs, outlines=outlines, quantized=prepared)

        except (FileNotFoundError, FotolocError):
            raise
        except Exception as e:
            raise FotolocError(f"Pipeline processing failed: {e}") from e

    def _prepare(self, image: ImageArray, debug: bool) -> ImageArray:
        """Blur and quantize."""
        logger.debug("Blur")
        blurred = blur(image, self.config.blur_radius)

        if debug:
            self.debug_stages.append(("2_blurred", blurred))

        logger.debug("Quantize")
        if self.config.quantizer == "kmeans":
            quantized, _ = quantize_kmeans(blurred, self.config.n_colors)
        else:
            quantized = quantize(blurred, self.config.quantize_levels)

        if debug:
            self.debug_stages.append(("3_quantized", quantized))

        return quantized

    def _find_blobs(self, quantized: ImageArray) -> BlobIndex:
        logger.debug("Blobs")
        return BlobIndex(quantized, background=self.config.background)

    def _outline_blobs(self, blobs: BlobIndex) -> List[BlobOutline]:
        """Trace and segment every blob whose extent spans more than min_blob_distance."""
        logger.debug("Outline")

        max_length = self.config.max_outline_length
        if max_length is None:
            max_length = 2 * blobs.width * blobs.height

        outlines = []
        for label, extent in blobs.items():
            # This may be the height, width, or diagonal
            if extent.span <= self.config.min_blob_distance:
                continue

            points = trace_outline(blobs, extent.first, max_length)
            segments = segment_path(points, self.config.max_line_error, self.config.strategy)

            for segment in segments:
                logger.debug(f"Blob {label}: {segment}")

            outlines.append(BlobOutline(label=label, extent=extent, points=points, segments=segments))

        return outlines

    def render(self, result: LocatorResult) -> Tuple[ImageArray, ImageArray]:
        """Overlay images for a result.

        Returns:
            Tuple of (lines_image, contours_image): the fitted segments drawn
            on the dimmed quantized image, and the traced outlines drawn on
            the same dimmed image
        """
        dimmed = dim(result.quantized)
        lines_image = draw_segments(dimmed, result.segments, color=DIM_MARK_COLOR)

        points = [p for outline in result.outlines for p in outline.points]
        contours_image = draw_outline(dimmed, points, color=DIM_MARK_COLOR)

        return lines_image, contours_image
