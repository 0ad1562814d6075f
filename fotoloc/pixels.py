"""Image loading and preprocessing before blob detection."""

import logging
import math
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
from PIL import Image, ImageOps
from scipy import ndimage
from sklearn.cluster import KMeans

from .types import ImageArray, ImageLoadError, QuantizationError

logger = logging.getLogger(__name__)


def load_image(path: Union[str, Path]) -> ImageArray:
    """Load an image file as an (H, W, 3) uint8 RGB array.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ImageLoadError: If the file cannot be decoded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise ImageLoadError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            img = ImageOps.exif_transpose(img)

            if img.mode == "RGBA":
                # Composite on white background
                background = Image.new("RGB", img.size, (255, 255, 255))
                background.paste(img, mask=img.split()[3])
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")

            return np.array(img, dtype=np.uint8)

    except (IOError, OSError) as e:
        raise ImageLoadError(f"Failed to load image {path}: {e}") from e


def _boxes_for_gauss(sigma: float, n: int = 3) -> List[int]:
    """Box widths whose n successive passes approximate a Gaussian blur."""
    ideal = math.sqrt((12 * sigma * sigma / n) + 1)
    wl = int(math.floor(ideal))
    if wl % 2 == 0:
        wl -= 1
    wu = wl + 2

    ideal_m = (12 * sigma * sigma - n * wl * wl - 4 * n * wl - 3 * n) / (-4 * wl - 4)
    m = round(ideal_m)

    return [wl if i < m else wu for i in range(n)]


def blur(image: ImageArray, radius: int) -> ImageArray:
    """Fast approximate Gaussian blur using three box filter passes.

    Args:
        image: (H, W) or (H, W, C) uint8 image
        radius: Gaussian standard deviation in pixels

    Returns:
        Blurred copy of the image
    """
    image = np.asarray(image)
    h, w = image.shape[:2]

    if radius <= 0:
        logger.debug("Not blurring, zero blur radius")
        return image.copy()

    if radius > w or radius > h:
        logger.warning("Not blurring, radius greater than image width or height")
        return image.copy()

    size = (1, 1) if image.ndim == 2 else (1, 1, 1)
    blurred = image.astype(np.float64)

    for box in _boxes_for_gauss(radius):
        # Horizontal then vertical pass of the same box
        horizontal = list(size)
        horizontal[1] = box
        vertical = list(size)
        vertical[0] = box
        blurred = ndimage.uniform_filter(blurred, size=horizontal, mode="nearest")
        blurred = ndimage.uniform_filter(blurred, size=vertical, mode="nearest")

    return np.clip(np.rint(blurred), 0, 255).astype(np.uint8)


def quantize(image: ImageArray, levels: int) -> ImageArray:
    """Round every channel down into one of `levels` evenly spaced bins.

    Args:
        image: uint8 image
        levels: Number of bins per channel (must be >= 2)

    Returns:
        Quantized copy of the image
    """
    if levels < 2:
        raise ValueError(f"levels must be >= 2, got {levels}")

    image = np.asarray(image)

    # Using levels-1 to get "levels" bins instead of levels+1
    divisor = 256 // (levels - 1)

    return ((image.astype(np.int32) // divisor) * divisor).astype(np.uint8)


def quantize_kmeans(image: ImageArray, n_colors: int, random_state: int = 42) -> Tuple[ImageArray, np.ndarray]:
    """Quantize image colors using K-means clustering.

    Args:
        image: Input image (H, W, C) with values 0-255
        n_colors: Number of colors to reduce to (must be >= 2)
        random_state: Random seed for reproducibility

    Returns:
        Tuple of (quantized_image, color_palette)

    Raises:
        QuantizationError: If quantization fails
        ValueError: If n_colors < 2
    """
    if n_colors < 2:
        raise ValueError(f"n_colors must be >= 2, got {n_colors}")

    image = np.asarray(image)

    if image.size == 0:
        raise QuantizationError("Cannot quantize empty image")

    try:
        pixels = image.reshape(-1, image.shape[2]) if image.ndim == 3 else image.reshape(-1, 1)
        pixels = np.float32(pixels)

        # Never ask for more clusters than there are distinct colors
        n_clusters = min(n_colors, len(np.unique(pixels, axis=0)))

        kmeans = KMeans(n_clusters=n_clusters, random_state=random_state, n_init=10)
        labels = kmeans.fit_predict(pixels)

        palette = np.clip(np.rint(kmeans.cluster_centers_), 0, 255).astype(np.uint8)
        quantized = palette[labels].reshape(image.shape)

        return quantized, palette

    except Exception as e:
        raise QuantizationError(f"Color quantization failed: {e}") from e
