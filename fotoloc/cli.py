"""Command-line interface for fotoloc."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PIL import Image

from .pipeline import LocatorPipeline
from .render import save_image
from .types import FotolocError, LocatorConfig, SegmentStrategy


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="fotoloc",
        description="Locate photos on scanned pages by finding blobs and fitting lines to their outlines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fotoloc scan1.jpg scan2.png
  fotoloc scan.jpg --output-dir out --max-error 0.02 --strategy halving
  fotoloc scan.jpg --quantizer kmeans --colors 6 --background 252,252,252
        """,
    )

    parser.add_argument("files", nargs="+", help="Input image files")

    parser.add_argument(
        "-o",
        "--output-dir",
        default=".",
        help="Directory for imageN.png and imageN_contours.png (default: current directory)",
    )

    parser.add_argument(
        "--blur",
        type=int,
        default=2,
        help="Blur radius in pixels, 0 disables blurring (default: 2)",
    )

    parser.add_argument(
        "--quantizer",
        choices=["uniform", "kmeans"],
        default="uniform",
        help="Color quantization method (default: uniform)",
    )

    parser.add_argument(
        "--levels",
        type=int,
        default=10,
        help="Levels per channel for uniform quantization (default: 10)",
    )

    parser.add_argument(
        "--colors",
        "-c",
        type=int,
        default=8,
        help="Number of colors for kmeans quantization (default: 8)",
    )

    parser.add_argument(
        "--max-error",
        "-e",
        type=float,
        default=0.04,
        help="Max average distance from a line as a fraction of its length (default: 0.04)",
    )

    parser.add_argument(
        "--strategy",
        choices=[s.value for s in SegmentStrategy],
        default=SegmentStrategy.EXTENDING_DECREASING_ERROR.value,
        help="Line search: extending (default) or halving",
    )

    parser.add_argument(
        "--min-distance",
        type=float,
        default=100.0,
        help="Skip blobs whose first and last pixels are closer than this (default: 100)",
    )

    parser.add_argument(
        "--background",
        default=None,
        help="Color left unlabeled, as comma-separated channel values, e.g. 252,252,252",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    return parser


def parse_color(value: str) -> tuple:
    """Parse "R,G,B" into a tuple of ints."""
    try:
        return tuple(int(v.strip()) for v in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid color: {value}")


def find_files(names: List[str]) -> List[Path]:
    """Keep the names that are regular files, warning about the rest."""
    files = []
    for name in names:
        path = Path(name)
        if path.is_file():
            files.append(path)
        else:
            print(f"Warning: {name} not found", file=sys.stderr)
    return files


def is_supported(path: Path) -> bool:
    """Whether Pillow can decode files with this extension, warning if not."""
    extension = path.suffix.lower()

    if extension == ".pdf":
        print("Warning: PDF image extraction not implemented yet", file=sys.stderr)
        return False

    if extension not in Image.registered_extensions():
        print(f'Warning: not supported file type "{path}"', file=sys.stderr)
        return False

    return True


def main(args: Optional[list] = None) -> int:
    """Main entry point for CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 if at least one image was processed, 1 otherwise)
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        background = parse_color(parsed.background) if parsed.background else None
        config = LocatorConfig(
            blur_radius=parsed.blur,
            quantizer=parsed.quantizer,
            quantize_levels=parsed.levels,
            n_colors=parsed.colors,
            background=background,
            min_blob_distance=parsed.min_distance,
            max_line_error=parsed.max_error,
            strategy=parsed.strategy,
        )
    except (ValueError, argparse.ArgumentTypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output_dir = Path(parsed.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    pipeline = LocatorPipeline(config)
    processed = 0
    uid = 0

    for path in find_files(parsed.files):
        if not is_supported(path):
            continue

        lines_path = output_dir / f"image{uid}.png"
        contours_path = output_dir / f"image{uid}_contours.png"
        uid += 1

        print(f"Processing: {path}")

        try:
            result = pipeline.process(path)
        except (FileNotFoundError, FotolocError) as e:
            print(f"Warning: invalid image \"{path}\": {e}", file=sys.stderr)
            continue

        for segment in result.segments:
            print(f"  {segment}")

        lines_image, contours_image = pipeline.render(result)

        print(f"  Saving {lines_path}")
        save_image(lines_image, lines_path)
        print(f"  Saving {contours_path}")
        save_image(contours_image, contours_path)

        processed += 1

    return 0 if processed else 1


if __name__ == "__main__":
    sys.exit(main())
