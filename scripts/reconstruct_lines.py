"""
Rebuild reading-order lines and editable segments from a vision JSON file.

Usage:
    python scripts/reconstruct_lines.py --input page_annotations.json
    python scripts/reconstruct_lines.py --input page.json --text-only
    python scripts/reconstruct_lines.py --input page.json --image page.jpg --vis-out segments.jpg
"""

import argparse
import logging
import sys

from pagescribe import LineReconstructor, ReconstructionConfig
from pagescribe.data import MalformedAnnotationError, VisionResponseError, load_word_annotations
from pagescribe.utils import visualize_segments


def setup_logger(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("pagescribe")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    fmt = logging.Formatter("[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    logger.addHandler(sh)
    return logger


def parse_args(argv=None):
    defaults = ReconstructionConfig.from_env()
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--input", required=True, help="Vision response or stored word annotations (JSON)")
    parser.add_argument("--lines-per-segment", type=int, default=defaults.lines_per_segment)
    parser.add_argument("--row-tolerance", type=float, default=defaults.row_tolerance)
    parser.add_argument("--line-threshold", type=float, default=defaults.line_threshold)
    parser.add_argument("--text-only", action="store_true", help="Print only the combined page text")
    parser.add_argument("--image", default=None, help="Page photo, required for --vis-out")
    parser.add_argument("--vis-out", default=None, help="Where to save the segment visualization")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logger = setup_logger(args.verbose)

    if args.vis_out and not args.image:
        logger.error("--vis-out requires --image")
        return 2

    config = ReconstructionConfig(
        row_tolerance=args.row_tolerance,
        line_threshold=args.line_threshold,
        lines_per_segment=args.lines_per_segment,
    )
    reconstructor = LineReconstructor(config=config)

    try:
        words = load_word_annotations(args.input)
    except (MalformedAnnotationError, VisionResponseError) as e:
        logger.error("%s", e)
        return 1

    result = reconstructor.predict(words, profile=args.verbose)
    logger.info(
        "%d words -> %d lines -> %d segments",
        len(words), len(result["lines"]), len(result["segments"]),
    )

    if args.text_only:
        print(result["text"])
    else:
        for segment in result["segments"]:
            box = segment.bounding_box
            print(
                f"--- segment {segment.segment_index} "
                f"[{box.min_x:.0f},{box.min_y:.0f} - {box.max_x:.0f},{box.max_y:.0f}]"
            )
            print(segment.text)

    if args.vis_out:
        visualize_segments(args.image, result["segments"]).save(args.vis_out)
        logger.info("Visualization saved to %s", args.vis_out)

    return 0


if __name__ == "__main__":
    sys.exit(main())
