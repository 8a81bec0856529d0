#!/usr/bin/env python3
"""
Pair Stitch CLI
Command-line interface for stitching two overlapping photos.

Usage:
    python -m pairstitch.stitch_cli left.jpg right.jpg [options]
"""

import argparse
import logging
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor

from .errors import StitchError
from .image_io import DEFAULT_MAX_DIMENSION, write_image
from .panorama_stitcher import STEP_NAMES, PanoramaStitcher

logger = logging.getLogger(__name__)


def submit_run(stitcher, img1, img2, executor=None):
    """
    Run the stitcher on a worker thread.

    Args:
        stitcher: PanoramaStitcher
        img1: Left image
        img2: Right image
        executor: Executor to submit to; a single-use one is created if None

    Returns:
        Future resolving to the StitchResult or raising the run's error
    """
    if executor is not None:
        return executor.submit(stitcher.run, img1, img2)

    own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='pairstitch')
    try:
        return own_executor.submit(stitcher.run, img1, img2)
    finally:
        own_executor.shutdown(wait=False)


def step_filename(index):
    return f"step_{index}_{STEP_NAMES[index]}.png"


def print_banner():
    """Print ASCII art banner."""
    banner = r"""
 ____       _         ____  _   _ _       _
|  _ \ __ _(_)_ __   / ___|| |_(_) |_ ___| |__
| |_) / _` | | '__|  \___ \| __| | __/ __| '_ \
|  __/ (_| | | |      ___) | |_| | || (__| | | |
|_|   \__,_|_|_|     |____/ \__|_|\__\___|_| |_|
    """
    print(banner)


def build_parser():
    parser = argparse.ArgumentParser(
        description='Stitch two overlapping photos (left, right) into one image'
    )

    parser.add_argument('left', help='Left input image')
    parser.add_argument('right', help='Right input image')

    parser.add_argument(
        '-o', '--output-dir',
        default='stitch_outputs',
        help='Directory for the five step images (default: stitch_outputs)'
    )

    parser.add_argument(
        '--max-dimension',
        type=int,
        default=DEFAULT_MAX_DIMENSION,
        help=f'Downscale inputs larger than this (default: {DEFAULT_MAX_DIMENSION})'
    )

    parser.add_argument(
        '--match-threshold',
        type=float,
        default=3.0,
        help='Keep matches closer than this multiple of the best match (default: 3.0)'
    )

    parser.add_argument(
        '--ransac-threshold',
        type=float,
        default=1.0,
        help='RANSAC reprojection threshold in pixels (default: 1.0)'
    )

    parser.add_argument(
        '--max-corners',
        type=int,
        default=1000,
        help='Maximum number of corners per image (default: 1000)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=0,
        help='RANSAC sampling seed (default: 0)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log debug details of every stage'
    )

    return parser


def main(argv=None):
    """Main function for CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    print_banner()

    for img_path in (args.left, args.right):
        if not os.path.exists(img_path):
            print(f"Error: Image not found: {img_path}")
            return 1

    try:
        stitcher = PanoramaStitcher(
            detector_params={'max_corners': args.max_corners},
            matcher_params={'threshold': args.match_threshold},
            ransac_params={
                'ransac_reproj_threshold': args.ransac_threshold,
                'seed': args.seed,
            },
            max_dimension=args.max_dimension,
        )
    except StitchError as e:
        print(f"Error: {e}")
        return 1

    try:
        os.makedirs(args.output_dir, exist_ok=True)
    except OSError as e:
        print(f"Error: {e}")
        return 1

    start_time = time.time()

    try:
        result = submit_run(stitcher, args.left, args.right).result()
    except StitchError as e:
        logger.debug("Stitching failed", exc_info=True)
        print(f"\nError during stitching: {e}")
        return 1

    elapsed_time = time.time() - start_time

    try:
        for i, step in enumerate(result):
            write_image(os.path.join(args.output_dir, step_filename(i)), step)
    except OSError as e:
        print(f"Error: {e}")
        return 1

    print("\n✓ Success!")
    print(f"  Keypoints: {len(result.features_left)} + {len(result.features_right)}")
    print(f"  Matches: {len(result.matches)}")
    print(f"  Inliers: {result.homography.num_inliers}")
    print(f"  Final size: {result.panorama.shape[1]}x{result.panorama.shape[0]}")
    print(f"  Steps saved to: {args.output_dir}")
    print(f"  Processing time: {elapsed_time:.2f} seconds")

    return 0


if __name__ == '__main__':
    sys.exit(main())
