"""
cli.py — Convert an equirectangular panorama into JPEG cubemaps.

For every requested face size the command writes six files:
    {output}/cubemap_{size}/right.jpg   left.jpg   up.jpg
    {output}/cubemap_{size}/down.jpg    front.jpg  back.jpg

Usage:
    equicube <panorama.jpg> [--sizes 1024 2048 4096] [--quality 95]

All faces of one size are rendered concurrently, and every face is split
into pixel chunks that run concurrently too. Sizes are processed one after
another; sizes finished before a failure stay on disk.
"""

import argparse
import logging
import os
import sys
import time
import traceback

import numpy as np

from equicube.errors import CubemapError
from equicube.io import FaceWriter, load_source, size_dir
from equicube.parallel import ExecutionContext
from equicube.render import RenderJob, render_cubemap

DEFAULT_SIZES = [1024, 2048, 4096]
JPEG_QUALITY = 95
OUTPUT_ROOT = 'output'

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


# ── Batch processing ──────────────────────────────────────────────────────────

def convert_to_cubemap(source: np.ndarray, job: RenderJob,
                       context: ExecutionContext, output_root: str,
                       chunk_size: int | None = None) -> None:
    """Render and persist the six faces of one size."""
    start = time.perf_counter()
    print(f"\nProcessing size: {job.size}")
    print(f"Output:    {size_dir(output_root, job.size)}")

    writer = FaceWriter(output_root, job.quality)

    def report(size, face, buffer):
        writer(size, face, buffer)
        print(f"  Face {face} completed at {time.perf_counter() - start:.3f}s",
              flush=True)

    render_cubemap(source, job.size, context, sink=report, chunk_size=chunk_size)
    print(f"Total conversion time: {time.perf_counter() - start:.3f}s")


def process_image(img_path: str, sizes: list[int], quality: int,
                  output_root: str, context: ExecutionContext,
                  chunk_size: int | None = None) -> int:
    """Convert one panorama at every size; return the number of failed sizes."""
    jobs = [RenderJob(size, quality) for size in sizes]

    print(f"Loading:   {img_path}")
    source = load_source(img_path)
    H, W = source.shape[:2]
    print(f"Source:    {W} × {H} px")

    failed = 0
    for job in jobs:
        try:
            convert_to_cubemap(source, job, context, output_root, chunk_size)
        except CubemapError as exc:
            print(f"ERROR at size {job.size}: {exc}", file=sys.stderr)
            traceback.print_exc()
            failed += 1
    return failed


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='equicube',
        description='Convert an equirectangular panorama into six cube-face JPEGs.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            'Output: {output}/cubemap_{size}/{face}.jpg for each size.\n'
            'Faces: right left up down front back'
        ),
    )
    parser.add_argument('image', help='Path to an equirectangular image')
    parser.add_argument('-s', '--sizes', type=int, nargs='+', default=DEFAULT_SIZES,
                        help=f'Face sizes in pixels (default: {DEFAULT_SIZES})')
    parser.add_argument('-q', '--quality', type=int, default=JPEG_QUALITY,
                        help=f'JPEG quality 1-100 (default: {JPEG_QUALITY})')
    parser.add_argument('-o', '--output', default=OUTPUT_ROOT,
                        help=f'Output root directory (default: {OUTPUT_ROOT})')
    parser.add_argument('-w', '--workers', type=int, default=None,
                        help='Worker threads (default: CPU count)')
    parser.add_argument('--chunk-size', type=int, default=None,
                        help='Pixels per work chunk (default: 16 rows)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log progress details')
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format=LOG_FORMAT)

    if not os.path.isfile(args.image):
        print(f"ERROR: file not found: {args.image}", file=sys.stderr)
        return 1

    total_start = time.perf_counter()
    try:
        with ExecutionContext(args.workers) as context:
            failed = process_image(args.image, args.sizes, args.quality,
                                   args.output, context, args.chunk_size)
    except CubemapError as exc:
        print(f"ERROR processing {args.image}: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"ERROR reading {args.image}: {exc}", file=sys.stderr)
        return 1

    print(f"\nTotal processing time for all sizes: "
          f"{time.perf_counter() - total_start:.3f}s")
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
