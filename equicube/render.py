"""
render.py — Render cube faces from an equirectangular source.

A face is rendered by splitting its size × size pixel grid (row-major flat
indices) into contiguous chunks. Chunks are independent: each one projects
its pixels, samples the source and writes its own slice of the face buffer.
Chunk ranges partition the grid exactly, so writes never overlap and no
locking is needed. The source array is only ever read.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

import numpy as np

from equicube.errors import CubemapRenderError, FaceRenderError, PreconditionError
from equicube.faces import FACES, Face, check_size, cube_to_spherical
from equicube.parallel import ExecutionContext
from equicube.sampling import sample_bilinear

logger = logging.getLogger(__name__)

# Called with (size, face, buffer) once a face is complete.
FaceSink = Callable[[int, Face, np.ndarray], None]


@dataclass(frozen=True)
class RenderJob:
    size: int
    quality: int = 95

    def __post_init__(self):
        check_size(self.size)
        if (isinstance(self.quality, bool)
                or not isinstance(self.quality, (int, np.integer))
                or not 1 <= self.quality <= 100):
            raise PreconditionError(
                f"quality must be an integer in [1, 100], got {self.quality!r}")


def validate_source(image) -> np.ndarray:
    """Check that *image* is a non-empty (H, W, 3) uint8 raster."""
    if not isinstance(image, np.ndarray):
        raise PreconditionError(
            f"source must be a numpy array, got {type(image).__name__}")
    if image.ndim != 3 or image.shape[2] != 3:
        raise PreconditionError(
            f"source must have shape (H, W, 3), got {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise PreconditionError(f"source has zero dimension: {image.shape}")
    if image.dtype != np.uint8:
        raise PreconditionError(f"source must be uint8, got {image.dtype}")
    return image


# ── Chunking ──────────────────────────────────────────────────────────────────

def default_chunk_size(size: int) -> int:
    """Sixteen rows per chunk, capped at the whole face."""
    return min(size * 16, size * size)


def check_chunk_size(chunk_size) -> int:
    """Return *chunk_size* if it is a positive integer, else raise PreconditionError."""
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, (int, np.integer)):
        raise PreconditionError(
            f"chunk size must be an integer, got {chunk_size!r}")
    if chunk_size < 1:
        raise PreconditionError(f"chunk size must be positive, got {chunk_size}")
    return int(chunk_size)


def chunk_ranges(size: int, chunk_size: int) -> list[tuple[int, int]]:
    """
    Split the flat pixel range [0, size²) into half-open (start, stop) chunks.

    chunk_size is clamped to [1, size²]; the last chunk may be shorter.
    """
    size = check_size(size)
    total = size * size
    chunk_size = max(1, min(int(chunk_size), total))
    return [(start, min(start + chunk_size, total))
            for start in range(0, total, chunk_size)]


def render_chunk(source: np.ndarray, face: Face, size: int,
                 flat_out: np.ndarray, start: int, stop: int) -> None:
    """Fill flat pixels [start, stop) of one face buffer."""
    index = np.arange(start, stop)
    y, x = np.divmod(index, size)
    u, v = cube_to_spherical(face, x, y, size)
    flat_out[start:stop] = sample_bilinear(source, u, v)


# ── Face / cubemap rendering ──────────────────────────────────────────────────

def render_face(source: np.ndarray, face, size: int,
                context: ExecutionContext,
                chunk_size: int | None = None) -> np.ndarray:
    """
    Render one cube face.

    Args:
        source:     (H, W, 3) uint8 equirectangular array, read only
        face:       Face (or its name)
        size:       face side length in pixels
        context:    execution context that runs the chunks
        chunk_size: pixels per chunk; affects scheduling only, never output

    Returns:
        (size, size, 3) uint8 face buffer
    """
    face = Face(face)
    size = check_size(size)
    validate_source(source)
    if chunk_size is None:
        chunk_size = default_chunk_size(size)
    else:
        chunk_size = check_chunk_size(chunk_size)

    buffer = np.empty((size, size, 3), dtype=np.uint8)
    flat = buffer.reshape(-1, 3)
    ranges = chunk_ranges(size, chunk_size)
    logger.debug("Rendering %s at %d px in %d chunk(s)", face, size, len(ranges))

    context.run_all([
        lambda start=start, stop=stop: render_chunk(
            source, face, size, flat, start, stop)
        for start, stop in ranges
    ])
    return buffer


def render_cubemap(source: np.ndarray, size: int,
                   context: ExecutionContext,
                   sink: FaceSink | None = None,
                   chunk_size: int | None = None,
                   fail_fast: bool = True) -> dict[Face, np.ndarray]:
    """
    Render all six faces of one size concurrently.

    Each face task renders its buffer and, when *sink* is given, hands
    (size, face, buffer) to it before the task completes.

    With fail_fast (the default) the first failing face aborts the join and
    is raised as FaceRenderError; faces already running finish on their own
    but are not reported. With fail_fast=False every face is attempted and
    all failures are raised together as CubemapRenderError.
    """
    size = check_size(size)
    validate_source(source)
    if chunk_size is not None:
        chunk_size = check_chunk_size(chunk_size)

    def face_task(face: Face):
        started = time.perf_counter()
        try:
            buffer = render_face(source, face, size, context, chunk_size)
            if sink is not None:
                sink(size, face, buffer)
        except Exception as exc:
            if fail_fast:
                raise FaceRenderError(size, face, str(exc)) from exc
            logger.warning("Face %s (%d px) failed: %s", face, size, exc)
            error = FaceRenderError(size, face, str(exc))
            error.__cause__ = exc
            return error
        logger.info("Face %s (%d px) completed in %.3fs",
                    face, size, time.perf_counter() - started)
        return buffer

    results = context.run_all([lambda face=face: face_task(face) for face in FACES])

    failures = {face: result for face, result in zip(FACES, results)
                if isinstance(result, FaceRenderError)}
    if failures:
        raise CubemapRenderError(size, failures)
    return dict(zip(FACES, results))
