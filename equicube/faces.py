"""
faces.py — Inverse projection from cube-face pixels to equirectangular UV.

World frame used by every face:
    a = towards the right face      (azimuth +π/2, u = 0.75)
    b = towards the front face      (azimuth 0,    u = 0.5)
    c = up, the polar axis          (polar 0,      v = 0)

Each face is described by which cube-local quantity feeds each world
component: 'x' (horizontal NDC, left → right), 'y' (vertical NDC,
top → bottom) or '1' (the face's principal axis), together with a sign.
All six faces go through the same direction → (u, v) computation, so two
faces that share an edge produce the identical direction for any point on
that edge.
"""

import math
from enum import Enum

import numpy as np

from equicube.errors import PreconditionError


class Face(str, Enum):
    RIGHT = 'right'
    LEFT = 'left'
    UP = 'up'
    DOWN = 'down'
    FRONT = 'front'
    BACK = 'back'

    def __str__(self) -> str:
        return self.value


FACES = list(Face)

# face → ((source, sign) for a, b, c)
FACE_AXES: dict[Face, tuple[tuple[str, float], ...]] = {
    Face.RIGHT: (('1', 1.0), ('x', -1.0), ('y', -1.0)),
    Face.LEFT:  (('1', -1.0), ('x', 1.0), ('y', -1.0)),
    Face.UP:    (('x', 1.0), ('y', 1.0), ('1', 1.0)),
    Face.DOWN:  (('x', 1.0), ('y', -1.0), ('1', -1.0)),
    Face.FRONT: (('x', 1.0), ('1', 1.0), ('y', -1.0)),
    Face.BACK:  (('x', -1.0), ('1', -1.0), ('y', -1.0)),
}

TWO_PI = 2.0 * math.pi


def check_size(size) -> int:
    """Return *size* if it is a positive integer, else raise PreconditionError."""
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        raise PreconditionError(f"face size must be an integer, got {size!r}")
    if size <= 0:
        raise PreconditionError(f"face size must be positive, got {size}")
    return int(size)


def pixel_to_ndc(coord, size: int):
    """Map integer pixel indices in [0, size) to pixel-centre NDC in (-1, 1)."""
    return (2.0 * np.asarray(coord, dtype=np.float64) + 1.0) / size - 1.0


def face_direction(face, nx, ny) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    World direction (a, b, c) of a point on *face* at NDC (nx, ny).

    The returned vector is not normalised; its component along the face's
    principal axis is ±1.
    """
    nx, ny = np.broadcast_arrays(np.asarray(nx, dtype=np.float64),
                                 np.asarray(ny, dtype=np.float64))
    sources = {'x': nx, 'y': ny, '1': np.ones_like(nx)}
    a, b, c = (sign * sources[axis] for axis, sign in FACE_AXES[Face(face)])
    return a, b, c


def direction_to_spherical(a, b, c):
    """
    Normalised (u, v) of a world direction.

    u = azimuth / 2π + 0.5 with azimuth = atan2(a, b); v = polar / π with the
    polar angle measured from +c. Values landing on exactly 1.0 are wrapped
    to 0.0, the same texel under toroidal addressing.
    """
    r = np.sqrt(a * a + b * b + c * c)
    azimuth = np.arctan2(a, b)
    polar = np.arccos(np.clip(c / r, -1.0, 1.0))

    u = azimuth / TWO_PI + 0.5
    v = polar / math.pi
    u = np.where(u >= 1.0, u - 1.0, u)
    v = np.where(v >= 1.0, v - 1.0, v)
    if u.ndim == 0:
        return float(u), float(v)
    return u, v


def cube_to_spherical(face, x, y, size: int):
    """
    Project cube-face pixel(s) onto the equirectangular UV square.

    Args:
        face: a Face (or its name)
        x, y: integer pixel coordinates, 0 <= x, y < size; scalars or arrays
        size: face side length in pixels

    Returns:
        (u, v) in [0, 1) × [0, 1); floats for scalar input, arrays otherwise
    """
    size = check_size(size)
    return direction_to_spherical(
        *face_direction(face, pixel_to_ndc(x, size), pixel_to_ndc(y, size)))
