import math

import numpy as np
import pytest

from equicube.parallel import ExecutionContext


def periodic_channels(u, v):
    """Smooth colour field, periodic in both u and v."""
    r = 127.5 + 127.5 * np.cos(2.0 * math.pi * np.asarray(u))
    g = 127.5 + 127.5 * np.cos(2.0 * math.pi * np.asarray(v))
    b = np.full(np.shape(r), 50.0)
    return np.stack([r, np.broadcast_to(g, np.shape(r)), b], axis=-1)


def make_periodic_source(width=64, height=32) -> np.ndarray:
    """Texel (i, j) holds the colour field at u = i / W, v = j / H."""
    uu, vv = np.meshgrid(np.arange(width) / width, np.arange(height) / height)
    return np.round(periodic_channels(uu, vv)).astype(np.uint8)


@pytest.fixture
def context():
    with ExecutionContext(workers=4) as ctx:
        yield ctx


@pytest.fixture
def periodic_source():
    return make_periodic_source()


@pytest.fixture
def periodic_field():
    return periodic_channels
