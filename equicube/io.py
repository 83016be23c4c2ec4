"""
Decode the source panorama and persist rendered faces.

Faces are written as baseline JPEGs to {output_root}/cubemap_{size}/{face}.jpg.
"""

import logging
import os

import numpy as np
from PIL import Image

from equicube.faces import Face
from equicube.render import validate_source

logger = logging.getLogger(__name__)

Image.MAX_IMAGE_PIXELS = None   # allow very large panoramas


def load_source(path: str) -> np.ndarray:
    """Open an equirectangular image and return it as an (H, W, 3) uint8 array."""
    with Image.open(path) as img:
        source = np.array(img.convert('RGB'))
    logger.info("Loaded %s (%d × %d px)", path, source.shape[1], source.shape[0])
    return validate_source(source)


def size_dir(output_root: str, size: int) -> str:
    return os.path.join(output_root, f"cubemap_{size}")


def face_path(output_root: str, size: int, face) -> str:
    return os.path.join(size_dir(output_root, size), f"{Face(face).value}.jpg")


def save_face(path: str, buffer: np.ndarray, quality: int) -> None:
    Image.fromarray(buffer).save(path, format='JPEG', quality=quality)


class FaceWriter:
    """Sink that encodes each completed face to JPEG at a fixed quality."""

    def __init__(self, output_root: str, quality: int):
        self.output_root = output_root
        self.quality = quality

    def __call__(self, size: int, face: Face, buffer: np.ndarray) -> None:
        os.makedirs(size_dir(self.output_root, size), exist_ok=True)
        path = face_path(self.output_root, size, face)
        save_face(path, buffer, self.quality)
        logger.debug("Wrote %s", path)
