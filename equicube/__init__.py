"""Equirectangular panorama → six-face cubemap reprojection."""

from equicube.errors import (CubemapError, CubemapRenderError, FaceRenderError,
                             PreconditionError)
from equicube.faces import FACES, Face, cube_to_spherical
from equicube.parallel import ExecutionContext
from equicube.render import RenderJob, chunk_ranges, render_cubemap, render_face
from equicube.sampling import sample_bilinear

__version__ = '0.1.0'
