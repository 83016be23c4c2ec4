"""Exception types raised by equicube."""


class CubemapError(Exception):
    """Base class for every error raised by equicube."""


class PreconditionError(CubemapError, ValueError):
    """Invalid arguments, rejected before any work is scheduled."""


class FaceRenderError(CubemapError):
    """Rendering or persisting one face failed."""

    def __init__(self, size: int, face, message: str = ''):
        self.size = size
        self.face = face
        detail = f": {message}" if message else ''
        super().__init__(f"face '{face}' at size {size} failed{detail}")


class CubemapRenderError(CubemapError):
    """One or more faces failed while rendering with failure isolation."""

    def __init__(self, size: int, failures: dict):
        self.size = size
        self.failures = failures
        names = ', '.join(str(face) for face in failures)
        super().__init__(f"{len(failures)} face(s) failed at size {size}: {names}")
