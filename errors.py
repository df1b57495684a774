"""
Error kinds raised by the edge detection pipeline.
Every one of them aborts the whole pipeline.
"""


class StencilError(Exception):
    """Base class for all pipeline failures."""


class InvalidParameter(StencilError, ValueError):
    """Bad kernel radius, standard deviation, shape or buffer size."""


class DecodeFailure(StencilError, OSError):
    """Input image unreadable or corrupt."""


class AllocationFailure(StencilError, MemoryError):
    """Buffer allocation failed."""


class AliasingViolation(StencilError, ValueError):
    """Stencil called with the same buffer as input and output."""


class EncodeFailure(StencilError, OSError):
    """Output image could not be written."""
