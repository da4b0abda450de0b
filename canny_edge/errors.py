"""
Error and warning types raised by the edge detection pipeline.
"""


class CannyError(ValueError):
    """Base class for rejected pipeline inputs."""


class InvalidDimensionError(CannyError):
    """Width or height is not a positive integer."""


class InvalidSigmaError(CannyError):
    """Gaussian sigma is not a positive finite number."""


class InvalidThresholdError(CannyError):
    """Hysteresis threshold lies outside the byte range 0-255."""


class InvalidBufferError(CannyError):
    """Pixel buffer is read-only, non-contiguous or has the wrong size."""


class ThresholdOrderWarning(UserWarning):
    """Low threshold exceeds high threshold; the result is likely degenerate."""


class WorkspaceAllocationError(MemoryError):
    """A working grid could not be allocated."""
