"""
Canny edge detector operating on caller-owned packed BGR buffers.
"""
import numbers
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from canny_edge.errors import (
    InvalidBufferError,
    InvalidDimensionError,
    WorkspaceAllocationError,
)
from canny_edge.parameters import EdgeParameters, check_threshold_order
from canny_edge.processing import (
    apply_gaussian_blur,
    apply_hysteresis,
    compute_gradient,
    compute_mask_size,
    convert_to_luminance,
    crop_to_buffer,
    pad_workspace,
    suppress_non_maxima,
)

logger = logging.getLogger(__name__)

PixelBuffer = Union[bytearray, memoryview, np.ndarray]

@dataclass
class PipelineStages:
    """Intermediate grids of one run, kept for inspection."""

    mask_size: int
    half_radius: int
    luminance: np.ndarray
    padded: np.ndarray
    smoothed: np.ndarray
    magnitude: np.ndarray
    direction: np.ndarray
    suppressed: np.ndarray
    edges: np.ndarray

def validate_dimensions(width: int, height: int) -> Tuple[int, int]:
    for name, value in (('width', width), ('height', height)):
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidDimensionError(f"Image {name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidDimensionError(f"Image {name} must be positive, got {value}")
    return int(width), int(height)

def as_pixel_array(buffer: PixelBuffer, width: int, height: int) -> np.ndarray:
    """
    Wrap a packed BGR buffer as a writable (height, width, 3) uint8 view.

    No data is copied; writes through the returned array land in the buffer.

    Args:
        buffer: bytearray, writable memoryview or contiguous uint8 numpy array
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        View of the buffer
    """
    expected = width * height * 3

    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise InvalidBufferError(f"Pixel array must be uint8, got {buffer.dtype}")
        if not buffer.flags.c_contiguous:
            raise InvalidBufferError("Pixel array must be C-contiguous")
        flat = buffer.reshape(-1)
    else:
        try:
            view = memoryview(buffer)
        except TypeError as exc:
            raise InvalidBufferError(f"Unsupported buffer type: {type(buffer).__name__}") from exc
        if not view.c_contiguous:
            raise InvalidBufferError("Pixel buffer must be contiguous")
        if view.readonly:
            raise InvalidBufferError("Pixel buffer is read-only")
        flat = np.frombuffer(view.cast('B'), dtype=np.uint8)

    if not flat.flags.writeable:
        raise InvalidBufferError("Pixel buffer is read-only")
    if flat.size != expected:
        raise InvalidBufferError(
            f"Buffer holds {flat.size} bytes, expected {expected} for {width}x{height} BGR")

    return flat.reshape(height, width, 3)

class CannyEdgeDetector:
    """
    Canny edge detector.

    Turns a 24-bit BGR image into a black image with edges marked in white.
    The detector keeps only its parameters, so one instance may serve several
    threads as long as each call gets its own buffer.
    """

    def __init__(self, parameters: Optional[EdgeParameters] = None):
        self.parameters = parameters or EdgeParameters()

    def process_image(self, buffer: PixelBuffer, width: int, height: int,
                      sigma: Optional[float] = None,
                      low_threshold: Optional[int] = None,
                      high_threshold: Optional[int] = None,
                      keep_stages: bool = False):
        """
        Run the full pipeline on a packed BGR buffer, in place.

        Steps: grayscale conversion, border padding, Gaussian blur, Sobel
        gradient, non-maximum suppression, hysteresis thresholding and
        cropping back to the original size.

        Args:
            buffer: Packed BGR pixels, row-major, no row padding
            width: Image width in pixels
            height: Image height in pixels
            sigma: Gaussian standard deviation (default from parameters)
            low_threshold: Lower hysteresis threshold 0-255
            high_threshold: Upper hysteresis threshold 0-255
            keep_stages: Also return the intermediate grids

        Returns:
            The same buffer, now holding only (0,0,0) and (255,255,255)
            pixels, or (buffer, PipelineStages) when keep_stages is set
        """
        return self._process(buffer, width, height, sigma, low_threshold,
                             high_threshold, keep_stages)

    def _process(self, buffer, width, height, sigma=None, low_threshold=None,
                 high_threshold=None, keep_stages=False):
        # Called straight from the public entry points; the warning frame is
        # the user's call site three levels up
        width, height = validate_dimensions(width, height)
        params = self.parameters.with_overrides(sigma=sigma,
                                                low_threshold=low_threshold,
                                                high_threshold=high_threshold)
        check_threshold_order(params.low_threshold, params.high_threshold, stacklevel=3)
        pixels = as_pixel_array(buffer, width, height)

        logger.info(f"Processing {width}x{height} image: sigma={params.sigma}, "
                    f"thresholds={params.low_threshold}/{params.high_threshold}")

        try:
            stages = self._run(pixels, params, keep_stages)
        except WorkspaceAllocationError:
            raise
        except MemoryError as exc:
            raise WorkspaceAllocationError(
                f"Could not allocate working grids for {width}x{height} image") from exc

        if keep_stages:
            return buffer, stages
        return buffer

    def _run(self, pixels: np.ndarray, params: EdgeParameters,
             keep_stages: bool = False) -> Optional[PipelineStages]:
        kept = {} if keep_stages else None

        gray = convert_to_luminance(pixels)

        mask_size = compute_mask_size(params.sigma)
        half_radius = mask_size // 2
        workspace = pad_workspace(gray, half_radius)
        if kept is not None:
            kept['padded'] = workspace

        # Each stage replaces the workspace; earlier grids are dropped unless kept
        workspace = apply_gaussian_blur(workspace, half_radius, params.sigma,
                                        params.normalize_kernel)
        if kept is not None:
            kept['smoothed'] = workspace

        magnitude, direction, _ = compute_gradient(workspace)
        # Truncate to byte levels before thresholding
        workspace = np.floor(suppress_non_maxima(magnitude, direction))
        if kept is not None:
            kept.update(magnitude=magnitude, direction=direction, suppressed=workspace)
        del magnitude, direction

        workspace = apply_hysteresis(workspace, params.low_threshold, params.high_threshold)
        crop_to_buffer(workspace, half_radius, pixels)

        if kept is None:
            return None
        return PipelineStages(mask_size=mask_size, half_radius=half_radius,
                              luminance=gray, edges=workspace, **kept)

def detect_edges(buffer: PixelBuffer, width: int, height: int,
                 sigma: float = 1.0, low_threshold: int = 30,
                 high_threshold: int = 80, normalize_kernel: bool = True) -> PixelBuffer:
    """Run the Canny pipeline on a packed BGR buffer and return the same buffer."""
    detector = CannyEdgeDetector(EdgeParameters(sigma=sigma,
                                                low_threshold=low_threshold,
                                                high_threshold=high_threshold,
                                                normalize_kernel=normalize_kernel))
    return detector._process(buffer, width, height)
