"""
Canny pipeline stages: luminance, border padding, Gaussian smoothing,
Sobel gradient, non-maximum suppression, hysteresis linking and cropping.

All grids are indexed (row, col) with rows growing downward and columns
growing rightward.
"""
import numpy as np
from typing import Tuple
import math
import logging

logger = logging.getLogger(__name__)

# BGR channel order of packed pixel buffers
BLUE, GREEN, RED = 0, 1, 2

SOBEL_X = np.array([[1, 0, -1],
                    [2, 0, -2],
                    [1, 0, -1]], dtype=np.float64)

SOBEL_Y = np.array([[-1, -2, -1],
                    [ 0,  0,  0],
                    [ 1,  2,  1]], dtype=np.float64)

# Hysteresis pixel states
UNVISITED = -1
REJECTED = 0
CONFIRMED = 255

NEIGHBOR_OFFSETS = ((-1, -1), (-1, 0), (-1, 1),
                    ( 0, -1),          ( 0, 1),
                    ( 1, -1), ( 1, 0), ( 1, 1))

def convert_to_luminance(pixels: np.ndarray) -> np.ndarray:
    """
    Reduce a BGR image to grayscale, in place.

    Args:
        pixels: uint8 array of shape (height, width, 3) in BGR order

    Returns:
        Grayscale grid of shape (height, width), dtype uint8
    """
    blue = pixels[:, :, BLUE].astype(np.float64)
    green = pixels[:, :, GREEN].astype(np.float64)
    red = pixels[:, :, RED].astype(np.float64)

    gray = np.floor(0.299 * red + 0.587 * green + 0.114 * blue).astype(np.uint8)
    pixels[:, :, :] = gray[:, :, np.newaxis]

    logger.debug(f"Luminance range: [{gray.min()}, {gray.max()}]")
    return gray

def compute_mask_size(sigma: float) -> int:
    """
    Side length of the Gaussian mask for a given sigma.

    Always odd and at least 1. Rounds half away from zero.
    """
    radius = math.sqrt(-math.log(0.3) * 2 * sigma * sigma)
    return 2 * int(math.floor(radius + 0.5)) + 1

def pad_workspace(gray: np.ndarray, half_radius: int) -> np.ndarray:
    """
    Copy a grayscale grid into a workspace enlarged by half_radius on every side.

    Corner regions repeat the source corner pixels and edge bands repeat the
    nearest source row or column.

    Args:
        gray: Grayscale grid (height, width)
        half_radius: Margin width

    Returns:
        float64 workspace of shape (height + 2*half_radius, width + 2*half_radius)
    """
    workspace = np.pad(gray.astype(np.float64), half_radius, mode='edge')
    logger.debug(f"Workspace {workspace.shape} with margin {half_radius}")
    return workspace

def crop_workspace(workspace: np.ndarray, half_radius: int) -> np.ndarray:
    """Strip the margin added by pad_workspace."""
    rows, cols = workspace.shape
    return workspace[half_radius:rows - half_radius, half_radius:cols - half_radius]

def generate_gaussian_kernel(half_radius: int, sigma: float,
                             normalize: bool = True) -> np.ndarray:
    """
    Generate a square Gaussian kernel of side 2*half_radius + 1.

    Args:
        half_radius: Kernel radius
        sigma: Standard deviation
        normalize: Divide by the kernel sum so flat regions keep their level

    Returns:
        Gaussian kernel
    """
    size = 2 * half_radius + 1
    kernel = np.zeros((size, size), dtype=np.float64)
    scale = 1.0 / (2 * math.pi * sigma**2)

    for i in range(-half_radius, half_radius + 1):
        for j in range(-half_radius, half_radius + 1):
            kernel[i + half_radius, j + half_radius] = \
                scale * math.exp(-(i**2 + j**2) / (2 * sigma**2))

    if normalize:
        return kernel / np.sum(kernel)
    return kernel

def convolve_valid(grid: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """
    Convolve a grid with a kernel, keeping only fully covered positions.

    Reads grid only and accumulates into a fresh output buffer.

    Args:
        grid: Single-channel grid (H, W)
        kernel: Convolution kernel (kh, kw)

    Returns:
        Grid of shape (H - kh + 1, W - kw + 1)
    """
    h, w = grid.shape
    k_h, k_w = kernel.shape
    out_h, out_w = h - k_h + 1, w - k_w + 1

    result = np.zeros((out_h, out_w), dtype=np.float64)

    # Kernel is flipped: weight (i, j) pairs with offset (k_h-1-i, k_w-1-j)
    for i in range(k_h):
        for j in range(k_w):
            weight = kernel[i, j]
            if weight == 0:
                continue
            row = k_h - 1 - i
            col = k_w - 1 - j
            result += weight * grid[row:row + out_h, col:col + out_w]

    return result

def apply_gaussian_blur(workspace: np.ndarray, half_radius: int, sigma: float,
                        normalize: bool = True) -> np.ndarray:
    """
    Smooth the interior of a padded workspace.

    The margin supplies exactly enough border for the kernel. Smoothed values
    are truncated to byte levels, and once the interior is smoothed the margin
    is refilled from the smoothed edge pixels.

    Args:
        workspace: Padded grid from pad_workspace
        half_radius: Margin width (kernel radius)
        sigma: Gaussian standard deviation
        normalize: Use a kernel that sums to one

    Returns:
        New smoothed workspace of the same shape
    """
    kernel = generate_gaussian_kernel(half_radius, sigma, normalize)
    smoothed = np.clip(np.floor(convolve_valid(workspace, kernel)), 0, 255)

    logger.debug(f"Gaussian kernel {kernel.shape}, sum={np.sum(kernel):.6f}, "
                 f"smoothed range: [{np.min(smoothed):.3f}, {np.max(smoothed):.3f}]")

    return np.pad(smoothed, half_radius, mode='edge')

def quantize_direction(gradient_x: np.ndarray, gradient_y: np.ndarray) -> np.ndarray:
    """
    Quantize gradient orientation into the labels 0, 45, 90 and 135.

    Zero gradients and angles beyond +/-157.5 degrees map to 0.
    """
    angle = np.degrees(np.arctan2(gradient_y, gradient_x))

    direction = np.zeros(angle.shape, dtype=np.uint8)
    direction[((angle > 22.5) & (angle <= 67.5)) |
              ((angle > -157.5) & (angle <= -112.5))] = 45
    direction[((angle > 67.5) & (angle <= 112.5)) |
              ((angle > -112.5) & (angle <= -67.5))] = 90
    direction[((angle > 112.5) & (angle <= 157.5)) |
              ((angle > -67.5) & (angle <= -22.5))] = 135

    zero = (gradient_x == 0) & (gradient_y == 0)
    direction[zero] = 0
    return direction

def compute_gradient(workspace: np.ndarray) -> Tuple[np.ndarray, np.ndarray, float]:
    """
    Apply the Sobel operator over the whole workspace.

    The kernels' first index runs along columns, so gradient_x measures change
    down the rows and gradient_y change across the columns. The workspace is
    extended by one replicated cell for the 3x3 pass.

    Args:
        workspace: Smoothed workspace

    Returns:
        Tuple of (magnitude rescaled to [0, 255], direction labels, maximum raw magnitude)
    """
    extended = np.pad(workspace, 1, mode='edge')

    gradient_x = convolve_valid(extended, SOBEL_X.T)
    gradient_y = convolve_valid(extended, SOBEL_Y.T)

    magnitude = np.sqrt(gradient_x**2 + gradient_y**2) / 4.0
    max_magnitude = float(np.max(magnitude))
    direction = quantize_direction(gradient_x, gradient_y)

    if max_magnitude > 0:
        # Divide first so the maximum maps to exactly 255
        magnitude = 255.0 * (magnitude / max_magnitude)
    else:
        magnitude = np.zeros_like(magnitude)

    logger.debug(f"Gradient max magnitude: {max_magnitude:.6f}")
    return magnitude, direction, max_magnitude

def suppress_non_maxima(magnitude: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """
    Thin edges by keeping local maxima across the edge.

    Each interior pixel is compared with its two neighbors on the axis
    selected by its direction label. The outermost ring is left unchanged.

    Args:
        magnitude: Rescaled gradient magnitude
        direction: Direction labels from quantize_direction

    Returns:
        Suppressed magnitude grid
    """
    suppressed = magnitude.copy()
    if magnitude.shape[0] < 3 or magnitude.shape[1] < 3:
        return suppressed

    center = magnitude[1:-1, 1:-1]
    labels = direction[1:-1, 1:-1]

    up, down = magnitude[:-2, 1:-1], magnitude[2:, 1:-1]
    left, right = magnitude[1:-1, :-2], magnitude[1:-1, 2:]
    up_left, up_right = magnitude[:-2, :-2], magnitude[:-2, 2:]
    down_left, down_right = magnitude[2:, :-2], magnitude[2:, 2:]

    conditions = [labels == 0, labels == 45, labels == 90, labels == 135]
    first = np.select(conditions, [down, down_left, left, down_right])
    second = np.select(conditions, [up, up_right, right, up_left])

    keep = (center >= first) & (center >= second)
    suppressed[1:-1, 1:-1] = np.where(keep, center, 0.0)

    logger.debug(f"Non-maximum suppression kept {np.count_nonzero(suppressed)} pixels")
    return suppressed

def apply_hysteresis(grid: np.ndarray, low_threshold: int, high_threshold: int) -> np.ndarray:
    """
    Two-threshold edge linking.

    Every pixel at or above high_threshold seeds a depth-first fill that
    confirms 8-connected neighbors at or above low_threshold. Pixels with
    value 0 are never edges.

    Args:
        grid: Suppressed magnitude grid
        low_threshold: Lower threshold (0-255)
        high_threshold: Upper threshold (0-255)

    Returns:
        uint8 grid of 0 and 255
    """
    rows, cols = grid.shape
    state = np.full(grid.shape, UNVISITED, dtype=np.int16)

    candidate = grid > 0
    weak = candidate & (grid >= low_threshold)
    seeds = np.argwhere(candidate & (grid >= high_threshold)).tolist()

    for seed_row, seed_col in seeds:
        if state[seed_row, seed_col] == CONFIRMED:
            continue
        state[seed_row, seed_col] = CONFIRMED
        stack = [(seed_row, seed_col)]

        while stack:
            row, col = stack.pop()
            for d_row, d_col in NEIGHBOR_OFFSETS:
                n_row, n_col = row + d_row, col + d_col
                if n_row < 0 or n_col < 0 or n_row >= rows or n_col >= cols:
                    continue
                if state[n_row, n_col] == CONFIRMED:
                    continue
                if weak[n_row, n_col]:
                    state[n_row, n_col] = CONFIRMED
                    stack.append((n_row, n_col))
                else:
                    state[n_row, n_col] = REJECTED

    edges = np.where(state == CONFIRMED, 255, 0).astype(np.uint8)

    edge_pixels = int(np.count_nonzero(edges))
    logger.debug(f"Hysteresis: {len(seeds)} seeds, edge pixels: {edge_pixels} / {edges.size}")
    return edges

def crop_to_buffer(edges: np.ndarray, half_radius: int, pixels: np.ndarray) -> np.ndarray:
    """
    Write the cropped edge map into all three channels of a BGR array, in place.

    Args:
        edges: Workspace-sized 0/255 grid
        half_radius: Margin width to strip
        pixels: Destination uint8 array (height, width, 3)

    Returns:
        The destination array
    """
    cropped = crop_workspace(edges, half_radius)
    if cropped.shape != pixels.shape[:2]:
        raise ValueError(f"Cropped shape {cropped.shape} does not match image {pixels.shape[:2]}")

    pixels[:, :, :] = cropped[:, :, np.newaxis]
    return pixels
