"""
Image file adapters: decode files into packed BGR buffers and write them back.
All format handling is delegated to PIL.
"""
import numpy as np
from PIL import Image
from typing import Optional, Tuple
import os
import logging

logger = logging.getLogger(__name__)

def load_bgr_buffer(file_path: str, max_size: Optional[Tuple[int, int]] = None) -> Tuple[bytearray, int, int]:
    """
    Load an image file as a packed BGR buffer.

    Args:
        file_path: Path to image file
        max_size: Optional maximum (width, height) for downsampling

    Returns:
        Tuple of (buffer, width, height)
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Image file not found: {file_path}")

    with Image.open(file_path) as pil_image:
        pil_image.load()

        # Downsample if max_size specified
        if max_size and (pil_image.width > max_size[0] or pil_image.height > max_size[1]):
            pil_image.thumbnail(max_size, Image.Resampling.LANCZOS)
            logger.info(f"Downsampled image to {pil_image.size}")

        # Flatten alpha onto white before dropping it
        if pil_image.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', pil_image.size, (255, 255, 255))
            background.paste(pil_image, mask=pil_image.split()[-1])
            rgb_image = background
        else:
            rgb_image = pil_image.convert('RGB')

    rgb = np.asarray(rgb_image, dtype=np.uint8)
    height, width = rgb.shape[:2]
    bgr = np.ascontiguousarray(rgb[:, :, ::-1])

    logger.info(f"Loaded {file_path}: {width}x{height}")
    return bytearray(bgr.tobytes()), width, height

def buffer_to_array(buffer, width: int, height: int) -> np.ndarray:
    """Copy a packed BGR buffer into an RGB array of shape (height, width, 3)."""
    bgr = np.frombuffer(bytes(buffer), dtype=np.uint8)
    if bgr.size != width * height * 3:
        raise ValueError(f"Buffer holds {bgr.size} bytes, expected {width * height * 3}")
    return bgr.reshape(height, width, 3)[:, :, ::-1].copy()

def buffer_to_image(buffer, width: int, height: int) -> Image.Image:
    """Build a PIL RGB image from a packed BGR buffer."""
    return Image.fromarray(buffer_to_array(buffer, width, height))

def save_bgr_buffer(buffer, width: int, height: int, file_path: str):
    """
    Save a packed BGR buffer to an image file.

    Args:
        buffer: Packed BGR pixels
        width: Image width
        height: Image height
        file_path: Output file path (format from extension)
    """
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    buffer_to_image(buffer, width, height).save(file_path)
    logger.info(f"Saved image to {file_path}")

def load_edge_map(file_path: str) -> np.ndarray:
    """Load an edge map image as a single-channel uint8 array."""
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Edge map not found: {file_path}")

    with Image.open(file_path) as pil_image:
        return np.array(pil_image.convert('L'), dtype=np.uint8)
