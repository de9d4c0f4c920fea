"""
Pixel sampling for palette extraction.

Walks a decoded RGBA buffer on a fixed grid stride and keeps the RGB values of
pixels that are opaque and neither near-black nor near-white.
"""

from typing import Optional, Union

import numpy as np
from loguru import logger

from .errors import ConfigurationError

DEFAULT_STRIDE = 5
ALPHA_MIN = 200
NEAR_BLACK_MAX = 10
NEAR_WHITE_MIN = 245


def as_rgba_array(pixels: Union[np.ndarray, bytes, bytearray, memoryview],
                  width: Optional[int] = None,
                  height: Optional[int] = None) -> np.ndarray:
    """
    Normalize a decoded pixel buffer into an (H, W, 4) uint8 array.

    Args:
        pixels: Either an (H, W, 4) array or a flat RGBA buffer of W*H*4 values
        width: Image width, required for flat buffers
        height: Image height, required for flat buffers

    Returns:
        RGBA array of shape (H, W, 4)

    Raises:
        ConfigurationError: If the buffer shape or channel count is malformed
    """
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(pixels, dtype=np.uint8)
    else:
        arr = np.asarray(pixels)

    if arr.ndim == 1:
        if width is None or height is None:
            raise ConfigurationError("Flat pixel buffers require explicit width and height")
        if width < 0 or height < 0:
            raise ConfigurationError(f"Invalid buffer dimensions: {width}x{height}")
        expected = width * height * 4
        if arr.size != expected:
            raise ConfigurationError(
                f"Pixel buffer length {arr.size} does not match {width}x{height}x4={expected}"
            )
        arr = arr.reshape(height, width, 4)
    elif arr.ndim != 3 or arr.shape[2] != 4:
        raise ConfigurationError(f"Expected RGBA buffer with 4 channels, got shape {arr.shape}")
    elif width is not None and height is not None and arr.shape[:2] != (height, width):
        raise ConfigurationError(
            f"Buffer shape {arr.shape[1]}x{arr.shape[0]} does not match {width}x{height}"
        )

    if arr.size and (arr.min() < 0 or arr.max() > 255):
        raise ConfigurationError("Channel values must lie in [0, 255]")

    return arr.astype(np.uint8, copy=False)


def sample_pixels(pixels: Union[np.ndarray, bytes, bytearray, memoryview],
                  width: Optional[int] = None,
                  height: Optional[int] = None,
                  stride: int = DEFAULT_STRIDE) -> np.ndarray:
    """
    Sample RGB colors from an RGBA buffer on a fixed grid.

    Pixels at (x, y) with x % stride == 0 and y % stride == 0 are visited in
    row-major order. A pixel is skipped when its alpha is below 200, when all
    of its RGB channels are below 10, or when all of them are above 245.

    The buffer is expected to be resized already (see
    ``imaging.resize_to_max_edge``); this function only walks it.

    Args:
        pixels: Decoded RGBA buffer, (H, W, 4) or flat with width/height
        width: Image width for flat buffers
        height: Image height for flat buffers
        stride: Grid spacing between visited pixels

    Returns:
        Sample set of shape (N, 3) uint8. N may be 0.

    Raises:
        ConfigurationError: If the buffer is malformed or stride < 1
    """
    if not isinstance(stride, (int, np.integer)) or isinstance(stride, bool) or stride < 1:
        raise ConfigurationError(f"Sample stride must be a positive integer, got {stride!r}")

    rgba = as_rgba_array(pixels, width, height)
    grid = rgba[::stride, ::stride].reshape(-1, 4)

    rgb = grid[:, :3]
    keep_mask = grid[:, 3] >= ALPHA_MIN
    keep_mask &= ~np.all(rgb < NEAR_BLACK_MAX, axis=1)
    keep_mask &= ~np.all(rgb > NEAR_WHITE_MIN, axis=1)

    samples = np.ascontiguousarray(rgb[keep_mask])
    logger.debug(f"Sampled {len(samples)}/{len(grid)} grid pixels (stride={stride})")

    samples.setflags(write=False)
    return samples
