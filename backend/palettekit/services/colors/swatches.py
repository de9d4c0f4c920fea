"""
Swatch Rendering Module

Renders extracted palettes as images: a compact swatch strip for API
responses and the full downloadable palette card (title, chips, hex labels).
"""

import base64
from typing import List, Sequence, Tuple

import cv2
import numpy as np
from loguru import logger

from .formats import rgb_to_hex

CARD_SWATCH_WIDTH = 100
CARD_SWATCH_HEIGHT = 300
CARD_MARGIN = 20
CARD_TITLE_HEIGHT = 60
CARD_MIN_WIDTH = 300


def rgb_to_bgr(rgb: Sequence[int]) -> Tuple[int, int, int]:
    """RGB triple to BGR tuple for OpenCV."""
    r, g, b = (int(c) for c in rgb[:3])
    return (b, g, r)


def _encode_png(img: np.ndarray) -> bytes:
    success, buffer = cv2.imencode('.png', img)
    if not success:
        raise RuntimeError("Failed to encode image as PNG")
    return buffer.tobytes()


def validate_swatch_params(colors: List[Sequence[int]], chip_size: int) -> None:
    """Validate swatch rendering parameters."""
    if not colors:
        raise ValueError("colors cannot be empty")

    if chip_size <= 0:
        raise ValueError("chip_size must be positive")

    for i, color in enumerate(colors):
        if len(color) < 3 or any(not 0 <= int(c) <= 255 for c in color[:3]):
            raise ValueError(f"Invalid RGB color at index {i}: {color}")


def render_swatch_strip(colors: List[Sequence[int]], chip_size: int = 40) -> str:
    """
    Render a horizontal strip of color swatches.

    Args:
        colors: RGB colors in palette order
        chip_size: Size of each color chip in pixels

    Returns:
        Base64-encoded PNG image string
    """
    validate_swatch_params(colors, chip_size)

    k = len(colors)
    logger.debug(f"Rendering swatch strip with {k} colors, chip_size={chip_size}")

    img = np.zeros((chip_size, chip_size * k, 3), dtype=np.uint8)
    for i, color in enumerate(colors):
        img[:, i * chip_size:(i + 1) * chip_size, :] = rgb_to_bgr(color)

    b64_string = base64.b64encode(_encode_png(img)).decode('ascii')
    logger.debug(f"Encoded swatch strip: {chip_size * k}×{chip_size} -> {len(b64_string)} chars")
    return b64_string


def render_palette_png(colors: List[Sequence[int]]) -> bytes:
    """
    Render the downloadable palette card.

    White card with a "Color Palette (N Colors)" title, one full-height chip
    per color and the color's hex code underneath.

    Returns:
        PNG bytes
    """
    validate_swatch_params(colors, CARD_SWATCH_WIDTH)

    k = len(colors)
    width = max(CARD_MIN_WIDTH, k * CARD_SWATCH_WIDTH + CARD_MARGIN * 2)
    height = CARD_SWATCH_HEIGHT + CARD_MARGIN * 2 + CARD_TITLE_HEIGHT

    img = np.full((height, width, 3), 255, dtype=np.uint8)

    title = f"Color Palette ({k} Colors)"
    font = cv2.FONT_HERSHEY_SIMPLEX
    (title_w, _), _ = cv2.getTextSize(title, font, 0.8, 2)
    cv2.putText(img, title, ((width - title_w) // 2, 40), font, 0.8, (51, 51, 51), 2, cv2.LINE_AA)

    chip_width = (width - CARD_MARGIN * 2) / k
    top = CARD_MARGIN + CARD_TITLE_HEIGHT
    bottom = min(height, top + CARD_SWATCH_HEIGHT)

    for i, color in enumerate(colors):
        x_start = int(round(CARD_MARGIN + i * chip_width))
        x_end = int(round(CARD_MARGIN + (i + 1) * chip_width))
        img[top:bottom, x_start:x_end, :] = rgb_to_bgr(color)

        label = rgb_to_hex(color)
        (label_w, label_h), _ = cv2.getTextSize(label, font, 0.4, 1)
        center_x = (x_start + x_end) // 2
        label_y = bottom - 8
        cv2.rectangle(img, (center_x - label_w // 2 - 3, label_y - label_h - 3),
                      (center_x + label_w // 2 + 3, label_y + 3), (255, 255, 255), -1)
        cv2.putText(img, label, (center_x - label_w // 2, label_y), font, 0.4,
                    (51, 51, 51), 1, cv2.LINE_AA)

    logger.debug(f"Rendered palette card {width}×{height} for {k} colors")
    return _encode_png(img)
