"""
Palettekit Imaging Utilities
Handles image upload validation, fetching, decoding and resizing.
"""
import base64
import binascii
import io
import random
from typing import Optional, Tuple

import cv2
import numpy as np
import requests
from fastapi import HTTPException, UploadFile
from loguru import logger
from PIL import Image, UnidentifiedImageError

from palettekit.config import config
from palettekit.services.colors.errors import ImageLoadError

FETCH_CHUNK_SIZE = 64 * 1024


def validate_file_upload(file: UploadFile) -> None:
    """
    Validate uploaded file for size and format compliance.

    Args:
        file: FastAPI UploadFile object

    Raises:
        HTTPException: 400 for oversized files, 415 for unsupported formats
    """
    # file.size might be None for some clients
    if getattr(file, 'size', None) and file.size > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )

    if file.content_type not in config.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported media type. Supported: {', '.join(config.SUPPORTED_MIME_TYPES)}"
        )

    if file.filename and '.' in file.filename:
        ext = file.filename.lower().rsplit('.', 1)[-1]
        if f".{ext}" not in config.SUPPORTED_EXTENSIONS:
            raise HTTPException(
                status_code=415,
                detail=f"Unsupported file extension. Supported: {', '.join(sorted(config.SUPPORTED_EXTENSIONS))}"
            )


def check_size(image_bytes: bytes) -> None:
    """Reject payloads above the configured size limit."""
    if len(image_bytes) > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )


def decode_image_bytes(image_bytes: bytes) -> np.ndarray:
    """
    Decode image bytes to an RGBA numpy array.

    Args:
        image_bytes: Encoded image (PNG, JPEG, WebP, GIF)

    Returns:
        RGBA array of shape (H, W, 4), dtype uint8

    Raises:
        ImageLoadError: If the bytes are not a decodable image
    """
    if not image_bytes:
        raise ImageLoadError("Empty image payload")

    try:
        with Image.open(io.BytesIO(image_bytes)) as pil_image:
            rgba = np.array(pil_image.convert('RGBA'))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageLoadError(f"Failed to decode image: {str(e)}") from e

    height, width = rgba.shape[:2]
    if width == 0 or height == 0:
        raise ImageLoadError("Image has no dimensions")

    return rgba


def resize_to_max_edge(rgba: np.ndarray, max_edge: Optional[int] = None) -> np.ndarray:
    """
    Resize image so the longest edge is at most max_edge pixels.

    Aspect ratio is preserved and images are never upscaled.

    Args:
        rgba: Input image (H, W, 4)
        max_edge: Maximum edge size (default from config)

    Returns:
        Resized image
    """
    if max_edge is None:
        max_edge = config.MAX_EDGE

    height, width = rgba.shape[:2]
    current_max = max(height, width)

    if current_max <= max_edge:
        return rgba

    scale = max_edge / current_max
    new_width = max(1, int(round(width * scale)))
    new_height = max(1, int(round(height * scale)))

    # INTER_AREA for downscaling
    return cv2.resize(rgba, (new_width, new_height), interpolation=cv2.INTER_AREA)


def load_image(image_bytes: bytes, max_edge: Optional[int] = None) -> np.ndarray:
    """Decode and downscale an image, ready for sampling."""
    rgba = decode_image_bytes(image_bytes)
    resized = resize_to_max_edge(rgba, max_edge)
    logger.debug(f"Loaded image {rgba.shape[1]}×{rgba.shape[0]} -> {resized.shape[1]}×{resized.shape[0]}")
    return resized


def decode_data_url(url: str) -> bytes:
    """
    Extract the payload of a base64 ``data:`` URL.

    Raises:
        ImageLoadError: If the URL is not a valid base64 data URL
    """
    header, sep, payload = url.partition(',')
    if not sep or not header.startswith('data:') or ';base64' not in header:
        raise ImageLoadError("Invalid data URL")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Invalid base64 image data: {str(e)}") from e


def fetch_image_bytes(url: str, timeout: Optional[float] = None) -> bytes:
    """
    Download an image, or unpack it from a ``data:`` URL.

    Raises:
        ImageLoadError: On network errors, non-2xx responses or oversized bodies
    """
    if url.startswith('data:'):
        return decode_data_url(url)

    if timeout is None:
        timeout = config.FETCH_TIMEOUT

    limit = config.MAX_FILE_MB * 1024 * 1024
    chunks = []
    received = 0

    try:
        response = requests.get(url, timeout=timeout, stream=True)
        try:
            response.raise_for_status()
            for chunk in response.iter_content(chunk_size=FETCH_CHUNK_SIZE):
                received += len(chunk)
                # Stop reading as soon as the body passes the upload limit
                if received > limit:
                    raise ImageLoadError(f"Remote image exceeds {config.MAX_FILE_MB}MB")
                chunks.append(chunk)
        finally:
            response.close()
    except requests.RequestException as e:
        raise ImageLoadError(f"Failed to load image: {str(e)}") from e

    return b"".join(chunks)


def random_image_size(width: Optional[int] = None) -> Tuple[int, int]:
    """Width and height (60% of width) for random stock images."""
    width = width or config.RANDOM_IMAGE_WIDTH
    return width, int(width * 0.6)


def random_image_url(rng: Optional[random.Random] = None, width: Optional[int] = None) -> str:
    """URL of a specific random Lorem Picsum image."""
    rng = rng or random.Random()
    w, h = random_image_size(width)
    image_id = rng.randrange(1000)
    return f"{config.RANDOM_IMAGE_BASE_URL}/id/{image_id}/{w}/{h}"


def random_fallback_url(rng: Optional[random.Random] = None, width: Optional[int] = None) -> str:
    """Generic random-image URL used when the id-based image is unavailable."""
    rng = rng or random.Random()
    w, h = random_image_size(width)
    return f"{config.RANDOM_IMAGE_BASE_URL}/{w}/{h}?random={rng.random()}"
