"""
Palettekit Image Cache
Holds the most recently decoded image so the palette can be recomputed with a
different color count without fetching and decoding the image again.
"""
import hashlib
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import numpy as np
from loguru import logger


@dataclass(frozen=True)
class CachedImage:
    """A decoded, already resized RGBA image."""
    pixels: np.ndarray  # (H, W, 4) uint8
    source: str

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


def content_key(image_bytes: bytes) -> str:
    """Cache key for uploaded image content."""
    return f"sha256:{hashlib.sha256(image_bytes).hexdigest()}"


def url_key(url: str) -> str:
    """Cache key for a remote image."""
    return f"url:{url}"


class ImageCache:
    """
    Single-entry cache keyed by image identity.

    An entry is only served when the requested key equals the cached key;
    storing a new image replaces the previous one.
    """

    def __init__(self):
        self._lock = Lock()
        self._key: Optional[str] = None
        self._image: Optional[CachedImage] = None

    @property
    def key(self) -> Optional[str]:
        """Identity of the cached image, if any."""
        with self._lock:
            return self._key

    def get(self, key: str) -> Optional[CachedImage]:
        """Return the cached image if it belongs to ``key``."""
        with self._lock:
            if self._key is not None and self._key == key:
                return self._image
            return None

    def set(self, key: str, image: CachedImage) -> None:
        """Replace the cached entry."""
        with self._lock:
            if self._key is not None and self._key != key:
                logger.debug(f"Image cache: replacing {self._key} with {key}")
            self._key = key
            self._image = image

    def exists(self, key: str) -> bool:
        """Check whether ``key`` is the cached image."""
        return self.get(key) is not None

    def invalidate(self) -> None:
        """Drop the cached entry."""
        with self._lock:
            self._key = None
            self._image = None
