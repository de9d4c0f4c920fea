"""
Palettekit Configuration
Manages environment variables and defaults for the palette service.
"""
import os
from typing import List


class Config:
    """Configuration class for Palettekit services."""

    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("PALETTEKIT_MAX_FILE_MB", "10"))

    # Sampling: images are downscaled so the long edge fits MAX_EDGE
    MAX_EDGE: int = int(os.environ.get("PALETTEKIT_MAX_EDGE", "300"))
    SAMPLE_STRIDE: int = int(os.environ.get("PALETTEKIT_SAMPLE_STRIDE", "5"))

    # Clustering
    DEFAULT_COLOR_COUNT: int = int(os.environ.get("PALETTEKIT_DEFAULT_COLOR_COUNT", "8"))
    MIN_COLOR_COUNT: int = 1
    MAX_COLOR_COUNT: int = int(os.environ.get("PALETTEKIT_MAX_COLOR_COUNT", "16"))
    MAX_ITERATIONS: int = int(os.environ.get("PALETTEKIT_MAX_ITERATIONS", "10"))

    # Remote images
    FETCH_TIMEOUT: float = float(os.environ.get("PALETTEKIT_FETCH_TIMEOUT", "10"))
    RANDOM_IMAGE_BASE_URL: str = os.environ.get("PALETTEKIT_RANDOM_IMAGE_BASE_URL", "https://picsum.photos")
    RANDOM_IMAGE_WIDTH: int = int(os.environ.get("PALETTEKIT_RANDOM_IMAGE_WIDTH", "800"))

    # Logging and observability
    LOG_LEVEL: str = os.environ.get("PALETTEKIT_LOG_LEVEL", "INFO")
    LOG_JSON: bool = bool(int(os.environ.get("PALETTEKIT_LOG_JSON", "0")))
    METRICS_ENABLED: bool = bool(int(os.environ.get("PALETTEKIT_METRICS_ENABLED", "1")))

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get("PALETTEKIT_ALLOWED_ORIGINS", "http://localhost:3000")

    # Supported image formats
    SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif"]
    SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}

    @classmethod
    def allowed_origins(cls) -> List[str]:
        """Parsed CORS origin list."""
        return [o.strip() for o in cls.ALLOWED_ORIGINS.split(",") if o.strip()]


# Global config instance
config = Config()
