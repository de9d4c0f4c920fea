"""
Palette extraction error types.
"""


class ConfigurationError(ValueError):
    """Invalid caller configuration: bad color count, malformed buffer or format."""


class ImageLoadError(RuntimeError):
    """Image could not be fetched or decoded upstream of the quantizer."""


class CacheMissError(LookupError):
    """Requested image is not the one currently held by the image cache."""
