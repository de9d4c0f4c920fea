"""
Palettekit Colors Module

Provides pixel sampling, k-means++ color quantization, palette ranking and
color format conversion for extracting representative palettes from images.
"""

__version__ = "1.0.0"
