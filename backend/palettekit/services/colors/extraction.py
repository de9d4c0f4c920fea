"""
Palette extraction service.

This module is the single entry point of the quantizer: it validates the
requested color count, handles the degenerate sample sizes, and otherwise runs
k-means++ seeding, Lloyd refinement and population ranking over the samples.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np
from loguru import logger

from .errors import ConfigurationError
from .kmeans import (
    ColorVector, MAX_ITERATIONS, LloydResult, rank_clusters, round_half_up,
    run_lloyd, run_lloyd_async, seed_centroids
)
from .sampling import DEFAULT_STRIDE, sample_pixels

FALLBACK_PALETTE: List[ColorVector] = [
    (220, 50, 50),   # red
    (50, 180, 50),   # green
    (50, 50, 220),   # blue
    (220, 220, 50),  # yellow
    (220, 50, 220),  # magenta
    (50, 220, 220),  # cyan
    (220, 150, 50),  # orange
    (150, 50, 220),  # purple
]

SampleInput = Union[np.ndarray, Sequence[Sequence[int]]]


@dataclass
class PaletteResult:
    """Ordered palette plus the cluster statistics that produced it."""
    colors: List[ColorVector]
    counts: List[int]
    sample_count: int
    iterations: int = 0
    converged: bool = True
    degenerate: bool = False
    duration_ms: float = field(default=0.0, compare=False)

    @property
    def ratios(self) -> List[float]:
        """Share of samples in each palette cluster."""
        if self.sample_count == 0:
            return []
        return [count / self.sample_count for count in self.counts]

    def __len__(self) -> int:
        return len(self.colors)


def validate_color_count(k: int) -> int:
    """Reject non-integer or non-positive color counts."""
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise ConfigurationError(f"Color count must be an integer, got {k!r}")
    if k <= 0:
        raise ConfigurationError(f"Color count must be >= 1, got {k}")
    return int(k)


def prepare_samples(samples: SampleInput) -> np.ndarray:
    """Convert a sample sequence into an (N, 3) int64 array with channels in [0, 255]."""
    try:
        arr = np.asarray(samples)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Samples must have shape (N, 3): {e}") from e

    # A bare empty sequence has no channel axis
    if arr.ndim == 1 and arr.size == 0:
        return np.empty((0, 3), dtype=np.int64)

    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ConfigurationError(f"Samples must have shape (N, 3), got {arr.shape}")
    if arr.size == 0:
        return np.empty((0, 3), dtype=np.int64)
    if not np.issubdtype(arr.dtype, np.integer):
        raise ConfigurationError(f"Sample channels must be integers, got dtype {arr.dtype}")
    if arr.min() < 0 or arr.max() > 255:
        raise ConfigurationError("Sample channels must lie in [0, 255]")

    return arr.astype(np.int64, copy=False)


def _as_colors(rows: np.ndarray) -> List[ColorVector]:
    return [tuple(int(v) for v in row) for row in rows]


def _shortcut(arr: np.ndarray, k: int) -> Optional[PaletteResult]:
    """Results that need no clustering: empty input, k >= N, and k == 1."""
    n = len(arr)
    if n == 0:
        logger.info("No samples to quantize, returning empty palette")
        return PaletteResult(colors=[], counts=[], sample_count=0)

    if n <= k:
        return PaletteResult(colors=_as_colors(arr), counts=[1] * n, sample_count=n)

    if k == 1:
        mean = round_half_up(arr.sum(axis=0) / n)
        return PaletteResult(colors=_as_colors(mean[None, :]), counts=[n], sample_count=n)

    return None


def _finish(lloyd: LloydResult, n: int, k: int, started: float) -> PaletteResult:
    colors, counts = rank_clusters(lloyd.centroids, lloyd.assignments)
    result = PaletteResult(
        colors=colors,
        counts=counts,
        sample_count=n,
        iterations=lloyd.iterations,
        converged=lloyd.converged,
        degenerate=len(colors) < k,
        duration_ms=(time.time() - started) * 1000
    )
    ratios_str = [f"{r:.3f}" for r in result.ratios]
    logger.info(f"Clustered {n} samples into {len(colors)} colors in "
                f"{result.iterations} iterations: {ratios_str}")
    return result


def quantize(samples: SampleInput, k: int, seed: Optional[int] = None,
             max_iterations: int = MAX_ITERATIONS) -> PaletteResult:
    """
    Reduce a sample set to at most ``k`` representative colors.

    Args:
        samples: RGB samples (N, 3), channels in [0, 255]
        k: Requested color count (>= 1)
        seed: Optional seed for the k-means++ random source
        max_iterations: Cap on Lloyd iterations

    Returns:
        PaletteResult with colors ordered by descending cluster population

    Raises:
        ConfigurationError: If ``k`` is not a positive integer or samples are malformed
    """
    k = validate_color_count(k)
    arr = prepare_samples(samples)

    early = _shortcut(arr, k)
    if early is not None:
        return early

    started = time.time()
    centroids = seed_centroids(arr, k, np.random.default_rng(seed))
    lloyd = run_lloyd(arr, centroids, max_iterations)
    return _finish(lloyd, len(arr), k, started)


async def quantize_async(samples: SampleInput, k: int, seed: Optional[int] = None,
                         max_iterations: int = MAX_ITERATIONS) -> PaletteResult:
    """Cooperative ``quantize``: yields to the event loop once per Lloyd iteration."""
    k = validate_color_count(k)
    arr = prepare_samples(samples)

    early = _shortcut(arr, k)
    if early is not None:
        return early

    started = time.time()
    centroids = seed_centroids(arr, k, np.random.default_rng(seed))
    lloyd = await run_lloyd_async(arr, centroids, max_iterations)
    return _finish(lloyd, len(arr), k, started)


def extract_palette(samples: SampleInput, k: int, seed: Optional[int] = None) -> List[ColorVector]:
    """Palette of at most ``k`` colors, most populous first."""
    return quantize(samples, k, seed=seed).colors


async def extract_palette_async(samples: SampleInput, k: int,
                                seed: Optional[int] = None) -> List[ColorVector]:
    return (await quantize_async(samples, k, seed=seed)).colors


def quantize_image(pixels, k: int, width: Optional[int] = None,
                   height: Optional[int] = None, stride: int = DEFAULT_STRIDE,
                   seed: Optional[int] = None) -> PaletteResult:
    """Sample an RGBA buffer and quantize the samples."""
    k = validate_color_count(k)
    samples = sample_pixels(pixels, width=width, height=height, stride=stride)
    return quantize(samples, k, seed=seed)


def extract_palette_from_image(pixels, k: int, width: Optional[int] = None,
                               height: Optional[int] = None, stride: int = DEFAULT_STRIDE,
                               seed: Optional[int] = None) -> List[ColorVector]:
    """Palette of a decoded RGBA buffer (see ``sampling.sample_pixels``)."""
    return quantize_image(pixels, k, width=width, height=height, stride=stride, seed=seed).colors


def fallback_palette(k: int) -> List[ColorVector]:
    """
    Built-in palette used when an image cannot be loaded.

    Truncated to ``k`` entries; counts above 8 repeat the list from the start.
    """
    k = validate_color_count(k)
    return [FALLBACK_PALETTE[i % len(FALLBACK_PALETTE)] for i in range(k)]
