"""
Palettekit Orchestrator
Chains image loading, caching, sampling and quantization for the API, and
applies the fallback palette when an image cannot be loaded.
"""
import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from loguru import logger

from palettekit.config import config
from palettekit.services.cache import CachedImage, ImageCache, content_key, url_key
from palettekit.services.colors.errors import CacheMissError, ImageLoadError
from palettekit.services.colors.extraction import (
    PaletteResult, fallback_palette, quantize_async, validate_color_count
)
from palettekit.services.colors.sampling import sample_pixels
from palettekit.services.imaging import (
    fetch_image_bytes, load_image, random_fallback_url, random_image_url
)
from palettekit.utils.ids import generate_request_id
from palettekit.utils.metrics import MetricsCollector, get_metrics


@dataclass
class ExtractionOutcome:
    """Result of one palette request."""
    request_id: str
    source: str
    result: PaletteResult
    image_id: Optional[str] = None
    width: int = 0
    height: int = 0
    fallback_used: bool = False
    from_cache: bool = False
    error: Optional[str] = None
    timings: Dict[str, float] = field(default_factory=dict)


class PaletteOrchestrator:
    """Loads images and turns them into palettes."""

    def __init__(self, cache: Optional[ImageCache] = None,
                 metrics: Optional[MetricsCollector] = None,
                 rng: Optional[random.Random] = None):
        self.cache = cache if cache is not None else ImageCache()
        self.metrics = metrics if metrics is not None else get_metrics()
        self.rng = rng or random.Random()

    async def from_bytes(self, image_bytes: bytes, k: int,
                         seed: Optional[int] = None) -> ExtractionOutcome:
        """Palette of uploaded image content."""
        return await self._run("upload", content_key(image_bytes), lambda: image_bytes, k, seed)

    async def from_url(self, url: str, k: int, seed: Optional[int] = None) -> ExtractionOutcome:
        """Palette of a remote (or ``data:``) image."""
        return await self._run("url", url_key(url), lambda: fetch_image_bytes(url), k, seed)

    async def from_random(self, k: int, seed: Optional[int] = None) -> ExtractionOutcome:
        """
        Palette of a random stock image.

        A specific image id is tried first; if it cannot be loaded a generic
        random image is requested instead, and only that second attempt falls
        back to the built-in palette.
        """
        validate_color_count(k)
        self.metrics.increment_request_count("random")

        url = random_image_url(self.rng)
        try:
            return await self._run("random", url_key(url), lambda: fetch_image_bytes(url), k, seed,
                                   allow_fallback=False, count_request=False)
        except ImageLoadError as e:
            logger.info(f"Random image {url} unavailable ({e}), trying generic URL")

        fallback_url = random_fallback_url(self.rng)
        return await self._run("random", url_key(fallback_url),
                               lambda: fetch_image_bytes(fallback_url), k, seed, count_request=False)

    async def recount(self, image_id: str, k: int, seed: Optional[int] = None) -> ExtractionOutcome:
        """
        Recompute the palette of the cached image with a new color count.

        Raises:
            CacheMissError: If ``image_id`` is not the cached image
        """
        validate_color_count(k)
        request_id = generate_request_id()
        self.metrics.increment_request_count("recount")

        cached = self.cache.get(image_id)
        if cached is None:
            self.metrics.increment_failure_count("cache_miss")
            raise CacheMissError(f"Image {image_id} is not cached")

        self.metrics.increment_cache_hit_count()
        logger.bind(image_id=image_id).info(f"[{request_id}] Using cached image for color extraction")

        outcome = ExtractionOutcome(request_id=request_id, source="recount", image_id=image_id,
                                    result=PaletteResult([], [], 0), from_cache=True)
        return await self._extract(outcome, cached, k, seed)

    async def _run(self, source: str, key: str, loader: Callable[[], bytes], k: int,
                   seed: Optional[int], allow_fallback: bool = True,
                   count_request: bool = True) -> ExtractionOutcome:
        k = validate_color_count(k)
        request_id = generate_request_id()
        start_time = time.time()
        if count_request:
            self.metrics.increment_request_count(source)

        outcome = ExtractionOutcome(request_id=request_id, source=source, image_id=key,
                                    result=PaletteResult([], [], 0))

        cached = self.cache.get(key)
        if cached is not None:
            self.metrics.increment_cache_hit_count()
            outcome.from_cache = True
            logger.bind(image_id=key).info(f"[{request_id}] Image cache hit")
        else:
            try:
                pixels = await asyncio.to_thread(lambda: load_image(loader(), config.MAX_EDGE))
            except ImageLoadError as e:
                # The caller retries another source before giving up
                if not allow_fallback:
                    raise
                self.metrics.increment_failure_count("image_load")
                return self._fallback(outcome, k, e)

            cached = CachedImage(pixels=pixels, source=source)
            self.cache.set(key, cached)
            outcome.timings["load_ms"] = (time.time() - start_time) * 1000

        return await self._extract(outcome, cached, k, seed)

    async def _extract(self, outcome: ExtractionOutcome, image: CachedImage, k: int,
                       seed: Optional[int]) -> ExtractionOutcome:
        sample_start = time.time()
        samples = sample_pixels(image.pixels, stride=config.SAMPLE_STRIDE)
        outcome.timings["sampling_ms"] = (time.time() - sample_start) * 1000
        self.metrics.record_sample_count(len(samples))

        cluster_start = time.time()
        result = await quantize_async(samples, k, seed=seed, max_iterations=config.MAX_ITERATIONS)
        outcome.timings["clustering_ms"] = (time.time() - cluster_start) * 1000

        if result.degenerate:
            self.metrics.increment_degenerate_count()
        for stage in ("sampling", "clustering"):
            self.metrics.record_timing(stage, outcome.timings[f"{stage}_ms"])

        outcome.result = result
        outcome.width = image.width
        outcome.height = image.height

        logger.bind(request_id=outcome.request_id, source=outcome.source, k=k).info(
            f"[{outcome.request_id}] Extracted {len(result)} colors from {len(samples)} samples"
        )
        return outcome

    def _fallback(self, outcome: ExtractionOutcome, k: int, error: Exception) -> ExtractionOutcome:
        logger.warning(f"[{outcome.request_id}] Image load failed, using fallback palette: {error}")
        self.metrics.increment_fallback_count()

        colors = fallback_palette(k)
        outcome.result = PaletteResult(colors=colors, counts=[0] * len(colors), sample_count=0)
        outcome.image_id = None
        outcome.fallback_used = True
        outcome.error = f"Error processing image: {error}"
        return outcome
