"""
Palettekit v1 API Routes
Palette extraction from uploads, URLs and random images, recount against the
cached image, and palette export.
"""
import json
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from loguru import logger

from palettekit.config import config
from palettekit.schemas import (
    ExportRequest, PaletteColor, PaletteResponse, RecountRequest, UrlRequest
)
from palettekit.services.cache import ImageCache
from palettekit.services.colors.errors import CacheMissError, ConfigurationError
from palettekit.services.colors.export import build_palette_export, export_filename
from palettekit.services.colors.formats import (
    format_color, hex_to_rgb, rgb_to_css, rgb_to_hex, rgb_to_hsl
)
from palettekit.services.colors.swatches import render_palette_png, render_swatch_strip
from palettekit.services.imaging import check_size, validate_file_upload
from palettekit.services.orchestrator import ExtractionOutcome, PaletteOrchestrator
from palettekit.utils.logging import get_logger

router = APIRouter(prefix="/v1", tags=["Palette"])

# One image cache per process, owned by the orchestrator
_orchestrator = PaletteOrchestrator(cache=ImageCache())


def get_orchestrator() -> PaletteOrchestrator:
    """Dependency returning the process-wide orchestrator."""
    return _orchestrator


def _count_query():
    return Query(config.DEFAULT_COLOR_COUNT, ge=config.MIN_COLOR_COUNT, le=config.MAX_COLOR_COUNT,
                 description="Number of palette colors")


def _format_query():
    return Query("hex", pattern="^(hex|rgb|hsl)$", description="Notation for `formatted` fields")


def build_response(outcome: ExtractionOutcome, k: int, fmt: str,
                   include_swatch: bool) -> PaletteResponse:
    """Convert an orchestrator outcome into the API response."""
    result = outcome.result
    ratios = result.ratios or [0.0] * len(result.colors)

    colors = [
        PaletteColor(
            hex=rgb_to_hex(color),
            rgb=list(color),
            hsl=list(rgb_to_hsl(color)),
            css=rgb_to_css(color),
            formatted=format_color(color, fmt),
            count=count,
            ratio=ratio
        )
        for color, count, ratio in zip(result.colors, result.counts, ratios)
    ]

    swatch = render_swatch_strip(result.colors) if include_swatch and result.colors else None

    get_logger().palette_event(
        outcome.request_id, outcome.source, k, [c.hex for c in colors],
        fallback_used=outcome.fallback_used, duration_ms=sum(outcome.timings.values())
    )

    return PaletteResponse(
        request_id=outcome.request_id,
        image_id=outcome.image_id,
        source=outcome.source,
        k=k,
        format=fmt,
        width=outcome.width,
        height=outcome.height,
        sample_count=result.sample_count,
        iterations=result.iterations,
        converged=result.converged,
        degenerate=result.degenerate,
        fallback_used=outcome.fallback_used,
        from_cache=outcome.from_cache,
        error=outcome.error,
        colors=colors,
        swatch_png_b64=swatch,
        timings=outcome.timings
    )


@router.post("/palette", response_model=PaletteResponse, summary="Extract palette from an upload")
async def extract_from_upload(
    file: UploadFile = File(..., description="Image file (PNG, JPEG, WebP, GIF)"),
    k: int = _count_query(),
    seed: Optional[int] = Query(None, description="Seed for reproducible clustering"),
    format: str = _format_query(),
    include_swatch: bool = Query(False, description="Include a base64 PNG swatch strip"),
    orchestrator: PaletteOrchestrator = Depends(get_orchestrator)
) -> PaletteResponse:
    """
    Extract the dominant colors of an uploaded image.

    - **file**: image to analyse
    - **k**: palette size (1-16)
    - **seed**: optional seed; identical seed and image give identical palettes
    - **format**: hex, rgb or hsl for the `formatted` fields

    Undecodable images return the built-in fallback palette with `fallback_used=true`.
    """
    validate_file_upload(file)
    image_bytes = await file.read()
    check_size(image_bytes)

    try:
        outcome = await orchestrator.from_bytes(image_bytes, k, seed=seed)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return build_response(outcome, k, format, include_swatch)


@router.post("/palette/url", response_model=PaletteResponse, summary="Extract palette from a URL")
async def extract_from_url(
    request: UrlRequest,
    k: int = _count_query(),
    seed: Optional[int] = Query(None, description="Seed for reproducible clustering"),
    format: str = _format_query(),
    include_swatch: bool = Query(False, description="Include a base64 PNG swatch strip"),
    orchestrator: PaletteOrchestrator = Depends(get_orchestrator)
) -> PaletteResponse:
    """Extract the dominant colors of a remote image or a base64 `data:` URL."""
    try:
        outcome = await orchestrator.from_url(request.url, k, seed=seed)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return build_response(outcome, k, format, include_swatch)


@router.post("/palette/random", response_model=PaletteResponse, summary="Extract palette from a random image")
async def extract_from_random(
    k: int = _count_query(),
    seed: Optional[int] = Query(None, description="Seed for reproducible clustering"),
    format: str = _format_query(),
    include_swatch: bool = Query(False, description="Include a base64 PNG swatch strip"),
    orchestrator: PaletteOrchestrator = Depends(get_orchestrator)
) -> PaletteResponse:
    """Fetch a random stock photo and extract its palette."""
    try:
        outcome = await orchestrator.from_random(k, seed=seed)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return build_response(outcome, k, format, include_swatch)


@router.post("/palette/recount", response_model=PaletteResponse, summary="Change the color count")
async def recount_palette(
    request: RecountRequest,
    k: int = _count_query(),
    seed: Optional[int] = Query(None, description="Seed for reproducible clustering"),
    format: str = _format_query(),
    include_swatch: bool = Query(False, description="Include a base64 PNG swatch strip"),
    orchestrator: PaletteOrchestrator = Depends(get_orchestrator)
) -> PaletteResponse:
    """
    Recompute the palette of the most recently loaded image with a new `k`.

    Returns 404 when `image_id` is no longer the cached image.
    """
    try:
        outcome = await orchestrator.recount(request.image_id, k, seed=seed)
    except CacheMissError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return build_response(outcome, k, format, include_swatch)


@router.post("/palette/export", summary="Download a palette as JSON or PNG")
def export_palette(request: ExportRequest) -> Response:
    """Render a palette as the downloadable JSON document or PNG card."""
    try:
        colors = [hex_to_rgb(h) for h in request.colors]
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    filename = export_filename(request.format)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    logger.info(f"Exporting {len(colors)} colors as {request.format}")

    if request.format == "png":
        return Response(content=render_palette_png(colors), media_type="image/png", headers=headers)

    document = build_palette_export(colors)
    return Response(content=json.dumps(document, indent=2), media_type="application/json",
                    headers=headers)
