"""
Palettekit API Schemas
Pydantic models for palette extraction and export request/response validation.
"""
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

HEX_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("palettekit", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


class PaletteColor(BaseModel):
    """Single palette entry in every supported notation."""
    hex: str = Field(..., pattern=HEX_PATTERN, description="Hex color code #rrggbb")
    rgb: List[int] = Field(..., min_length=3, max_length=3, description="[R, G, B] channels 0-255")
    hsl: List[int] = Field(..., min_length=3, max_length=3, description="[H deg, S %, L %]")
    css: str = Field(..., description="CSS rgb() notation")
    formatted: str = Field(..., description="Color rendered in the requested format")
    count: int = Field(..., ge=0, description="Number of samples in this color's cluster")
    ratio: float = Field(..., ge=0.0, le=1.0, description="Share of samples in this cluster (0.0-1.0)")


class PaletteResponse(BaseModel):
    """Palette extraction response."""
    request_id: str = Field(..., description="Request identifier for tracing")
    image_id: Optional[str] = Field(
        None,
        description="Cache identity of the image; pass to /v1/palette/recount to change the color count"
    )
    source: str = Field(..., description="Image source: upload, url, random or recount")
    k: int = Field(..., ge=1, description="Requested color count")
    format: Literal["hex", "rgb", "hsl"] = Field("hex", description="Notation of `formatted` fields")
    width: int = Field(0, description="Width of the image after resizing")
    height: int = Field(0, description="Height of the image after resizing")
    sample_count: int = Field(..., ge=0, description="Pixels kept after sampling and filtering")
    iterations: int = Field(0, ge=0, description="Lloyd iterations run")
    converged: bool = Field(True, description="Whether clustering converged before the iteration cap")
    degenerate: bool = Field(False, description="Fewer distinct clusters than requested could be formed")
    fallback_used: bool = Field(False, description="Whether the built-in fallback palette was returned")
    from_cache: bool = Field(False, description="Whether the decoded image came from the image cache")
    error: Optional[str] = Field(None, description="Load error that triggered the fallback palette")
    colors: List[PaletteColor] = Field(..., description="Palette, most dominant color first")
    swatch_png_b64: Optional[str] = Field(None, description="Base64-encoded PNG swatch strip")
    timings: Dict[str, float] = Field(default_factory=dict, description="Stage durations in ms")


class UrlRequest(BaseModel):
    """Extract a palette from a remote or data: URL."""
    url: str = Field(..., min_length=1, description="http(s) image URL or base64 data: URL")


class RecountRequest(BaseModel):
    """Recompute the palette of the cached image."""
    image_id: str = Field(..., min_length=1, description="image_id returned by a previous extraction")


class ExportRequest(BaseModel):
    """Export a palette as a downloadable document."""
    colors: List[str] = Field(..., min_length=1, description="Palette as hex codes")
    format: Literal["json", "png"] = Field("json", description="Export format")
