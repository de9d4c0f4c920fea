from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables before the config class reads them
load_dotenv()

from palettekit.api.v1 import router as v1_router  # noqa: E402
from palettekit.config import config  # noqa: E402
from palettekit.schemas import HealthResponse  # noqa: E402
from palettekit.services.colors import __version__  # noqa: E402
from palettekit.services.colors.errors import ConfigurationError  # noqa: E402
from palettekit.utils.logging import get_logger  # noqa: E402
from palettekit.utils.metrics import get_metrics  # noqa: E402

log = get_logger()

app = FastAPI(
    title="Palettekit",
    description="Extract dominant color palettes from images with k-means++ clustering",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"]
)

app.include_router(v1_router)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Invalid palette parameters are client errors."""
    log.warning(f"Rejected request: {exc}", extra={"path": request.url.path})
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Palettekit service health check."""
    return HealthResponse(ok=True, version=f"v{__version__}", service="palettekit")


@app.get("/")
def root():
    """Service index."""
    return {
        "service": "palettekit",
        "version": __version__,
        "endpoints": [
            "/healthz", "/metrics", "/v1/palette", "/v1/palette/url",
            "/v1/palette/random", "/v1/palette/recount", "/v1/palette/export"
        ]
    }


@app.get("/metrics")
def metrics():
    """Get palette service metrics."""
    if not config.METRICS_ENABLED:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return get_metrics().get_summary()
