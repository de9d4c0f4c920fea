"""
Test configuration and fixtures for Palettekit tests.
"""
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import app
from palettekit.api.v1 import get_orchestrator
from palettekit.services.cache import ImageCache
from palettekit.services.orchestrator import PaletteOrchestrator
from palettekit.utils.metrics import MetricsCollector, reset_metrics

RED = (200, 30, 30)
BLUE = (30, 30, 200)
GREEN = (30, 200, 30)


def make_rgba(height, width, color, alpha=255):
    """Solid RGBA image array."""
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :, :3] = color
    img[:, :, 3] = alpha
    return img


def encode_png(rgba):
    """Encode an RGBA array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(rgba).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def three_band_rgba():
    """
    30x30 image of horizontal bands: rows 0-14 red, 15-24 blue, 25-29 green.

    With stride 5 the sampler sees 18 red, 12 blue and 6 green pixels.
    """
    img = make_rgba(30, 30, RED)
    img[15:25, :, :3] = BLUE
    img[25:, :, :3] = GREEN
    return img


@pytest.fixture
def three_band_png(three_band_rgba):
    """PNG bytes of the three band image."""
    return encode_png(three_band_rgba)


@pytest.fixture
def orchestrator():
    """Orchestrator with its own cache and metrics."""
    return PaletteOrchestrator(cache=ImageCache(), metrics=MetricsCollector())


@pytest.fixture
def test_client(orchestrator):
    """Create test client for the FastAPI app with an isolated orchestrator."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_global_metrics():
    """Reset metrics before each test."""
    reset_metrics()
