"""
Integration tests for the v1 palette API.
"""
import base64
import json
from unittest.mock import patch

import pytest

from palettekit.services.colors.errors import ImageLoadError


def upload(test_client, png, **params):
    return test_client.post(
        "/v1/palette",
        params=params,
        files={"file": ("palette.png", png, "image/png")}
    )


class TestUploadEndpoint:
    """Test POST /v1/palette"""

    def test_extract_palette(self, test_client, three_band_png):
        response = upload(test_client, three_band_png, k=3, seed=4)

        assert response.status_code == 200
        data = response.json()

        assert [c["hex"] for c in data["colors"]] == ["#c81e1e", "#1e1ec8", "#1ec81e"]
        assert [c["count"] for c in data["colors"]] == [18, 12, 6]
        assert data["colors"][0]["rgb"] == [200, 30, 30]
        assert data["colors"][0]["css"] == "rgb(200, 30, 30)"
        assert data["colors"][0]["ratio"] == pytest.approx(0.5)
        assert data["k"] == 3
        assert data["source"] == "upload"
        assert data["sample_count"] == 36
        assert data["image_id"].startswith("sha256:")
        assert data["fallback_used"] is False
        assert data["swatch_png_b64"] is None
        assert data["request_id"].startswith("pal-")

    def test_hsl_format(self, test_client, three_band_png):
        response = upload(test_client, three_band_png, k=3, seed=4, format="hsl")

        assert response.status_code == 200
        first = response.json()["colors"][0]
        assert first["formatted"] == "hsl(0, 74%, 45%)"
        assert first["hsl"] == [0, 74, 45]

    def test_include_swatch(self, test_client, three_band_png):
        response = upload(test_client, three_band_png, k=2, include_swatch=True)

        assert response.status_code == 200
        swatch = base64.b64decode(response.json()["swatch_png_b64"])
        assert swatch.startswith(b"\x89PNG")

    @pytest.mark.parametrize("k", [0, 17])
    def test_k_out_of_range(self, test_client, three_band_png, k):
        response = upload(test_client, three_band_png, k=k)

        assert response.status_code == 422

    def test_unknown_format(self, test_client, three_band_png):
        response = upload(test_client, three_band_png, format="cmyk")

        assert response.status_code == 422

    def test_unsupported_media_type(self, test_client):
        response = test_client.post(
            "/v1/palette",
            files={"file": ("notes.txt", b"hello", "text/plain")}
        )

        assert response.status_code == 415

    def test_undecodable_image_returns_fallback(self, test_client):
        response = upload(test_client, b"garbage bytes", k=3)

        assert response.status_code == 200
        data = response.json()
        assert data["fallback_used"] is True
        assert data["image_id"] is None
        assert data["error"].startswith("Error processing image:")
        assert [c["hex"] for c in data["colors"]] == ["#dc3232", "#32b432", "#3232dc"]
        assert all(c["count"] == 0 for c in data["colors"])


class TestRecountEndpoint:
    """Test POST /v1/palette/recount"""

    def test_recount_cached_image(self, test_client, three_band_png):
        image_id = upload(test_client, three_band_png, k=3).json()["image_id"]

        response = test_client.post("/v1/palette/recount", params={"k": 1},
                                    json={"image_id": image_id})

        assert response.status_code == 200
        data = response.json()
        assert data["from_cache"] is True
        assert data["source"] == "recount"
        assert data["colors"][0]["rgb"] == [115, 58, 87]

    def test_recount_unknown_image(self, test_client):
        response = test_client.post("/v1/palette/recount", params={"k": 2},
                                    json={"image_id": "sha256:missing"})

        assert response.status_code == 404


class TestUrlEndpoints:
    """Test POST /v1/palette/url and /v1/palette/random"""

    def test_data_url(self, test_client, three_band_png):
        url = "data:image/png;base64," + base64.b64encode(three_band_png).decode("ascii")

        response = test_client.post("/v1/palette/url", params={"k": 3}, json={"url": url})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "url"
        assert data["colors"][0]["hex"] == "#c81e1e"

    def test_random_image(self, test_client, three_band_png):
        with patch("palettekit.services.orchestrator.fetch_image_bytes",
                   return_value=three_band_png):
            response = test_client.post("/v1/palette/random", params={"k": 2, "seed": 0})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "random"
        assert len(data["colors"]) == 2

    def test_random_image_offline(self, test_client):
        with patch("palettekit.services.orchestrator.fetch_image_bytes",
                   side_effect=ImageLoadError("offline")):
            response = test_client.post("/v1/palette/random", params={"k": 2})

        assert response.status_code == 200
        assert response.json()["fallback_used"] is True


class TestExportEndpoint:
    """Test POST /v1/palette/export"""

    def test_json_export(self, test_client):
        response = test_client.post("/v1/palette/export",
                                    json={"colors": ["#FF0000", "#1e1ec8"], "format": "json"})

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert ".json" in response.headers["content-disposition"]

        document = json.loads(response.content)
        assert document["count"] == 2
        assert document["colors"][0] == {
            "hex": "#ff0000",
            "rgb": {"r": 255, "g": 0, "b": 0},
            "hsl": {"h": 0, "s": 100, "l": 50}
        }
        assert document["timestamp"].endswith("Z")

    def test_png_export(self, test_client):
        response = test_client.post("/v1/palette/export",
                                    json={"colors": ["#c81e1e", "#1e1ec8", "#1ec81e"], "format": "png"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")

    def test_invalid_hex(self, test_client):
        response = test_client.post("/v1/palette/export", json={"colors": ["#zzzzzz"]})

        assert response.status_code == 400

    def test_empty_palette(self, test_client):
        response = test_client.post("/v1/palette/export", json={"colors": []})

        assert response.status_code == 422
