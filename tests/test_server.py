"""
Tests for the FastAPI server.
"""

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from gif_atlas import server
from gif_atlas.config import AtlasConfig
from gif_atlas.errors import FetchError
from gif_atlas.registry import GifInstanceRegistry

from conftest import make_gif_bytes

URL = "https://media.example.com/wave.gif"


@pytest.fixture
def fetch_calls():
    return []


@pytest.fixture
def client(fetch_calls):
    config = AtlasConfig(source_urls=("https://a/1.gif", "https://a/2.gif", "https://a/3.gif"))
    registry = GifInstanceRegistry(config)

    async def fake_fetch(url):
        fetch_calls.append(url)
        if url.endswith("missing.gif"):
            raise FetchError(url, "HTTP 404", 404)
        if url.endswith("broken.gif"):
            return b"broken"
        return make_gif_bytes(4, (10, 10))

    server.app.dependency_overrides[server.get_config] = lambda: config
    server.app.dependency_overrides[server.get_registry] = lambda: registry
    server.app.dependency_overrides[server.get_fetch] = lambda: fake_fetch
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSources:
    def test_lists_sources(self, client):
        data = client.get("/api/sources").json()
        assert data["total"] == 3
        assert data["results"][0] == "https://a/1.gif"

    def test_offset(self, client):
        data = client.get("/api/sources", params={"offset": 2}).json()
        assert data["results"] == ["https://a/3.gif"]

    def test_negative_offset(self, client):
        assert client.get("/api/sources", params={"offset": -1}).status_code == 400


class TestUploadAtlas:
    """Tests for POST /api/atlas."""

    def test_returns_png_atlas(self, client):
        files = {"file": ("wave.gif", make_gif_bytes(4, (10, 10)), "image/gif")}
        response = client.post("/api/atlas", files=files)
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["x-frame-count"] == "4"
        assert response.headers["x-frame-width"] == "10"
        assert response.headers["x-tile-scale"] == "0.250000"
        atlas = Image.open(BytesIO(response.content))
        assert atlas.size == (40, 10)

    def test_custom_fps(self, client):
        files = {"file": ("wave.gif", make_gif_bytes(2), "image/gif")}
        response = client.post("/api/atlas", files=files, data={"fps": "30"})
        assert response.headers["x-fps"] == "30"

    def test_invalid_image(self, client):
        files = {"file": ("bad.gif", b"nope", "image/gif")}
        response = client.post("/api/atlas", files=files)
        assert response.status_code == 400
        assert "error" in response.json()


class TestAtlasFromUrl:
    """Tests for GET /api/atlas."""

    def test_fetches_and_builds(self, client, fetch_calls):
        response = client.get("/api/atlas", params={"url": URL})
        assert response.status_code == 200
        assert response.headers["x-frame-count"] == "4"
        assert fetch_calls == [URL]

    def test_reuses_driver(self, client, fetch_calls):
        client.get("/api/atlas", params={"url": URL})
        client.get("/api/atlas", params={"url": URL})
        assert fetch_calls == [URL]
        drivers = client.get("/api/drivers").json()
        assert drivers["total"] == 1
        assert drivers["results"][0]["source"] == URL
        assert drivers["results"][0]["state"] == "animating"

    def test_fetch_error_is_502(self, client):
        response = client.get("/api/atlas", params={"url": "https://x/missing.gif"})
        assert response.status_code == 502

    def test_decode_error_is_400(self, client):
        response = client.get("/api/atlas", params={"url": "https://x/broken.gif"})
        assert response.status_code == 400

    def test_rejects_non_url(self, client):
        response = client.get("/api/atlas", params={"url": "/etc/passwd"})
        assert response.status_code == 400


class TestLifespan:
    """Tests for the app-scoped config and registry."""

    def test_state_created_on_startup(self, monkeypatch):
        monkeypatch.setenv("GIF_SOURCE_URLS", "https://a/1.gif https://a/2.gif")
        with TestClient(server.app) as client:
            assert isinstance(server.app.state.registry, GifInstanceRegistry)
            assert client.get("/api/sources").json()["total"] == 2
            assert client.get("/api/drivers").json() == {"results": [], "total": 0}

    def test_invalid_url_is_502(self):
        with TestClient(server.app) as client:
            response = client.get("/api/atlas", params={"url": "http://[::1/a.gif"})
        assert response.status_code == 502
        assert "error" in response.json()


class TestDrivers:
    def test_reports_static_fields_only(self, client):
        client.get("/api/atlas", params={"url": URL})
        driver = client.get("/api/drivers").json()["results"][0]
        assert set(driver) == {"source", "frameCount", "fps", "state", "tileScale", "targets"}
        assert driver["tileScale"] == 0.25
