"""
Tests for byte retrieval.
"""

import asyncio
from pathlib import Path

import httpx
import pytest

from gif_atlas.errors import FetchError
from gif_atlas.fetch import fetch_bytes, is_url, read_source

URL = "https://media.example.com/wave.gif"


def run_with_transport(handler, url=URL):
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_bytes(url, client=client)

    return asyncio.run(scenario())


class TestFetchBytes:
    """Tests for fetch_bytes function."""

    def test_returns_body(self):
        result = run_with_transport(lambda request: httpx.Response(200, content=b"GIF89a..."))
        assert result == b"GIF89a..."

    def test_non_2xx_raises(self):
        with pytest.raises(FetchError) as excinfo:
            run_with_transport(lambda request: httpx.Response(404))
        assert excinfo.value.status_code == 404
        assert excinfo.value.url == URL

    def test_server_error_raises(self):
        with pytest.raises(FetchError):
            run_with_transport(lambda request: httpx.Response(503))

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError) as excinfo:
            run_with_transport(handler)
        assert "connection refused" in str(excinfo.value)

    def test_invalid_url_raises(self):
        with pytest.raises(FetchError) as excinfo:
            run_with_transport(lambda request: httpx.Response(200), url="http://[::1/a.gif")
        assert excinfo.value.url == "http://[::1/a.gif"

    def test_single_attempt(self):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(500)

        with pytest.raises(FetchError):
            run_with_transport(handler)
        assert len(calls) == 1


class TestReadSource:
    """Tests for read_source and is_url."""

    def test_is_url(self):
        assert is_url("https://example.com/a.gif")
        assert is_url("HTTP://example.com/a.gif")
        assert not is_url("/tmp/a.gif")

    def test_reads_local_file(self, tmp_path: Path, four_frame_gif):
        path = tmp_path / "anim.gif"
        path.write_bytes(four_frame_gif)
        assert read_source(str(path)) == four_frame_gif

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_source(str(tmp_path / "missing.gif"))
