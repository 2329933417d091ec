"""
Retrieval of encoded GIF bytes over HTTP or from local files.
"""

import logging
from pathlib import Path
from typing import Optional

import httpx

from .config import DEFAULT_CONFIG
from .errors import FetchError

logger = logging.getLogger(__name__)


def is_url(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


async def fetch_bytes(
    url: str,
    timeout: float = DEFAULT_CONFIG.fetch_timeout,
    client: Optional[httpx.AsyncClient] = None,
) -> bytes:
    """
    Download `url` in a single attempt.

    Raises:
        FetchError: on transport failure or a non-2xx response
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
            return await _get(own_client, url)
    return await _get(client, url)


async def _get(client: httpx.AsyncClient, url: str) -> bytes:
    try:
        response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(url, str(exc) or type(exc).__name__) from exc

    if not response.is_success:
        raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)

    logger.debug("Fetched %d bytes from %s", len(response.content), url)
    return response.content


def fetch_bytes_sync(url: str, timeout: float = DEFAULT_CONFIG.fetch_timeout) -> bytes:
    """Blocking variant for the CLI."""
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(url, str(exc) or type(exc).__name__) from exc
    if not response.is_success:
        raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)
    return response.content


def read_source(location: str, timeout: float = DEFAULT_CONFIG.fetch_timeout) -> bytes:
    """Read GIF bytes from a URL or a local file path."""
    if is_url(location):
        return fetch_bytes_sync(location, timeout)

    path = Path(location)
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")
    return path.read_bytes()
