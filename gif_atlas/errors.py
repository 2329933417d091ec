"""
Exception types raised by the atlas pipeline.
"""


class GifAtlasError(Exception):
    """Base class for all gif-atlas errors."""


class FetchError(GifAtlasError):
    """Raised when GIF bytes could not be retrieved (transport failure or non-2xx response)."""

    def __init__(self, url: str, reason: str, status_code: int = 0):
        super().__init__(f"Could not fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class DecodeError(GifAtlasError, ValueError):
    """Raised when bytes are not a decodable image with at least one frame."""


class UnknownSourceError(GifAtlasError, LookupError):
    """Raised when a target is attached to a source that has no driver and no pending load."""

    def __init__(self, source_id: str):
        super().__init__(f"No driver or pending load for source: {source_id}")
        self.source_id = source_id
