"""
Source identifier lists - supply the GIF URLs a board pages through.
"""

from typing import List, Optional, Sequence


class StaticSourceList:
    """A fixed, ordered list of GIF URLs served in pages of `chunk_size`."""

    def __init__(self, urls: Sequence[str], chunk_size: Optional[int] = None):
        if chunk_size is not None and chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.urls = list(urls)
        self.chunk_size = chunk_size

    def __len__(self) -> int:
        return len(self.urls)

    def get_source_ids(self, offset: int = 0) -> List[str]:
        if offset < 0:
            raise ValueError("offset must be non-negative")
        if self.chunk_size is None:
            return self.urls[offset:]
        return self.urls[offset:offset + self.chunk_size]
