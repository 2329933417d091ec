"""
Configuration for atlas building, playback and fetching.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class AtlasConfig:
    """Configuration for atlas generation and playback."""

    frames_per_second: int = 10
    max_atlas_width: int = 16384  # Widest texture most GPUs accept
    fetch_timeout: float = 10.0
    use_source_timing: bool = False  # Derive fps from the GIF's own frame durations
    source_urls: Tuple[str, ...] = ()


DEFAULT_CONFIG = AtlasConfig()


def parse_fps(fps_text: str) -> int:
    """Parse a frames-per-second value."""
    try:
        fps = int(fps_text)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Frames per second must be an integer. Got: {fps_text}") from exc
    if fps <= 0:
        raise ValueError(f"Frames per second must be positive. Got: {fps}")
    if fps > 120:
        raise ValueError("Maximum frame rate is 120 fps")
    return fps


def parse_url_list(urls_text: str) -> Tuple[str, ...]:
    """Split a comma or whitespace separated URL list."""
    if not urls_text:
        return ()
    return tuple(url for url in urls_text.replace(",", " ").split() if url)


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> AtlasConfig:
    """Build a config from GIF_ATLAS_* environment variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    config = DEFAULT_CONFIG

    fps_text = env.get("GIF_ATLAS_FPS", "")
    if fps_text:
        config = replace(config, frames_per_second=parse_fps(fps_text))

    width_text = env.get("GIF_ATLAS_MAX_WIDTH", "")
    if width_text:
        try:
            max_width = int(width_text)
        except ValueError as exc:
            raise ValueError(f"GIF_ATLAS_MAX_WIDTH must be an integer. Got: {width_text}") from exc
        if max_width <= 0:
            raise ValueError("GIF_ATLAS_MAX_WIDTH must be positive")
        config = replace(config, max_atlas_width=max_width)

    timeout_text = env.get("GIF_ATLAS_FETCH_TIMEOUT", "")
    if timeout_text:
        try:
            config = replace(config, fetch_timeout=float(timeout_text))
        except ValueError as exc:
            raise ValueError(f"GIF_ATLAS_FETCH_TIMEOUT must be a number. Got: {timeout_text}") from exc

    if env.get("GIF_ATLAS_SOURCE_TIMING", "").lower() in ("1", "true", "yes"):
        config = replace(config, use_source_timing=True)

    urls = parse_url_list(env.get("GIF_SOURCE_URLS", ""))
    if urls:
        config = replace(config, source_urls=urls)

    return config
