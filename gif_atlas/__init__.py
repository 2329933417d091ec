"""
GIF Atlas.
Decodes animated GIFs into horizontal frame atlases and plays them back by
scrolling a texture offset, sharing one driver per source URL.
"""

from .animation_driver import AnimationDriver, DriverState
from .atlas_builder import (
    AtlasResult,
    build_atlas,
    compose_atlas,
    decode_frames,
    save_atlas,
)
from .board import GifBoard, Locator
from .config import AtlasConfig, DEFAULT_CONFIG, config_from_env
from .errors import DecodeError, FetchError, GifAtlasError, UnknownSourceError
from .fetch import fetch_bytes, read_source
from .registry import GifInstanceRegistry
from .render_target import ImageRenderTarget, RenderTarget
from .sources import StaticSourceList

__all__ = [
    "AnimationDriver",
    "DriverState",
    "AtlasResult",
    "build_atlas",
    "compose_atlas",
    "decode_frames",
    "save_atlas",
    "GifBoard",
    "Locator",
    "AtlasConfig",
    "DEFAULT_CONFIG",
    "config_from_env",
    "DecodeError",
    "FetchError",
    "GifAtlasError",
    "UnknownSourceError",
    "fetch_bytes",
    "read_source",
    "GifInstanceRegistry",
    "ImageRenderTarget",
    "RenderTarget",
    "StaticSourceList",
]
