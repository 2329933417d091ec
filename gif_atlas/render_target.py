"""
Render target adapters.

A render target is any surface that samples an atlas through a horizontal
window: `offset_x` is the window start and `tile_scale_x` its width, both
as fractions of the atlas width.
"""

from typing import Optional, Tuple

from PIL import Image, ImageOps


class RenderTarget:
    """Interface the animation driver requires from a drawing surface."""

    def set_atlas(self, atlas: Image.Image) -> None:
        raise NotImplementedError

    def set_offset(self, offset_x: float, tile_scale_x: float) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        """Drop the current atlas so nothing stale is drawn."""
        raise NotImplementedError


class ImageRenderTarget(RenderTarget):
    """
    Pillow-backed render target.

    Keeps the latest atlas and sampling window, and can materialise the
    visible frame. Also converts byte channels to the 0.0-1.0 float
    convention used by GPU texture formats.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.atlas: Optional[Image.Image] = None
        self.offset_x = 0.0
        self.tile_scale_x = 1.0
        self.offset_updates = 0

    def __repr__(self) -> str:
        return f"ImageRenderTarget({self.name!r}, offset={self.offset_x:.3f})"

    def set_atlas(self, atlas: Image.Image) -> None:
        self.atlas = atlas

    def set_offset(self, offset_x: float, tile_scale_x: float) -> None:
        self.offset_x = offset_x
        self.tile_scale_x = tile_scale_x
        self.offset_updates += 1

    def clear(self) -> None:
        self.atlas = None
        self.offset_x = 0.0
        self.tile_scale_x = 1.0

    def _window(self) -> Tuple[int, int]:
        width = self.atlas.width
        left = round(self.offset_x * width)
        right = left + max(1, round(self.tile_scale_x * width))
        return left, min(right, width)

    def current_frame(self) -> Optional[Image.Image]:
        """The frame currently in the sampling window, upright."""
        if self.atlas is None:
            return None
        left, right = self._window()
        window = self.atlas.crop((left, 0, right, self.atlas.height))
        return ImageOps.flip(window)

    def normalized_pixel(self, x: int, y: int) -> Tuple[float, float, float, float]:
        """RGBA of window pixel (x, y) in atlas orientation, as 0.0-1.0 floats."""
        if self.atlas is None:
            raise ValueError("No atlas assigned to this render target.")
        left, right = self._window()
        if not 0 <= x < right - left:
            raise IndexError(f"x={x} outside the sampling window")
        pixel = self.atlas.getpixel((left + x, y))
        r, g, b, a = pixel
        return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)
