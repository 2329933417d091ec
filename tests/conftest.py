"""
Shared fixtures: in-memory animated GIFs and PNGs built with Pillow.
"""

from io import BytesIO
from typing import Callable, List, Sequence, Tuple

import pytest
from PIL import Image

FRAME_COLORS = [
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 0),
    (0, 255, 255),
    (255, 0, 255),
    (255, 255, 255),
    (0, 0, 0),
]


def make_gif_bytes(
    frame_count: int = 4,
    size: Tuple[int, int] = (10, 10),
    duration: int = 100,
    colors: Sequence[Tuple[int, int, int]] = FRAME_COLORS,
) -> bytes:
    """Animated GIF whose frames are solid, distinct colors."""
    frames: List[Image.Image] = [
        Image.new("RGB", size, colors[index % len(colors)]) for index in range(frame_count)
    ]
    output = BytesIO()
    frames[0].save(
        output,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=duration,
        loop=0,
        disposal=2,
    )
    return output.getvalue()


def make_png_bytes(image: Image.Image) -> bytes:
    output = BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


@pytest.fixture
def gif_bytes() -> Callable[..., bytes]:
    return make_gif_bytes


@pytest.fixture
def four_frame_gif() -> bytes:
    return make_gif_bytes(4, (10, 10))


@pytest.fixture
def single_frame_png() -> bytes:
    return make_png_bytes(Image.new("RGBA", (8, 6), (10, 20, 30, 255)))


@pytest.fixture
def split_png() -> bytes:
    """4x4 frame: top half red, bottom half blue."""
    image = Image.new("RGBA", (4, 4), (255, 0, 0, 255))
    image.paste((0, 0, 255, 255), (0, 2, 4, 4))
    return make_png_bytes(image)
