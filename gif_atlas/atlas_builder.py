"""
Frame atlas building - decodes an animated image and tiles its frames
side by side into a single wide RGBA atlas.

Layout:
    frame f occupies atlas columns [f * frame_width, (f + 1) * frame_width)
    atlas row 0 holds the bottom scanline of each frame (y axis inverted),
    which is the orientation texture samplers expect.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Tuple, Union

from PIL import Image, ImageOps, ImageSequence

from .config import DEFAULT_CONFIG, AtlasConfig
from .errors import DecodeError

logger = logging.getLogger(__name__)

DEFAULT_FRAME_DURATION = 100  # ms, used when a frame carries no timing

# What Pillow raises for corrupt, truncated or oversized input
_DECODE_ERRORS = (OSError, EOFError, SyntaxError, ValueError, IndexError, Image.DecompressionBombError)


@dataclass(frozen=True)
class AtlasResult:
    """A built atlas plus the frame geometry needed to sample it."""

    atlas: Image.Image
    frame_width: int
    frame_height: int
    frame_count: int
    frame_durations: Tuple[int, ...] = ()

    @property
    def tile_scale(self) -> float:
        """Horizontal width of one frame as a fraction of the atlas."""
        return 1.0 / self.frame_count

    @property
    def source_fps(self) -> int:
        """Playback rate implied by the source's own frame durations."""
        if not self.frame_durations:
            return DEFAULT_CONFIG.frames_per_second
        average = sum(self.frame_durations) / len(self.frame_durations)
        return max(1, round(1000 / average))

    def frame_bounds(self, index: int) -> Tuple[int, int, int, int]:
        """Pixel box (left, top, right, bottom) of frame `index` in the atlas."""
        if not 0 <= index < self.frame_count:
            raise IndexError(f"Frame index {index} out of range for {self.frame_count} frames")
        left = index * self.frame_width
        return (left, 0, left + self.frame_width, self.frame_height)


def _open_image(data: bytes) -> Image.Image:
    if not data:
        raise DecodeError("Image data is empty.")
    try:
        return Image.open(BytesIO(data))
    except _DECODE_ERRORS as exc:
        raise DecodeError(f"Unsupported or corrupt image data: {exc}") from exc


def decode_frames(data: bytes) -> List[Image.Image]:
    """
    Decode every frame of an (optionally animated) image along its time dimension.

    Args:
        data: Encoded image bytes (GIF, APNG, WebP, or any single-frame format)

    Returns:
        Frames in playback order, each converted to RGBA
    """
    frames, _ = _decode_with_durations(data)
    return frames


def _decode_with_durations(data: bytes) -> Tuple[List[Image.Image], List[int]]:
    image = _open_image(data)
    frames: List[Image.Image] = []
    durations: List[int] = []
    try:
        for frame in ImageSequence.Iterator(image):
            durations.append(frame.info.get("duration") or DEFAULT_FRAME_DURATION)
            frames.append(frame.convert("RGBA"))
    except _DECODE_ERRORS as exc:
        raise DecodeError(f"Failed to decode frame {len(frames)}: {exc}") from exc
    finally:
        image.close()

    if not frames:
        raise DecodeError("Image contains no frames.")

    size = frames[0].size
    for index, frame in enumerate(frames):
        if frame.size != size:
            raise DecodeError(f"Frame {index} is {frame.size}, expected {size}")
    return frames, durations


def compose_atlas(frames: List[Image.Image]) -> Image.Image:
    """Tile equally sized RGBA frames horizontally, flipping each one vertically."""
    if not frames:
        raise DecodeError("At least one frame is required.")

    frame_width, frame_height = frames[0].size
    atlas = Image.new("RGBA", (frame_width * len(frames), frame_height), (0, 0, 0, 0))
    for index, frame in enumerate(frames):
        atlas.paste(ImageOps.flip(frame), (index * frame_width, 0))
    return atlas


def build_atlas(data: bytes, config: AtlasConfig = DEFAULT_CONFIG) -> AtlasResult:
    """
    Decode an animated image and build its horizontal frame atlas.

    Either the whole atlas is built or DecodeError is raised; no partial
    result escapes.

    Args:
        data: Encoded image bytes
        config: Supplies the maximum atlas width

    Returns:
        AtlasResult holding the atlas and its frame geometry
    """
    frames, durations = _decode_with_durations(data)
    frame_width, frame_height = frames[0].size
    frame_count = len(frames)

    if frame_width <= 0 or frame_height <= 0:
        raise DecodeError(f"Invalid frame size {frame_width}x{frame_height}")

    atlas_width = frame_width * frame_count
    if atlas_width > config.max_atlas_width:
        raise DecodeError(
            f"Atlas would be {atlas_width}px wide ({frame_count} frames of {frame_width}px), "
            f"maximum is {config.max_atlas_width}px"
        )

    atlas = compose_atlas(frames)
    logger.debug(
        "Built %dx%d atlas from %d frames of %dx%d",
        atlas.width, atlas.height, frame_count, frame_width, frame_height,
    )
    return AtlasResult(
        atlas=atlas,
        frame_width=frame_width,
        frame_height=frame_height,
        frame_count=frame_count,
        frame_durations=tuple(durations),
    )


def save_atlas(result: AtlasResult, output_path: Union[str, Path]) -> Path:
    """Write the atlas to disk as PNG, creating parent folders as needed."""
    target_path = Path(output_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    result.atlas.save(target_path, format="PNG")
    return target_path


def atlas_to_png_bytes(result: AtlasResult) -> bytes:
    """Encode the atlas as PNG bytes."""
    output = BytesIO()
    result.atlas.save(output, format="PNG")
    output.seek(0)
    return output.read()
