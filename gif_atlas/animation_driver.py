"""
Animation driver - advances a tile offset across a frame atlas at a fixed
frame rate and pushes it to every registered render target.
"""

import logging
from enum import Enum
from typing import List, Optional

from PIL import Image

from .atlas_builder import AtlasResult
from .render_target import RenderTarget

logger = logging.getLogger(__name__)

# Tolerates float error when small ticks sum to exactly one step
_STEP_EPSILON = 1e-9


class DriverState(Enum):
    IDLE = "idle"
    ANIMATING = "animating"


class AnimationDriver:
    """
    Owns one atlas and the playback position within it.

    The offset is kept as an integer frame index so that after k steps it
    is exactly (k mod n) / n; wrapping never accumulates drift.
    """

    def __init__(
        self,
        atlas: Optional[Image.Image] = None,
        frame_count: int = 0,
        frames_per_second: int = 10,
        source_id: str = "",
    ):
        if frames_per_second <= 0:
            raise ValueError(f"frames_per_second must be positive, got {frames_per_second}")
        self.source_id = source_id
        self.frames_per_second = frames_per_second
        self.time_step = 1.0 / frames_per_second
        self.atlas: Optional[Image.Image] = None
        self.frame_count = 0
        self.frame_index = 0
        self.state = DriverState.IDLE
        self._elapsed = 0.0
        self._targets: List[RenderTarget] = []
        if atlas is not None:
            self.assign_atlas(atlas, frame_count)

    @classmethod
    def from_result(cls, result: AtlasResult, frames_per_second: int, source_id: str = "") -> "AnimationDriver":
        return cls(result.atlas, result.frame_count, frames_per_second, source_id)

    def __repr__(self) -> str:
        return (
            f"AnimationDriver({self.source_id!r}, frames={self.frame_count}, "
            f"fps={self.frames_per_second}, state={self.state.value})"
        )

    def assign_atlas(self, atlas: Image.Image, frame_count: int) -> None:
        """Attach the atlas; only allowed once per driver."""
        if self.atlas is not None:
            raise ValueError("Atlas already assigned to this driver.")
        if frame_count < 1:
            raise ValueError(f"frame_count must be at least 1, got {frame_count}")
        self.atlas = atlas
        self.frame_count = frame_count
        self.frame_index = 0
        self._elapsed = 0.0
        if frame_count > 1:
            self.state = DriverState.ANIMATING
        for target in self._targets:
            self._initialize_target(target)

    @property
    def tile_scale(self) -> float:
        if self.frame_count == 0:
            return 1.0
        return 1.0 / self.frame_count

    @property
    def targets(self) -> List[RenderTarget]:
        return list(self._targets)

    def current_offset(self) -> float:
        if self.frame_count == 0:
            return 0.0
        return self.frame_index / self.frame_count

    def tick(self, elapsed: float) -> bool:
        """
        Advance playback by `elapsed` seconds.

        Returns True when the offset moved (and targets were notified).
        """
        if self.atlas is None or self.state is DriverState.IDLE:
            return False

        self._elapsed += elapsed
        if self._elapsed + _STEP_EPSILON < self.time_step:
            return False

        self._elapsed = 0.0
        self.frame_index = (self.frame_index + 1) % self.frame_count
        offset = self.current_offset()
        scale = self.tile_scale
        for target in self._targets:
            target.set_offset(offset, scale)
        return True

    def register_target(self, target: RenderTarget) -> None:
        if self.has_target(target):
            return
        self._targets.append(target)
        if self.atlas is not None:
            self._initialize_target(target)

    def unregister_target(self, target: RenderTarget) -> None:
        self._targets = [t for t in self._targets if t is not target]

    def has_target(self, target: RenderTarget) -> bool:
        return any(t is target for t in self._targets)

    def _initialize_target(self, target: RenderTarget) -> None:
        target.set_atlas(self.atlas)
        target.set_offset(self.current_offset(), self.tile_scale)
