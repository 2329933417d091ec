"""
GIF instance registry - one animation driver per source URL, shared by every
render target showing that GIF.

Loading is a two-stage pipeline on the caller's event loop: an asyncio task
fetches the bytes, then the atlas is built and the driver created on the
same loop that drives `tick`. Targets attached while a load is in flight
are queued and registered once the driver exists.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterator, List, Optional

from .animation_driver import AnimationDriver
from .atlas_builder import build_atlas
from .config import DEFAULT_CONFIG, AtlasConfig
from .errors import DecodeError, FetchError, GifAtlasError, UnknownSourceError
from .render_target import RenderTarget

logger = logging.getLogger(__name__)

DecodeFn = Callable[[], AnimationDriver]
FetchFn = Callable[[str], Awaitable[bytes]]
ErrorReporter = Callable[[str, GifAtlasError], None]


def log_load_error(source_id: str, error: GifAtlasError) -> None:
    logger.error("Failed to load %s: %s", source_id, error)


@dataclass(eq=False)
class PendingLoad:
    """An in-flight fetch and the targets waiting on it."""

    source_id: str
    targets: List[RenderTarget] = field(default_factory=list)
    task: Optional["asyncio.Task[Optional[AnimationDriver]]"] = None

    def add_target(self, target: RenderTarget) -> None:
        if not any(t is target for t in self.targets):
            self.targets.append(target)

    def remove_target(self, target: RenderTarget) -> None:
        self.targets = [t for t in self.targets if t is not target]


class GifInstanceRegistry:
    """
    Maps source ids to animation drivers.

    Drivers are never evicted: detaching the last target keeps the driver
    and its atlas alive for the lifetime of the registry.
    """

    def __init__(self, config: AtlasConfig = DEFAULT_CONFIG, on_error: Optional[ErrorReporter] = None):
        self.config = config
        self.on_error = on_error or log_load_error
        self._drivers: Dict[str, AnimationDriver] = {}
        self._pending: Dict[str, PendingLoad] = {}

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._drivers

    def __len__(self) -> int:
        return len(self._drivers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._drivers)

    def get_driver(self, source_id: str) -> Optional[AnimationDriver]:
        return self._drivers.get(source_id)

    def is_loading(self, source_id: str) -> bool:
        return source_id in self._pending

    def build_driver(self, source_id: str, data: bytes) -> AnimationDriver:
        """Build the atlas for `data` and wrap it in a driver (raises DecodeError)."""
        result = build_atlas(data, self.config)
        fps = result.source_fps if self.config.use_source_timing else self.config.frames_per_second
        logger.info(
            "Created driver for %s: %d frames of %dx%d at %d fps",
            source_id, result.frame_count, result.frame_width, result.frame_height, fps,
        )
        return AnimationDriver.from_result(result, fps, source_id)

    def get_or_create_driver(self, source_id: str, decode_fn: DecodeFn) -> AnimationDriver:
        """
        Return the driver for `source_id`, calling `decode_fn` only if none exists.

        A load in flight for the same id is superseded: its task is cancelled
        and its queued targets move onto the new driver.
        """
        driver = self._drivers.get(source_id)
        if driver is not None:
            return driver

        driver = decode_fn()
        self._drivers[source_id] = driver
        pending = self._pending.pop(source_id, None)
        if pending is not None:
            if pending.task is not None:
                pending.task.cancel()
            for target in pending.targets:
                driver.register_target(target)
        return driver

    def attach_target(self, source_id: str, target: RenderTarget) -> None:
        driver = self._drivers.get(source_id)
        if driver is not None:
            driver.register_target(target)
            return

        pending = self._pending.get(source_id)
        if pending is None:
            raise UnknownSourceError(source_id)
        pending.add_target(target)

    def detach_target(self, source_id: str, target: RenderTarget) -> None:
        driver = self._drivers.get(source_id)
        if driver is not None:
            driver.unregister_target(target)
            return
        pending = self._pending.get(source_id)
        if pending is not None:
            pending.remove_target(target)

    def load(self, source_id: str, fetch: FetchFn) -> Optional["asyncio.Task[Optional[AnimationDriver]]"]:
        """
        Start fetching `source_id` on the running event loop.

        Returns the load task, or None when a driver already exists. Calling
        it again while the fetch is in flight returns the same task.
        """
        if source_id in self._drivers:
            return None
        pending = self._pending.get(source_id)
        if pending is not None:
            return pending.task

        loop = asyncio.get_running_loop()
        pending = PendingLoad(source_id)
        self._pending[source_id] = pending
        pending.task = loop.create_task(self._run_load(pending, fetch))
        logger.debug("Started load for %s", source_id)
        return pending.task

    async def _run_load(self, pending: PendingLoad, fetch: FetchFn) -> Optional[AnimationDriver]:
        source_id = pending.source_id
        try:
            data = await fetch(source_id)
        except Exception as exc:
            # Any fetch failure ends the load; cancellation is not an Exception
            if self._pending.get(source_id) is pending:
                del self._pending[source_id]
                if not isinstance(exc, FetchError):
                    exc = FetchError(source_id, str(exc) or type(exc).__name__)
                self.on_error(source_id, exc)
            return None

        # Discarded or superseded while the fetch was in flight
        if self._pending.get(source_id) is not pending:
            return None
        del self._pending[source_id]

        try:
            driver = self.build_driver(source_id, data)
        except DecodeError as exc:
            self.on_error(source_id, exc)
            return None

        self._drivers[source_id] = driver
        for target in pending.targets:
            driver.register_target(target)
        return driver

    def discard(self, source_id: str) -> bool:
        """
        Cancel an in-flight load for `source_id` and drop its queued targets.

        Existing drivers are not removed. Returns True if a load was cancelled.
        """
        pending = self._pending.pop(source_id, None)
        if pending is None:
            return False
        if pending.task is not None:
            pending.task.cancel()
        logger.debug("Discarded pending load for %s", source_id)
        return True

    def discard_all(self) -> None:
        for source_id in list(self._pending):
            self.discard(source_id)

    def tick(self, elapsed: float) -> int:
        """Advance every driver; returns how many changed offset."""
        changed = 0
        for driver in self._drivers.values():
            if driver.tick(elapsed):
                changed += 1
        return changed
