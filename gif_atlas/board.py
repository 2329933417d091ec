"""
Board session - pages through GIF URLs in a preview and places animated
instances onto a fixed ring of locator slots.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .registry import FetchFn, GifInstanceRegistry
from .render_target import ImageRenderTarget, RenderTarget
from .sources import StaticSourceList

logger = logging.getLogger(__name__)

TargetFactory = Callable[[str], RenderTarget]


@dataclass
class Locator:
    """A board slot that holds at most one animated instance."""

    name: str
    target: Optional[RenderTarget] = None
    source_id: Optional[str] = None


class GifBoard:
    """
    Tracks the previewed GIF and the instances placed on the board.

    Every placement goes through the shared registry, so a URL placed in
    several slots is decoded once and all its instances play in step.
    """

    def __init__(
        self,
        registry: GifInstanceRegistry,
        sources: StaticSourceList,
        preview_target: RenderTarget,
        locator_names: Sequence[str],
        fetch: FetchFn,
        target_factory: TargetFactory = ImageRenderTarget,
    ):
        self.registry = registry
        self.urls: List[str] = sources.get_source_ids(0)
        if not self.urls:
            raise ValueError("At least one GIF URL is required.")
        if not locator_names:
            raise ValueError("At least one locator is required.")
        self.preview_target = preview_target
        self.locators = [Locator(name) for name in locator_names]
        self.fetch = fetch
        self.target_factory = target_factory
        self.current_index = 0
        self.current_locator_index = 0
        self.is_showing = False
        self._preview_source: Optional[str] = None
        self._preview_initialized = False

    @property
    def current_source_id(self) -> str:
        return self.urls[self.current_index]

    def _ensure_loading(self, source_id: str) -> None:
        if source_id not in self.registry and not self.registry.is_loading(source_id):
            self.registry.load(source_id, self.fetch)

    def show_preview(self) -> None:
        """Attach the preview target to the current GIF, starting its load if needed."""
        source_id = self.current_source_id
        known = source_id in self.registry or self.registry.is_loading(source_id)
        if self._preview_source == source_id and known:
            return
        self.hide_preview()
        self._ensure_loading(source_id)
        self.registry.attach_target(source_id, self.preview_target)
        self._preview_source = source_id

    def hide_preview(self) -> None:
        if self._preview_source is not None:
            self.registry.detach_target(self._preview_source, self.preview_target)
            self.preview_target.clear()
            self._preview_source = None

    def toggle_showing(self) -> bool:
        """Show or hide the browsing UI; the preview only plays while shown."""
        self.is_showing = not self.is_showing
        if self.is_showing:
            self.show_preview()
            if not self._preview_initialized:
                logger.info("Preview initialised with %s", self.current_source_id)
                self._preview_initialized = True
        else:
            self.hide_preview()
        return self.is_showing

    def scroll(self, step: int) -> str:
        """Move the selection by `step`, wrapping in both directions."""
        self.current_index = (self.current_index + step) % len(self.urls)
        if self.is_showing:
            self.show_preview()
        return self.current_source_id

    def place_current(self) -> Locator:
        """
        Place the previewed GIF at the next locator, replacing any instance
        already there, then advance to the following locator.
        """
        locator = self.locators[self.current_locator_index]
        if locator.target is None:
            locator.target = self.target_factory(locator.name)
        elif locator.source_id is not None:
            self.registry.detach_target(locator.source_id, locator.target)
            locator.target.clear()

        source_id = self.current_source_id
        self._ensure_loading(source_id)
        self.registry.attach_target(source_id, locator.target)
        locator.source_id = source_id
        logger.debug("Placed %s at %s", source_id, locator.name)

        self.current_locator_index = (self.current_locator_index + 1) % len(self.locators)
        return locator
