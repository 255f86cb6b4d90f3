"""Engagement counter: view / click / expand tracking with session deduplication.

One ``EngagementCounter`` lives for one page session. Views are counted at
most once per photo for that lifetime; clicks and expands every time. A
request identical to one still in flight is dropped. Delivery never raises.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

EVENT_TYPES = ("view", "click", "expand")

DEFAULT_VIEW_THRESHOLD = 0.5

EventSender = Callable[[str, str], Awaitable[bool]]


class EngagementCounter:
    def __init__(self, sender: EventSender, dedupe_views: bool = True):
        self._sender = sender
        self._dedupe_views = dedupe_views
        self._viewed: set[str] = set()
        self._pending: set[tuple[str, str]] = set()

    async def track(self, photo_id: str, event_type: str) -> bool:
        """Send one event. Returns True only if the endpoint counted it."""
        if event_type not in EVENT_TYPES:
            logger.debug("Ignoring unknown event type %r", event_type)
            return False

        if self._dedupe_views and event_type == "view":
            if photo_id in self._viewed:
                return False
            self._viewed.add(photo_id)

        key = (photo_id, event_type)
        if key in self._pending:
            return False
        self._pending.add(key)

        try:
            return await self._sender(photo_id, event_type) is True
        except Exception as e:
            logger.debug("Analytics tracking failed: %s", e)
            return False
        finally:
            self._pending.discard(key)

    async def track_click(self, photo_id: str) -> bool:
        return await self.track(photo_id, "click")

    async def track_expand(self, photo_id: str) -> bool:
        return await self.track(photo_id, "expand")

    def reset_views(self) -> None:
        """Forget counted views, e.g. on navigation to a new page."""
        self._viewed.clear()

    def has_viewed(self, photo_id: str) -> bool:
        return photo_id in self._viewed

    def observer(self, photo_id: str, threshold: float = DEFAULT_VIEW_THRESHOLD) -> "ViewObserver":
        return ViewObserver(self, photo_id, threshold)


class ViewState(str, Enum):
    UNOBSERVED = "unobserved"
    OBSERVING = "observing"
    VIEWED = "viewed"


class ViewObserver:
    """Per-element view detection: UNOBSERVED -> OBSERVING -> VIEWED.

    Feed it the element's visible fraction from whatever intersection source
    the renderer has. Once VIEWED it ignores further input.
    """

    def __init__(self, counter: EngagementCounter, photo_id: str, threshold: float = DEFAULT_VIEW_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {threshold}")
        self.counter = counter
        self.photo_id = photo_id
        self.threshold = threshold
        self.state = ViewState.UNOBSERVED

    def observe(self) -> None:
        if self.state == ViewState.UNOBSERVED:
            self.state = ViewState.OBSERVING

    async def on_intersect(self, visible_ratio: float) -> bool:
        """Report the visible fraction; returns True if this produced a counted view."""
        if self.state != ViewState.OBSERVING:
            return False
        if visible_ratio <= 0 or visible_ratio < self.threshold:
            return False
        self.state = ViewState.VIEWED
        return await self.counter.track(self.photo_id, "view")

    def disconnect(self) -> None:
        if self.state == ViewState.OBSERVING:
            self.state = ViewState.UNOBSERVED

    @property
    def done(self) -> bool:
        return self.state == ViewState.VIEWED
