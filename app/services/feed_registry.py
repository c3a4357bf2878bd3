"""Registry of mounted inbox feeds, one controller and scheduler per client view."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from uuid import uuid4

from ..clients.notifications_client import NotificationGateway
from .feed_controller import FeedController
from .feed_scheduler import Clock, DEFAULT_REFRESH_INTERVAL_MS, VisibilityScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedHandle:
    feed_id: str
    controller: FeedController
    scheduler: VisibilityScheduler


class FeedRegistry:
    """Tracks mounted feeds so the HTTP layer can route render feedback to them."""

    def __init__(self) -> None:
        self._feeds: dict[str, FeedHandle] = {}
        self._lock = asyncio.Lock()

    async def mount(
        self,
        gateway: NotificationGateway,
        *,
        only_highlight: bool = False,
        page_size: int = 24,
        refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
        clock: Clock | None = None,
    ) -> FeedHandle:
        controller = FeedController(gateway, page_size=page_size, only_highlight=only_highlight)
        scheduler = VisibilityScheduler(controller, refresh_interval_ms=refresh_interval_ms, clock=clock)
        handle = FeedHandle(feed_id=uuid4().hex, controller=controller, scheduler=scheduler)
        async with self._lock:
            self._feeds[handle.feed_id] = handle
        logger.info("Mounted notification feed %s", handle.feed_id)
        await scheduler.start()
        return handle

    def get(self, feed_id: str) -> FeedHandle | None:
        return self._feeds.get(feed_id)

    async def unmount(self, feed_id: str) -> bool:
        async with self._lock:
            handle = self._feeds.pop(feed_id, None)
        if handle is None:
            return False
        await handle.scheduler.stop()
        logger.info("Unmounted notification feed %s", feed_id)
        return True

    async def unmount_all(self) -> None:
        async with self._lock:
            feed_ids = list(self._feeds)
        for feed_id in feed_ids:
            await self.unmount(feed_id)

    def __len__(self) -> int:
        return len(self._feeds)


feed_registry = FeedRegistry()


__all__ = ["FeedHandle", "FeedRegistry", "feed_registry"]
