"""Visibility-driven triggers for feed pagination and background refresh."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Protocol

from .feed_controller import FeedController, RequestState, RequestStatus

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_MS = 10_000


class Clock(Protocol):
    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class VisibilityScheduler:
    """Turns render feedback and page presence into controller actions.

    Pagination fires when the last materialised group is the final one. The
    refresh timer runs only while the top of the feed is visible, and each
    tick reloads silently only if the page has focus. Use as an async context
    manager to tie the timer to the lifetime of the feed view.
    """

    def __init__(
        self,
        controller: FeedController,
        *,
        refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
        clock: Clock | None = None,
    ) -> None:
        if refresh_interval_ms <= 0:
            raise ValueError("refresh_interval_ms must be positive")
        self._controller = controller
        self._interval = refresh_interval_ms / 1000
        self._clock: Clock = clock or SystemClock()
        self._focused = True
        self._at_top = True
        self._active = False
        self._timer: asyncio.Task[None] | None = None
        self._reloads: set[asyncio.Task[Any]] = set()

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def focused(self) -> bool:
        return self._focused

    @property
    def at_top(self) -> bool:
        return self._at_top

    def report_viewport(self, last_index: int | None) -> bool:
        """Handle the index of the last group the rendering layer materialised."""

        snapshot = self._controller.snapshot()
        if last_index is None or not snapshot.groups:
            return False
        if last_index != len(snapshot.groups) - 1:
            return False
        if snapshot.next_cursor is None:
            return False
        if snapshot.request_state.status is RequestStatus.LOADING:
            return False

        logger.debug("End of feed visible, loading page after %r", snapshot.next_cursor)
        self._controller.start_load(snapshot.next_cursor)
        return True

    def set_focus(self, focused: bool) -> None:
        self._focused = focused

    def set_scrolled_to_top(self, at_top: bool) -> None:
        self._at_top = at_top
        if not self._active:
            return
        if at_top:
            self._start_timer()
        else:
            self._stop_timer()

    def report_presence(self, *, focused: bool, at_top: bool) -> None:
        self.set_focus(focused)
        self.set_scrolled_to_top(at_top)

    def start(self) -> asyncio.Task[RequestState]:
        """Mount: load the first page and arm the refresh timer."""

        self._active = True
        initial = self._controller.start_load(None)
        if self._at_top:
            self._start_timer()
        return initial

    async def stop(self) -> None:
        """Unmount: tear the refresh timer down. In-flight requests run to completion."""

        self._active = False
        timer = self._timer
        self._timer = None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "VisibilityScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def _start_timer(self) -> None:
        if self.timer_running:
            return
        logger.debug("Background refresh resumed (every %.1fs)", self._interval)
        self._timer = asyncio.get_running_loop().create_task(self._refresh_loop())

    def _stop_timer(self) -> None:
        if self._timer is None:
            return
        logger.debug("Background refresh paused")
        self._timer.cancel()
        self._timer = None

    async def _refresh_loop(self) -> None:
        while True:
            await self._clock.sleep(self._interval)
            if self._focused:
                self._spawn(self._controller.silent_reload())

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._reloads.add(task)
        task.add_done_callback(self._reloads.discard)


__all__ = ["Clock", "SystemClock", "VisibilityScheduler", "DEFAULT_REFRESH_INTERVAL_MS"]
