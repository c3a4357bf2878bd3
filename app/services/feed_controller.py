"""Pagination controller for the notification inbox feed.

Every state change goes through :meth:`FeedController.dispatch`, which applies
commands one at a time in arrival order. Two independent producers feed it:
render feedback asking for the next page and the background refresh timer.
Ordering between overlapping requests is decided by the store's cursor
guard, by newer head loads superseding older ones, and by ``silent_reload``
replacing the whole store; no locks are taken.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable, Union

from ..clients.notifications_client import FeedError, NotificationFilter, NotificationGateway
from ..models import NotificationGroup
from .feed_store import EMPTY_PAGE, FeedPage, FeedStore

logger = logging.getLogger(__name__)


class RequestStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RequestState:
    status: RequestStatus = RequestStatus.IDLE
    reason: str | None = None

    @classmethod
    def loading(cls) -> "RequestState":
        return cls(RequestStatus.LOADING)

    @classmethod
    def success(cls) -> "RequestState":
        return cls(RequestStatus.SUCCESS)

    @classmethod
    def error(cls, reason: str) -> "RequestState":
        return cls(RequestStatus.ERROR, reason)


@dataclass(frozen=True)
class FeedSnapshot:
    """Read-only view handed to the rendering layer."""

    groups: tuple[NotificationGroup, ...]
    next_cursor: str | None
    request_state: RequestState
    unread: frozenset[str] = field(default_factory=frozenset)
    only_highlight: bool = False


@dataclass(frozen=True)
class ResetPage:
    page: FeedPage


@dataclass(frozen=True)
class AppendPage:
    page: FeedPage
    requested_cursor: str | None


@dataclass(frozen=True)
class SetRequestState:
    state: RequestState
    request_id: int


@dataclass(frozen=True)
class MarkConversationRead:
    conversation_id: str


FeedCommand = Union[ResetPage, AppendPage, SetRequestState, MarkConversationRead]
FeedListener = Callable[[FeedSnapshot], None]


class FeedController:
    def __init__(
        self,
        gateway: NotificationGateway,
        *,
        page_size: int = 24,
        only_highlight: bool = False,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._gateway = gateway
        self._page_size = page_size
        self._only_highlight = only_highlight
        self._store = FeedStore()
        self._request_state = RequestState()
        self._latest_request = 0
        self._latest_head_request = 0
        self._listeners: list[FeedListener] = []
        self._pending: set[asyncio.Task[RequestState]] = set()

    @property
    def request_state(self) -> RequestState:
        return self._request_state

    @property
    def only_highlight(self) -> bool:
        return self._only_highlight

    def snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            groups=self._store.groups,
            next_cursor=self._store.cursor,
            request_state=self._request_state,
            unread=self._store.unread,
            only_highlight=self._only_highlight,
        )

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        """Register ``listener`` for every applied command; returns an unsubscribe hook."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, command: FeedCommand) -> bool:
        """Apply a single command. Returns ``False`` when it had no effect."""

        if isinstance(command, ResetPage):
            self._store.reset(command.page)
            applied = True
        elif isinstance(command, AppendPage):
            applied = self._store.append(command.page, requested_cursor=command.requested_cursor)
        elif isinstance(command, SetRequestState):
            # Only the newest load owns the status indicator.
            applied = command.request_id == self._latest_request
            if applied:
                self._request_state = command.state
        elif isinstance(command, MarkConversationRead):
            applied = self._store.mark_read(command.conversation_id)
        else:
            raise TypeError(f"Unknown feed command: {command!r}")

        if applied:
            self._notify()
        return applied

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Feed listener raised")

    def _filter(self) -> NotificationFilter | None:
        return NotificationFilter.HIGHLIGHT if self._only_highlight else None

    def start_load(self, from_cursor: str | None = None) -> asyncio.Task[RequestState]:
        """Begin loading a page and return the task completing it.

        The reset (for a head load) and the Loading status are applied before
        this returns, so callers observe them before any network activity.
        """

        self._latest_request += 1
        request_id = self._latest_request
        if from_cursor is None:
            self._latest_head_request = request_id
            self.dispatch(ResetPage(EMPTY_PAGE))
        self.dispatch(SetRequestState(RequestState.loading(), request_id))

        task = asyncio.get_running_loop().create_task(
            self._complete_load(from_cursor, request_id, self._filter())
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def load_next(self, from_cursor: str | None = None) -> RequestState:
        return await self.start_load(from_cursor)

    async def _complete_load(
        self,
        from_cursor: str | None,
        request_id: int,
        only: NotificationFilter | None,
    ) -> RequestState:
        try:
            result = await self._gateway.fetch_page(from_cursor, self._page_size, only)
        except FeedError as exc:
            logger.warning("Loading notifications from %r failed: %s", from_cursor, exc)
            self.dispatch(SetRequestState(RequestState.error(str(exc) or type(exc).__name__), request_id))
            return self._request_state

        if from_cursor is None and request_id != self._latest_head_request:
            # A newer head load cleared the feed after this one; its page belongs to an old baseline.
            logger.debug("Discarding superseded head page (request %d)", request_id)
            return self._request_state

        page = FeedPage.from_records(result.records, result.next_cursor)
        self.dispatch(AppendPage(page, from_cursor))
        self.dispatch(SetRequestState(RequestState.success(), request_id))
        return self._request_state

    async def silent_reload(self) -> bool:
        """Replace the feed with a fresh head page without a loading state.

        Failures are logged and leave the displayed feed untouched.
        """

        try:
            result = await self._gateway.fetch_page(None, self._page_size, self._filter())
        except FeedError:
            logger.exception("Silent notification reload failed")
            return False

        self.dispatch(ResetPage(FeedPage.from_records(result.records, result.next_cursor)))
        return True

    async def mark_read(self, conversation_id: str) -> None:
        """Clear the unread indicator locally, then tell the server.

        The local indicator stays cleared even when the remote call fails.
        """

        self.dispatch(MarkConversationRead(conversation_id))
        try:
            await self._gateway.mark_read(conversation_id)
        except FeedError as exc:
            logger.warning("Marking %s as read failed: %s", conversation_id, exc)
            raise

    def set_filter(self, only_highlight: bool) -> asyncio.Task[RequestState] | None:
        if only_highlight == self._only_highlight:
            return None
        self._only_highlight = only_highlight
        logger.info("Notification filter switched (only_highlight=%s)", only_highlight)
        return self.start_load(None)


__all__ = [
    "RequestStatus",
    "RequestState",
    "FeedSnapshot",
    "ResetPage",
    "AppendPage",
    "SetRequestState",
    "MarkConversationRead",
    "FeedCommand",
    "FeedController",
]
