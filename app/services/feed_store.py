"""Paginated notification feed state with a cursor staleness guard."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..models import NotificationGroup, NotificationRecord
from .notification_grouping import group_notifications

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedPage:
    """Grouped notifications plus the cursor for the page after them.

    ``next_cursor`` is ``None`` once the feed has no further pages.
    """

    groups: tuple[NotificationGroup, ...] = ()
    next_cursor: str | None = None

    @classmethod
    def from_records(cls, records: Iterable[NotificationRecord], next_cursor: str | None) -> "FeedPage":
        return cls(groups=group_notifications(records), next_cursor=next_cursor)


EMPTY_PAGE = FeedPage()


def _unread_conversations(groups: Iterable[NotificationGroup]) -> set[str]:
    return {
        group.conversation_id
        for group in groups
        if any(not record.read for record in group.records)
    }


class FeedStore:
    """Holds the cursor and the groups accumulated so far.

    Both mutations are total. ``append`` only applies when the cursor used to
    request the page still matches the stored one.
    """

    def __init__(self) -> None:
        self._cursor: str | None = None
        self._groups: tuple[NotificationGroup, ...] = ()
        self._unread: frozenset[str] = frozenset()

    @property
    def cursor(self) -> str | None:
        return self._cursor

    @property
    def groups(self) -> tuple[NotificationGroup, ...]:
        return self._groups

    @property
    def unread(self) -> frozenset[str]:
        return self._unread

    def reset(self, page: FeedPage) -> None:
        self._cursor = page.next_cursor
        self._groups = page.groups
        self._unread = frozenset(_unread_conversations(page.groups))

    def append(self, page: FeedPage, *, requested_cursor: str | None) -> bool:
        if requested_cursor != self._cursor:
            logger.debug(
                "Discarding stale page requested with cursor %r (store is at %r)",
                requested_cursor,
                self._cursor,
            )
            return False

        if requested_cursor is None:
            # First page from the head replaces whatever the head reset left behind.
            self.reset(page)
            return True

        self._cursor = page.next_cursor
        self._groups = self._groups + page.groups
        self._unread = self._unread | _unread_conversations(page.groups)
        return True

    def mark_read(self, conversation_id: str) -> bool:
        if conversation_id not in self._unread:
            return False
        self._unread = self._unread - {conversation_id}
        return True


__all__ = ["FeedPage", "EMPTY_PAGE", "FeedStore"]
