"""Grouping of flat notification records by conversation."""
from __future__ import annotations

from typing import Iterable

from ..models import NotificationGroup, NotificationRecord


def group_notifications(records: Iterable[NotificationRecord]) -> tuple[NotificationGroup, ...]:
    """Merge runs of adjacent records that share a conversation.

    Input order is kept as-is; a conversation that reappears after another
    conversation's record opens a new group.
    """

    groups: list[NotificationGroup] = []
    current: list[NotificationRecord] = []
    for record in records:
        if current and current[-1].conversation_id != record.conversation_id:
            groups.append(NotificationGroup(current[0].conversation_id, tuple(current)))
            current = []
        current.append(record)
    if current:
        groups.append(NotificationGroup(current[0].conversation_id, tuple(current)))
    return tuple(groups)


__all__ = ["NotificationGroup", "NotificationRecord", "group_notifications"]
