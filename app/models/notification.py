"""Read-only notification models shared by the gateway and the feed."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class NotificationRecord:
    conversation_id: str
    event_id: str
    sender_id: str
    timestamp_ms: int
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    read: bool = False


@dataclass(frozen=True)
class NotificationGroup:
    """Adjacent records from one conversation, in arrival order."""

    conversation_id: str
    records: tuple[NotificationRecord, ...]


__all__ = ["NotificationRecord", "NotificationGroup"]
