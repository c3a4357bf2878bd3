"""Schemas for the remote notification query and the inbox feed snapshot."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RemoteEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    event_id: str
    sender: str
    type: str | None = None
    origin_server_ts: int | None = None
    content: dict[str, Any] = Field(default_factory=dict)


class RemoteNotification(BaseModel):
    model_config = ConfigDict(extra="ignore")
    room_id: str
    event: RemoteEvent
    read: bool = False
    ts: int | None = None


class RemoteNotificationsResponse(BaseModel):
    """Body of ``GET /notifications``; ``next_token`` absent on the last page."""

    model_config = ConfigDict(extra="ignore")
    notifications: list[RemoteNotification] = Field(default_factory=list)
    next_token: str | None = None


class NotificationRecordResponse(BaseModel):
    conversation_id: str
    event_id: str
    sender_id: str
    timestamp_ms: int
    read: bool
    payload: dict[str, Any]


class NotificationGroupResponse(BaseModel):
    conversation_id: str
    unread: bool
    records: list[NotificationRecordResponse]


class RequestStateResponse(BaseModel):
    status: str
    reason: str | None = None


class FeedSnapshotResponse(BaseModel):
    groups: list[NotificationGroupResponse]
    next_cursor: str | None = None
    request_state: RequestStateResponse
    only_highlight: bool = False


class FeedMountRequest(BaseModel):
    only_highlight: bool = False


class FeedMountResponse(BaseModel):
    feed_id: str
    snapshot: FeedSnapshotResponse


class ViewportReport(BaseModel):
    last_index: int | None = None


class ViewportResponse(BaseModel):
    triggered: bool


class PresenceReport(BaseModel):
    focused: bool
    at_top: bool


class FilterUpdate(BaseModel):
    only_highlight: bool


__all__ = [
    "RemoteEvent",
    "RemoteNotification",
    "RemoteNotificationsResponse",
    "NotificationRecordResponse",
    "NotificationGroupResponse",
    "RequestStateResponse",
    "FeedSnapshotResponse",
    "FeedMountRequest",
    "FeedMountResponse",
    "ViewportReport",
    "ViewportResponse",
    "PresenceReport",
    "FilterUpdate",
]
