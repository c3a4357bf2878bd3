"""Convenience exports for schema layer."""
from .notifications import (
    FeedMountRequest,
    FeedMountResponse,
    FeedSnapshotResponse,
    FilterUpdate,
    NotificationGroupResponse,
    NotificationRecordResponse,
    PresenceReport,
    RemoteEvent,
    RemoteNotification,
    RemoteNotificationsResponse,
    RequestStateResponse,
    ViewportReport,
    ViewportResponse,
)

__all__ = [
    "FeedMountRequest",
    "FeedMountResponse",
    "FeedSnapshotResponse",
    "FilterUpdate",
    "NotificationGroupResponse",
    "NotificationRecordResponse",
    "PresenceReport",
    "RemoteEvent",
    "RemoteNotification",
    "RemoteNotificationsResponse",
    "RequestStateResponse",
    "ViewportReport",
    "ViewportResponse",
]
