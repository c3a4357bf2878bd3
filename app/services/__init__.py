"""Convenience exports for service layer."""
from .notification_grouping import NotificationGroup, NotificationRecord, group_notifications
from .feed_store import EMPTY_PAGE, FeedPage, FeedStore
from .feed_controller import FeedController, FeedSnapshot, RequestState, RequestStatus
from .feed_scheduler import DEFAULT_REFRESH_INTERVAL_MS, SystemClock, VisibilityScheduler
from .feed_registry import FeedHandle, FeedRegistry, feed_registry

__all__ = [
    "NotificationGroup",
    "NotificationRecord",
    "group_notifications",
    "EMPTY_PAGE",
    "FeedPage",
    "FeedStore",
    "FeedController",
    "FeedSnapshot",
    "RequestState",
    "RequestStatus",
    "DEFAULT_REFRESH_INTERVAL_MS",
    "SystemClock",
    "VisibilityScheduler",
    "FeedHandle",
    "FeedRegistry",
    "feed_registry",
]
