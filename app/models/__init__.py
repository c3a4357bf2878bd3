"""Convenience exports for notification models."""
from .notification import NotificationGroup, NotificationRecord

__all__ = ["NotificationGroup", "NotificationRecord"]
