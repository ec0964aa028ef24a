"""Session notification delivery."""

from .publisher import (
    BufferedNotificationSink,
    NotificationSink,
    NullNotificationSink,
)

__all__ = ["NotificationSink", "NullNotificationSink", "BufferedNotificationSink"]
