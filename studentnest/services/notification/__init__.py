from studentnest.services.notification.notification_dispatcher import (
    LoggingNotifier,
    NotificationDispatcher,
    NotificationPriority,
    Notifier,
)

__all__ = ["LoggingNotifier", "NotificationDispatcher", "NotificationPriority", "Notifier"]
