"""
Notification dispatcher: fire-and-forget delivery through an external notifier.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

from studentnest.core.logging import get_logger
from studentnest.models.enums import NotificationKind


class NotificationPriority(str, Enum):
    """Notification priority levels."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class Notifier(ABC):
    """Delivery collaborator (email, SMS, in-app); implemented outside the engine."""

    @abstractmethod
    def notify(self, user_id: str, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotifier(Notifier):
    """Default notifier that only records the notification in the log."""

    def __init__(self):
        self._logger = get_logger("studentnest.notifications")

    def notify(self, user_id: str, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        self._logger.info(
            f"Notification {kind.value} for {user_id}",
            extra={"recipient_id": user_id, "kind": kind.value, "payload": payload},
        )


class NotificationDispatcher:
    """
    Hands notifications to the notifier after the triggering write has committed.

    Delivery failures are logged and swallowed: a notification can never
    fail or roll back the operation that produced it.
    """

    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier or LoggingNotifier()
        self._logger = get_logger(self.__class__.__name__)

    def dispatch(
        self,
        user_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
    ) -> bool:
        payload = {
            "title": title,
            "message": message,
            "data": data or {},
            "priority": priority.value,
        }
        try:
            self.notifier.notify(user_id, kind, payload)
        except Exception as e:
            self._logger.error(
                f"Notification delivery failed: {e}",
                exc_info=True,
                extra={"recipient_id": user_id, "kind": kind.value},
            )
            return False
        return True
