"""Notification channel that keeps notifications for the client to collect."""

import logging
from typing import List

from ...application.dto.outcome_dto import Notification
from ...application.ports.services.notification_service import NotificationChannel
from ...domain.enums.workflow import NotificationKind

logger = logging.getLogger("visitflow.notifications")


class CollectingNotificationChannel(NotificationChannel):
    """Buffers notifications per visit form session."""

    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        level = logging.ERROR if notification.kind == NotificationKind.ERROR else logging.INFO
        logger.log(level, f"{notification.kind.value}: {notification.title} - {notification.description}")

    def drain(self) -> List[Notification]:
        drained, self.notifications = self.notifications, []
        return drained
