"""
Notification channel interface.
"""

from abc import ABC, abstractmethod

from ...dto.outcome_dto import Notification


class NotificationChannel(ABC):
    """Receives notifications produced by the outcome dispatcher."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        pass
