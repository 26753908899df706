"""
Queue admission interfaces.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ...dto.visit_dto import QueueAdmissionPayload, QueueEntryFields


class QueueService(ABC):
    """Abstract service for admitting visits to a service queue."""

    @abstractmethod
    async def admit_to_queue(self, payload: QueueAdmissionPayload) -> int:
        """
        Add an existing visit to a queue.

        Returns:
            HTTP status code reported by the server

        Raises:
            ExternalServiceError: when the server rejects the request or is unreachable
        """
        pass


class QueueFieldsProvider(ABC):
    """Source of the queue inputs entered next to the visit form."""

    @abstractmethod
    def read_queue_fields(self) -> Optional[QueueEntryFields]:
        """Current queue inputs, or None when no queue fields are exposed."""
        pass
