"""
Visit service interface for starting visits on the remote server.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ....domain.entities.visit import CreatedVisit
from ...dto.visit_dto import VisitCreationPayload


class VisitService(ABC):
    """Abstract service for visit creation."""

    @abstractmethod
    async def create_visit(self, payload: VisitCreationPayload) -> CreatedVisit:
        """
        Start a visit.

        Args:
            payload: Visit creation request

        Returns:
            The created visit record

        Raises:
            ExternalServiceError: when the server rejects the request or is unreachable
        """
        pass

    @abstractmethod
    async def get_patient_visits(self, patient_uuid: str) -> List[Dict[str, Any]]:
        """Visits recorded for a patient, newest first."""
        pass
