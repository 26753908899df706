"""Per-patient cache of visit lists, refetched after invalidation."""

import logging
from typing import Any, Dict, List

from ...application.ports.services.visit_service import VisitService

logger = logging.getLogger("visitflow.cache")


class PatientVisitCache:
    """Read-through cache; the workflow only ever invalidates it."""

    def __init__(self, visit_service: VisitService) -> None:
        self._visit_service = visit_service
        self._visits: Dict[str, List[Dict[str, Any]]] = {}
        self._versions: Dict[str, int] = {}

    def version(self, patient_uuid: str) -> int:
        return self._versions.get(patient_uuid, 0)

    def invalidate(self, patient_uuid: str) -> None:
        self._visits.pop(patient_uuid, None)
        self._versions[patient_uuid] = self.version(patient_uuid) + 1
        logger.info(f"Visit cache invalidated: patient={patient_uuid} version={self.version(patient_uuid)}")

    async def get_visits(self, patient_uuid: str) -> List[Dict[str, Any]]:
        if patient_uuid not in self._visits:
            self._visits[patient_uuid] = await self._visit_service.get_patient_visits(patient_uuid)
        return list(self._visits[patient_uuid])
