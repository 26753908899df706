"""Visit service backed by the OpenMRS ``visit`` resource."""

import logging
from typing import Any, Dict, List

from ...application.dto.visit_dto import VisitCreationPayload
from ...application.ports.services.visit_service import VisitService
from ...core.exceptions import OpenMRSError
from ...domain.entities.visit import CreatedVisit
from .openmrs_client import OpenMRSClient

logger = logging.getLogger("visitflow.openmrs")

VISIT_REPRESENTATION = (
    "custom:(uuid,display,startDatetime,stopDatetime,"
    "visitType:(uuid,display),location:(uuid,display))"
)


class OpenMRSVisitService(VisitService):
    """Starts visits through ``POST /ws/rest/v1/visit``."""

    def __init__(self, client: OpenMRSClient) -> None:
        self._client = client

    async def create_visit(self, payload: VisitCreationPayload) -> CreatedVisit:
        status, body = await self._client.post("visit", payload.to_rest())
        if status != 201:
            raise OpenMRSError(f"Unexpected status {status} creating visit", status=status)
        visit = CreatedVisit.from_rest(body)
        logger.info(f"Visit created: uuid={visit.uuid} patient={payload.patient}")
        return visit

    async def get_patient_visits(self, patient_uuid: str) -> List[Dict[str, Any]]:
        body = await self._client.get(
            "visit", params={"patient": patient_uuid, "v": VISIT_REPRESENTATION}
        )
        return list(body.get("results", []))
