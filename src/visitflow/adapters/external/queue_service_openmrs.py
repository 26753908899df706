"""Queue admission backed by the OpenMRS queue module."""

import logging

from ...application.dto.visit_dto import QueueAdmissionPayload
from ...application.ports.services.queue_service import QueueService
from ...core.exceptions import OpenMRSError
from .openmrs_client import OpenMRSClient

logger = logging.getLogger("visitflow.openmrs")


class OpenMRSQueueService(QueueService):
    """Creates visit queue entries, generating a queue number when configured."""

    def __init__(self, client: OpenMRSClient) -> None:
        self._client = client

    async def admit_to_queue(self, payload: QueueAdmissionPayload) -> int:
        if payload.visit_queue_number_attribute_uuid:
            # Stores the generated number as a visit attribute on the server.
            await self._client.get(
                "queue-entry-number",
                params={
                    "location": payload.fields.queue_location,
                    "service": payload.fields.service,
                    "visit": payload.visit_uuid,
                    "visitAttributeType": payload.visit_queue_number_attribute_uuid,
                },
            )

        status, _ = await self._client.post("visit-queue-entry", payload.to_rest())
        if status != 201:
            raise OpenMRSError(f"Unexpected status {status} adding queue entry", status=status)
        logger.info(f"Queue entry created: visit={payload.visit_uuid} queue={payload.fields.service}")
        return status
