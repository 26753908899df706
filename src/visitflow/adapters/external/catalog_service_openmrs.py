"""Catalog lookups against OpenMRS: visit types, locations, enrollments, attribute types."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from ...application.ports.services.catalog_service import (
    AttributeTypeCatalog,
    ClinicalCatalogService,
)
from ...core.config import VisitAttributeTypeConfig
from ...core.exceptions import ExternalServiceError
from ...domain.entities.enrollment import PatientEnrollment
from ...domain.entities.visit_type import VisitAttributeType, VisitType
from .openmrs_client import OpenMRSClient

logger = logging.getLogger("visitflow.openmrs")

ENROLLMENT_REPRESENTATION = (
    "custom:(uuid,display,program:(uuid,display),dateEnrolled,dateCompleted,"
    "location:(uuid,display))"
)
RECOMMENDED_VISIT_TYPES_PATH = (
    "/etl-latest/etl/patient/{patient}/program/{program}/enrollment/{enrollment}"
)


class OpenMRSCatalogService(ClinicalCatalogService):
    """Read-only catalogs; nothing here writes to the server."""

    def __init__(self, client: OpenMRSClient) -> None:
        self._client = client

    async def get_visit_types(self) -> List[VisitType]:
        body = await self._client.get("visittype", params={"v": "custom:(uuid,display,name)"})
        return [VisitType.from_rest(item) for item in body.get("results", [])]

    async def get_locations(self) -> List[Dict[str, Any]]:
        body = await self._client.get(
            "location", params={"tag": "Visit Location", "v": "custom:(uuid,display)"}
        )
        return list(body.get("results", []))

    async def get_active_enrollments(self, patient_uuid: str) -> List[PatientEnrollment]:
        body = await self._client.get(
            "programenrollment", params={"patient": patient_uuid, "v": ENROLLMENT_REPRESENTATION}
        )
        enrollments = [PatientEnrollment.from_rest(item) for item in body.get("results", [])]
        return [e for e in enrollments if e.is_active]

    async def get_recommended_visit_types(
        self,
        patient_uuid: str,
        enrollment_uuid: Optional[str],
        program_uuid: Optional[str],
        location_uuid: Optional[str],
    ) -> List[VisitType]:
        if not enrollment_uuid or not program_uuid:
            return []
        path = RECOMMENDED_VISIT_TYPES_PATH.format(
            patient=patient_uuid, program=program_uuid, enrollment=enrollment_uuid
        )
        _, body = await self._client.request(
            "GET",
            f"{self._client.base_url}{path}",
            params={"intendedLocationUuid": location_uuid},
        )
        allowed = (body.get("visitTypes") or {}).get("allowed", [])
        return [VisitType.from_rest(item) for item in allowed]


class ConfiguredAttributeTypeCatalog(AttributeTypeCatalog):
    """Configured visit attribute types, labelled from the server in the background.

    Until ``load`` finishes the catalog reports ``is_loading``. A required type
    that cannot be fetched blocks saving; an optional one is dropped.
    """

    def __init__(
        self,
        configured: Sequence[VisitAttributeTypeConfig],
        client: Optional[OpenMRSClient] = None,
    ) -> None:
        self._configured = list(configured)
        self._client = client
        self._types: List[VisitAttributeType] = []
        self._loading = bool(self._configured) and client is not None
        self._blocks_saving = False
        if client is None:
            self._types = [
                VisitAttributeType(c.uuid, c.required, c.display) for c in self._configured
            ]

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def blocks_saving(self) -> bool:
        return self._blocks_saving

    def get_attribute_types(self) -> List[VisitAttributeType]:
        return list(self._types)

    async def load(self) -> None:
        if self._client is None:
            return
        self._loading = True
        try:
            results = await asyncio.gather(
                *(self._fetch(config) for config in self._configured), return_exceptions=True
            )
            types: List[VisitAttributeType] = []
            for config, result in zip(self._configured, results):
                if isinstance(result, BaseException):
                    reason = result.message if isinstance(result, ExternalServiceError) else repr(result)
                    logger.error(f"Visit attribute type {config.uuid} failed to load: {reason}")
                    # Required types that fail to resolve block saving
                    if config.required:
                        self._blocks_saving = True
                    continue
                types.append(result)
            self._types = types
        except BaseException:
            if any(config.required for config in self._configured):
                self._blocks_saving = True
            raise
        finally:
            self._loading = False

    async def _fetch(self, config: VisitAttributeTypeConfig) -> VisitAttributeType:
        body = await self._client.get(
            f"visitattributetype/{config.uuid}",
            params={"v": "custom:(uuid,display,datatypeClassname)"},
        )
        return VisitAttributeType(
            uuid=config.uuid,
            required=config.required,
            display=config.display or body.get("display"),
        )
