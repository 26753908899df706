"""FastAPI dependency providers."""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends

from ..adapters.cache.patient_visit_cache import PatientVisitCache
from ..adapters.external.catalog_service_openmrs import (
    ConfiguredAttributeTypeCatalog,
    OpenMRSCatalogService,
)
from ..adapters.external.openmrs_client import OpenMRSClient
from ..adapters.external.queue_service_openmrs import OpenMRSQueueService
from ..adapters.external.visit_service_openmrs import OpenMRSVisitService
from ..adapters.sessions.session_store import VisitFormSessionStore
from ..application.ports.services.catalog_service import AttributeTypeCatalog, ClinicalCatalogService
from ..application.ports.services.queue_service import QueueService
from ..application.ports.services.visit_service import VisitService
from ..application.use_cases.start_visit import WorkflowConfig
from ..application.use_cases.visit_form_session import OpenVisitFormUseCase
from ..core.config import Settings, get_settings


@lru_cache()
def get_openmrs_client() -> OpenMRSClient:
    """Get the shared OpenMRS REST client."""
    return OpenMRSClient(get_settings().openmrs)


@lru_cache()
def get_visit_service() -> VisitService:
    return OpenMRSVisitService(get_openmrs_client())


@lru_cache()
def get_queue_service() -> Optional[QueueService]:
    """Queue service, only when queue admission is switched on."""
    if not get_settings().visit_form.show_service_queue_fields:
        return None
    return OpenMRSQueueService(get_openmrs_client())


@lru_cache()
def get_catalog_service() -> ClinicalCatalogService:
    return OpenMRSCatalogService(get_openmrs_client())


@lru_cache()
def get_attribute_type_catalog() -> AttributeTypeCatalog:
    """Configured visit attribute types; labels load in the background at startup."""
    return ConfiguredAttributeTypeCatalog(
        get_settings().visit_form.visit_attribute_types, get_openmrs_client()
    )


@lru_cache()
def get_session_store() -> VisitFormSessionStore:
    return VisitFormSessionStore(get_settings().visit_form.session_idle_timeout_seconds)


@lru_cache()
def get_visit_cache() -> PatientVisitCache:
    return PatientVisitCache(get_visit_service())


def get_workflow_config(settings: Annotated[Settings, Depends(get_settings)]) -> WorkflowConfig:
    return WorkflowConfig.from_settings(settings.visit_form)


def get_open_visit_form_use_case(
    settings: Annotated[Settings, Depends(get_settings)],
    catalog: Annotated[ClinicalCatalogService, Depends(get_catalog_service)],
    visit_service: Annotated[VisitService, Depends(get_visit_service)],
    attribute_types: Annotated[AttributeTypeCatalog, Depends(get_attribute_type_catalog)],
    queue_service: Annotated[Optional[QueueService], Depends(get_queue_service)],
    config: Annotated[WorkflowConfig, Depends(get_workflow_config)],
) -> OpenVisitFormUseCase:
    """Build the open-visit-form use case from the configured adapters."""
    return OpenVisitFormUseCase(
        catalog=catalog,
        visit_service=visit_service,
        attribute_types=attribute_types,
        config=config,
        session_location_uuid=settings.openmrs.session_location_uuid or None,
        queue_service=queue_service,
        page_size=settings.visit_form.visit_type_page_size,
    )


# Type aliases for dependency injection
SessionStoreDep = Annotated[VisitFormSessionStore, Depends(get_session_store)]
VisitCacheDep = Annotated[PatientVisitCache, Depends(get_visit_cache)]
OpenVisitFormUseCaseDep = Annotated[OpenVisitFormUseCase, Depends(get_open_visit_form_use_case)]
AttributeTypeCatalogDep = Annotated[AttributeTypeCatalog, Depends(get_attribute_type_catalog)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
