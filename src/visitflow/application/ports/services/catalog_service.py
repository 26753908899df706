"""
Read-only catalogs consumed by the start-visit form.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ....domain.entities.enrollment import PatientEnrollment
from ....domain.entities.visit_type import VisitAttributeType, VisitType


class ClinicalCatalogService(ABC):
    """Visit type, location and program enrollment lookups."""

    @abstractmethod
    async def get_visit_types(self) -> List[VisitType]:
        """All configured visit types."""
        pass

    @abstractmethod
    async def get_locations(self) -> List[Dict[str, Any]]:
        """Locations a visit can take place at."""
        pass

    @abstractmethod
    async def get_active_enrollments(self, patient_uuid: str) -> List[PatientEnrollment]:
        """Program enrollments of the patient that are not completed."""
        pass

    @abstractmethod
    async def get_recommended_visit_types(
        self,
        patient_uuid: str,
        enrollment_uuid: Optional[str],
        program_uuid: Optional[str],
        location_uuid: Optional[str],
    ) -> List[VisitType]:
        """Visit types recommended for the patient's enrollment at a location."""
        pass


class AttributeTypeCatalog(ABC):
    """Visit attribute types, which may still be loading at submit time."""

    @property
    @abstractmethod
    def is_loading(self) -> bool:
        pass

    @property
    @abstractmethod
    def blocks_saving(self) -> bool:
        """True when a load failure must prevent the visit from being saved."""
        pass

    @abstractmethod
    def get_attribute_types(self) -> List[VisitAttributeType]:
        pass
