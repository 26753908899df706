"""
Domain entities package.
"""

from .enrollment import PatientEnrollment, ProgramRef
from .visit import CreatedVisit
from .visit_type import VisitAttributeType, VisitType

__all__ = [
    "CreatedVisit",
    "PatientEnrollment",
    "ProgramRef",
    "VisitAttributeType",
    "VisitType",
]
