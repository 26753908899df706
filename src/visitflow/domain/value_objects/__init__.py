"""
Value objects package for domain layer.
"""

from .visit_time import CLOCK_TIME_PATTERN, VisitTime, convert_time_12_to_24

__all__ = [
    "CLOCK_TIME_PATTERN",
    "VisitTime",
    "convert_time_12_to_24",
]
