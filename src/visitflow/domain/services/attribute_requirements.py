"""
Required visit attribute checks and outbound attribute filtering.
"""

from typing import Dict, List, Mapping, Sequence

from ..entities.visit_type import VisitAttributeType


def find_missing_required_attributes(
    attribute_types: Sequence[VisitAttributeType],
    values: Mapping[str, str],
) -> List[str]:
    """UUIDs of required attribute types with no non-empty value, in catalog order."""
    return [
        attribute_type.uuid
        for attribute_type in attribute_types
        if attribute_type.required and not values.get(attribute_type.uuid)
    ]


def has_missing_required_attributes(
    attribute_types: Sequence[VisitAttributeType],
    values: Mapping[str, str],
) -> bool:
    """True when at least one required attribute type lacks a value."""
    return bool(find_missing_required_attributes(attribute_types, values))


def build_attribute_pairs(values: Mapping[str, str]) -> List[Dict[str, str]]:
    """``{attributeType, value}`` pairs for every entry that has a value."""
    return [
        {"attributeType": attribute_type, "value": value}
        for attribute_type, value in values.items()
        if value
    ]
