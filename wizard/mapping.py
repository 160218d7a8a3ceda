"""
Column mapping helpers.

A column mapping associates standard transaction fields with zero-based
column indices of the uploaded file. It only lives for one wizard
session and is sent as part of the process request.
"""

from typing import Dict, List, Optional, Sequence
from schemas.datasource import SchemaDefinition
import logging

logger = logging.getLogger(__name__)

STANDARD_REQUIRED_FIELDS = ["date", "description", "amount", "reference"]
STANDARD_OPTIONAL_FIELDS = ["postDate", "currency"]


def derive_column_mapping(
    default_mappings: Optional[Dict[str, str]],
    columns: Sequence[str]
) -> Dict[str, int]:
    """
    Resolve ``standard field -> custom column name`` into column indices.

    Names are matched exactly against the detected headers; the first
    matching header wins. Standard fields whose column is absent are left
    out of the result.
    """
    mapping: Dict[str, int] = {}
    for standard_field, column_name in (default_mappings or {}).items():
        try:
            mapping[standard_field] = list(columns).index(column_name)
        except ValueError:
            logger.debug(f"Column '{column_name}' for {standard_field} not in uploaded headers")
    return mapping


def merge_mappings(
    suggested: Optional[Dict[str, int]],
    derived: Dict[str, int],
    column_count: int
) -> Dict[str, int]:
    """Server suggestions overlaid with schema-derived indices; out-of-range indices dropped."""
    merged = {}
    for source in (suggested or {}, derived):
        for field, index in source.items():
            if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < column_count:
                merged[field] = index
            else:
                logger.warning(f"Ignoring mapping {field} -> {index!r}: no such column")
    return merged


def required_fields_for(schema: Optional[SchemaDefinition]) -> List[str]:
    if schema is not None and schema.required_fields:
        return list(schema.required_fields)
    return list(STANDARD_REQUIRED_FIELDS)


def missing_required_fields(required: Sequence[str], mapping: Dict[str, int]) -> List[str]:
    """Required fields without a column index, in the order they are required."""
    return [field for field in required if mapping.get(field) is None]


def mappable_fields(schema: Optional[SchemaDefinition]) -> List[str]:
    """Every field the operator can map: required first, then optional."""
    fields = required_fields_for(schema)
    for field in STANDARD_REQUIRED_FIELDS + STANDARD_OPTIONAL_FIELDS:
        if field not in fields:
            fields.append(field)
    return fields
