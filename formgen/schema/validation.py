#!/usr/bin/env python3
"""Blocking input checks and shared field filters for the script generators."""

from typing import List, Optional, Sequence

from formgen.config import section
from formgen.errors import GenerationValidationError
from formgen.grouping.field_processor import validate_fields
from formgen.model.fields import (
    ApplicationMetadata,
    FieldDefinition,
    FieldType,
    is_custom_attribute,
    value_of,
)

NON_DATA_TYPES = {FieldType.PUSHBUTTON.value, FieldType.STATICTEXT.value, FieldType.ATTACHMENTS.value}


def validate_generation_inputs(fields: Sequence[FieldDefinition],
                               metadata: Optional[ApplicationMetadata]) -> None:
    """Raise GenerationValidationError listing every blocking problem.

    Covers the primary record, the presence of rows, and every per-row
    problem ``validate_fields`` reports. Generation is all-or-nothing: the
    caller produces no artifact when this raises.
    """
    errors: List[str] = []
    if metadata is None or not (metadata.mbo_name or "").strip():
        errors.append("Primary record name (mbo_name) is required")
    if not fields:
        errors.append("At least one field definition is required")
    for index, problems in validate_fields(fields).items():
        row = fields[index]
        name = row.field_name or row.label or "unnamed"
        errors.extend(f"Row {index + 1} ({name}): {problem}" for problem in problems)
    if errors:
        raise GenerationValidationError(errors, component="schema")


def is_data_field(definition: FieldDefinition) -> bool:
    """Whether the field binds a stored attribute (buttons and labels do not)."""
    return value_of(definition.type) not in NON_DATA_TYPES


def is_custom_field(definition: FieldDefinition, metadata: Optional[ApplicationMetadata],
                    config=None) -> bool:
    """Whether the generators must create the field's attribute.

    On a vendor object only prefix-marked attributes are custom; on a new
    object every attribute is.
    """
    if not definition.field_name or not is_data_field(definition):
        return False
    if metadata is not None and not metadata.is_standard_object:
        return True
    return is_custom_attribute(definition.field_name, section("naming", config)["custom_prefix"])


def escape_sql(value) -> str:
    return str(value or "").replace("'", "''")
