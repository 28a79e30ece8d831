#!/usr/bin/env python3
"""Attribute bindings the presentation expects the schema to provide.

Each entry is ``OBJECT.ATTRIBUTE`` in upper case, where OBJECT is the record
the bound attribute lives on:

  header  -> object_name, else relationship, else the primary record
  detail  -> object_name, else relationship
  list    -> object_name, else the primary record

Only persistent custom fields are expected; vendor-native attributes
already exist.
"""

from typing import List

from formgen.grouping.field_processor import flatten_application
from formgen.model.fields import (
    ApplicationDefinition,
    ApplicationMetadata,
    FieldArea,
    FieldDefinition,
    value_of,
)
from formgen.schema.validation import is_custom_field


def owning_object(definition: FieldDefinition, mbo_name: str) -> str:
    if definition.object_name:
        return definition.object_name.upper()
    area = value_of(definition.area)
    if area == FieldArea.DETAIL.value:
        return (definition.relationship or "").upper()
    if area == FieldArea.HEADER.value and definition.relationship:
        return definition.relationship.upper()
    return (mbo_name or "").upper()


def expected_binding(definition: FieldDefinition, mbo_name: str) -> str:
    return f"{owning_object(definition, mbo_name)}.{definition.field_name.upper()}"


def collect_expected_attributes(app: ApplicationDefinition, metadata: ApplicationMetadata,
                                config=None) -> List[str]:
    """Unique expected bindings in tree order."""
    expected: List[str] = []
    for f in flatten_application(app):
        if not f.persistent or not is_custom_field(f, metadata, config):
            continue
        binding = expected_binding(f, metadata.mbo_name)
        if binding not in expected:
            expected.append(binding)
    return expected
