"""Canonical data model shared by every FormGen component."""

from formgen.model.fields import (  # noqa: F401
    ApplicationDefinition,
    ApplicationMetadata,
    DetailTableConfig,
    DialogDetailTable,
    DialogTemplate,
    FieldArea,
    FieldDefinition,
    FieldType,
    InputMode,
    MaxType,
    ProcessedField,
    SubTabConfig,
    SubTabDefinition,
    TabDefinition,
)
