#!/usr/bin/env python3
"""Field Grouping Engine.

Partitions a flat, ordered list of FieldDefinition rows into the tab tree
consumed by the presentation generator:

  header fields  -> the tab's header list (or a sub-tab's, when named)
  detail fields  -> the tab's detail table keyed by relationship, or the
                    named sub-tab's table; sub-tabs appear on first reference
  list fields    -> one global list-view collection

Input order is preserved and nothing is sorted. The returned tree is frozen;
grouping again always builds a new one. ``flatten_application`` inverts the
grouping, so ``group_fields(flatten_application(app))`` rebuilds an equal
tree given the same labels and sub-tab configuration.
"""

import logging
import re
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from formgen.config import section
from formgen.ids import IdGenerator, ensure_generator
from formgen.model.fields import (
    ApplicationDefinition,
    ApplicationMetadata,
    FieldArea,
    FieldDefinition,
    MaxType,
    ProcessedField,
    SubTabConfig,
    SubTabDefinition,
    TabDefinition,
    freeze_tables,
    value_of,
)

logger = logging.getLogger("formgen.grouping.field_processor")

_CHINESE_RE = re.compile(r"[一-鿿]")
_VALID_AREAS = {a.value for a in FieldArea}


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------

def generate_field_name(label: str, prefix: str = "ZZ_") -> str:
    """Derive an attribute name from a label using ASCII letters and digits only.

    Returns an empty string when the label has none (e.g. all Chinese), in
    which case the caller must supply the name.
    """
    if not label:
        return ""
    name = re.sub(r"[^A-Z0-9]", "_", label.upper())
    name = re.sub(r"_+", "_", name).strip("_")
    if not name:
        return ""
    return f"{prefix}{name}"


def contains_chinese(text: str) -> bool:
    return bool(_CHINESE_RE.search(text or ""))


def naming_prefix(metadata: Optional[ApplicationMetadata] = None, config=None) -> str:
    """Custom-attribute prefix; empty for a brand-new (non-vendor) primary record."""
    if metadata is not None and not metadata.is_standard_object:
        return ""
    return section("naming", config)["custom_prefix"]


def resolve_field_names(fields: Iterable[FieldDefinition],
                        metadata: Optional[ApplicationMetadata] = None,
                        config=None) -> List[FieldDefinition]:
    """Copies of ``fields`` with every missing attribute name derived from its label.

    Run once before grouping so the presentation and both scripts name the
    same attribute. Rows that already carry a name are returned as given.
    """
    prefix = naming_prefix(metadata, config)
    resolved = []
    for f in fields:
        if not f.field_name:
            name = generate_field_name(f.label, prefix)
            if type(f) is FieldDefinition:
                f = f.copy(field_name=name)
            else:
                f = ProcessedField.from_dict(f.to_dict())
                f.field_name = name
        resolved.append(f)
    return resolved


def tab_id(tab_name: str) -> str:
    return "tab_" + re.sub(r"\s+", "_", tab_name.lower())


def sub_tab_id(tab_name: str, sub_tab_name: str) -> str:
    return "subtab_" + re.sub(r"\s+", "_", f"{tab_name} {sub_tab_name}".lower())


def binding_for(field_name: str, definition: FieldDefinition) -> str:
    """Data binding for a field.

    Header fields sourced from a related record bind ``RELATIONSHIP.FIELDNAME``
    (the object name stands in when no relationship is given). Detail and
    list fields bind the bare name; their table carries the relationship.
    """
    if definition.area == FieldArea.HEADER:
        qualifier = definition.relationship or definition.object_name
        if qualifier:
            return f"{qualifier}.{field_name}"
    return field_name


def process_field(definition: FieldDefinition, id_generator: Optional[IdGenerator] = None,
                  metadata: Optional[ApplicationMetadata] = None, config=None) -> ProcessedField:
    """Resolve name, element id, and binding. An existing id is kept."""
    id_generator = ensure_generator(id_generator)
    field_name = definition.field_name or generate_field_name(
        definition.label, naming_prefix(metadata, config)
    )
    data = definition.to_dict()
    data["field_name"] = field_name
    existing_id = getattr(definition, "id", "")
    processed = ProcessedField.from_dict(data)
    processed.id = existing_id or id_generator.next_id()
    processed.dataattribute = binding_for(field_name, definition)
    return processed


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def sanitize_sub_tabs(fields: Iterable[FieldDefinition],
                      sub_tab_configs: Mapping[str, List[SubTabConfig]],
                      config=None) -> List[FieldDefinition]:
    """Clear sub-tab references that name no configured sub-tab of their tab."""
    default_tab = section("grouping", config)["default_tab"]
    result = []
    for f in fields:
        if f.sub_tab_name:
            configured = {c.label for c in sub_tab_configs.get(f.tab_name or default_tab, [])}
            if f.sub_tab_name not in configured:
                logger.debug("Dropping unknown sub-tab %r on field %s", f.sub_tab_name, f.field_name)
                f = f.copy(sub_tab_name="") if type(f) is FieldDefinition else _with_sub_tab(f, "")
        result.append(f)
    return result


def _with_sub_tab(processed: ProcessedField, sub_tab_name: str) -> ProcessedField:
    clone = ProcessedField.from_dict(processed.to_dict())
    clone.sub_tab_name = sub_tab_name
    return clone


class _TabBuilder:
    def __init__(self, name: str):
        self.name = name
        self.header: List[ProcessedField] = []
        self.tables: Dict[str, List[ProcessedField]] = {}
        self.sub_tabs: Dict[str, "_TabBuilder"] = {}

    def add(self, f: ProcessedField, default_relationship: str):
        if f.area == FieldArea.HEADER:
            self.header.append(f)
        else:
            self.tables.setdefault(f.relationship or default_relationship, []).append(f)


def group_fields(fields: Iterable[FieldDefinition],
                 main_detail_labels: Optional[Mapping[str, str]] = None,
                 sub_tab_configs: Optional[Mapping[str, List[SubTabConfig]]] = None,
                 metadata: Optional[ApplicationMetadata] = None,
                 id_generator: Optional[IdGenerator] = None,
                 config=None) -> ApplicationDefinition:
    """Group field rows into the application tab tree."""
    grouping_cfg = section("grouping", config)
    default_tab = grouping_cfg["default_tab"]
    default_relationship = grouping_cfg["default_relationship"]
    default_label = grouping_cfg["main_detail_label"]
    main_detail_labels = main_detail_labels or {}
    id_generator = ensure_generator(id_generator)

    rows = list(fields)
    if sub_tab_configs is not None:
        rows = sanitize_sub_tabs(rows, sub_tab_configs, config)

    list_fields: List[ProcessedField] = []
    builders: Dict[str, _TabBuilder] = {}

    for row in rows:
        processed = process_field(row, id_generator, metadata, config)
        if processed.area == FieldArea.LIST:
            list_fields.append(processed)
            continue
        if processed.area not in (FieldArea.HEADER, FieldArea.DETAIL):
            logger.warning("Field %s has unknown area %r; skipped",
                           processed.field_name, processed.area)
            continue

        tab_name = processed.tab_name or default_tab
        tab = builders.setdefault(tab_name, _TabBuilder(tab_name))
        if processed.sub_tab_name:
            sub = tab.sub_tabs.setdefault(processed.sub_tab_name, _TabBuilder(processed.sub_tab_name))
            sub.add(processed, default_relationship)
        else:
            tab.add(processed, default_relationship)

    tabs = {}
    for tab_name, builder in builders.items():
        sub_names = list(builder.sub_tabs)
        configured = (sub_tab_configs or {}).get(tab_name)
        if configured:
            rank = {c.label: (c.order, i) for i, c in enumerate(configured)}
            sub_names.sort(key=lambda n: rank.get(n, (len(rank), len(rank))))

        sub_tabs = {
            name: SubTabDefinition(
                id=sub_tab_id(tab_name, name),
                label=name,
                header_fields=tuple(builder.sub_tabs[name].header),
                detail_tables=freeze_tables(builder.sub_tabs[name].tables),
            )
            for name in sub_names
        }
        tabs[tab_name] = TabDefinition(
            id=tab_id(tab_name),
            label=tab_name,
            header_fields=tuple(builder.header),
            detail_tables=freeze_tables(builder.tables),
            sub_tabs=freeze_tables_mapping(sub_tabs),
            main_detail_label=main_detail_labels.get(tab_name) or default_label,
        )

    logger.debug("Grouped %d fields into %d tabs and %d list fields",
                 len(rows), len(tabs), len(list_fields))
    return ApplicationDefinition(
        list_fields=tuple(list_fields),
        tabs=freeze_tables_mapping(tabs),
    )


def freeze_tables_mapping(mapping):
    return MappingProxyType(dict(mapping))


def flatten_application(app: ApplicationDefinition) -> List[ProcessedField]:
    """Inverse of grouping: the tree's fields in tree order."""
    flat: List[ProcessedField] = []
    for tab in app.tabs.values():
        flat.extend(tab.header_fields)
        for table in tab.detail_tables.values():
            flat.extend(table)
        for sub in tab.sub_tabs.values():
            flat.extend(sub.header_fields)
            for table in sub.detail_tables.values():
                flat.extend(table)
    flat.extend(app.list_fields)
    return flat


def main_detail_labels_of(app: ApplicationDefinition) -> Dict[str, str]:
    return {name: tab.main_detail_label for name, tab in app.tabs.items()}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_field(definition: FieldDefinition) -> List[str]:
    """Return every problem with a single row (empty list when valid)."""
    errors = []
    if not definition.label:
        errors.append("Label is required")
    if contains_chinese(definition.label) and not definition.field_name:
        errors.append("Field name is required when label contains Chinese characters")
    if not definition.area:
        errors.append("Area is required")
    elif value_of(definition.area) not in _VALID_AREAS:
        errors.append(f"Area must be one of header, detail, list (got {definition.area!r})")
    if definition.area == FieldArea.DETAIL and not definition.relationship:
        errors.append("Relationship is required for detail fields")
    if definition.max_type == MaxType.DECIMAL and definition.scale < 0:
        errors.append("Scale must be non-negative for DECIMAL type")
    if definition.length < 0:
        errors.append("Length must be non-negative")
    return errors


def validate_fields(fields: Iterable[FieldDefinition]) -> Dict[int, List[str]]:
    """Map of row index -> problems, for rows that have any."""
    problems = {}
    for index, definition in enumerate(fields):
        errors = validate_field(definition)
        if errors:
            problems[index] = errors
    return problems
