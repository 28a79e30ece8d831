#!/usr/bin/env python3
"""Field model shared by every FormGen component.

FieldDefinition is the canonical input row. ProcessedField adds the element
id and the computed data binding. The grouping outputs (TabDefinition,
SubTabDefinition, ApplicationDefinition) are frozen and hold tuples and
read-only mappings; a regroup always builds a new tree.
"""

import re
from dataclasses import asdict, dataclass, field, fields as dc_fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class FieldType(str, Enum):
    TEXTBOX = "textbox"
    CHECKBOX = "checkbox"
    TABLECOL = "tablecol"
    MULTIPART_TEXTBOX = "multiparttextbox"
    MULTILINE_TEXTBOX = "multilinetextbox"
    STATICTEXT = "statictext"
    PUSHBUTTON = "pushbutton"
    ATTACHMENTS = "attachments"
    COMBOBOX = "combobox"


class InputMode(str, Enum):
    OPTIONAL = "optional"
    REQUIRED = "required"
    READONLY = "readonly"
    QUERY = "query"


class FieldArea(str, Enum):
    HEADER = "header"
    DETAIL = "detail"
    LIST = "list"


class MaxType(str, Enum):
    ALN = "ALN"
    UPPER = "UPPER"
    LOWER = "LOWER"
    INTEGER = "INTEGER"
    SMALLINT = "SMALLINT"
    DECIMAL = "DECIMAL"
    FLOAT = "FLOAT"
    AMOUNT = "AMOUNT"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TIME = "TIME"
    YORN = "YORN"
    CLOB = "CLOB"
    LONGALN = "LONGALN"
    GL = "GL"


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def snake_key(key: str) -> str:
    """``descDataattribute`` -> ``desc_dataattribute``; snake keys pass through."""
    if "_" in key or key.islower():
        return key
    return _CAMEL_RE.sub("_", key).lower()


def coerce_int(value, default: int = 0) -> int:
    """Integer coercion that falls back to ``default`` on malformed input."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def coerce_bool(value, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in ("true", "yes", "y", "1"):
        return True
    if text in ("false", "no", "n", "0"):
        return False
    return default


def coerce_enum(enum_cls, value, default):
    """Return the enum member for ``value``; unknown non-empty text is kept raw."""
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text == member.value or text.lower() == str(member.value).lower():
            return member
    return text


def value_of(value) -> str:
    """Plain string for an enum member or raw value (for markup and keys)."""
    if isinstance(value, Enum):
        return value.value
    return "" if value is None else str(value)


def is_custom_attribute(name: str, prefix: str = "ZZ_") -> bool:
    return bool(name) and name.upper().startswith(prefix.upper())


# ---------------------------------------------------------------------------
# Field definitions
# ---------------------------------------------------------------------------

_INT_FIELDS = {"length", "scale", "column", "order"}
_BOOL_FIELDS = {"filterable", "sortable", "db_required", "persistent"}


@dataclass
class FieldDefinition:
    """One UI field row."""

    field_name: str = ""
    label: str = ""
    type: FieldType = FieldType.TEXTBOX
    input_mode: InputMode = InputMode.OPTIONAL
    lookup: str = ""
    relationship: str = ""
    applink: str = ""
    width: str = ""
    filterable: bool = False
    sortable: bool = False
    area: FieldArea = FieldArea.HEADER
    tab_name: str = ""
    sub_tab_name: str = ""
    column: int = 0
    order: Optional[int] = None
    desc_dataattribute: str = ""
    desc_label: str = ""
    desc_input_mode: str = ""
    mxevent: str = ""
    # Storage-facing subset
    max_type: MaxType = MaxType.ALN
    length: int = 100
    scale: int = 0
    db_required: bool = False
    default_value: str = ""
    persistent: bool = True
    title: str = ""
    object_name: str = ""

    def to_dict(self) -> dict:
        data = {}
        for f in dc_fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            data[f.name] = value.value if isinstance(value, Enum) else value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldDefinition":
        """Build from snake_case or camelCase keys, coercing malformed values."""
        known = {f.name for f in dc_fields(cls)}
        kwargs = {}
        for raw_key, value in data.items():
            key = snake_key(raw_key)
            if key not in known:
                continue
            kwargs[key] = value
        return cls(**_normalize_field_kwargs(kwargs))

    def copy(self, **changes) -> "FieldDefinition":
        data = {f.name: getattr(self, f.name) for f in dc_fields(FieldDefinition)}
        data.update(changes)
        return FieldDefinition(**data)


def _normalize_field_kwargs(kwargs: dict) -> dict:
    defaults = FieldDefinition()
    for key in list(kwargs):
        value = kwargs[key]
        if key in _INT_FIELDS:
            if key == "order" and (value is None or value == ""):
                kwargs[key] = None
            else:
                kwargs[key] = coerce_int(value, getattr(defaults, key) or 0)
        elif key in _BOOL_FIELDS:
            kwargs[key] = coerce_bool(value, getattr(defaults, key))
        elif key == "type":
            kwargs[key] = coerce_enum(FieldType, value, FieldType.TEXTBOX)
        elif key == "input_mode":
            kwargs[key] = coerce_enum(InputMode, value or "optional", InputMode.OPTIONAL)
        elif key == "area":
            kwargs[key] = coerce_enum(FieldArea, value, FieldArea.HEADER)
        elif key == "max_type":
            kwargs[key] = coerce_enum(MaxType, value or "ALN", MaxType.ALN)
        elif key == "width":
            kwargs[key] = "" if value is None else str(value)
        elif value is None:
            kwargs[key] = getattr(defaults, key)
    return kwargs


@dataclass
class ProcessedField(FieldDefinition):
    """FieldDefinition with its element id and data binding resolved."""

    id: str = ""
    dataattribute: str = ""

    def definition(self) -> FieldDefinition:
        """Strip the generated attributes, returning a plain row."""
        return FieldDefinition(
            **{f.name: getattr(self, f.name) for f in dc_fields(FieldDefinition)}
        )


# ---------------------------------------------------------------------------
# Grouping outputs
# ---------------------------------------------------------------------------

def freeze_tables(tables: Mapping[str, List[ProcessedField]]) -> Mapping[str, Tuple[ProcessedField, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in tables.items()})


@dataclass(frozen=True)
class SubTabDefinition:
    """Named sub-tab inside a tab's tab-group."""

    id: str
    label: str
    header_fields: Tuple[ProcessedField, ...] = ()
    detail_tables: Mapping[str, Tuple[ProcessedField, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True)
class TabDefinition:
    """Top-level form tab."""

    id: str
    label: str
    header_fields: Tuple[ProcessedField, ...] = ()
    detail_tables: Mapping[str, Tuple[ProcessedField, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    sub_tabs: Mapping[str, SubTabDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )
    main_detail_label: str = ""

    @property
    def needs_tab_group(self) -> bool:
        return bool(self.detail_tables) or bool(self.sub_tabs)


@dataclass(frozen=True)
class ApplicationDefinition:
    list_fields: Tuple[ProcessedField, ...] = ()
    tabs: Mapping[str, TabDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def to_dict(self) -> dict:
        def _tables(tables):
            return {rel: [f.to_dict() for f in flds] for rel, flds in tables.items()}

        return {
            "list_fields": [f.to_dict() for f in self.list_fields],
            "tabs": [
                {
                    "id": tab.id,
                    "label": tab.label,
                    "main_detail_label": tab.main_detail_label,
                    "header_fields": [f.to_dict() for f in tab.header_fields],
                    "detail_tables": _tables(tab.detail_tables),
                    "sub_tabs": [
                        {
                            "id": sub.id,
                            "label": sub.label,
                            "header_fields": [f.to_dict() for f in sub.header_fields],
                            "detail_tables": _tables(sub.detail_tables),
                        }
                        for sub in tab.sub_tabs.values()
                    ],
                }
                for tab in self.tabs.values()
            ],
        }


# ---------------------------------------------------------------------------
# Application metadata and presentation configuration
# ---------------------------------------------------------------------------

def _from_mapping(cls, data: Mapping[str, Any]):
    known = {f.name for f in dc_fields(cls)}
    kwargs = {}
    for raw_key, value in (data or {}).items():
        key = snake_key(raw_key)
        if key in known and value is not None:
            kwargs[key] = value
    return cls(**kwargs)


@dataclass
class ApplicationMetadata:
    """Application-level settings for the presentation and scripts."""

    id: str = ""
    key_attribute: str = ""
    mbo_name: str = "SR"
    version: str = "7.6.1.2"
    order_by: str = ""
    where_clause: str = ""
    beanclass: str = ""
    is_standard_object: bool = True

    def __post_init__(self):
        self.is_standard_object = coerce_bool(self.is_standard_object, True)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ApplicationMetadata":
        return _from_mapping(cls, data)


@dataclass
class DetailTableConfig:
    """Display overrides for one detail table, keyed ``"<tab label>:<relationship>"``."""

    relationship: str = ""
    label: str = ""
    order_by: str = ""
    beanclass: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetailTableConfig":
        return _from_mapping(cls, data)


def detail_table_key(tab_label: str, relationship: str) -> str:
    return f"{tab_label}:{relationship}"


@dataclass
class SubTabConfig:
    id: str = ""
    label: str = ""
    order: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubTabConfig":
        cfg = _from_mapping(cls, data)
        cfg.order = coerce_int(cfg.order)
        return cfg


@dataclass
class DialogDetailTable:
    relationship: str = ""
    label: str = ""
    order_by: str = ""
    beanclass: str = ""
    fields: List[FieldDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DialogDetailTable":
        table = _from_mapping(cls, {k: v for k, v in data.items() if k != "fields"})
        table.fields = [FieldDefinition.from_dict(f) for f in data.get("fields", [])]
        return table


@dataclass
class DialogTemplate:
    """Reusable dialog appended to the presentation."""

    id: str = ""
    dialog_id: str = ""
    label: str = ""
    beanclass: str = ""
    mbo_name: str = ""
    relationship: str = ""
    header_fields: List[FieldDefinition] = field(default_factory=list)
    detail_tables: List[DialogDetailTable] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DialogTemplate":
        scalar = {
            k: v for k, v in data.items()
            if snake_key(k) not in ("header_fields", "detail_tables")
        }
        dialog = _from_mapping(cls, scalar)
        header = data.get("header_fields", data.get("headerFields", []))
        tables = data.get("detail_tables", data.get("detailTables", []))
        dialog.header_fields = [FieldDefinition.from_dict(f) for f in header]
        dialog.detail_tables = [DialogDetailTable.from_dict(t) for t in tables]
        return dialog


def fields_from_dicts(rows) -> List[FieldDefinition]:
    return [row if isinstance(row, FieldDefinition) else FieldDefinition.from_dict(row) for row in rows]


def sub_tab_configs_from_dict(data: Optional[Mapping[str, Any]]) -> Dict[str, List[SubTabConfig]]:
    """``{"Main": [{"label": ...}, ...]}`` -> typed sub-tab configs."""
    result: Dict[str, List[SubTabConfig]] = {}
    for tab_name, entries in (data or {}).items():
        result[tab_name] = [
            e if isinstance(e, SubTabConfig) else SubTabConfig.from_dict(e)
            for e in entries or []
        ]
    return result
