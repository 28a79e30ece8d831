#!/usr/bin/env python3
"""Field-row loading from system-analysis (SA) worksheets and data files.

SA worksheets use Chinese column headers. Rows may also arrive with the
camelCase keys the editor emits or the snake_case attribute names. Supported
files: .yaml/.yml, .json (a list of rows, or a mapping with a ``fields``
key) and .csv (header row first).

Usage:
    from formgen.model.sa_rows import load_field_rows

    fields = load_field_rows("fields.csv")
"""

import csv
import json
import logging
from pathlib import Path
from typing import List, Mapping

import yaml

from formgen.model.fields import (
    FieldDefinition,
    FieldType,
    MaxType,
    coerce_bool,
    coerce_int,
)

logger = logging.getLogger("formgen.model.sa_rows")

SA_COLUMN_MAPPINGS = {
    "欄位名稱": "field_name",
    "標籤": "label",
    "型別": "type",
    "輸入模式": "input_mode",
    "Lookup": "lookup",
    "關聯": "relationship",
    "連結應用": "applink",
    "寬度": "width",
    "可篩選": "filterable",
    "可排序": "sortable",
    "區域": "area",
    "Tab名稱": "tab_name",
    "子頁籤": "sub_tab_name",
    "資料類型": "max_type",
    "長度": "length",
    "小數位數": "scale",
    "DB必填": "db_required",
    "預設值": "default_value",
    "持久化": "persistent",
    "欄位標題": "title",
    "所屬物件": "object_name",
}


def is_sa_row(row: Mapping) -> bool:
    return any(key in SA_COLUMN_MAPPINGS for key in row)


def parse_sa_row(row: Mapping) -> FieldDefinition:
    """Convert one SA worksheet row into a FieldDefinition.

    Unknown types fall back to textbox, unknown areas to header. A missing
    storage type is inferred from the UI type (checkbox -> YORN, multi-line
    text -> CLOB); the title defaults to the label.
    """
    data = {}
    for column, attr in SA_COLUMN_MAPPINGS.items():
        if column in row:
            value = row[column]
            data[attr] = "" if value is None else (value.strip() if isinstance(value, str) else value)

    type_text = str(data.get("type", "")).lower()
    valid_types = {t.value for t in FieldType}
    data["type"] = type_text if type_text in valid_types else FieldType.TEXTBOX.value

    area_text = str(data.get("area", "")).lower()
    data["area"] = area_text if area_text in ("header", "detail", "list") else "header"

    mode_text = str(data.get("input_mode", "")).lower()
    data["input_mode"] = mode_text if mode_text in ("required", "readonly", "query") else "optional"

    max_type_text = str(data.get("max_type", "")).upper()
    if max_type_text not in {m.value for m in MaxType}:
        if data["type"] == FieldType.CHECKBOX.value:
            max_type_text = MaxType.YORN.value
        elif data["type"] == FieldType.MULTILINE_TEXTBOX.value:
            max_type_text = MaxType.CLOB.value
        else:
            max_type_text = MaxType.ALN.value
    data["max_type"] = max_type_text

    data["length"] = coerce_int(data.get("length"), 0)
    data["scale"] = coerce_int(data.get("scale"), 0)
    for flag in ("filterable", "sortable", "db_required"):
        data[flag] = coerce_bool(data.get(flag), False)
    data["persistent"] = coerce_bool(data.get("persistent"), False)
    if not data.get("title"):
        data["title"] = data.get("label", "")

    return FieldDefinition.from_dict(data)


def parse_field_row(row: Mapping) -> FieldDefinition:
    """SA rows go through the worksheet mapping, anything else through from_dict."""
    if is_sa_row(row):
        return parse_sa_row(row)
    return FieldDefinition.from_dict(row)


def _read_rows(path: Path) -> List[Mapping]:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        with open(path, newline="", encoding="utf-8-sig") as f:
            return list(csv.DictReader(f))

    with open(path, encoding="utf-8") as f:
        if suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("fields", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of field rows")
    return data


def load_field_rows(path) -> List[FieldDefinition]:
    """Load every field row from ``path``; rows that are not mappings are skipped."""
    path = Path(path)
    rows = _read_rows(path)
    fields = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.warning("Skipping row %d in %s: not a mapping", index, path)
            continue
        fields.append(parse_field_row(row))
    logger.debug("Loaded %d field rows from %s", len(fields), path)
    return fields
