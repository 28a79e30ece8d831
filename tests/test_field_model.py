#!/usr/bin/env python3
"""Tests for the field model (formgen/model/fields.py) and SA row loading.

Run: pytest tests/test_field_model.py -v
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from formgen.ids import IdGenerator
from formgen.model.fields import (
    ApplicationMetadata,
    DialogTemplate,
    FieldArea,
    FieldDefinition,
    FieldType,
    InputMode,
    MaxType,
    coerce_bool,
    coerce_int,
    detail_table_key,
    is_custom_attribute,
    snake_key,
    sub_tab_configs_from_dict,
)
from formgen.model.sa_rows import is_sa_row, load_field_rows, parse_sa_row


class TestCoercion:
    """Malformed values coerce to defaults instead of failing."""

    def test_coerce_int(self):
        assert coerce_int("12") == 12
        assert coerce_int("12.7") == 12
        assert coerce_int("abc", 5) == 5
        assert coerce_int(None, 3) == 3

    def test_coerce_bool(self):
        assert coerce_bool("Y") is True
        assert coerce_bool("no") is False
        assert coerce_bool("maybe", True) is True
        assert coerce_bool(0) is False

    def test_snake_key(self):
        assert snake_key("descDataattribute") == "desc_dataattribute"
        assert snake_key("field_name") == "field_name"
        assert snake_key("label") == "label"

    def test_custom_attribute_prefix(self):
        assert is_custom_attribute("zz_cost")
        assert not is_custom_attribute("DESCRIPTION")
        assert not is_custom_attribute("")


class TestFieldDefinition:
    """Dict round trips and camelCase input."""

    def test_from_dict_camel_case(self):
        f = FieldDefinition.from_dict({
            "fieldName": "ZZ_A", "label": "A", "area": "detail", "relationship": "REL",
            "inputMode": "REQUIRED", "maxType": "decimal", "length": "8", "dbRequired": "true",
        })
        assert f.field_name == "ZZ_A"
        assert f.area == FieldArea.DETAIL
        assert f.input_mode == InputMode.REQUIRED
        assert f.max_type == MaxType.DECIMAL
        assert f.length == 8
        assert f.db_required is True

    def test_unknown_keys_ignored(self):
        f = FieldDefinition.from_dict({"label": "A", "colour": "red"})
        assert f.label == "A"

    def test_to_dict_uses_plain_values(self):
        data = FieldDefinition(label="A", type=FieldType.CHECKBOX).to_dict()
        assert data["type"] == "checkbox"
        assert type(data["type"]) is str
        assert "order" not in data

    def test_round_trip(self):
        original = FieldDefinition.from_dict({"field_name": "ZZ_X", "label": "X", "area": "list", "order": 3})
        assert FieldDefinition.from_dict(original.to_dict()) == original

    def test_copy_returns_new_row(self):
        original = FieldDefinition(label="A")
        changed = original.copy(label="B")
        assert original.label == "A"
        assert changed.label == "B"


class TestConfigurationRecords:
    """Metadata, dialog templates, and sub-tab configuration."""

    def test_metadata_defaults(self):
        meta = ApplicationMetadata.from_dict({"id": "APP", "is_standard_object": "false"})
        assert meta.mbo_name == "SR"
        assert meta.is_standard_object is False

    def test_dialog_template_nested(self):
        template = DialogTemplate.from_dict({
            "dialogId": "dlg1",
            "label": "Assign",
            "headerFields": [{"field_name": "OWNER", "label": "Owner"}],
            "detailTables": [{"relationship": "WORKLOG", "fields": [{"field_name": "LOGTYPE", "label": "Type"}]}],
        })
        assert template.dialog_id == "dlg1"
        assert template.header_fields[0].field_name == "OWNER"
        assert template.detail_tables[0].fields[0].label == "Type"

    def test_sub_tab_configs(self):
        configs = sub_tab_configs_from_dict({"Main": [{"label": "Notes", "order": "2"}]})
        assert configs["Main"][0].label == "Notes"
        assert configs["Main"][0].order == 2

    def test_detail_table_key(self):
        assert detail_table_key("Main", "WORKLOG") == "Main:WORKLOG"


class TestIdGenerator:
    def test_sequential_ids(self):
        idg = IdGenerator(1000)
        assert idg.next_id() == "1000001"
        assert idg.next_id() == "1000002"
        idg.reset()
        assert idg.next_id() == "1000001"

    def test_ids_only_from_next_id(self):
        assert not callable(IdGenerator(1))


class TestSaRows:
    """System-analysis worksheet rows."""

    def test_sa_row_detection_and_mapping(self):
        row = {"欄位名稱": "ZZ_FLAG", "標籤": "Flag", "型別": "checkbox", "區域": "Header", "持久化": "Y"}
        assert is_sa_row(row)
        f = parse_sa_row(row)
        assert f.field_name == "ZZ_FLAG"
        assert f.type == FieldType.CHECKBOX
        assert f.max_type == MaxType.YORN
        assert f.area == FieldArea.HEADER
        assert f.title == "Flag"
        assert f.persistent is True

    def test_sa_row_unknown_values_fall_back(self):
        f = parse_sa_row({"標籤": "X", "型別": "slider", "區域": "sidebar"})
        assert f.type == FieldType.TEXTBOX
        assert f.area == FieldArea.HEADER
        assert f.max_type == MaxType.ALN

    def test_load_yaml_rows(self, tmp_path):
        path = tmp_path / "rows.yaml"
        path.write_text(
            "fields:\n"
            "  - field_name: ZZ_A\n    label: A\n    area: header\n"
            "  - not a mapping\n",
            encoding="utf-8",
        )
        rows = load_field_rows(path)
        assert [r.field_name for r in rows] == ["ZZ_A"]

    def test_load_json_and_csv(self, tmp_path):
        json_path = tmp_path / "rows.json"
        json_path.write_text(json.dumps([{"fieldName": "ZZ_B", "label": "B"}]), encoding="utf-8")
        assert load_field_rows(json_path)[0].field_name == "ZZ_B"

        csv_path = tmp_path / "rows.csv"
        csv_path.write_text("欄位名稱,標籤,區域,關聯\nZZ_C,C,detail,LINES\n", encoding="utf-8")
        row = load_field_rows(csv_path)[0]
        assert row.area == FieldArea.DETAIL
        assert row.relationship == "LINES"
