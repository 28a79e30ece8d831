#!/usr/bin/env python3
"""Tests for the schema-migration SQL, the DBC resource script, and coverage.

Run: pytest tests/test_schema_scripts.py -v
"""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from formgen.errors import GenerationValidationError
from formgen.model.fields import ApplicationMetadata, FieldDefinition, fields_from_dicts
from formgen.schema.coverage import (
    extract_schema_attributes,
    validate_field_coverage,
)
from formgen.schema.dbc_script import (
    DOCTYPE,
    generate_resource_script,
    map_maximo_type_to_dbc_type,
)
from formgen.schema.sql_script import (
    FIRST_ATTRIBUTE_NO,
    generate_schema_script,
    oracle_data_type,
    target_object,
)
from formgen.schema.validation import escape_sql, is_custom_field


class TestSchemaScript:
    """MAXATTRIBUTECFG inserts."""

    def test_header_custom_field_only(self, sample_fields, sample_metadata):
        script = generate_schema_script(sample_fields, sample_metadata, generated_at="T0")
        assert [s.binding for s in script.statements] == ["SR.ZZ_COST_CENTER"]
        assert script.statements[0].attribute_no == FIRST_ATTRIBUTE_NO
        assert script.skipped == ["ZZ_LINE_AMT", "ZZ_NOTE"]
        assert "-- Generated at: T0" in script.content
        assert "'SR', 'ZZ_COST_CENTER', 1000, 'ZZ_COST_CENTER', 'UPPER', 20" in script.content
        assert script.content.rstrip().endswith("-- " + "=" * 45)
        assert "COMMIT;" in script.content

    def test_object_name_routes_detail_field(self, sample_metadata):
        fields = fields_from_dicts([
            {"field_name": "ZZ_A", "label": "A", "area": "detail", "relationship": "LINES", "object_name": "zz_line"},
            {"field_name": "ZZ_B", "label": "B", "area": "header"},
        ])
        script = generate_schema_script(fields, sample_metadata)
        assert [s.binding for s in script.statements] == ["ZZ_LINE.ZZ_A", "SR.ZZ_B"]
        assert [s.attribute_no for s in script.statements] == [1000, 1001]

    def test_duplicates_emitted_once(self, sample_metadata):
        fields = fields_from_dicts([
            {"field_name": "ZZ_A", "label": "A", "area": "header"},
            {"field_name": "zz_a", "label": "A again", "area": "list"},
        ])
        script = generate_schema_script(fields, sample_metadata)
        assert len(script.statements) == 1

    def test_non_persistent_is_metadata_only(self, sample_metadata):
        fields = fields_from_dicts([{"field_name": "ZZ_TMP", "label": "Tmp", "persistent": False}])
        script = generate_schema_script(fields, sample_metadata)
        assert "-- metadata only: SR.ZZ_TMP has no storage column" in script.content
        assert script.statements[0].persistent is False

    def test_quotes_escaped(self, sample_metadata):
        fields = fields_from_dicts([{"field_name": "ZZ_Q", "label": "Owner's name"}])
        script = generate_schema_script(fields, sample_metadata)
        assert "'Owner''s name'" in script.content

    def test_new_object_treats_every_field_as_custom(self):
        meta = ApplicationMetadata(mbo_name="ZZ_TRAVEL", is_standard_object=False)
        fields = fields_from_dicts([{"field_name": "DESTINATION", "label": "Destination"}])
        script = generate_schema_script(fields, meta)
        assert [s.binding for s in script.statements] == ["ZZ_TRAVEL.DESTINATION"]

    def test_blocking_errors(self):
        with pytest.raises(GenerationValidationError) as exc_info:
            generate_schema_script([], ApplicationMetadata(mbo_name=""))
        assert len(exc_info.value.errors) == 2

    def test_target_object(self):
        assert target_object(FieldDefinition(object_name="x"), "SR") == "X"
        assert target_object(FieldDefinition(relationship="R"), "SR") == ""
        assert target_object(FieldDefinition(), "sr") == "SR"

    def test_oracle_data_type(self):
        assert oracle_data_type("ALN", 30) == "VARCHAR2(30)"
        assert oracle_data_type("DECIMAL", 12, 2) == "NUMBER(12,2)"
        assert oracle_data_type("DECIMAL") == "NUMBER(10)"
        assert oracle_data_type("YORN") == "NUMBER(1)"
        assert oracle_data_type("DATETIME") == "TIMESTAMP"
        assert oracle_data_type("whatever") == "VARCHAR2(100)"


class TestCustomFieldFilter:
    def test_buttons_and_standard_fields_excluded(self, sample_metadata):
        assert not is_custom_field(FieldDefinition(field_name="DESCRIPTION"), sample_metadata)
        button = fields_from_dicts([{"field_name": "ZZ_GO", "type": "pushbutton"}])[0]
        assert not is_custom_field(button, sample_metadata)
        assert is_custom_field(FieldDefinition(field_name="ZZ_X"), sample_metadata)

    def test_escape_sql(self):
        assert escape_sql("it's") == "it''s"
        assert escape_sql(None) == ""


class TestResourceScript:
    """DBC script structure."""

    def _root(self, result):
        return ET.fromstring(result.content.encode("utf-8"))

    def test_vendor_object_envelope(self, sample_fields, sample_metadata):
        result = generate_resource_script(sample_fields, sample_metadata)
        assert DOCTYPE in result.content
        assert result.suggested_filename == "SR_dbc.dbc"
        root = self._root(result)
        assert root.tag == "script"
        assert root.get("scriptname") == "SR_SETUP"

    def test_vendor_header_uses_add_attributes(self, sample_fields, sample_metadata):
        root = self._root(generate_resource_script(sample_fields, sample_metadata))
        statements = root.find("statements")
        add = statements.find("add_attributes")
        assert add.get("object") == "SR"
        assert [a.get("attribute") for a in add.findall("attrdef")] == ["ZZ_COST_CENTER"]
        assert add.find("attrdef").get("length") == "20"

    def test_detail_tables_and_relationships(self, sample_fields, sample_metadata):
        result = generate_resource_script(sample_fields, sample_metadata, module_name="ZZSR")
        assert result.suggested_filename == "ZZSR_dbc.dbc"
        statements = self._root(result).find("statements")
        defined = statements.findall("define_table")
        assert [t.get("object") for t in defined] == ["ZZ_SRLINE", "ZZ_SRNOTE"]
        line_attrs = defined[0].findall("attrdef")
        assert line_attrs[0].get("attribute") == "ZZ_SRLINEID"
        assert line_attrs[0].get("maxtype") == "BIGINT"
        assert line_attrs[1].get("maxtype") == "AMOUNT"
        rels = statements.findall("create_relationship")
        assert [r.get("child") for r in rels] == ["ZZ_SRLINE", "ZZ_SRNOTE"]
        assert rels[0].get("parent") == "SR"
        assert rels[0].get("whereclause") == "zz_cost_center = :zz_cost_center"

    def test_new_object_defines_primary_table(self):
        meta = ApplicationMetadata(mbo_name="ZZ_TRAVEL", is_standard_object=False)
        fields = fields_from_dicts([{"field_name": "DEST", "label": "Destination"}])
        result = generate_resource_script(fields, meta, title="Travel", script_metadata={"author": "ops"})
        root = self._root(result)
        assert root.get("author") == "ops"
        table = root.find("statements/define_table")
        assert table.get("object") == "ZZ_TRAVEL"
        assert table.get("primarykey") == "ZZ_TRAVELID"
        assert table.get("description") == "Travel"
        assert result.script.attribute_bindings() == ["ZZ_TRAVEL.DEST"]

    def test_non_persistent_attrdef(self, sample_metadata):
        fields = fields_from_dicts([{"field_name": "ZZ_TMP", "label": "Tmp", "persistent": False}])
        root = self._root(generate_resource_script(fields, sample_metadata))
        assert root.find(".//attrdef").get("persistent") == "false"

    def test_no_custom_fields_leaves_statements_out(self, sample_metadata):
        fields = fields_from_dicts([{"field_name": "DESCRIPTION", "label": "Summary"}])
        root = self._root(generate_resource_script(fields, sample_metadata))
        assert root.find("statements") is None

    def test_type_mapping(self):
        assert map_maximo_type_to_dbc_type("DECIMAL", "ZZ_UNIT_PRICE") == "AMOUNT"
        assert map_maximo_type_to_dbc_type("DECIMAL", "ZZ_RATIO") == "DECIMAL"
        assert map_maximo_type_to_dbc_type("bogus") == "ALN"


class TestCoverage:
    """Expected bindings vs. schema definitions."""

    def test_missing_detail_bindings_reported(self, sample_fields, sample_metadata):
        script = generate_schema_script(sample_fields, sample_metadata)
        report = validate_field_coverage(
            ["SR.ZZ_COST_CENTER", "ZZ_SRLINE.ZZ_LINE_AMT", "ZZ_SRNOTE.ZZ_NOTE"],
            [s.binding for s in script.statements],
        )
        assert report.is_valid is False
        assert report.missing_fields == ["ZZ_SRLINE.ZZ_LINE_AMT", "ZZ_SRNOTE.ZZ_NOTE"]

    def test_case_insensitive(self):
        report = validate_field_coverage(["sr.zz_a"], ["SR.ZZ_A"])
        assert report.is_valid
        assert report.to_dict()["missing_fields"] == []

    def test_extract_schema_attributes_from_sql(self, sample_metadata):
        fields = fields_from_dicts([
            {"field_name": "ZZ_A", "label": "A"},
            {"field_name": "ZZ_B", "label": "B", "object_name": "ZZ_EXT"},
        ])
        content = generate_schema_script(fields, sample_metadata).content
        assert extract_schema_attributes(content) == ["SR.ZZ_A", "ZZ_EXT.ZZ_B"]
