#!/usr/bin/env python3
"""Tests for the field grouping engine and field ordering helpers.

Run: pytest tests/test_field_grouping.py -v
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from formgen.grouping.field_ordering import (
    group_key,
    move_field_down,
    move_field_up,
    normalize_field_orders,
    sort_by_order,
)
from formgen.grouping.field_processor import (
    binding_for,
    flatten_application,
    generate_field_name,
    group_fields,
    main_detail_labels_of,
    naming_prefix,
    process_field,
    resolve_field_names,
    sanitize_sub_tabs,
    validate_field,
    validate_fields,
)
from formgen.ids import IdGenerator
from formgen.model.fields import (
    ApplicationMetadata,
    FieldArea,
    FieldDefinition,
    SubTabConfig,
    fields_from_dicts,
)


class TestNaming:
    """Attribute names derived from labels."""

    def test_generate_field_name(self):
        assert generate_field_name("Cost Center (HQ)") == "ZZ_COST_CENTER_HQ"
        assert generate_field_name("成本中心") == ""
        assert generate_field_name("") == ""

    def test_prefix_empty_for_new_object(self):
        assert naming_prefix(ApplicationMetadata(is_standard_object=False)) == ""
        assert naming_prefix(ApplicationMetadata()) == "ZZ_"

    def test_process_field_keeps_existing_id(self, id_generator):
        first = process_field(FieldDefinition(label="Cost Center"), id_generator)
        assert first.field_name == "ZZ_COST_CENTER"
        assert first.id == "1000001"
        again = process_field(first, id_generator)
        assert again.id == "1000001"

    def test_resolve_field_names_copies_rows(self):
        rows = [FieldDefinition(label="Cost Center"), FieldDefinition(field_name="KEEP", label="Kept")]
        resolved = resolve_field_names(rows, ApplicationMetadata(is_standard_object=False))
        assert [f.field_name for f in resolved] == ["COST_CENTER", "KEEP"]
        assert rows[0].field_name == ""
        assert resolved[1] is rows[1]

    def test_header_binding_from_relationship(self):
        header = FieldDefinition(area=FieldArea.HEADER, relationship="ASSET")
        assert binding_for("LOCATION", header) == "ASSET.LOCATION"
        detail = FieldDefinition(area=FieldArea.DETAIL, relationship="WORKLOG")
        assert binding_for("LOGTYPE", detail) == "LOGTYPE"
        routed = FieldDefinition(area=FieldArea.HEADER, object_name="ZZ_EXT")
        assert binding_for("ZZ_A", routed) == "ZZ_EXT.ZZ_A"


class TestGroupFields:
    """Flat rows -> tab tree."""

    def test_mydetail_scenario(self, id_generator):
        fields = fields_from_dicts([
            {"field_name": "H1", "label": "Header", "area": "header", "relationship": "", "tab_name": "Main"},
            {"field_name": "D1", "label": "Detail", "area": "detail", "relationship": "MYDETAIL", "tab_name": "Main"},
        ])
        app = group_fields(fields, id_generator=id_generator)
        assert list(app.tabs) == ["Main"]
        main = app.tabs["Main"]
        assert [f.field_name for f in main.header_fields] == ["H1"]
        assert list(main.detail_tables) == ["MYDETAIL"]
        assert main.main_detail_label == "主區域"
        assert main.needs_tab_group

    def test_default_tab_and_list(self, sample_fields, id_generator):
        app = group_fields(sample_fields, id_generator=id_generator)
        assert [f.field_name for f in app.list_fields] == ["TICKETID"]
        main = app.tabs["Main"]
        assert [f.field_name for f in main.header_fields] == ["DESCRIPTION", "ZZ_COST_CENTER", "ZZ_APPROVE"]
        assert list(main.detail_tables) == ["ZZ_SRLINE"]
        assert list(main.sub_tabs) == ["Notes"]
        assert list(main.sub_tabs["Notes"].detail_tables) == ["ZZ_SRNOTE"]

    def test_main_detail_label_override(self, sample_fields, id_generator):
        app = group_fields(sample_fields, main_detail_labels={"Main": "Lines"}, id_generator=id_generator)
        assert app.tabs["Main"].main_detail_label == "Lines"

    def test_header_only_tab_needs_no_group(self, id_generator):
        app = group_fields([FieldDefinition(field_name="A", label="A")], id_generator=id_generator)
        assert not app.tabs["Main"].needs_tab_group

    def test_sub_tab_order_follows_config(self, id_generator):
        fields = fields_from_dicts([
            {"field_name": "A", "label": "A", "area": "detail", "relationship": "R1", "sub_tab_name": "Second"},
            {"field_name": "B", "label": "B", "area": "detail", "relationship": "R2", "sub_tab_name": "First"},
        ])
        configs = {"Main": [SubTabConfig(label="First", order=0), SubTabConfig(label="Second", order=1)]}
        app = group_fields(fields, sub_tab_configs=configs, id_generator=id_generator)
        assert list(app.tabs["Main"].sub_tabs) == ["First", "Second"]

    def test_unknown_sub_tab_cleared(self):
        fields = [FieldDefinition(label="A", sub_tab_name="Ghost")]
        cleaned = sanitize_sub_tabs(fields, {"Main": [SubTabConfig(label="Real")]})
        assert cleaned[0].sub_tab_name == ""
        assert fields[0].sub_tab_name == "Ghost"

    def test_output_is_read_only(self, sample_fields, id_generator):
        app = group_fields(sample_fields, id_generator=id_generator)
        with pytest.raises(TypeError):
            app.tabs["Other"] = None

    def test_round_trip(self, sample_fields):
        app = group_fields(sample_fields, id_generator=IdGenerator(5))
        again = group_fields(
            flatten_application(app),
            main_detail_labels=main_detail_labels_of(app),
            id_generator=IdGenerator(9),
        )
        assert again == app


class TestValidation:
    def test_detail_requires_relationship(self):
        errors = validate_field(FieldDefinition(label="A", area=FieldArea.DETAIL))
        assert "Relationship is required for detail fields" in errors

    def test_chinese_label_requires_name(self):
        errors = validate_field(FieldDefinition(label="成本"))
        assert any("Chinese" in e for e in errors)

    def test_unknown_area(self):
        errors = validate_field(FieldDefinition.from_dict({"label": "A", "area": "sidebar"}))
        assert any("Area must be one of" in e for e in errors)

    def test_validate_fields_indexes(self):
        problems = validate_fields([FieldDefinition(label="ok"), FieldDefinition(label="")])
        assert list(problems) == [1]


class TestFieldOrdering:
    """Ordering within groups."""

    def _rows(self):
        return fields_from_dicts([
            {"field_name": "A", "label": "A", "area": "header"},
            {"field_name": "L", "label": "L", "area": "list"},
            {"field_name": "B", "label": "B", "area": "header"},
            {"field_name": "C", "label": "C", "area": "header"},
        ])

    def test_group_key(self):
        rows = self._rows()
        assert group_key(rows[0]) == "header:Main:"
        assert group_key(rows[1]) == "list"
        detail = FieldDefinition(area=FieldArea.DETAIL, relationship="R", sub_tab_name="S")
        assert group_key(detail) == "detail:Main:S:R"

    def test_move_up_swaps_within_group(self):
        moved = move_field_up(self._rows(), 2)
        ordered = sort_by_order(moved, key="header:Main:")
        assert [f.field_name for f in ordered] == ["B", "A", "C"]

    def test_move_down_at_end_is_noop(self):
        rows = self._rows()
        assert move_field_down(rows, 3) == rows

    def test_move_does_not_touch_input(self):
        rows = self._rows()
        move_field_down(rows, 0)
        assert all(r.order is None for r in rows)

    def test_normalize_orders(self):
        rows = normalize_field_orders(self._rows())
        assert [r.order for r in rows] == [0, 0, 1, 2]

    def test_sort_all_groups(self):
        rows = move_field_down(self._rows(), 0)
        assert [f.field_name for f in sort_by_order(rows)] == ["B", "A", "C", "L"]
