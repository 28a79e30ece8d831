#!/usr/bin/env python3
"""Tests for legacy trigger analysis (formgen/legacy/trigger_analysis.py).

Run: pytest tests/test_trigger_analysis.py -v
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from formgen.legacy.fmb_parser import parse_fmb
from formgen.legacy.form_spec import extract_form_spec, render_json_spec, render_markdown_spec
from formgen.legacy.trigger_analysis import (
    BLOCK_LEVEL,
    FORM_LEVEL,
    BusinessRuleType,
    SqlStatementType,
    affected_fields,
    analyze_business_rules,
    analyze_triggers,
    decode_trigger_text,
    extract_sql_statements,
    select_fields,
    summarize_trigger,
    trigger_event_info,
)
from formgen.model.fmb import FmbBlock, FmbModule, FmbTrigger

CURSOR_BODY = """
declare
  cursor c_line is select distinct line_no, part_code p from pcs_req_line where req_no = :b1head.req_no;
begin
  null;
end;
"""

VALIDATE_BODY = """
if :b2line.qty <= 0 then
  s_alert('E', 'Quantity must be positive');
  raise form_trigger_failure;
end if;
"""


class TestSqlExtraction:
    """extract_sql_statements over trigger bodies."""

    def test_simple_bodies_have_nothing(self):
        assert extract_sql_statements("null;") == []
        assert extract_sql_statements("  do_key('COMMIT_FORM');") == []

    def test_cursor(self):
        statements = extract_sql_statements(CURSOR_BODY)
        assert [s.type for s in statements] == [SqlStatementType.CURSOR]
        cursor = statements[0]
        assert cursor.tables == ["pcs_req_line"]
        assert cursor.fields == ["line_no", "part_code"]
        assert cursor.statement.startswith("cursor c_line is select")

    def test_select_into(self):
        body = "select count(*), vendor_name into :b1head.cnt, :b1head.vendor_name from pcs_vendor where x = 1;"
        statements = extract_sql_statements(body)
        assert len(statements) == 1
        assert statements[0].type == SqlStatementType.SELECT
        assert statements[0].tables == ["pcs_vendor"]
        assert statements[0].fields == ["vendor_name"]

    def test_function_assignment_and_procedures(self):
        body = ":b1head.req_no := sf_next_no('REQ');\n:b1head.remark := nvl(:b1head.remark, 'x');\np_log(:b1head.req_no);\np_done;"
        statements = extract_sql_statements(body)
        assert [s.statement for s in statements] == [
            ":b1head.req_no := sf_next_no(",
            "p_log(...)",
            "p_done",
        ]
        assert statements[0].fields == ["b1head.req_no"]
        assert {s.type for s in statements} == {SqlStatementType.FUNCTION_CALL}

    def test_select_fields(self):
        assert select_fields("a.code as c, name, upper(x), *") == ["a.code", "name"]


class TestBusinessRules:
    """analyze_business_rules and summarize_trigger."""

    def test_validation_uses_alert_message(self):
        rules = analyze_business_rules(VALIDATE_BODY, "WHEN-VALIDATE-ITEM")
        assert [r.type for r in rules] == [BusinessRuleType.VALIDATION]
        assert rules[0].description == "驗證規則: Quantity must be positive"
        assert rules[0].affected_fields == ["b2line.qty"]

    def test_validation_falls_back_to_condition(self):
        rules = analyze_business_rules("if :b1.x is null then raise form_trigger_failure; end if;", "X")
        assert rules[0].description == "驗證條件: :b1.x is null"

    def test_auto_populate_and_calculation(self):
        body = ":b2line.line_no := f_next_line(:b1head.req_no);\n:b2line.amt := :b2line.qty * :b2line.price;"
        rules = analyze_business_rules(body, "PRE-INSERT")
        assert [r.type for r in rules] == [BusinessRuleType.AUTO_POPULATE, BusinessRuleType.CALCULATION]
        assert summarize_trigger(body, "PRE-INSERT") == "自動產生 (line_no)、欄位計算"

    def test_master_detail_and_navigation(self):
        rules = analyze_business_rules(CURSOR_BODY + "go_block('B2LINE');", "POST-QUERY")
        types = [r.type for r in rules]
        assert BusinessRuleType.NAVIGATION in types
        assert BusinessRuleType.MASTER_DETAIL in types

    def test_delete_check_only_in_pre_delete(self):
        body = "select count(*) into n from pcs_req_line where req_no = 1;"
        assert BusinessRuleType.DELETE_CHECK in [r.type for r in analyze_business_rules(body, "PRE-DELETE")]
        assert summarize_trigger(body, "POST-DELETE") == "刪除前/後處理"

    def test_custom_description_from_trigger_name(self):
        assert summarize_trigger("approve_request;", "WHEN-BUTTON-PRESSED") == "按鈕事件處理"
        assert summarize_trigger("x := 1;", "WHEN-TIMER-EXPIRED") == "自定義邏輯處理"

    def test_simple_summaries(self):
        assert summarize_trigger("NULL;", "KEY-EXIT") == "無特殊處理"
        assert summarize_trigger("do_key('EXIT_FORM');", "KEY-EXIT") == "系統按鍵操作"
        assert analyze_business_rules("null;", "KEY-EXIT") == []

    def test_system_references_not_affected(self):
        assert affected_fields(":system.cursor_item :global.user :b1.a :b1.a") == ["b1.a"]


class TestEventInfo:
    def test_known_event(self):
        description, _, location = trigger_event_info("when-button-pressed")
        assert description == "當按鈕被按下時觸發"
        assert location.startswith("AppBean.EVENTNAME()")

    def test_unknown_event_fallback(self):
        assert trigger_event_info("ON-POPULATE-DETAILS")[0] == "ON-POPULATE-DETAILS 觸發器"

    def test_entities_decoded(self):
        assert decode_trigger_text("a &lt;&gt; b&#10;c &amp; d") == "a <> b\nc & d"


class TestAnalyzeTriggers:
    """Whole-module analysis and its place in the form spec."""

    def test_sample_module(self, sample_fmb_xml):
        section = analyze_triggers(parse_fmb(sample_fmb_xml))
        form = section.form_triggers
        assert [(t.no, t.name, t.level) for t in form] == [(1, "WHEN-NEW-FORM-INSTANCE", FORM_LEVEL)]
        assert form[0].summary == "導航控制"
        assert [b.block_name for b in section.block_triggers] == ["B1HEAD"]
        button = section.block_triggers[0].triggers[0]
        assert (button.no, button.name, button.level) == (2, "WHEN-BUTTON-PRESSED", BLOCK_LEVEL)
        assert button.summary == "按鈕事件處理"

    def test_numbering_and_statistics(self):
        module = FmbModule(
            name="F",
            triggers=[FmbTrigger(name="PRE-FORM", trigger_text="null;")],
            blocks=[
                FmbBlock(name="A"),
                FmbBlock(name="B", triggers=[
                    FmbTrigger(name="PRE-INSERT", trigger_text=":b.id := f_seq();"),
                    FmbTrigger(name="PRE-INSERT", trigger_text="p_stamp;"),
                ]),
            ],
        )
        section = analyze_triggers(module)
        assert [t.no for t in section.all_triggers()] == [1, 2, 3]
        assert section.statistics() == {
            "total_count": 3,
            "form_level_count": 1,
            "block_level_count": 2,
            "by_event_type": {"PRE-FORM": 1, "PRE-INSERT": 2},
        }
        data = section.to_dict()
        assert data["block_triggers"][0]["triggers"][0]["business_rules"][0]["type"] == "AUTO_POPULATE"

    def test_markdown_section(self, sample_fmb_xml):
        text = render_markdown_spec(extract_form_spec(parse_fmb(sample_fmb_xml)))
        assert "## 觸發器規則" in text
        assert "| 總數 | 2 |" in text
        assert "| 1 | WHEN-NEW-FORM-INSTANCE | 當一個新的表單實例被創建時 | 導航控制 |" in text
        assert "### Block: B1HEAD" in text
        assert "| 2 | WHEN-BUTTON-PRESSED | 當按鈕被按下時觸發 | 按鈕事件處理 | - |" in text
        assert "- [NAVIGATION] 導航至指定區塊或欄位" in text

    def test_json_spec_carries_triggers(self, sample_fmb_xml):
        data = json.loads(render_json_spec(extract_form_spec(parse_fmb(sample_fmb_xml))))
        assert data["triggers"]["statistics"]["total_count"] == 2
        assert data["triggers"]["form_triggers"][0]["name"] == "WHEN-NEW-FORM-INSTANCE"

    def test_no_triggers_no_section(self):
        text = render_markdown_spec(extract_form_spec(FmbModule(name="F")))
        assert "觸發器規則" not in text
