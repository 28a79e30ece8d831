#!/usr/bin/env python3
"""Shared pytest fixtures for the FormGen test suite.

Centralizes the sample legacy form export, field rows, application metadata,
a deterministic ID generator, and the Flask test client.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from formgen.config import BUILTIN_CONFIG  # noqa: E402
from formgen.ids import IdGenerator  # noqa: E402
from formgen.model.fields import ApplicationMetadata, fields_from_dicts  # noqa: E402


# ---------------------------------------------------------------------------
# Legacy form export (frmf2xml shape, prefixed attributes)
# ---------------------------------------------------------------------------
SAMPLE_FMB_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Module version="101020002" xmlns="http://xmlns.oracle.com/Forms">
  <FormModule Name="PCS1001" Title="Purchase Request" ODGLS144_overridden:Name="IGNORED">
    <Trigger Name="WHEN-NEW-FORM-INSTANCE" TriggerText="go_block('B1HEAD');"/>
    <Block Name="HEAD_BLOCK" QueryDataSourceName="SYS_HEADER"/>
    <Block Name="B1HEAD" QueryDataSourceName="PCS_REQ_HEAD" SingleRecord="true"
           RecordsDisplayCount="1" WhereClause="STATUS &lt;&gt; 'X'" OrderByClause="REQ_NO">
      <Item Name="B1HEAD_REQ_NO" ItemType="Text Item" Prompt="Request No"
            CanvasName="CANVAS_BODY" DataType="Char" MaximumLength="12"
            Required="true" Enabled="false" XPosition="10" YPosition="10"/>
      <Item Name="B1HEAD_VENDOR" ItemType="Text Item" Prompt="Vendor"
            CanvasName="CANVAS_BODY" MaximumLength="10" LOVName="LOV_VENDOR"
            XPosition="10" YPosition="40"/>
      <Item Name="B1HEAD_VENDOR_NAME" ItemType="Display Item"
            CanvasName="CANVAS_BODY" MaximumLength="60" XPosition="120" YPosition="40"/>
      <Item Name="B1HEAD_REMARK" ItemType="Text Item" Prompt="Remark"
            CanvasName="CANVAS_BODY" MaximumLength="200" XPosition="10" YPosition="70"/>
      <Item Name="GRP_FRAME" ItemType="Text Item" CanvasName="CANVAS_BODY"/>
      <Item Name="BTN_APPROVE" ItemType="Push Button" Label="Approve" CanvasName="CANVAS_BODY">
        <Trigger Name="WHEN-BUTTON-PRESSED" TriggerText="approve_request;"/>
      </Item>
      <Item Name="TB_SAVE" ItemType="Push Button" Label="Save" CanvasName="CANVAS_BODY"/>
    </Block>
    <Block Name="B2LINE" QueryDataSourceName="PCS_REQ_LINE" SingleRecord="false" RecordsDisplayCount="8">
      <Item Name="B2LINE_ITEM_NO" ItemType="Text Item" Prompt="Line"
            CanvasName="CANVAS_TAB" TabPageName="TAB_PAGE_1" DataType="Number"
            MaximumLength="4" XPosition="10" YPosition="100"/>
      <Item Name="B2LINE_PART" ItemType="Text Item" Prompt="Part"
            CanvasName="CANVAS_TAB" TabPageName="TAB_PAGE_1" LOVName="LOV_PART"
            MaximumLength="20" XPosition="60" YPosition="100"/>
      <Item Name="B2LINE_QTY" ItemType="Text Item" Prompt="Quantity"
            CanvasName="CANVAS_TAB" TabPageName="TAB_PAGE_2" DataType="Number"
            Required="true" MaximumLength="10" XPosition="10" YPosition="130"/>
    </Block>
    <Canvas Name="CANVAS_BODY" CanvasType="Content"/>
    <Canvas Name="CANVAS_TAB" CanvasType="Tab">
      <TabPage Name="TAB_PAGE_1" Label="First Tab"/>
      <TabPage Name="TAB_PAGE_2" Label="Second Tab"/>
    </Canvas>
    <LOV Name="LOV_VENDOR" Title="Vendors" RecordGroupName="RG_VENDOR">
      <LOVColumnMapping Name="VENDOR_CODE" Title="Code" ReturnItem="B1HEAD.VENDOR" DisplayWidth="60"/>
      <LOVColumnMapping Name="VENDOR_NAME" Title="Name" ReturnItem="B1HEAD.VENDOR_NAME" DisplayWidth="120"/>
    </LOV>
    <LOV Name="LOV_PART" Title="Parts" RecordGroupName="RG_PART"/>
    <LOV Name="LOV_VENDOR" Title="Vendors" RecordGroupName="RG_VENDOR"/>
    <RecordGroup Name="RG_VENDOR" QueryDataSourceType="Query"
                 RecordGroupQuery="SELECT VENDOR_CODE, VENDOR_NAME FROM pcs_vendor WHERE ACTIVE = 'Y'"/>
    <RecordGroup Name="RG_PART" RecordGroupQuery="select part_code from pcs_part"/>
    <RecordGroup Name="RG_EMPTY"/>
  </FormModule>
</Module>
"""


@pytest.fixture
def sample_fmb_xml():
    """Legacy form export with a header block, a detail block, and two LOVs."""
    return SAMPLE_FMB_XML


@pytest.fixture
def sample_fmb_file(tmp_path):
    path = tmp_path / "PCS1001_fmb.xml"
    path.write_text(SAMPLE_FMB_XML, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Field rows and metadata
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_fields():
    """One list field, two header fields, a detail table, and a sub-tab table."""
    return fields_from_dicts([
        {"field_name": "TICKETID", "label": "Ticket", "area": "list", "filterable": True},
        {"field_name": "DESCRIPTION", "label": "Summary", "area": "header"},
        {"field_name": "ZZ_COST_CENTER", "label": "Cost Center", "area": "header",
         "max_type": "UPPER", "length": 20, "db_required": True},
        {"field_name": "ZZ_LINE_AMT", "label": "Amount", "area": "detail",
         "relationship": "ZZ_SRLINE", "max_type": "DECIMAL", "length": 12, "scale": 2},
        {"field_name": "ZZ_NOTE", "label": "Note", "area": "detail",
         "relationship": "ZZ_SRNOTE", "sub_tab_name": "Notes"},
        {"field_name": "ZZ_APPROVE", "label": "Approve", "area": "header", "type": "pushbutton"},
    ])


@pytest.fixture
def sample_metadata():
    return ApplicationMetadata(
        id="ZZSR",
        key_attribute="TICKETID",
        mbo_name="SR",
        order_by="TICKETID DESC",
    )


@pytest.fixture
def id_generator():
    """Deterministic element ids: 1000001, 1000002, ..."""
    return IdGenerator(1000)


@pytest.fixture
def builtin_config():
    import copy
    return copy.deepcopy(BUILTIN_CONFIG)


# ---------------------------------------------------------------------------
# Flask
# ---------------------------------------------------------------------------

@pytest.fixture
def api_app(builtin_config):
    from formgen.api import create_app
    app = create_app(builtin_config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def api_client(api_app):
    """Flask test client for the FormGen API."""
    return api_app.test_client()
