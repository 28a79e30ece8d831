#!/usr/bin/env python3
"""Control elements of the presentation document.

One builder per field type. Each appends its element to ``parent`` and
returns it; attributes are written in the fixed order the presentation
loader expects, and empty values are omitted. Every element id comes from
the generation pass's IdGenerator.
"""

import xml.etree.ElementTree as ET

from formgen.ids import IdGenerator
from formgen.markup import attributes
from formgen.model.fields import FieldType, InputMode, ProcessedField, value_of

DEFAULT_MULTILINE_COLUMNS = "45"
DEFAULT_MULTILINE_ROWS = 7

SELECT_ROW_EVENT_DESC = "選取橫列 {0}"
SELECT_RECORD_EVENT_DESC = "移至%1"
BOOKMARK_EVENT_DESC = "新增至書籤"


def _input_mode(mode) -> str:
    """Input mode attribute value; the default mode is not written."""
    text = value_of(mode)
    return "" if text in ("", InputMode.OPTIONAL.value) else text


# ---------------------------------------------------------------------------
# Form controls
# ---------------------------------------------------------------------------

def add_textbox(parent: ET.Element, f: ProcessedField, idg: IdGenerator,
                input_mode=None) -> ET.Element:
    mode = f.input_mode if input_mode is None else input_mode
    return ET.SubElement(parent, "textbox", attributes([
        ("dataattribute", f.dataattribute),
        ("id", idg.next_id()),
        ("applink", f.applink),
        ("inputmode", _input_mode(mode)),
        ("label", f.label),
        ("lookup", f.lookup),
        ("menutype", "NORMAL" if f.applink else ""),
        ("size", f.width),
    ]))


def add_checkbox(parent: ET.Element, f: ProcessedField, idg: IdGenerator) -> ET.Element:
    return ET.SubElement(parent, "checkbox", attributes([
        ("dataattribute", f.dataattribute),
        ("id", idg.next_id()),
        ("inputmode", _input_mode(f.input_mode)),
        ("label", f.label),
    ]))


def add_multiline_textbox(parent: ET.Element, f: ProcessedField, idg: IdGenerator,
                          rows: int = DEFAULT_MULTILINE_ROWS) -> ET.Element:
    return ET.SubElement(parent, "multilinetextbox", attributes([
        ("columns", f.width or DEFAULT_MULTILINE_COLUMNS),
        ("dataattribute", f.dataattribute),
        ("id", idg.next_id()),
        ("inputmode", _input_mode(f.input_mode)),
        ("label", f.label),
        ("rows", rows),
    ]))


def description_binding(f: ProcessedField) -> str:
    """Binding of a multi-part text box's description part."""
    if f.desc_dataattribute:
        return f.desc_dataattribute
    base = f.dataattribute if "." in f.dataattribute else f.field_name
    return f"{base}.DESCRIPTION"


def add_multipart_textbox(parent: ET.Element, f: ProcessedField, idg: IdGenerator) -> ET.Element:
    return ET.SubElement(parent, "multiparttextbox", attributes([
        ("dataattribute", f.dataattribute),
        ("descdataattribute", description_binding(f)),
        ("id", idg.next_id()),
        ("applink", f.applink),
        ("menutype", "normal" if f.applink else ""),
        ("inputmode", _input_mode(f.input_mode)),
        ("label", f.label),
        ("desclabel", f.desc_label),
        ("descinputmode", _input_mode(f.desc_input_mode)),
        ("lookup", f.lookup),
    ]))


def add_statictext(parent: ET.Element, f: ProcessedField, idg: IdGenerator) -> ET.Element:
    return ET.SubElement(parent, "statictext", attributes([
        ("dataattribute", f.dataattribute),
        ("id", idg.next_id()),
        ("label", f.label),
    ]))


def add_pushbutton(parent: ET.Element, f: ProcessedField, idg: IdGenerator,
                   default: bool = False) -> ET.Element:
    return ET.SubElement(parent, "pushbutton", attributes([
        ("default", "true" if default else ""),
        ("id", idg.next_id()),
        ("label", f.label),
        ("mxevent", f.mxevent),
    ]))


def add_attachments(parent: ET.Element, f: ProcessedField, idg: IdGenerator) -> ET.Element:
    return ET.SubElement(parent, "attachments", {"id": f.id or idg.next_id()})


_BUILDERS = {
    FieldType.CHECKBOX.value: add_checkbox,
    FieldType.MULTILINE_TEXTBOX.value: add_multiline_textbox,
    FieldType.MULTIPART_TEXTBOX.value: add_multipart_textbox,
    FieldType.STATICTEXT.value: add_statictext,
    FieldType.PUSHBUTTON.value: add_pushbutton,
    FieldType.ATTACHMENTS.value: add_attachments,
}


def add_control(parent: ET.Element, f: ProcessedField, idg: IdGenerator) -> ET.Element:
    """Append the control for ``f``'s type; combobox and unknown types render as text boxes."""
    builder = _BUILDERS.get(value_of(f.type), add_textbox)
    return builder(parent, f, idg)


# ---------------------------------------------------------------------------
# Table columns
# ---------------------------------------------------------------------------

def add_tablecol(parent: ET.Element, f: ProcessedField, idg: IdGenerator,
                 list_table: bool = False, hyperlink: bool = False) -> ET.Element:
    """Column of the list table (``list_table``) or of a detail table."""
    if f.applink:
        menutype = "hyperlink" if hyperlink else "normal"
    else:
        menutype = ""
    readonly = value_of(f.input_mode) == InputMode.READONLY.value
    return ET.SubElement(parent, "tablecol", attributes([
        ("applink", f.applink),
        ("dataattribute", f.dataattribute),
        ("filterable", _flag(f.filterable) if list_table else ""),
        ("id", idg.next_id()),
        ("inputmode", InputMode.READONLY.value if readonly else ""),
        ("label", f.label),
        ("lookup", f.lookup),
        ("menutype", menutype),
        ("mxevent", "selectrecord" if list_table else ""),
        ("mxevent_desc", SELECT_RECORD_EVENT_DESC if list_table else ""),
        ("sortable", _flag(f.sortable) if list_table else ""),
        ("type", "link" if list_table and f.applink else ""),
        ("width", f.width),
    ]))


def add_select_row_tablecol(parent: ET.Element, col_id: str, key_attribute: str) -> ET.Element:
    return ET.SubElement(parent, "tablecol", {
        "dataattribute": key_attribute,
        "filterable": "false",
        "id": col_id,
        "mxevent": "toggleselectrow",
        "mxevent_desc": SELECT_ROW_EVENT_DESC,
        "sortable": "false",
        "type": "event",
    })


def add_bookmark_tablecol(parent: ET.Element) -> ET.Element:
    return ET.SubElement(parent, "tablecol", {
        "filterable": "false",
        "id": "results_bookmark",
        "mxevent": "BOOKMARK",
        "mxevent_desc": BOOKMARK_EVENT_DESC,
        "mxevent_icon": "btn_addtobookmarks.gif",
        "sortable": "false",
        "type": "event",
    })


def _flag(value: bool) -> str:
    return "true" if value else "false"
