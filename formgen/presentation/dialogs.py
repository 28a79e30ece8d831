#!/usr/bin/env python3
"""Dialogs appended after the main page of the presentation document."""

import xml.etree.ElementTree as ET
from typing import Sequence

from formgen.ids import IdGenerator
from formgen.markup import attributes
from formgen.model.fields import (
    DialogDetailTable,
    DialogTemplate,
    FieldDefinition,
    InputMode,
    ProcessedField,
    value_of,
)
from formgen.presentation.controls import add_control, add_pushbutton, add_textbox

SEARCH_DIALOG_ID = "searchmore"
SEARCH_DIALOG_LABEL = "更多搜尋欄位"


def _button(label: str, mxevent: str) -> ProcessedField:
    return ProcessedField(label=label, mxevent=mxevent)


def _single_column(parent: ET.Element, idg: IdGenerator) -> ET.Element:
    section = ET.SubElement(parent, "section", {"id": idg.next_id()})
    row = ET.SubElement(section, "sectionrow", {"id": idg.next_id()})
    return ET.SubElement(row, "sectioncol", {"id": idg.next_id()})


def add_search_dialog(parent: ET.Element, fields: Sequence[ProcessedField], mbo_name: str,
                      idg: IdGenerator, label: str = SEARCH_DIALOG_LABEL) -> ET.Element:
    """Search-more dialog: every filterable field as a query-mode text box."""
    dialog = ET.SubElement(parent, "dialog", {
        "id": SEARCH_DIALOG_ID,
        "label": label,
        "mboname": mbo_name or "SR",
    })
    col = _single_column(dialog, idg)
    for f in fields:
        if f.filterable:
            add_textbox(col, f, idg, input_mode=InputMode.QUERY)

    group = ET.SubElement(dialog, "buttongroup", {"id": idg.next_id()})
    add_pushbutton(group, _button("搜尋", "dialogok"), idg, default=True)
    add_pushbutton(group, _button("取消", "dialogcancel"), idg)
    return dialog


def _dialog_field(definition: FieldDefinition, idg: IdGenerator) -> ProcessedField:
    processed = ProcessedField.from_dict(definition.to_dict())
    processed.id = idg.next_id()
    if definition.relationship:
        processed.dataattribute = f"{definition.relationship}.{definition.field_name}"
    else:
        processed.dataattribute = definition.field_name
    return processed


def _add_dialog_table(parent: ET.Element, table: DialogDetailTable, idg: IdGenerator) -> ET.Element:
    element = ET.SubElement(parent, "table", attributes([
        ("id", idg.next_id()),
        ("relationship", table.relationship),
        ("label", table.label),
        ("orderby", table.order_by),
        ("beanclass", table.beanclass),
    ]))
    body = ET.SubElement(element, "tablebody", {"displayrowsperpage": "10", "id": idg.next_id()})
    for f in table.fields:
        mode = value_of(f.input_mode)
        ET.SubElement(body, "tablecol", attributes([
            ("dataattribute", f.field_name),
            ("id", idg.next_id()),
            ("label", f.label),
            ("inputmode", "" if mode == InputMode.OPTIONAL.value else mode),
            ("lookup", f.lookup),
            ("width", f.width),
        ]))
    return element


def add_dialog_template(parent: ET.Element, template: DialogTemplate, idg: IdGenerator):
    """Append a user-defined dialog; templates without a dialog id are skipped."""
    if not template.dialog_id:
        return None

    dialog = ET.SubElement(parent, "dialog", attributes([
        ("id", template.dialog_id),
        ("label", template.label),
        ("beanclass", template.beanclass),
        ("mboname", template.mbo_name),
        ("relationship", "" if template.mbo_name else template.relationship),
    ]))

    if template.header_fields:
        col = _single_column(dialog, idg)
        for definition in template.header_fields:
            add_control(col, _dialog_field(definition, idg), idg)

    for table in template.detail_tables:
        if table.relationship and table.fields:
            _add_dialog_table(dialog, table, idg)

    group = ET.SubElement(dialog, "buttongroup", {"id": idg.next_id()})
    add_pushbutton(group, _button("OK", "dialogok"), idg, default=True)
    add_pushbutton(group, _button("Cancel", "dialogcancel"), idg)
    return dialog
