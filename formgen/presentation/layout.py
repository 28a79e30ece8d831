#!/usr/bin/env python3
"""Sections and tables of the presentation document.

Header fields are laid out as one section holding a single section row with
one column per field group. Detail tables put push buttons into a button
group below the table body; every other field becomes a column.
"""

import xml.etree.ElementTree as ET
from typing import List, Mapping, Optional, Sequence

from formgen.ids import IdGenerator
from formgen.markup import attributes
from formgen.model.fields import (
    DetailTableConfig,
    FieldType,
    ProcessedField,
    detail_table_key,
    value_of,
)
from formgen.presentation.controls import (
    add_bookmark_tablecol,
    add_control,
    add_pushbutton,
    add_select_row_tablecol,
    add_tablecol,
)

DEFAULT_FIELDS_PER_COLUMN = 4
RESULTS_TABLE_ID = "results_showlist"
DIALOG_OK = "dialogok"


def group_fields_into_columns(fields: Sequence[ProcessedField],
                              fields_per_column: int = DEFAULT_FIELDS_PER_COLUMN) -> List[List[ProcessedField]]:
    """Split header fields into section columns.

    When any field names a column (``column > 0``) the manual assignment
    wins and unassigned fields join column 1. Otherwise fields fill columns
    of ``fields_per_column`` in order.
    """
    fields = list(fields)
    if any(f.column > 0 for f in fields):
        columns = {}
        for f in fields:
            columns.setdefault(f.column if f.column > 0 else 1, []).append(f)
        return [columns[key] for key in sorted(columns)]

    if len(fields) <= fields_per_column:
        return [fields]
    return [fields[i:i + fields_per_column] for i in range(0, len(fields), fields_per_column)]


def add_header_section(parent: ET.Element, section_id: str, fields: Sequence[ProcessedField],
                       idg: IdGenerator, relationship: str = "",
                       fields_per_column: int = DEFAULT_FIELDS_PER_COLUMN) -> ET.Element:
    section = ET.SubElement(parent, "section", attributes([
        ("id", section_id),
        ("relationship", relationship),
    ]))
    row = ET.SubElement(section, "sectionrow", {"id": idg.next_id()})
    for column_fields in group_fields_into_columns(fields, fields_per_column):
        col = ET.SubElement(row, "sectioncol", {"id": idg.next_id()})
        inner = ET.SubElement(col, "section", {"id": idg.next_id()})
        for f in column_fields:
            add_control(inner, f, idg)
    return section


def add_buttongroup(parent: ET.Element, buttons: Sequence[ProcessedField], idg: IdGenerator) -> ET.Element:
    group = ET.SubElement(parent, "buttongroup", {"id": idg.next_id()})
    for index, button in enumerate(buttons):
        add_pushbutton(group, button, idg, default=(index == 0 and button.mxevent == DIALOG_OK))
    return group


def table_label(tab_label: str, relationship: str,
                configs: Optional[Mapping[str, DetailTableConfig]] = None) -> str:
    config = (configs or {}).get(detail_table_key(tab_label, relationship))
    if config is not None and config.label:
        return config.label
    return relationship.replace("_", " ")


def add_detail_table(parent: ET.Element, fields: Sequence[ProcessedField], relationship: str,
                     tab_label: str, idg: IdGenerator,
                     configs: Optional[Mapping[str, DetailTableConfig]] = None,
                     rows_per_page: int = 10) -> ET.Element:
    config = (configs or {}).get(detail_table_key(tab_label, relationship))
    table = ET.SubElement(parent, "table", attributes([
        ("id", idg.next_id()),
        ("label", table_label(tab_label, relationship, configs)),
        ("relationship", relationship),
        ("orderby", config.order_by if config else ""),
        ("beanclass", config.beanclass if config else ""),
    ]))
    buttons = [f for f in fields if value_of(f.type) == FieldType.PUSHBUTTON.value]
    columns = [f for f in fields if value_of(f.type) != FieldType.PUSHBUTTON.value]

    body = ET.SubElement(table, "tablebody", {
        "displayrowsperpage": str(rows_per_page),
        "id": idg.next_id(),
    })
    for f in columns:
        add_tablecol(body, f, idg, hyperlink=True)
    if buttons:
        add_buttongroup(table, buttons, idg)
    return table


def add_list_table(parent: ET.Element, fields: Sequence[ProcessedField], mbo_name: str,
                   idg: IdGenerator, order_by: str = "", rows_per_page: int = 50) -> ET.Element:
    """Results table of the list tab: select-row column, field columns, bookmark column."""
    body_id = f"{RESULTS_TABLE_ID}_tablebody"
    table = ET.SubElement(parent, "table", attributes([
        ("datasrc", RESULTS_TABLE_ID),
        ("id", RESULTS_TABLE_ID),
        ("inputmode", "readonly"),
        ("mboname", mbo_name),
        ("orderby", order_by),
        ("selectmode", "multiple"),
        ("startempty", "false"),
    ]))
    body = ET.SubElement(table, "tablebody", {
        "displayrowsperpage": str(rows_per_page),
        "filterable": "true",
        "filterexpanded": "true",
        "id": body_id,
    })
    key_attribute = fields[0].dataattribute if fields else "ticketid"
    add_select_row_tablecol(body, f"{body_id}_1", key_attribute)
    for f in fields:
        add_tablecol(body, f, idg, list_table=True)
    add_bookmark_tablecol(body)
    return table
