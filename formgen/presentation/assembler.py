#!/usr/bin/env python3
"""Presentation Generator.

Assembles the complete presentation document for an ApplicationDefinition:

  <presentation>
    <page id="mainrec">
      page header include
      <clientarea><tabgroup id="maintabs" style="form">
        list tab, then one form tab per TabDefinition
      </tabgroup></clientarea>
      page footer include
    </page>
    search-more dialog, then user dialog templates
  </presentation>

A form tab holds its header section and, only when it has detail tables or
sub-tabs, one nested tab group. The nested group opens with the primary
detail tab (when the tab has its own tables) followed by the named sub-tabs
in declaration order. Tables never sit directly under a form tab.

Usage:
    from formgen.presentation.assembler import generate_application

    xml_text = generate_application(app, metadata, id_generator=IdGenerator(1000))
"""

import logging
import xml.etree.ElementTree as ET
from typing import Iterable, Mapping, Optional

from formgen.config import section
from formgen.ids import IdGenerator, ensure_generator
from formgen.markup import attributes, serialize
from formgen.model.fields import (
    ApplicationDefinition,
    ApplicationMetadata,
    DetailTableConfig,
    DialogTemplate,
    TabDefinition,
)
from formgen.presentation.dialogs import add_dialog_template, add_search_dialog
from formgen.presentation.layout import (
    RESULTS_TABLE_ID,
    add_detail_table,
    add_header_section,
    add_list_table,
)

logger = logging.getLogger("formgen.presentation.assembler")

# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------

def add_list_tab(parent: ET.Element, app: ApplicationDefinition, metadata: ApplicationMetadata,
                 idg: IdGenerator, config=None) -> ET.Element:
    cfg = section("presentation", config)
    tab = ET.SubElement(parent, "tab", {
        "default": "true",
        "id": "results",
        "label": cfg["list_tab_label"],
        "type": "list",
    })
    ET.SubElement(tab, "menubar", {
        "event": "search",
        "id": "actiontoolbar",
        "sourcemethod": "getAppSearchOptions",
    })
    add_list_table(tab, app.list_fields, metadata.mbo_name, idg,
                   order_by=metadata.order_by,
                   rows_per_page=int(cfg["list_rows_per_page"]))
    return tab


def add_form_tab(parent: ET.Element, tab: TabDefinition, idg: IdGenerator,
                 detail_table_configs: Optional[Mapping[str, DetailTableConfig]] = None,
                 config=None) -> ET.Element:
    cfg = section("presentation", config)
    per_column = int(cfg["fields_per_column"])
    rows = int(cfg["detail_rows_per_page"])

    element = ET.SubElement(parent, "tab", {
        "id": tab.id,
        "label": tab.label,
        "tabchangeevent": "switchedTab",
        "type": "insert",
    })
    if tab.header_fields:
        add_header_section(element, f"{tab.id}_grid", tab.header_fields, idg,
                           fields_per_column=per_column)

    if not tab.needs_tab_group:
        return element

    group = ET.SubElement(element, "tabgroup", {"id": idg.next_id(), "style": "form"})
    if tab.detail_tables:
        primary = ET.SubElement(group, "tab", {"id": idg.next_id(), "label": tab.main_detail_label})
        for relationship, fields in tab.detail_tables.items():
            add_detail_table(primary, fields, relationship, tab.label, idg,
                             detail_table_configs, rows_per_page=rows)

    for sub in tab.sub_tabs.values():
        sub_element = ET.SubElement(group, "tab", {"id": sub.id, "label": sub.label})
        if sub.header_fields:
            add_header_section(sub_element, f"{sub.id}_grid", sub.header_fields, idg,
                               fields_per_column=per_column)
        for relationship, fields in sub.detail_tables.items():
            add_detail_table(sub_element, fields, relationship, tab.label, idg,
                             detail_table_configs, rows_per_page=rows)
    return element


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

def build_presentation(app: ApplicationDefinition, metadata: ApplicationMetadata,
                       detail_table_configs: Optional[Mapping[str, DetailTableConfig]] = None,
                       id_generator: Optional[IdGenerator] = None, config=None) -> ET.Element:
    """Presentation element tree without dialogs."""
    idg = ensure_generator(id_generator)
    root = ET.Element("presentation", attributes([
        ("id", metadata.id),
        ("keyattribute", metadata.key_attribute),
        ("mboname", metadata.mbo_name),
        ("orderby", metadata.order_by),
        ("resultstableid", RESULTS_TABLE_ID),
        ("version", metadata.version),
        ("whereclause", metadata.where_clause),
        ("beanclass", metadata.beanclass),
    ]))
    page = ET.SubElement(root, "page", {"id": "mainrec"})
    ET.SubElement(page, "include", {"controltoclone": "pageHeader", "id": "INCLUDE-pageHeader"})
    client = ET.SubElement(page, "clientarea", {"id": "clientarea"})
    tabs = ET.SubElement(client, "tabgroup", {"id": "maintabs", "style": "form"})
    ET.SubElement(page, "include", {"controltoclone": "pageFooter", "id": "INCLUDE-pageFooter"})

    add_list_tab(tabs, app, metadata, idg, config)
    for tab in app.tabs.values():
        add_form_tab(tabs, tab, idg, detail_table_configs, config)
    return root


def generate_presentation(app: ApplicationDefinition, metadata: ApplicationMetadata,
                          detail_table_configs: Optional[Mapping[str, DetailTableConfig]] = None,
                          id_generator: Optional[IdGenerator] = None, config=None) -> str:
    """Presentation document without dialogs."""
    root = build_presentation(app, metadata, detail_table_configs, id_generator, config)
    return serialize(root)


def generate_application(app: ApplicationDefinition, metadata: ApplicationMetadata,
                         detail_table_configs: Optional[Mapping[str, DetailTableConfig]] = None,
                         dialog_templates: Optional[Iterable[DialogTemplate]] = None,
                         id_generator: Optional[IdGenerator] = None, config=None) -> str:
    """Complete presentation document, including the search and user dialogs."""
    idg = ensure_generator(id_generator)
    root = build_presentation(app, metadata, detail_table_configs, idg, config)

    searchable = []
    for tab in app.tabs.values():
        searchable.extend(tab.header_fields)
        for sub in tab.sub_tabs.values():
            searchable.extend(sub.header_fields)
    searchable.extend(app.list_fields)
    add_search_dialog(root, searchable, metadata.mbo_name, idg,
                      label=section("presentation", config)["search_dialog_label"])

    emitted = 0
    for template in dialog_templates or []:
        if add_dialog_template(root, template, idg) is not None:
            emitted += 1

    logger.debug("Generated presentation %s: %d form tabs, %d list fields, %d dialogs",
                 metadata.id, len(app.tabs), len(app.list_fields), emitted)
    return serialize(root)
