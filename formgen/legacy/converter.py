#!/usr/bin/env python3
"""Convert a parsed legacy form into FieldDefinition rows.

Mapping rules:
  - Items on the header canvas become header fields; items on a non-default
    tab canvas with a tab page also become header fields, one tab per page.
  - Items on other visible canvases become detail fields whose relationship
    is the block's data source; their tab page becomes the sub-tab.
  - A text item followed on the same canvas by an unprompted text or display
    item merges into one multi-part text box.
  - The first few non-button, non-static fields are repeated in the list
    area as read-only text boxes.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from formgen.config import section
from formgen.model.fields import FieldArea, FieldDefinition, FieldType, InputMode
from formgen.model.fmb import DISPLAY_ITEM, PUSH_BUTTON, TEXT_ITEM, FmbItem, FmbModule

logger = logging.getLogger("formgen.legacy.converter")

ITEM_TYPE_MAP = {
    "TEXT_ITEM": FieldType.TEXTBOX,
    "CHECK_BOX": FieldType.CHECKBOX,
    "PUSH_BUTTON": FieldType.PUSHBUTTON,
    "DISPLAY_ITEM": FieldType.STATICTEXT,
    "LIST_ITEM": FieldType.COMBOBOX,
}


@dataclass
class FmbConversionResult:
    fields: List[FieldDefinition] = field(default_factory=list)
    app_name: str = ""
    app_title: str = ""


def map_item_type(item_type: str) -> FieldType:
    return ITEM_TYPE_MAP.get(item_type, FieldType.TEXTBOX)


def resolve_input_mode(required: bool, enabled: bool) -> InputMode:
    if required:
        return InputMode.REQUIRED
    if not enabled:
        return InputMode.READONLY
    return InputMode.OPTIONAL


def _description_pairs(items: List[FmbItem]):
    """Map each text item to the unprompted item that describes it."""
    pairs = {}
    for current, following in zip(items, items[1:]):
        is_description = (
            following.item_type in (DISPLAY_ITEM, TEXT_ITEM)
            and not following.prompt
            and current.canvas == following.canvas
        )
        if current.item_type == TEXT_ITEM and is_description and current.name not in pairs.values():
            pairs[current.name] = following.name
    return pairs


def convert_fmb_to_fields(module: FmbModule, config=None) -> FmbConversionResult:
    """Convert every visible block item into a field row."""
    cfg = section("legacy", config)
    skip_blocks = set(cfg["convert_skip_blocks"])
    skip_relationships = set(cfg["skip_relationships"])
    default_canvases = list(cfg["visible_canvases"])
    header_canvas = cfg["header_canvas"]

    page_labels = {}
    tab_canvases = set()
    for canvas in module.canvases:
        for page in canvas.tab_pages:
            if page.label:
                page_labels[page.name] = page.label
            tab_canvases.add(canvas.name)
    visible_canvases = set(default_canvases) | tab_canvases

    fields: List[FieldDefinition] = []
    for block in module.blocks:
        if block.name in skip_blocks:
            continue

        pairs = _description_pairs(block.items)
        merged = set(pairs.values())

        for item in block.items:
            if not item.canvas or item.canvas not in visible_canvases:
                continue
            if not item.visible or item.name in merged:
                continue

            on_page_canvas = (
                item.canvas in tab_canvases
                and item.canvas not in default_canvases
                and bool(item.tab_page)
            )
            area = FieldArea.HEADER if (item.canvas == header_canvas or on_page_canvas) else FieldArea.DETAIL

            if area == FieldArea.DETAIL and block.query_data_source in skip_relationships:
                continue

            if item.item_type == PUSH_BUTTON:
                label = item.label or item.prompt or item.name
            else:
                label = item.prompt or item.name

            page_label = page_labels.get(item.tab_page, item.tab_page) if item.tab_page else ""
            description = pairs.get(item.name, "")

            fields.append(FieldDefinition(
                field_name=item.name,
                label=label,
                type=FieldType.MULTIPART_TEXTBOX if description else map_item_type(item.item_type),
                area=area,
                input_mode=resolve_input_mode(item.required, item.enabled),
                relationship=block.query_data_source if area == FieldArea.DETAIL else "",
                tab_name=page_label if area == FieldArea.HEADER else "",
                sub_tab_name=page_label if area == FieldArea.DETAIL else "",
                lookup=item.lov_name,
                length=item.maximum_length or 100,
                desc_dataattribute=description,
            ))

    candidates = [f for f in fields if f.type not in (FieldType.PUSHBUTTON, FieldType.STATICTEXT)]
    for candidate in candidates[: int(cfg["max_list_fields"])]:
        fields.append(candidate.copy(
            area=FieldArea.LIST,
            type=FieldType.TEXTBOX,
            input_mode=InputMode.READONLY,
        ))

    logger.debug("Converted %s into %d field rows", module.name, len(fields))
    return FmbConversionResult(
        fields=fields,
        app_name=module.name,
        app_title=module.title or module.name,
    )
