#!/usr/bin/env python3
"""Structured module extracted from an Oracle Forms XML export.

Block membership of items is decided by name-prefix matching (see
formgen.legacy.fmb_parser.item_belongs_to_block), not by containment.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

# Normalised item types
TEXT_ITEM = "TEXT_ITEM"
CHECK_BOX = "CHECK_BOX"
LIST_ITEM = "LIST_ITEM"
PUSH_BUTTON = "PUSH_BUTTON"
DISPLAY_ITEM = "DISPLAY_ITEM"
RADIO_GROUP = "RADIO_GROUP"
IMAGE = "IMAGE"
BEAN_AREA = "BEAN_AREA"
CHART_ITEM = "CHART_ITEM"
USER_AREA = "USER_AREA"

ITEM_TYPE_NORMALIZE = {
    "text item": TEXT_ITEM,
    "check box": CHECK_BOX,
    "list item": LIST_ITEM,
    "push button": PUSH_BUTTON,
    "display item": DISPLAY_ITEM,
    "radio group": RADIO_GROUP,
    "image": IMAGE,
    "bean area": BEAN_AREA,
    "chart item": CHART_ITEM,
    "user area": USER_AREA,
}


def normalize_item_type(raw: str) -> str:
    """'Text Item' / 'text_item' / 'TEXT_ITEM' -> 'TEXT_ITEM' (default TEXT_ITEM)."""
    key = (raw or "").strip().lower().replace("_", " ")
    return ITEM_TYPE_NORMALIZE.get(key, TEXT_ITEM)


@dataclass
class FmbTrigger:
    name: str
    trigger_type: str = ""
    trigger_text: str = ""


@dataclass
class FmbItem:
    name: str
    item_type: str = TEXT_ITEM
    raw_item_type: str = ""
    prompt: str = ""
    label: str = ""
    canvas: str = ""
    tab_page: str = ""
    data_type: str = "Char"
    maximum_length: int = 0
    hint: str = ""
    lov_name: str = ""
    required: bool = False
    enabled: bool = True
    visible: bool = True
    query_allowed: bool = True
    insert_allowed: bool = True
    update_allowed: bool = True
    x_position: int = 0
    y_position: int = 0
    width: int = 0
    height: int = 0
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class FmbBlock:
    name: str
    query_data_source: str = ""
    single_record: Optional[bool] = None
    records_display_count: int = 0
    items: List[FmbItem] = field(default_factory=list)
    triggers: List[FmbTrigger] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class FmbTabPage:
    name: str
    label: str = ""
    canvas: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class FmbCanvas:
    name: str
    canvas_type: str = "CONTENT"
    tab_pages: List[FmbTabPage] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class FmbLovColumnMapping:
    name: str
    title: str = ""
    return_item: str = ""
    display_width: int = 0


@dataclass
class FmbLov:
    name: str
    title: str = ""
    record_group_name: str = ""
    column_mappings: List[FmbLovColumnMapping] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class FmbRecordGroup:
    name: str
    query_type: str = ""
    query: str = ""


@dataclass
class FmbButton:
    name: str
    label: str
    block_name: str = ""
    trigger: str = ""


@dataclass
class FmbModule:
    """Everything recovered from one legacy form document."""

    name: str = ""
    title: str = ""
    blocks: List[FmbBlock] = field(default_factory=list)
    canvases: List[FmbCanvas] = field(default_factory=list)
    tab_pages: List[FmbTabPage] = field(default_factory=list)
    lovs: List[FmbLov] = field(default_factory=list)
    record_groups: List[FmbRecordGroup] = field(default_factory=list)
    buttons: List[FmbButton] = field(default_factory=list)
    triggers: List[FmbTrigger] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self, include_attributes: bool = False) -> dict:
        data = asdict(self)
        if not include_attributes:
            _strip_attributes(data)
        return data

    def find_lov(self, name: str):
        for lov in self.lovs:
            if lov.name == name:
                return lov
        return None

    def find_record_group(self, name: str):
        for group in self.record_groups:
            if group.name == name:
                return group
        return None


def _strip_attributes(node):
    if isinstance(node, dict):
        node.pop("attributes", None)
        for value in node.values():
            _strip_attributes(value)
    elif isinstance(node, list):
        for value in node:
            _strip_attributes(value)
