#!/usr/bin/env python3
"""Legacy Form Parser: Oracle Forms XML (frmf2xml) -> FmbModule.

The export is treated as attribute soup. Each element kind is found by
scanning for its opening tag, and attributes are read by local name
regardless of namespace-style prefix. Items are assigned to blocks by the
name-prefix policy in ``item_belongs_to_block``, not by containment.

Parsing is permissive: a missing root element yields an empty name and
title, and missing attributes fall back to typed defaults.

Usage:
    python -m formgen.legacy.fmb_parser --file PCS1001.xml --json

CLI:
    --file      Path to the frmf2xml export
    --json      Print the parsed module as JSON
"""

import argparse
import json
import logging
import re
import sys
import textwrap
from pathlib import Path
from typing import List, Sequence

from formgen.config import section
from formgen.legacy.attributes import (
    lookup_any,
    lookup_attr,
    lookup_bool,
    lookup_int,
    parse_attributes,
    scan_tags,
)
from formgen.model.fmb import (
    PUSH_BUTTON,
    FmbBlock,
    FmbButton,
    FmbCanvas,
    FmbItem,
    FmbLov,
    FmbLovColumnMapping,
    FmbModule,
    FmbRecordGroup,
    FmbTabPage,
    FmbTrigger,
    normalize_item_type,
)

logger = logging.getLogger("formgen.legacy.fmb_parser")

# Block-index tokens observed in the source documents. The first token's
# blocks take every item that does not start with one of the others.
BLOCK_INDEX_TOKENS = ("B1", "B2", "B3")

GROUP_MARKER_PREFIX = "GRP_"
BUTTON_TRIGGER = "WHEN-BUTTON-PRESSED"

_LOV_WITH_CONTENT_RE = re.compile(
    r"<(?:[\w\-]+:)?LOV\s+([^>]*?)(?<!/)>(.*?)</(?:[\w\-]+:)?LOV>", re.DOTALL
)


# ---------------------------------------------------------------------------
# Block membership policy
# ---------------------------------------------------------------------------

def item_belongs_to_block(block_name: str, item_name: str,
                          index_tokens: Sequence[str] = BLOCK_INDEX_TOKENS) -> bool:
    """Decide whether an item belongs to a block, from names alone.

    An item belongs to a block when its name starts with the block name.
    Blocks named with an index token also claim items carrying the same
    token; blocks of the first token claim every item not carrying one of
    the other tokens.
    """
    if not block_name or not item_name:
        return False
    if item_name.startswith(block_name):
        return True
    if not index_tokens:
        return False
    first, others = index_tokens[0], index_tokens[1:]
    if block_name.startswith(first):
        return not any(item_name.startswith(t) for t in others)
    for token in others:
        if block_name.startswith(token) and item_name.startswith(token):
            return True
    return False


def uses_index_token(block_name: str, index_tokens: Sequence[str] = BLOCK_INDEX_TOKENS) -> bool:
    return any(block_name.startswith(t) for t in index_tokens)


# ---------------------------------------------------------------------------
# Element extractors
# ---------------------------------------------------------------------------

def _element_span(text: str, match, tag: str) -> int:
    """End offset of the element opened by ``match`` (its close tag, or itself)."""
    if match.self_closing:
        return match.end
    close = re.compile(rf"</(?:[\w\-]+:)?{tag}\s*>").search(text, match.end)
    return close.end() if close else match.end


def _parse_trigger(attrs) -> FmbTrigger:
    return FmbTrigger(
        name=lookup_attr(attrs, "Name"),
        trigger_type=lookup_any(attrs, "TriggerType", "TriggerStyle"),
        trigger_text=lookup_attr(attrs, "TriggerText"),
    )


def extract_module_header(text: str):
    """Return ``(name, title, attributes)`` from the root module element."""
    for tag in ("FormModule", "Module"):
        for m in scan_tags(text, tag):
            name = lookup_attr(m.attrs, "Name")
            if name or tag == "FormModule":
                return name, lookup_attr(m.attrs, "Title"), m.attrs
    return "", "", {}


def extract_items(text: str) -> List[tuple]:
    """Every ``<Item>`` as ``(FmbItem, start, end)``, unfiltered, in document order."""
    items = []
    for m in scan_tags(text, "Item"):
        attrs = m.attrs
        raw_type = lookup_attr(attrs, "ItemType")
        item = FmbItem(
            name=lookup_attr(attrs, "Name"),
            item_type=normalize_item_type(raw_type),
            raw_item_type=raw_type,
            prompt=lookup_attr(attrs, "Prompt"),
            label=lookup_attr(attrs, "Label"),
            canvas=lookup_any(attrs, "CanvasName", "Canvas"),
            tab_page=lookup_any(attrs, "TabPageName", "TabPage"),
            data_type=lookup_attr(attrs, "DataType", "Char") or "Char",
            maximum_length=lookup_int(attrs, "MaximumLength"),
            hint=lookup_attr(attrs, "Hint"),
            lov_name=lookup_attr(attrs, "LOVName"),
            required=lookup_bool(attrs, "Required"),
            enabled=lookup_bool(attrs, "Enabled", True),
            visible=lookup_bool(attrs, "Visible", True),
            query_allowed=lookup_bool(attrs, "QueryAllowed", True),
            insert_allowed=lookup_bool(attrs, "InsertAllowed", True),
            update_allowed=lookup_bool(attrs, "UpdateAllowed", True),
            x_position=lookup_int(attrs, "XPosition"),
            y_position=lookup_int(attrs, "YPosition"),
            width=lookup_int(attrs, "Width"),
            height=lookup_int(attrs, "Height"),
            attributes=attrs,
        )
        items.append((item, m.start, _element_span(text, m, "Item")))
    return items


def is_field_item(item: FmbItem) -> bool:
    """Items that can become fields: named, typed, not images or group markers."""
    if not item.name or not item.raw_item_type:
        return False
    if item.raw_item_type.strip().lower() == "image":
        return False
    return not item.name.startswith(GROUP_MARKER_PREFIX)


def extract_blocks(text: str, items=None, skip_blocks=None,
                   index_tokens: Sequence[str] = BLOCK_INDEX_TOKENS) -> List[FmbBlock]:
    """Blocks with their member items sorted by (y, x); system blocks skipped."""
    if skip_blocks is None:
        skip_blocks = section("legacy")["skip_blocks"]
    if items is None:
        items = extract_items(text)
    triggers = [(m.start, _parse_trigger(m.attrs)) for m in scan_tags(text, "Trigger")]

    blocks = []
    for m in scan_tags(text, "Block"):
        name = lookup_attr(m.attrs, "Name")
        if not name or name in skip_blocks:
            continue

        end = _element_span(text, m, "Block")
        members = [
            item for item, _, _ in items
            if is_field_item(item)
            and item.item_type != PUSH_BUTTON
            and item_belongs_to_block(name, item.name, index_tokens)
        ]
        members.sort(key=lambda i: (i.y_position, i.x_position))

        if not members and not uses_index_token(name, index_tokens):
            logger.warning(
                "Block %s matched no items by name prefix; its naming convention "
                "needs an extended membership policy", name,
            )

        blocks.append(FmbBlock(
            name=name,
            query_data_source=lookup_attr(m.attrs, "QueryDataSourceName"),
            single_record=lookup_bool(m.attrs, "SingleRecord", None),
            records_display_count=lookup_int(m.attrs, "RecordsDisplayCount"),
            items=members,
            triggers=[t for pos, t in triggers if m.start < pos < end],
            attributes=m.attrs,
        ))
    return blocks


def extract_canvases(text: str):
    """Canvases plus the tab pages in document order.

    A tab page belongs to the nearest canvas opened before it.
    """
    canvases = []
    starts = []
    for m in scan_tags(text, "Canvas"):
        canvases.append(FmbCanvas(
            name=lookup_attr(m.attrs, "Name"),
            canvas_type=lookup_attr(m.attrs, "CanvasType", "CONTENT") or "CONTENT",
            attributes=m.attrs,
        ))
        starts.append(m.start)

    tab_pages = []
    for m in scan_tags(text, "TabPage"):
        owner = None
        for canvas, start in zip(canvases, starts):
            if start < m.start:
                owner = canvas
        page = FmbTabPage(
            name=lookup_attr(m.attrs, "Name"),
            label=lookup_attr(m.attrs, "Label"),
            canvas=owner.name if owner else "",
            attributes=m.attrs,
        )
        tab_pages.append(page)
        if owner is not None:
            owner.tab_pages.append(page)
    return canvases, tab_pages


def extract_lov_columns(lov_content: str) -> List[FmbLovColumnMapping]:
    columns = []
    for m in scan_tags(lov_content, "LOVColumnMapping"):
        name = lookup_attr(m.attrs, "Name")
        if not name:
            continue
        columns.append(FmbLovColumnMapping(
            name=name,
            title=lookup_attr(m.attrs, "Title"),
            return_item=lookup_attr(m.attrs, "ReturnItem"),
            display_width=lookup_int(m.attrs, "DisplayWidth"),
        ))
    return columns


def extract_lovs(text: str) -> List[FmbLov]:
    """LOVs with content first, then self-closing LOVs not already captured."""
    lovs = []
    seen = set()

    for m in _LOV_WITH_CONTENT_RE.finditer(text or ""):
        attrs = parse_attributes(m.group(1))
        name = lookup_attr(attrs, "Name")
        if not name:
            continue
        lovs.append(FmbLov(
            name=name,
            title=lookup_attr(attrs, "Title"),
            record_group_name=lookup_attr(attrs, "RecordGroupName"),
            column_mappings=extract_lov_columns(m.group(2)),
            attributes=attrs,
        ))
        seen.add(name)

    for m in scan_tags(text, "LOV"):
        if not m.self_closing:
            continue
        name = lookup_attr(m.attrs, "Name")
        if not name or name in seen:
            continue
        lovs.append(FmbLov(
            name=name,
            title=lookup_attr(m.attrs, "Title"),
            record_group_name=lookup_attr(m.attrs, "RecordGroupName"),
            attributes=m.attrs,
        ))
        seen.add(name)

    return lovs


def extract_record_groups(text: str) -> List[FmbRecordGroup]:
    groups = []
    for m in scan_tags(text, "RecordGroup"):
        name = lookup_attr(m.attrs, "Name")
        query = lookup_any(m.attrs, "RecordGroupQuery", "QueryDataSourceName")
        if name and query:
            groups.append(FmbRecordGroup(
                name=name,
                query_type=lookup_attr(m.attrs, "QueryDataSourceType"),
                query=query,
            ))
    return groups


def is_system_button(label: str, system_labels=None) -> bool:
    if system_labels is None:
        system_labels = section("legacy")["system_button_labels"]
    return any(sys_label in label for sys_label in system_labels)


def extract_buttons(text: str, items=None, blocks=None, system_labels=None) -> List[FmbButton]:
    """Application push buttons; vendor/system toolbar buttons are dropped."""
    if items is None:
        items = extract_items(text)
    triggers = [(m.start, _parse_trigger(m.attrs)) for m in scan_tags(text, "Trigger")]

    buttons = []
    for item, start, end in items:
        if item.item_type != PUSH_BUTTON:
            continue
        if not item.name or not item.label:
            continue
        if is_system_button(item.label, system_labels):
            continue
        owner = ""
        for block in blocks or []:
            if item_belongs_to_block(block.name, item.name):
                owner = block.name
                break
        pressed = [
            t for pos, t in triggers
            if start < pos < end and t.name.upper() == BUTTON_TRIGGER
        ]
        buttons.append(FmbButton(
            name=item.name,
            label=item.label,
            block_name=owner,
            trigger=pressed[0].trigger_text if pressed else "",
        ))
    return buttons


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def parse_fmb(text: str, config=None) -> FmbModule:
    """Parse a legacy form document into an FmbModule. Never raises on bad input."""
    text = text or ""
    legacy_cfg = section("legacy", config)

    name, title, module_attrs = extract_module_header(text)
    if not name:
        logger.debug("No module element with a Name attribute found")

    items = extract_items(text)
    blocks = extract_blocks(text, items=items, skip_blocks=legacy_cfg["skip_blocks"])
    canvases, tab_pages = extract_canvases(text)
    lovs = extract_lovs(text)
    record_groups = extract_record_groups(text)
    buttons = extract_buttons(text, items=items, blocks=blocks,
                              system_labels=legacy_cfg["system_button_labels"])

    block_spans = [
        (m.start, _element_span(text, m, "Block")) for m in scan_tags(text, "Block")
    ]
    item_spans = [(start, end) for _, start, end in items]
    module_triggers = [
        _parse_trigger(m.attrs) for m in scan_tags(text, "Trigger")
        if not any(s < m.start < e for s, e in block_spans + item_spans)
    ]

    module = FmbModule(
        name=name,
        title=title,
        blocks=blocks,
        canvases=canvases,
        tab_pages=tab_pages,
        lovs=lovs,
        record_groups=record_groups,
        buttons=buttons,
        triggers=module_triggers,
        attributes=module_attrs,
    )
    logger.debug(
        "Parsed module %s: %d blocks, %d LOVs, %d record groups, %d buttons, %d tab pages",
        name, len(blocks), len(lovs), len(record_groups), len(buttons), len(tab_pages),
    )
    return module


def parse_fmb_file(path) -> FmbModule:
    with open(path, encoding="utf-8", errors="replace") as f:
        return parse_fmb(f.read())


def main():
    parser = argparse.ArgumentParser(
        description="FormGen Legacy Form Parser: Oracle Forms XML -> structured module",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python -m formgen.legacy.fmb_parser --file PCS1001_fmb.xml
              python -m formgen.legacy.fmb_parser --file PCS1001_fmb.xml --json
        """),
    )
    parser.add_argument("--file", required=True, help="Oracle Forms XML export")
    parser.add_argument("--json", action="store_true", dest="json_output", help="JSON output")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    path = Path(args.file)
    if not path.exists():
        print(f"[ERROR] File does not exist: {path}", file=sys.stderr)
        sys.exit(1)

    module = parse_fmb_file(path)
    if args.json_output:
        print(json.dumps(module.to_dict(), indent=2, ensure_ascii=False))
        return

    print(f"Module: {module.name} ({module.title or '-'})")
    for block in module.blocks:
        kind = "single" if block.single_record else "multi"
        print(f"  Block {block.name} [{kind}] -> {block.query_data_source or '-'}: "
              f"{len(block.items)} items")
    print(f"  LOVs: {len(module.lovs)}  Record groups: {len(module.record_groups)}  "
          f"Buttons: {len(module.buttons)}  Tab pages: {len(module.tab_pages)}")


if __name__ == "__main__":
    main()
