#!/usr/bin/env python3
"""Mermaid ``erDiagram`` export of an ER graph.

Relationships come first, then one block per entity that has a table name.
Entities are addressed by table name; relationships whose endpoints have no
table are left out.
"""

import re

from formgen.er.extractor import visible_graph
from formgen.model.er import ErDiagramData, ErFieldRole, ErLineStyle
from formgen.model.fields import value_of

_ROLE_MARKS = {
    ErFieldRole.PRIMARY_KEY.value: "PK",
    ErFieldRole.FOREIGN_KEY.value: "FK",
}


def _token(text: str) -> str:
    return re.sub(r"\s+", "_", (text or "").strip()) or "Char"


def render_mermaid(data: ErDiagramData) -> str:
    visible = visible_graph(data)
    tables = {e.id: e.table_name for e in data.entities}

    lines = ["erDiagram"]
    for rel in visible.relationships:
        source = tables.get(rel.source_entity_id)
        target = tables.get(rel.target_entity_id)
        if not source or not target:
            continue
        notation = "||..o{" if rel.line_style == ErLineStyle.DASHED else "||--o{"
        label = rel.label or "has"
        lines.append(f'    {source} {notation} {target} : "{label}"')

    for entity in visible.entities:
        if not entity.table_name:
            continue
        lines.append(f"    {entity.table_name} {{")
        for f in entity.fields:
            mark = _ROLE_MARKS.get(value_of(f.role), "")
            line = f"        {_token(f.data_type)} {f.name}"
            lines.append(f"{line} {mark}" if mark else line)
        lines.append("    }")
    return "\n".join(lines)
