#!/usr/bin/env python3
"""Entity-relationship derivation from a legacy form specification.

One entity per block. A block is the header when it is single-record; when
the form does not say, a block with no field on a tab page is the header.
The first header block owns a solid 1:N relationship to every detail block.

Lookups produce the external side of the graph: each record group bound
through a LOV becomes one ``external`` entity (table taken from the group's
query), and each (block, record group) pair one dashed relationship
labelled with the LOV name. External references are always derived;
``visible_graph`` decides whether they are shown.
"""

import logging
import re
from typing import Dict, List, Optional

from formgen.legacy.form_spec import BlockSpec, FieldSpec, FormSpec, LovSpec
from formgen.model.er import (
    ONE_TO_MANY,
    ErDiagramData,
    ErEntity,
    ErEntityType,
    ErField,
    ErFieldRole,
    ErLineStyle,
    ErRelationship,
)

logger = logging.getLogger("formgen.er.extractor")

KEY_PATTERNS = (re.compile(r"_ID$"), re.compile(r"_NO$"), re.compile(r"_CODE$"))
_FROM_RE = re.compile(r"\bFROM\s+([A-Za-z_][A-Za-z0-9_.]*)", re.IGNORECASE)


def is_key_name(name: str) -> bool:
    upper = (name or "").upper()
    return any(p.search(upper) for p in KEY_PATTERNS)


def table_from_query(query: str) -> str:
    """First table named after FROM in a record-group query, upper-cased."""
    match = _FROM_RE.search(query or "")
    return match.group(1).upper() if match else ""


def field_role(spec: FieldSpec, is_first: bool) -> ErFieldRole:
    if is_first or is_key_name(spec.db_column):
        return ErFieldRole.PRIMARY_KEY
    if spec.lov_name:
        return ErFieldRole.FOREIGN_KEY
    if spec.required:
        return ErFieldRole.REQUIRED
    return ErFieldRole.PLAIN


def classify_block(block: BlockSpec) -> ErEntityType:
    if block.single_record is not None:
        return ErEntityType.HEADER if block.single_record else ErEntityType.DETAIL
    on_tab_page = any(f.tab_page for f in block.fields)
    return ErEntityType.DETAIL if on_tab_page else ErEntityType.HEADER


def block_entity(block: BlockSpec) -> ErEntity:
    displayed = [f for f in block.fields if f.displayed]
    return ErEntity(
        id=block.name,
        block_name=block.name,
        table_name=block.base_table,
        entity_type=classify_block(block),
        fields=tuple(
            ErField(
                name=f.db_column,
                data_type=f.data_type,
                role=field_role(f, index == 0),
                lov_name=f.lov_name,
            )
            for index, f in enumerate(displayed)
        ),
    )


def _external_entity_id(record_group: str) -> str:
    return f"ext-{record_group}"


def derive_er_diagram(spec: FormSpec, show_external_refs: bool = False) -> ErDiagramData:
    """Build the full entity graph; external references are included but flagged."""
    entities: List[ErEntity] = [block_entity(b) for b in spec.blocks]
    relationships: List[ErRelationship] = []

    header: Optional[ErEntity] = next(
        (e for e in entities if e.entity_type == ErEntityType.HEADER), None
    )
    if header is not None:
        for entity in entities:
            if entity.entity_type == ErEntityType.DETAIL:
                relationships.append(ErRelationship(
                    id=f"rel-{header.id}-{entity.id}",
                    source_entity_id=header.id,
                    target_entity_id=entity.id,
                    cardinality=ONE_TO_MANY,
                    line_style=ErLineStyle.SOLID,
                ))

    lovs: Dict[str, LovSpec] = {lov.name: lov for lov in spec.lovs}
    externals: Dict[str, ErEntity] = {}
    linked = set()
    for block in spec.blocks:
        for f in block.fields:
            lov = lovs.get(f.lov_name) if f.lov_name else None
            if lov is None or not lov.record_group_name:
                continue
            group = lov.record_group_name
            if group not in externals:
                externals[group] = ErEntity(
                    id=_external_entity_id(group),
                    block_name="",
                    table_name=table_from_query(lov.record_group_query) or group,
                    entity_type=ErEntityType.EXTERNAL,
                )
            if (block.name, group) in linked:
                continue
            linked.add((block.name, group))
            relationships.append(ErRelationship(
                id=f"lov-{block.name}-{group}",
                source_entity_id=block.name,
                target_entity_id=externals[group].id,
                cardinality=ONE_TO_MANY,
                line_style=ErLineStyle.DASHED,
                label=lov.name,
            ))
    entities.extend(externals.values())

    logger.debug("ER diagram %s: %d entities (%d external), %d relationships",
                 spec.form_name, len(entities), len(externals), len(relationships))
    return ErDiagramData(
        entities=entities,
        relationships=relationships,
        form_name=spec.form_name,
        show_external_refs=show_external_refs,
    )


def visible_graph(data: ErDiagramData) -> ErDiagramData:
    """The entities and relationships to render under the current toggle."""
    if data.show_external_refs:
        entities = list(data.entities)
    else:
        entities = [e for e in data.entities if e.entity_type != ErEntityType.EXTERNAL]
    ids = {e.id for e in entities}
    relationships = [
        r for r in data.relationships
        if r.source_entity_id in ids and r.target_entity_id in ids
    ]
    return ErDiagramData(
        entities=entities,
        relationships=relationships,
        form_name=data.form_name,
        show_external_refs=data.show_external_refs,
    )
