#!/usr/bin/env python3
"""Resource-provisioning script (DBC) for custom attributes.

The script is one ``<script>`` envelope (author, script name, description)
wrapping ``<statements>``:

  primary record   new object  -> <define_table> with a <MBO>ID BIGINT key
                   vendor      -> <add_attributes> for the custom fields
  detail tables    one <define_table> per relationship, plus a
                   <create_relationship> from the primary record
  object_name      fields routed to a named record go to that record's
                   block, never to the primary record's

Only custom data fields are written (see validation.is_custom_field).
Non-persistent fields keep their attrdef with ``persistent="false"`` so the
title and description are still registered.

Usage:
    python -m formgen.schema.dbc_script --fields rows.yaml --mbo ZZ_TRAVEL --new-object
"""

import argparse
import logging
import sys
import textwrap
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from formgen.config import section
from formgen.errors import GenerationValidationError
from formgen.markup import attributes, serialize
from formgen.model.fields import (
    ApplicationMetadata,
    FieldArea,
    FieldDefinition,
    MaxType,
    coerce_int,
    value_of,
)
from formgen.model.sa_rows import load_field_rows
from formgen.schema.validation import is_custom_field, validate_generation_inputs

logger = logging.getLogger("formgen.schema.dbc_script")

DOCTYPE = '<!DOCTYPE script SYSTEM "script.dtd">'
AMOUNT_NAME_PATTERNS = ("AMT", "AMOUNT", "PRICE", "COST")
STRING_TYPES = ("ALN", "UPPER", "LOWER", "LONGALN")
KEY_TYPE = "BIGINT"


# ---------------------------------------------------------------------------
# Script model
# ---------------------------------------------------------------------------

@dataclass
class DbcAttribute:
    attribute: str
    maxtype: str
    title: str
    remarks: str = ""
    required: bool = False
    length: Optional[int] = None
    persistent: bool = True


@dataclass
class DbcTable:
    object: str
    description: str = ""
    primarykey: str = ""
    attributes: List[DbcAttribute] = field(default_factory=list)
    existing: bool = False
    type: str = "system"
    classname: str = ""
    service: str = ""


@dataclass
class DbcRelationship:
    name: str
    parent: str
    child: str
    whereclause: str
    remarks: str = ""


@dataclass
class DbcScriptMetadata:
    author: str = ""
    scriptname: str = ""
    description: str = ""


@dataclass
class DbcScript:
    metadata: DbcScriptMetadata
    tables: List[DbcTable] = field(default_factory=list)
    relationships: List[DbcRelationship] = field(default_factory=list)

    def attribute_bindings(self) -> List[str]:
        """``OBJECT.ATTRIBUTE`` for every attrdef except generated keys."""
        bindings = []
        for table in self.tables:
            for attr in table.attributes:
                if attr.maxtype == KEY_TYPE and attr.attribute.endswith("ID"):
                    continue
                bindings.append(f"{table.object}.{attr.attribute}")
        return bindings


@dataclass
class DbcGenerationResult:
    content: str
    script: DbcScript
    suggested_filename: str


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def map_maximo_type_to_dbc_type(max_type, field_name: str = "") -> str:
    """DBC maxtype for a field; decimal money-like names become AMOUNT."""
    kind = value_of(max_type)
    if kind == MaxType.DECIMAL.value and field_name:
        upper = field_name.upper()
        if any(pattern in upper for pattern in AMOUNT_NAME_PATTERNS):
            return MaxType.AMOUNT.value
    if kind in {m.value for m in MaxType}:
        return kind
    return MaxType.ALN.value


def fields_to_attributes(fields: Sequence[FieldDefinition]) -> List[DbcAttribute]:
    """One attrdef per unique attribute name, first occurrence wins."""
    seen = set()
    result = []
    for f in fields:
        name = f.field_name.upper()
        if name in seen:
            continue
        seen.add(name)
        maxtype = map_maximo_type_to_dbc_type(f.max_type, name)
        length = coerce_int(f.length)
        result.append(DbcAttribute(
            attribute=name,
            maxtype=maxtype,
            title=f.title or f.label or name,
            remarks=f.label or f.title or "",
            required=bool(f.db_required),
            length=length if maxtype in STRING_TYPES and length else None,
            persistent=bool(f.persistent),
        ))
    return result


def _key_attribute(object_name: str) -> DbcAttribute:
    return DbcAttribute(
        attribute=f"{object_name}ID",
        maxtype=KEY_TYPE,
        title=f"{object_name} ID",
        remarks="主鍵",
        required=True,
    )


def determine_primary_key(header_fields: Sequence[FieldDefinition]) -> str:
    for f in header_fields:
        if f.db_required:
            return f.field_name
    return header_fields[0].field_name if header_fields else "ID"


def extract_mbo_definitions(fields: Sequence[FieldDefinition], metadata: ApplicationMetadata,
                            title: str = "", config=None):
    """Return (tables, relationships) for the custom fields."""
    dbc_cfg = section("dbc", config)
    mbo = (metadata.mbo_name or "").upper()
    new_object = not metadata.is_standard_object

    def table(object_name: str, description: str, existing: bool) -> DbcTable:
        return DbcTable(
            object=object_name,
            description=description,
            primarykey="" if existing else f"{object_name}ID",
            attributes=[] if existing else [_key_attribute(object_name)],
            existing=existing,
            type=dbc_cfg["table_type"],
            classname=dbc_cfg["classname"],
            service=dbc_cfg["service"],
        )

    custom = [
        f for f in fields
        if value_of(f.area) != FieldArea.LIST.value and is_custom_field(f, metadata, config)
    ]
    header = [f for f in custom if value_of(f.area) == FieldArea.HEADER.value
              and not f.object_name and not f.relationship]
    routed: Dict[str, List[FieldDefinition]] = {}
    details: Dict[str, List[FieldDefinition]] = {}
    for f in custom:
        if f.object_name:
            routed.setdefault(f.object_name.upper(), []).append(f)
        elif value_of(f.area) == FieldArea.DETAIL.value and f.relationship:
            details.setdefault(f.relationship.upper(), []).append(f)

    tables: List[DbcTable] = []
    relationships: List[DbcRelationship] = []

    if header or new_object:
        main = table(mbo, title or mbo, existing=not new_object)
        main.attributes.extend(fields_to_attributes(header))
        tables.append(main)

    # Key of the header record, for the child relationships.
    all_header = [f for f in fields if value_of(f.area) == FieldArea.HEADER.value and f.field_name]
    key = determine_primary_key(all_header).lower()
    for rel, rel_fields in details.items():
        child = table(rel, f"{mbo} - {rel}", existing=False)
        child.attributes.extend(fields_to_attributes(rel_fields))
        tables.append(child)
        relationships.append(DbcRelationship(
            name=rel,
            parent=mbo,
            child=rel,
            whereclause=f"{key} = :{key}",
            remarks=f"{mbo} 與 {rel} 的關聯",
        ))

    for object_name, object_fields in routed.items():
        if object_name == mbo and tables and tables[0].object == mbo:
            tables[0].attributes.extend(
                a for a in fields_to_attributes(object_fields)
                if a.attribute not in {x.attribute for x in tables[0].attributes}
            )
            continue
        secondary = table(object_name, object_name, existing=not new_object)
        secondary.attributes.extend(fields_to_attributes(object_fields))
        tables.append(secondary)

    return tables, relationships


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _add_attrdef(parent: ET.Element, attr: DbcAttribute) -> ET.Element:
    return ET.SubElement(parent, "attrdef", attributes([
        ("attribute", attr.attribute),
        ("maxtype", attr.maxtype),
        ("length", attr.length if attr.maxtype in STRING_TYPES else None),
        ("title", attr.title),
        ("remarks", attr.remarks),
        ("required", "true" if attr.required else "false"),
        ("persistent", None if attr.persistent else "false"),
    ]))


def render_dbc_xml(script: DbcScript) -> str:
    root = ET.Element("script", attributes([
        ("author", script.metadata.author),
        ("scriptname", script.metadata.scriptname),
        ("description", script.metadata.description),
    ]))
    if script.tables or script.relationships:
        statements = ET.SubElement(root, "statements")
        for table in script.tables:
            if table.existing:
                element = ET.SubElement(statements, "add_attributes", {"object": table.object})
            else:
                element = ET.SubElement(statements, "define_table", attributes([
                    ("object", table.object),
                    ("description", table.description),
                    ("type", table.type),
                    ("primarykey", table.primarykey),
                    ("classname", table.classname),
                    ("service", table.service),
                ]))
            for attr in table.attributes:
                _add_attrdef(element, attr)
        for rel in script.relationships:
            ET.SubElement(statements, "create_relationship", {
                "name": rel.name,
                "parent": rel.parent,
                "child": rel.child,
                "whereclause": rel.whereclause,
                "remarks": rel.remarks,
            })
    return serialize(root, doctype=DOCTYPE, space="  ")


def generate_resource_script(fields: Sequence[FieldDefinition], metadata: ApplicationMetadata,
                             module_name: str = "", title: str = "",
                             script_metadata: Optional[dict] = None,
                             config=None) -> DbcGenerationResult:
    """Build the DBC script. Raises GenerationValidationError on blocking problems."""
    validate_generation_inputs(fields, metadata)
    dbc_cfg = section("dbc", config)
    overrides = script_metadata or {}
    mbo = metadata.mbo_name.upper()

    tables, relationships = extract_mbo_definitions(fields, metadata, title=title, config=config)
    script = DbcScript(
        metadata=DbcScriptMetadata(
            author=overrides.get("author") or dbc_cfg["author"],
            scriptname=overrides.get("scriptname") or f"{mbo}_SETUP",
            description=overrides.get("description") or dbc_cfg["description"],
        ),
        tables=tables,
        relationships=relationships,
    )
    logger.debug("DBC script %s: %d tables, %d relationships",
                 script.metadata.scriptname, len(tables), len(relationships))
    return DbcGenerationResult(
        content=render_dbc_xml(script),
        script=script,
        suggested_filename=f"{module_name or mbo}_dbc.dbc",
    )


def main():
    parser = argparse.ArgumentParser(
        description="FormGen Resource Script: field rows -> DBC script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python -m formgen.schema.dbc_script --fields rows.yaml --mbo SR
              python -m formgen.schema.dbc_script --fields rows.csv --mbo ZZ_TRAVEL --new-object --author ops
        """),
    )
    parser.add_argument("--fields", required=True, help="Field rows (.yaml, .json, .csv)")
    parser.add_argument("--mbo", required=True, help="Primary record name")
    parser.add_argument("--new-object", action="store_true",
                        help="Primary record is new; define its table")
    parser.add_argument("--author", default="", help="Script author")
    parser.add_argument("--scriptname", default="", help="Script name (default <MBO>_SETUP)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    path = Path(args.fields)
    if not path.exists():
        print(f"[ERROR] File does not exist: {path}", file=sys.stderr)
        sys.exit(1)

    metadata = ApplicationMetadata(mbo_name=args.mbo, is_standard_object=not args.new_object)
    try:
        result = generate_resource_script(
            load_field_rows(path), metadata,
            script_metadata={"author": args.author, "scriptname": args.scriptname},
        )
    except GenerationValidationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    print(result.content)


if __name__ == "__main__":
    main()
