#!/usr/bin/env python3
"""Schema-migration script: MAXATTRIBUTECFG inserts for custom attributes.

The script only stages attribute metadata; the target system's database
configuration step creates the physical columns. One INSERT is emitted per
custom field whose target object is known:

  target object = field.object_name, else the primary record
  relationship set but no object_name -> skipped (reported by coverage)
  persistent = false                  -> metadata-only row (PERSISTENT 0)

Attribute numbers start at 1000 and increase by one per statement.

Usage:
    python -m formgen.schema.sql_script --fields rows.yaml --mbo SR
"""

import argparse
import logging
import sys
import textwrap
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from formgen.errors import GenerationValidationError
from formgen.model.fields import ApplicationMetadata, FieldDefinition, MaxType, coerce_int, value_of
from formgen.model.sa_rows import load_field_rows
from formgen.schema.validation import escape_sql, is_custom_field, validate_generation_inputs

logger = logging.getLogger("formgen.schema.sql_script")

FIRST_ATTRIBUTE_NO = 1000
BANNER = "-- " + "=" * 45

CFG_COLUMNS = (
    "OBJECTNAME", "ATTRIBUTENAME", "ATTRIBUTENO", "ALIAS", "MAXTYPE", "LENGTH",
    "SCALE", "TITLE", "REMARKS", "REQUIRED", "PERSISTENT", "USERDEFINED",
    "DEFAULTVALUE", "CHANGED",
)

_DEFAULT_LENGTHS = {
    "ALN": 100, "UPPER": 100, "LOWER": 100,
    "LONGALN": 4000,
    "INTEGER": 10, "SMALLINT": 5,
    "DECIMAL": 10, "FLOAT": 10,
    "YORN": 1,
    "GL": 20,
}


def default_length(max_type) -> int:
    return _DEFAULT_LENGTHS.get(value_of(max_type), 0)


def oracle_data_type(max_type, length=0, scale=0) -> str:
    """Column type the database configuration step creates for ``max_type``."""
    kind = value_of(max_type)
    length = coerce_int(length)
    scale = coerce_int(scale)
    if kind in ("ALN", "UPPER", "LOWER", "LONGALN"):
        return f"VARCHAR2({length or 100})"
    if kind == "INTEGER":
        return "NUMBER(10)"
    if kind == "SMALLINT":
        return "NUMBER(5)"
    if kind in ("DECIMAL", "FLOAT"):
        if scale > 0:
            return f"NUMBER({length or 10},{scale})"
        return f"NUMBER({length or 10})"
    if kind in ("DATE", "TIME"):
        return "DATE"
    if kind == "DATETIME":
        return "TIMESTAMP"
    if kind == "YORN":
        return "NUMBER(1)"
    if kind == "CLOB":
        return "CLOB"
    if kind == "GL":
        return f"VARCHAR2({length or 20})"
    return f"VARCHAR2({length or 100})"


@dataclass
class SchemaStatement:
    object_name: str
    attribute_name: str
    attribute_no: int
    sql: str
    persistent: bool = True

    @property
    def binding(self) -> str:
        return f"{self.object_name}.{self.attribute_name}"


@dataclass
class SchemaScript:
    content: str
    statements: List[SchemaStatement] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def target_object(definition: FieldDefinition, mbo_name: str) -> str:
    """Object that owns the attribute, or "" when it cannot be determined."""
    if definition.object_name:
        return definition.object_name.upper()
    if definition.relationship:
        return ""
    return (mbo_name or "").upper()


def insert_statement(definition: FieldDefinition, object_name: str, attribute_no: int) -> str:
    attribute = definition.field_name.upper()
    max_type = value_of(definition.max_type) or MaxType.ALN.value
    length = coerce_int(definition.length) or default_length(max_type)
    default = f"'{escape_sql(definition.default_value)}'" if definition.default_value else "NULL"
    values = [
        f"'{escape_sql(object_name)}'",
        f"'{escape_sql(attribute)}'",
        str(attribute_no),
        f"'{escape_sql(attribute)}'",
        f"'{max_type}'",
        str(length),
        str(coerce_int(definition.scale)),
        f"'{escape_sql(definition.title or definition.label)}'",
        f"'{escape_sql(definition.label)}'",
        "1" if definition.db_required else "0",
        "1" if definition.persistent else "0",
        "1",
        default,
        "'I'",
    ]
    return (
        f"INSERT INTO MAXATTRIBUTECFG ({', '.join(CFG_COLUMNS)})\n"
        f"VALUES ({', '.join(values)});"
    )


def build_schema_statements(fields: Sequence[FieldDefinition], metadata: ApplicationMetadata,
                            config=None):
    """Return (statements, skipped field names) for the custom fields."""
    statements: List[SchemaStatement] = []
    skipped: List[str] = []
    seen = set()
    attribute_no = FIRST_ATTRIBUTE_NO
    for definition in fields:
        if not is_custom_field(definition, metadata, config):
            continue
        object_name = target_object(definition, metadata.mbo_name)
        if not object_name:
            skipped.append(definition.field_name)
            continue
        key = (object_name, definition.field_name.upper())
        if key in seen:
            continue
        seen.add(key)
        statements.append(SchemaStatement(
            object_name=object_name,
            attribute_name=definition.field_name.upper(),
            attribute_no=attribute_no,
            sql=insert_statement(definition, object_name, attribute_no),
            persistent=definition.persistent,
        ))
        attribute_no += 1
    return statements, skipped


def render_schema_script(statements: Sequence[SchemaStatement], mbo_name: str,
                         generated_at: Optional[str] = None) -> str:
    generated_at = generated_at or datetime.now(timezone.utc).isoformat()
    lines = [
        BANNER,
        "-- Maximo Database Configuration SQL",
        f"-- Generated for MBO: {mbo_name}",
        f"-- Generated at: {generated_at}",
        BANNER,
        "--",
        "-- Instructions:",
        "-- 1. Execute this SQL to insert field definitions into MAXATTRIBUTECFG",
        '-- 2. Login to Maximo and run "Database Configuration" application',
        '-- 3. Click "Apply Configuration Changes" to create actual database columns',
        BANNER,
        "",
    ]
    if statements:
        lines += [
            BANNER,
            "-- MAXATTRIBUTECFG INSERT statements",
            "-- Add custom fields to configuration table",
            BANNER,
            "",
        ]
        for statement in statements:
            if not statement.persistent:
                lines.append(f"-- metadata only: {statement.binding} has no storage column")
            lines.append(statement.sql)
            lines.append("")

    lines += [
        BANNER,
        "-- COMMIT",
        BANNER,
        "COMMIT;",
        "",
        BANNER,
        "-- Next: Run Maximo Database Configuration",
        "-- System Administration > Configuration > Database Configuration",
        '-- Select object and click "Apply Configuration Changes"',
        BANNER,
    ]
    return "\n".join(lines) + "\n"


def generate_schema_script(fields: Sequence[FieldDefinition], metadata: ApplicationMetadata,
                           generated_at: Optional[str] = None, config=None) -> SchemaScript:
    """Build the migration script. Raises GenerationValidationError on blocking problems."""
    validate_generation_inputs(fields, metadata)
    statements, skipped = build_schema_statements(fields, metadata, config)
    if skipped:
        logger.info("Skipped %d related-record fields with no object name: %s",
                    len(skipped), ", ".join(skipped))
    logger.debug("Schema script for %s: %d statements", metadata.mbo_name, len(statements))
    return SchemaScript(
        content=render_schema_script(statements, metadata.mbo_name, generated_at),
        statements=statements,
        skipped=skipped,
    )


def main():
    parser = argparse.ArgumentParser(
        description="FormGen Schema Script: field rows -> MAXATTRIBUTECFG SQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python -m formgen.schema.sql_script --fields rows.yaml --mbo SR
              python -m formgen.schema.sql_script --fields rows.csv --mbo ZZ_TRAVEL --new-object
        """),
    )
    parser.add_argument("--fields", required=True, help="Field rows (.yaml, .json, .csv)")
    parser.add_argument("--mbo", required=True, help="Primary record name")
    parser.add_argument("--new-object", action="store_true",
                        help="Primary record is new; every attribute is custom")
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
        script = generate_schema_script(load_field_rows(path), metadata)
    except GenerationValidationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    print(script.content)


if __name__ == "__main__":
    main()
