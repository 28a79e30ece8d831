#!/usr/bin/env python3
"""Cross-artifact field coverage.

Compares the attribute bindings the presentation expects against the
attributes the rendered schema script actually inserts into
MAXATTRIBUTECFG. Missing attributes are warnings: generation has already
succeeded and the caller decides whether to proceed.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Iterable, List

logger = logging.getLogger("formgen.schema.coverage")

_CFG_VALUES_RE = re.compile(
    r"INSERT\s+INTO\s+MAXATTRIBUTECFG\b[^;]*?VALUES\s*\(\s*'((?:[^']|'')*)'\s*,\s*'((?:[^']|'')*)'",
    re.IGNORECASE | re.DOTALL,
)


@dataclass
class CoverageReport:
    missing_fields: List[str] = field(default_factory=list)
    schema_fields: List[str] = field(default_factory=list)
    expected_fields: List[str] = field(default_factory=list)
    is_valid: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


def _unique(values: Iterable[str]) -> List[str]:
    result = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


def extract_schema_attributes(sql: str) -> List[str]:
    """``OBJECT.ATTRIBUTE`` for every MAXATTRIBUTECFG insert in a schema script."""
    found = []
    for obj, attr in _CFG_VALUES_RE.findall(sql or ""):
        obj = obj.replace("''", "'").upper()
        found.append(f"{obj}.{attr.upper()}")
    return _unique(found)


def validate_field_coverage(expected: Iterable[str], schema_attributes: Iterable[str]) -> CoverageReport:
    """Report expected bindings with no schema definition (case-insensitive)."""
    expected = _unique(e.upper() for e in expected)
    defined = _unique(s.upper() for s in schema_attributes)
    defined_set = set(defined)
    missing = [e for e in expected if e not in defined_set]
    if missing:
        logger.warning("%d expected attribute(s) have no schema definition: %s",
                       len(missing), ", ".join(missing))
    return CoverageReport(
        missing_fields=missing,
        schema_fields=defined,
        expected_fields=expected,
        is_valid=not missing,
    )
