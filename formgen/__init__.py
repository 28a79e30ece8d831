#!/usr/bin/env python3
"""FormGen: field-definition pipeline for Maximo-style application artifacts.

Turns a flat list of field rows (hand-authored, or extracted from a legacy
Oracle Forms XML export) into a presentation document, a MAXATTRIBUTECFG
schema script, a DBC resource script, a Markdown functional specification,
and an entity-relationship diagram.

Subpackages:
  model         Canonical dataclasses and enumerations
  legacy        Attribute-soup FMB parser, form spec extraction, converter
  grouping      Field grouping engine and ordering helpers
  presentation  Presentation XML generator
  schema        Schema/resource script generators and coverage check
  er            ER derivation, layered layout, Mermaid export
"""

__version__ = "1.0.0"
