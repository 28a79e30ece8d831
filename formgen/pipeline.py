#!/usr/bin/env python3
"""End-to-end generation pipeline.

Two entry points share the field model:

  generate_artifacts   field rows -> presentation XML, schema SQL, DBC
                       resource script, and a coverage report
  ingest_legacy_form   Oracle Forms XML -> parsed module, form spec,
                       field rows, Markdown spec, ER diagram, Mermaid

Input validation runs once, before anything is built; a blocking problem
raises GenerationValidationError and no artifact is produced. Attribute
names missing from the rows are then derived once, so every artifact binds
the same name. Coverage is read back from the rendered SQL and never
raises: gaps land in ``ArtifactBundle.coverage``.

Usage:
    from formgen.pipeline import generate_artifacts
    bundle = generate_artifacts(fields, ApplicationMetadata(id="ZZTRAVEL", mbo_name="ZZ_TRAVEL"))
    Path("ZZTRAVEL.xml").write_text(bundle.presentation, encoding="utf-8")
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from formgen.er.extractor import derive_er_diagram
from formgen.er.mermaid import render_mermaid
from formgen.grouping.field_processor import group_fields, resolve_field_names
from formgen.ids import IdGenerator, ensure_generator
from formgen.legacy.converter import convert_fmb_to_fields
from formgen.legacy.fmb_parser import parse_fmb
from formgen.legacy.form_spec import FormSpec, extract_form_spec, render_markdown_spec
from formgen.model.er import ErDiagramData
from formgen.model.fields import (
    ApplicationDefinition,
    ApplicationMetadata,
    DetailTableConfig,
    DialogTemplate,
    FieldDefinition,
    SubTabConfig,
    fields_from_dicts,
)
from formgen.model.fmb import FmbModule
from formgen.presentation.assembler import generate_application
from formgen.presentation.bindings import collect_expected_attributes
from formgen.schema.coverage import CoverageReport, extract_schema_attributes, validate_field_coverage
from formgen.schema.dbc_script import DbcGenerationResult, generate_resource_script
from formgen.schema.sql_script import SchemaScript, generate_schema_script
from formgen.schema.validation import validate_generation_inputs

logger = logging.getLogger("formgen.pipeline")


@dataclass
class ArtifactBundle:
    presentation: str
    schema_script: SchemaScript
    resource_script: DbcGenerationResult
    coverage: CoverageReport
    application: ApplicationDefinition

    def to_dict(self) -> dict:
        return {
            "presentation": self.presentation,
            "schema_script": self.schema_script.content,
            "resource_script": self.resource_script.content,
            "resource_filename": self.resource_script.suggested_filename,
            "coverage": self.coverage.to_dict(),
            "application": self.application.to_dict(),
        }


@dataclass
class LegacyIngestResult:
    module: FmbModule
    form_spec: FormSpec
    fields: List[FieldDefinition]
    markdown_spec: str
    er_diagram: ErDiagramData
    mermaid: str


def generate_artifacts(fields: Iterable, metadata: ApplicationMetadata, *,
                       main_detail_labels: Optional[Mapping[str, str]] = None,
                       detail_table_configs: Optional[Mapping[str, DetailTableConfig]] = None,
                       dialog_templates: Optional[Iterable[DialogTemplate]] = None,
                       sub_tab_configs: Optional[Mapping[str, List[SubTabConfig]]] = None,
                       module_name: str = "",
                       module_title: str = "",
                       script_metadata: Optional[dict] = None,
                       id_generator: Optional[IdGenerator] = None,
                       config=None) -> ArtifactBundle:
    """Produce every artifact for one application.

    Args:
        fields: FieldDefinition objects or plain mappings.
        metadata: Application settings; ``mbo_name`` is the primary record.
        main_detail_labels: Tab name -> label of its primary detail sub-tab.
        detail_table_configs: ``"<tab label>:<relationship>"`` -> table overrides.
        dialog_templates: Dialogs appended after the search dialog.
        sub_tab_configs: Tab name -> allowed sub-tabs; unknown ones are cleared.
        module_name: Base of the suggested resource-script file name.
        module_title: Description of the primary record's table.
        script_metadata: author/scriptname/description overrides.

    Returns:
        ArtifactBundle with the rendered documents and the coverage report.

    Raises:
        GenerationValidationError: the inputs cannot produce valid artifacts.
    """
    rows = fields_from_dicts(fields)
    validate_generation_inputs(rows, metadata)
    rows = resolve_field_names(rows, metadata, config)
    idg = ensure_generator(id_generator)

    app = group_fields(
        rows,
        main_detail_labels=main_detail_labels,
        sub_tab_configs=sub_tab_configs,
        metadata=metadata,
        id_generator=idg,
        config=config,
    )
    presentation = generate_application(
        app, metadata,
        detail_table_configs=detail_table_configs,
        dialog_templates=dialog_templates,
        id_generator=idg,
        config=config,
    )
    schema = generate_schema_script(rows, metadata, config=config)
    resource = generate_resource_script(
        rows, metadata,
        module_name=module_name,
        title=module_title,
        script_metadata=script_metadata,
        config=config,
    )
    coverage = validate_field_coverage(
        collect_expected_attributes(app, metadata, config),
        extract_schema_attributes(schema.content),
    )

    logger.info("Generated artifacts for %s: %d fields, %d schema statements, coverage %s",
                metadata.id or metadata.mbo_name, len(rows), len(schema.statements),
                "ok" if coverage.is_valid else f"{len(coverage.missing_fields)} missing")
    return ArtifactBundle(
        presentation=presentation,
        schema_script=schema,
        resource_script=resource,
        coverage=coverage,
        application=app,
    )


def ingest_legacy_form(text: str, show_external_refs: bool = False, config=None) -> LegacyIngestResult:
    """Parse a legacy form export and derive everything downstream of it."""
    module = parse_fmb(text, config)
    spec = extract_form_spec(module, config)
    conversion = convert_fmb_to_fields(module, config)
    diagram = derive_er_diagram(spec, show_external_refs=show_external_refs)
    mermaid = render_mermaid(diagram)
    logger.info("Ingested %s: %d blocks, %d fields, %d entities",
                module.name, len(module.blocks), len(conversion.fields), len(diagram.entities))
    return LegacyIngestResult(
        module=module,
        form_spec=spec,
        fields=conversion.fields,
        markdown_spec=render_markdown_spec(spec, mermaid),
        er_diagram=diagram,
        mermaid=mermaid,
    )
