#!/usr/bin/env python3
"""FormGen command line.

Subcommands:
    extract-spec   legacy form XML -> functional specification
    convert        legacy form XML -> field rows (YAML or JSON)
    generate       field rows + metadata -> presentation XML, schema SQL, DBC
    er             legacy form XML -> Mermaid ER diagram (optionally positioned)

Every subcommand accepts --json (machine-readable stdout) and --output-dir
(write the artifacts to files instead of printing them).

Usage:
    formgen extract-spec PCS1001_fmb.xml --format markdown --output-dir docs/
    formgen convert PCS1001_fmb.xml > rows.yaml
    formgen generate --fields rows.yaml --metadata meta.yaml --output-dir out/
    formgen er PCS1001_fmb.xml --show-external --layout --json
"""

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path

import yaml

from formgen.config import load_config
from formgen.er.layout import compute_layout
from formgen.errors import ConfigurationError, GenerationValidationError
from formgen.legacy.form_spec import render_json_spec
from formgen.model.fields import (
    ApplicationMetadata,
    DetailTableConfig,
    DialogTemplate,
    sub_tab_configs_from_dict,
)
from formgen.model.sa_rows import load_field_rows
from formgen.pipeline import generate_artifacts, ingest_legacy_form

logger = logging.getLogger("formgen.cli")


def _fail(message: str):
    print(f"[ERROR] {message}", file=sys.stderr)
    sys.exit(1)


def _read_form(path_text: str) -> str:
    path = Path(path_text)
    if not path.exists():
        _fail(f"File does not exist: {path}")
    return path.read_text(encoding="utf-8", errors="replace")


def _write(output_dir, name: str, content: str) -> Path:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / name
    target.write_text(content, encoding="utf-8")
    logger.info("Wrote %s", target)
    return target


def load_generation_settings(path) -> dict:
    """Read a metadata file.

    The document holds the application metadata either at the top level or
    under ``metadata``, plus any of: main_detail_labels,
    detail_table_configs, dialog_templates, sub_tab_configs, module_name,
    module_title, script_metadata.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping", config_key="metadata")

    extras = ("main_detail_labels", "detail_table_configs", "dialog_templates",
              "sub_tab_configs", "module_name", "module_title", "script_metadata")
    meta = data.get("metadata")
    if meta is None:
        meta = {k: v for k, v in data.items() if k not in extras}

    return {
        "metadata": ApplicationMetadata.from_dict(meta),
        "main_detail_labels": data.get("main_detail_labels"),
        "detail_table_configs": {
            key: DetailTableConfig.from_dict(value)
            for key, value in (data.get("detail_table_configs") or {}).items()
        },
        "dialog_templates": [DialogTemplate.from_dict(d) for d in data.get("dialog_templates") or []],
        "sub_tab_configs": (
            sub_tab_configs_from_dict(data["sub_tab_configs"])
            if data.get("sub_tab_configs") is not None else None
        ),
        "module_name": data.get("module_name", ""),
        "module_title": data.get("module_title", ""),
        "script_metadata": data.get("script_metadata"),
    }


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def cmd_extract_spec(args, config):
    result = ingest_legacy_form(_read_form(args.file), config=config)
    spec = result.form_spec
    fmt = "json" if args.json_output else args.format

    if fmt == "markdown":
        content, suffix = result.markdown_spec, ".md"
    elif fmt == "json":
        content, suffix = render_json_spec(spec), ".json"
    else:
        content, suffix = None, ""

    if args.output_dir and content is not None:
        _write(args.output_dir, f"{spec.form_name or 'form'}_spec{suffix}", content)
        return
    if content is not None:
        print(content)
        return

    print(f"Form: {spec.form_name}  {spec.form_title}")
    for block in spec.blocks:
        print(f"  Block {block.name:<24} table={block.base_table or '-':<20} fields={len(block.fields)}")
    print(f"  LOVs: {len(spec.lovs)}  Record groups: {len(spec.record_groups)}  Buttons: {len(spec.buttons)}"
          f"  Triggers: {spec.triggers.total_count}")


def cmd_convert(args, config):
    result = ingest_legacy_form(_read_form(args.file), config=config)
    rows = [f.to_dict() for f in result.fields]
    if args.json_output:
        content, suffix = json.dumps(rows, indent=2, ensure_ascii=False), ".json"
    else:
        content = yaml.safe_dump({"fields": rows}, allow_unicode=True, sort_keys=False)
        suffix = ".yaml"

    if args.output_dir:
        _write(args.output_dir, f"{result.module.name or 'form'}_fields{suffix}", content)
    else:
        print(content)


def cmd_generate(args, config):
    fields_path = Path(args.fields)
    if not fields_path.exists():
        _fail(f"File does not exist: {fields_path}")

    if args.metadata:
        settings = load_generation_settings(args.metadata)
    else:
        settings = {"metadata": ApplicationMetadata()}
    metadata = settings["metadata"]
    if args.mbo:
        metadata.mbo_name = args.mbo
    if args.app_id:
        metadata.id = args.app_id

    try:
        bundle = generate_artifacts(load_field_rows(fields_path), config=config, **settings)
    except GenerationValidationError as e:
        for problem in e.errors:
            print(f"[ERROR] {problem}", file=sys.stderr)
        sys.exit(1)

    if args.output_dir:
        base = metadata.id or metadata.mbo_name
        _write(args.output_dir, f"{base}.xml", bundle.presentation)
        _write(args.output_dir, f"{metadata.mbo_name}_attributecfg.sql", bundle.schema_script.content)
        _write(args.output_dir, bundle.resource_script.suggested_filename, bundle.resource_script.content)

    if args.json_output:
        print(json.dumps(bundle.to_dict(), indent=2, ensure_ascii=False))
        return
    if not args.output_dir:
        print(bundle.presentation)

    coverage = bundle.coverage
    print(f"Coverage: {len(coverage.expected_fields)} expected, "
          f"{len(coverage.missing_fields)} missing", file=sys.stderr)
    for missing in coverage.missing_fields:
        print(f"  [WARN] no schema definition for {missing}", file=sys.stderr)


def cmd_er(args, config):
    result = ingest_legacy_form(_read_form(args.file), show_external_refs=args.show_external, config=config)
    diagram = result.er_diagram
    layout = compute_layout(diagram, config=config) if args.layout else None

    if args.json_output:
        body = {"diagram": diagram.to_dict()}
        if layout is not None:
            body["layout"] = layout.to_dict()
        content, suffix = json.dumps(body, indent=2, ensure_ascii=False), ".json"
    else:
        content, suffix = result.mermaid, ".mmd"

    if args.output_dir:
        _write(args.output_dir, f"{diagram.form_name or 'form'}_er{suffix}", content)
        return
    print(content)
    if layout is not None and not args.json_output:
        for node in layout.nodes:
            print(f"%% {node.id}: ({node.x:.0f}, {node.y:.0f}) {node.width:.0f}x{node.height:.0f}")


COMMANDS = {
    "extract-spec": cmd_extract_spec,
    "convert": cmd_convert,
    "generate": cmd_generate,
    "er": cmd_er,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formgen",
        description="FormGen: field rows and legacy forms -> application artifacts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              formgen extract-spec PCS1001_fmb.xml --format markdown
              formgen convert PCS1001_fmb.xml --output-dir rows/
              formgen generate --fields rows.yaml --metadata meta.yaml --output-dir out/
              formgen er PCS1001_fmb.xml --show-external --layout --json
        """),
    )
    parser.add_argument("--config", help="Configuration YAML (default args/formgen_config.yaml)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", help="FormGen command")

    def common(p):
        p.add_argument("--json", action="store_true", dest="json_output", help="JSON output")
        p.add_argument("--output-dir", help="Write artifacts to this directory")

    p_spec = sub.add_parser("extract-spec", help="Functional specification of a legacy form")
    p_spec.add_argument("file", help="Oracle Forms XML export")
    p_spec.add_argument("--format", choices=["markdown", "json", "console"], default="markdown",
                        help="Output format")
    common(p_spec)

    p_convert = sub.add_parser("convert", help="Legacy form -> field rows")
    p_convert.add_argument("file", help="Oracle Forms XML export")
    common(p_convert)

    p_generate = sub.add_parser("generate", help="Field rows -> presentation, schema, resource scripts")
    p_generate.add_argument("--fields", required=True, help="Field rows (.yaml, .json, .csv)")
    p_generate.add_argument("--metadata", help="Application metadata YAML")
    p_generate.add_argument("--mbo", help="Primary record name (overrides metadata)")
    p_generate.add_argument("--app-id", help="Application id (overrides metadata)")
    common(p_generate)

    p_er = sub.add_parser("er", help="Entity-relationship diagram of a legacy form")
    p_er.add_argument("file", help="Oracle Forms XML export")
    p_er.add_argument("--show-external", action="store_true", help="Include lookup tables")
    p_er.add_argument("--layout", action="store_true", help="Compute node positions")
    common(p_er)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config(args.config)
        COMMANDS[args.command](args, config)
    except ConfigurationError as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
