#!/usr/bin/env python3
"""FormGen HTTP API Blueprint.

JSON endpoints over the pipeline, for an editor front end or a build job:

    POST /api/formgen/generate   field rows + metadata -> all artifacts
    POST /api/formgen/fmb/parse  legacy form XML -> module, spec, field rows
    POST /api/formgen/er         legacy form XML -> ER graph (+ layout)

Blocking validation problems return 400 with an ``errors`` list. Coverage
gaps are not errors; they come back in ``coverage.missing_fields``.

Usage:
    from formgen.api import formgen_api
    app.register_blueprint(formgen_api)

    # or, standalone
    flask --app formgen.api:create_app run
"""

import logging

from flask import Blueprint, Flask, current_app, jsonify, request

from formgen.er.extractor import derive_er_diagram
from formgen.er.layout import compute_layout
from formgen.errors import FormGenError, GenerationValidationError
from formgen.legacy.fmb_parser import parse_fmb
from formgen.legacy.form_spec import extract_form_spec
from formgen.model.fields import (
    ApplicationMetadata,
    DetailTableConfig,
    DialogTemplate,
    sub_tab_configs_from_dict,
)
from formgen.pipeline import generate_artifacts, ingest_legacy_form

logger = logging.getLogger("formgen.api")

formgen_api = Blueprint("formgen_api", __name__, url_prefix="/api/formgen")


def _error(message, errors=None, status=400):
    """Return a standard JSON error response."""
    return jsonify({"error": message, "errors": errors or [message]}), status


def _config():
    return current_app.config.get("FORMGEN_CONFIG")


def _form_content(data):
    content = data.get("content") or data.get("xml") or ""
    if not isinstance(content, str) or not content.strip():
        return None
    return content


# ============================================================================
# GENERATION
# ============================================================================

@formgen_api.route("/generate", methods=["POST"])
def generate():
    """POST /api/formgen/generate -- Build presentation, schema, and resource scripts."""
    data = request.get_json(force=True, silent=True) or {}
    fields = data.get("fields")
    if not isinstance(fields, list):
        return _error("Request body must contain a 'fields' list")
    if not all(isinstance(f, dict) for f in fields):
        return _error("Each entry in 'fields' must be an object")

    try:
        metadata = ApplicationMetadata.from_dict(data.get("metadata") or {})
        bundle = generate_artifacts(
            fields, metadata,
            main_detail_labels=data.get("main_detail_labels"),
            detail_table_configs={
                key: DetailTableConfig.from_dict(value)
                for key, value in (data.get("detail_table_configs") or {}).items()
            },
            dialog_templates=[DialogTemplate.from_dict(d) for d in data.get("dialog_templates") or []],
            sub_tab_configs=(
                sub_tab_configs_from_dict(data["sub_tab_configs"])
                if data.get("sub_tab_configs") is not None else None
            ),
            module_name=data.get("module_name", ""),
            module_title=data.get("module_title", ""),
            script_metadata=data.get("script_metadata"),
            config=_config(),
        )
    except GenerationValidationError as exc:
        return _error(str(exc), errors=exc.errors)
    except (FormGenError, ValueError, TypeError) as exc:
        logger.error("generate error: %s", exc)
        return _error(str(exc))

    return jsonify(bundle.to_dict())


# ============================================================================
# LEGACY FORMS
# ============================================================================

@formgen_api.route("/fmb/parse", methods=["POST"])
def parse_form():
    """POST /api/formgen/fmb/parse -- Parse a legacy form export."""
    data = request.get_json(force=True, silent=True) or {}
    content = _form_content(data)
    if content is None:
        return _error("Request body must contain the form XML in 'content'")

    result = ingest_legacy_form(content, bool(data.get("show_external_refs")), config=_config())
    return jsonify({
        "module": result.module.to_dict(include_attributes=bool(data.get("include_attributes"))),
        "form_spec": result.form_spec.to_dict(),
        "fields": [f.to_dict() for f in result.fields],
        "markdown_spec": result.markdown_spec,
        "mermaid": result.mermaid,
    })


@formgen_api.route("/er", methods=["POST"])
def er_diagram():
    """POST /api/formgen/er -- Entity graph of a legacy form, with node positions."""
    data = request.get_json(force=True, silent=True) or {}
    content = _form_content(data)
    if content is None:
        return _error("Request body must contain the form XML in 'content'")

    config = _config()
    spec = extract_form_spec(parse_fmb(content, config), config)
    diagram = derive_er_diagram(spec, show_external_refs=bool(data.get("show_external_refs")))
    body = {"diagram": diagram.to_dict()}
    if data.get("layout", True):
        body["layout"] = compute_layout(diagram, config=config).to_dict()
    return jsonify(body)


def create_app(config=None) -> Flask:
    """Minimal application hosting the blueprint."""
    app = Flask(__name__)
    app.config["FORMGEN_CONFIG"] = config
    app.register_blueprint(formgen_api)
    return app
