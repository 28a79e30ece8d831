#!/usr/bin/env python3
"""Configuration loader for FormGen.

Settings live in args/formgen_config.yaml. Every section is merged over
built-in defaults, so a partial (or missing) YAML file still yields a
complete configuration. The FORMGEN_CONFIG environment variable points the
loader at a different file.

Usage:
    from formgen.config import load_config

    cfg = load_config()
    cfg["grouping"]["main_detail_label"]
"""

import copy
import logging
import os
from pathlib import Path

import yaml

from formgen.errors import ConfigurationError

logger = logging.getLogger("formgen.config")

BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_PATH = BASE_DIR / "args" / "formgen_config.yaml"

# ---------------------------------------------------------------------------
# Built-in defaults (fallback when config not available)
# ---------------------------------------------------------------------------
BUILTIN_CONFIG = {
    "grouping": {
        "default_tab": "Main",
        "main_detail_label": "主區域",
        "default_relationship": "default",
    },
    "naming": {
        "custom_prefix": "ZZ_",
    },
    "presentation": {
        "list_tab_label": "List",
        "fields_per_column": 4,
        "detail_rows_per_page": 10,
        "list_rows_per_page": 50,
        "search_dialog_label": "更多搜尋欄位",
    },
    "legacy": {
        "skip_blocks": ["HEAD_BLOCK", "TOOL_BUTTON", "CBLK"],
        "convert_skip_blocks": ["TOOL_BUTTON", "HEAD_BLOCK"],
        "skip_relationships": ["PCS1005"],
        "system_button_labels": [
            "Save", "Query", "Record", "Scroll", "Values", "Form", "Clear",
            "Exit", "F6", "F7", "F8", "F9", "F10",
        ],
        "visible_canvases": ["CANVAS_BODY", "CANVAS_TAB"],
        "header_canvas": "CANVAS_BODY",
        "max_list_fields": 10,
    },
    "dbc": {
        "author": "FormGen",
        "description": "Generated from field definitions",
        "table_type": "system",
        "classname": "psdi.mbo.custapp.CustomMbo",
        "service": "CUSTAPP",
    },
    "layout": {
        "node_width": 240,
        "min_node_height": 80,
        "node_base_height": 60,
        "field_row_height": 20,
        "node_spacing": 50,
        "layer_spacing": 80,
        "sweeps": 4,
    },
}


def _resolve_path(config_path=None) -> Path:
    if config_path:
        return Path(config_path)
    env_path = os.environ.get("FORMGEN_CONFIG")
    if env_path:
        return Path(env_path)
    return CONFIG_PATH


def load_config(config_path=None) -> dict:
    """Load configuration, merging the YAML file over built-in defaults.

    Raises:
        ConfigurationError: the file exists but is not a YAML mapping, or a
            section is not a mapping.
    """
    path = _resolve_path(config_path)
    cfg = copy.deepcopy(BUILTIN_CONFIG)

    if not path.exists():
        logger.debug("Config file %s not found, using built-in defaults", path)
        return cfg

    with open(path, encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", config_key=str(path)) from e

    if not isinstance(loaded, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping, got {type(loaded).__name__}",
            config_key=str(path),
        )

    for section, values in loaded.items():
        if values is None:
            continue
        if section in cfg:
            if not isinstance(values, dict):
                raise ConfigurationError(
                    f"Config section '{section}' must be a mapping",
                    config_key=section,
                )
            cfg[section].update(values)
        else:
            cfg[section] = values

    return cfg


_DEFAULT_CONFIG = None


def get_config() -> dict:
    """Return the configuration from the default location (read once)."""
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None:
        _DEFAULT_CONFIG = load_config()
    return _DEFAULT_CONFIG


def section(name: str, config=None) -> dict:
    """Return one configuration section, using ``config`` when given."""
    cfg = config if config is not None else get_config()
    return cfg.get(name, BUILTIN_CONFIG.get(name, {}))
