#!/usr/bin/env python3
"""Tests for formgen.config and formgen.errors.

Verifies YAML-over-defaults merging, the FORMGEN_CONFIG override, rejection
of malformed documents, and the exception hierarchy's attributes.

Run: pytest tests/test_config_and_errors.py -v
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from formgen.config import BUILTIN_CONFIG, CONFIG_PATH, load_config, section
from formgen.errors import (
    ConfigurationError,
    FormGenError,
    GenerationValidationError,
    LayoutError,
)


class TestLoadConfig:
    """load_config merges the YAML file over built-in defaults."""

    def test_missing_file_returns_defaults(self, tmp_path):
        """A path that does not exist yields the built-in configuration."""
        cfg = load_config(tmp_path / "absent.yaml")
        assert cfg == BUILTIN_CONFIG
        assert cfg is not BUILTIN_CONFIG

    def test_partial_section_keeps_other_defaults(self, tmp_path):
        """Only the keys present in the file are replaced."""
        path = tmp_path / "cfg.yaml"
        path.write_text("layout:\n  node_spacing: 10\n", encoding="utf-8")
        cfg = load_config(path)
        assert cfg["layout"]["node_spacing"] == 10
        assert cfg["layout"]["layer_spacing"] == 80
        assert cfg["naming"]["custom_prefix"] == "ZZ_"

    def test_env_variable_overrides_path(self, tmp_path, monkeypatch):
        """FORMGEN_CONFIG points the loader at another file."""
        path = tmp_path / "env.yaml"
        path.write_text("naming:\n  custom_prefix: XX_\n", encoding="utf-8")
        monkeypatch.setenv("FORMGEN_CONFIG", str(path))
        assert load_config()["naming"]["custom_prefix"] == "XX_"

    def test_non_mapping_document_raises(self, tmp_path):
        """A YAML list at the top level is a configuration error."""
        path = tmp_path / "bad.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_non_mapping_section_raises(self, tmp_path):
        """A known section must be a mapping."""
        path = tmp_path / "bad_section.yaml"
        path.write_text("layout: 5\n", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)
        assert exc_info.value.config_key == "layout"

    def test_shipped_config_matches_defaults(self):
        """args/formgen_config.yaml loads and carries every built-in section."""
        cfg = load_config(CONFIG_PATH)
        for name in BUILTIN_CONFIG:
            assert name in cfg
        assert cfg["legacy"]["header_canvas"] == "CANVAS_BODY"

    def test_section_uses_given_config(self, builtin_config):
        """section() reads from an explicit configuration when passed one."""
        builtin_config["grouping"]["default_tab"] = "General"
        assert section("grouping", builtin_config)["default_tab"] == "General"


class TestErrors:
    """Exception hierarchy."""

    def test_validation_error_collects_messages(self):
        err = GenerationValidationError(["first", "second"], component="schema")
        assert err.errors == ["first", "second"]
        assert str(err) == "first; second"
        assert err.component == "schema"
        assert isinstance(err, FormGenError)

    def test_validation_error_default_message(self):
        assert str(GenerationValidationError([])) == "Generation inputs are invalid"

    def test_layout_error_node_ids(self):
        err = LayoutError("stuck", node_ids=("a", "b"))
        assert err.node_ids == ["a", "b"]
        assert err.component == "layout"

    def test_configuration_error_component(self):
        assert ConfigurationError("bad", config_key="dbc").component == "config"
