import json
from pathlib import Path

import pytest

from bounds_verifier.config import (
    VerifierConfig,
    load_config,
    require_tool,
    with_overrides,
)
from bounds_verifier.errors import ConfigurationError

from conftest import write_tool


def test_defaults_without_file_or_environment():
    config = load_config(environ={})

    assert config == VerifierConfig()
    assert config.cargo == "cargo"
    assert config.restore_manifest is True


def test_environment_variables_populate_config():
    environ = {
        "SET_LOWER_BOUNDS": "/opt/tools/set-lower-bounds",
        "COMPARE_FEDORA_VERSIONS": "/opt/tools/compare",
        "MANIFEST_PATH": "crate/Cargo.toml",
        "FEDORA_RELEASE": "f40",
        "CARGO": "/usr/local/bin/cargo",
    }

    config = load_config(environ=environ)

    assert config.lower_bounds_tool == Path("/opt/tools/set-lower-bounds")
    assert config.compare_versions_tool == Path("/opt/tools/compare")
    assert config.manifest_path == Path("crate/Cargo.toml")
    assert config.release == "f40"
    assert config.cargo == "/usr/local/bin/cargo"


def test_settings_file_is_overridden_by_environment(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text(
        json.dumps(
            {
                "lower_bounds_tool": "/from/file",
                "release": "f39",
                "restore_manifest": False,
            }
        ),
        encoding="utf-8",
    )

    config = load_config(settings, environ={"FEDORA_RELEASE": "f40"})

    assert config.lower_bounds_tool == Path("/from/file")
    assert config.release == "f40"
    assert config.restore_manifest is False


def test_settings_file_from_environment_variable(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"cargo": "cargo-nightly"}), encoding="utf-8")

    config = load_config(environ={"BOUNDS_VERIFIER_CONFIG": str(settings)})

    assert config.cargo == "cargo-nightly"


def test_blank_environment_value_is_ignored():
    config = load_config(environ={"SET_LOWER_BOUNDS": "   "})

    assert config.lower_bounds_tool is None


def test_missing_settings_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "missing.json", environ={})


def test_invalid_json_raises(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid JSON"):
        load_config(settings, environ={})


def test_non_object_settings_raise(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text("[]", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="JSON object"):
        load_config(settings, environ={})


def test_unknown_key_raises():
    with pytest.raises(ConfigurationError, match="Unknown configuration key"):
        VerifierConfig.from_dict({"lower_bound_tool": "/typo"})


def test_wrongly_typed_values_raise():
    with pytest.raises(ConfigurationError, match="restore_manifest"):
        VerifierConfig.from_dict({"restore_manifest": "yes"})
    with pytest.raises(ConfigurationError, match="'cargo'"):
        VerifierConfig.from_dict({"cargo": 3})


def test_with_overrides_ignores_none():
    config = VerifierConfig(release="f39")

    assert with_overrides(config, release=None) is config
    assert with_overrides(config, release="f40").release == "f40"


class TestRequireTool:
    def test_unset_value_names_variable(self):
        with pytest.raises(ConfigurationError, match="SET_LOWER_BOUNDS is not set"):
            require_tool(None, "SET_LOWER_BOUNDS")

    def test_missing_file_names_variable(self, tmp_path):
        with pytest.raises(ConfigurationError, match="SET_LOWER_BOUNDS points to a missing file"):
            require_tool(tmp_path / "nope", "SET_LOWER_BOUNDS")

    def test_directory_is_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not point to a file"):
            require_tool(tmp_path, "SET_LOWER_BOUNDS")

    def test_non_executable_file_is_rejected(self, tmp_path):
        tool = tmp_path / "tool"
        tool.write_text("#!/bin/sh\n", encoding="utf-8")
        tool.chmod(0o644)

        with pytest.raises(ConfigurationError, match="not executable"):
            require_tool(tool, "COMPARE_FEDORA_VERSIONS")

    def test_executable_file_is_resolved(self, tmp_path):
        tool = write_tool(tmp_path, "tool")

        assert require_tool(str(tool), "SET_LOWER_BOUNDS") == tool.resolve()
