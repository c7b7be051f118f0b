"""Configuration loader for the verifier.

Settings come from an optional JSON file (explicit path, else the
``BOUNDS_VERIFIER_CONFIG`` environment variable) and are then overridden by the
environment variables the CI build scripts already export:

- ``SET_LOWER_BOUNDS``: path to the lower-bound setter
- ``COMPARE_FEDORA_VERSIONS``: path to the distro version comparator
- ``MANIFEST_PATH``: manifest passed through to every tool
- ``FEDORA_RELEASE``: release identifier for the comparator
- ``CARGO``: build command (defaults to ``cargo`` on ``PATH``)

The resulting :class:`VerifierConfig` is handed to the orchestrator explicitly;
nothing downstream reads the environment.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV_VAR = "BOUNDS_VERIFIER_CONFIG"

LOWER_BOUNDS_TOOL_VAR = "SET_LOWER_BOUNDS"
COMPARE_VERSIONS_TOOL_VAR = "COMPARE_FEDORA_VERSIONS"
MANIFEST_PATH_VAR = "MANIFEST_PATH"
RELEASE_VAR = "FEDORA_RELEASE"
CARGO_VAR = "CARGO"

# settings.json key -> environment variable overriding it
_ENV_OVERRIDES = {
    "lower_bounds_tool": LOWER_BOUNDS_TOOL_VAR,
    "compare_versions_tool": COMPARE_VERSIONS_TOOL_VAR,
    "manifest_path": MANIFEST_PATH_VAR,
    "release": RELEASE_VAR,
    "cargo": CARGO_VAR,
}
_PATH_KEYS = {"lower_bounds_tool", "compare_versions_tool", "manifest_path"}
_KNOWN_KEYS = set(_ENV_OVERRIDES) | {"restore_manifest"}


@dataclass(slots=True, frozen=True)
class VerifierConfig:
    """Explicit configuration for one verification run."""

    lower_bounds_tool: Path | None = None
    compare_versions_tool: Path | None = None
    manifest_path: Path | None = None
    release: str | None = None
    cargo: str = "cargo"
    restore_manifest: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VerifierConfig:
        """Create a VerifierConfig from a mapping, validating every field."""
        unknown = sorted(set(data) - _KNOWN_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown configuration key(s): {', '.join(unknown)}")

        values: dict[str, Any] = {}
        for key, raw in data.items():
            if key == "restore_manifest":
                if not isinstance(raw, bool):
                    raise ConfigurationError("'restore_manifest' must be a boolean")
                values[key] = raw
                continue
            if raw is None:
                continue
            if not isinstance(raw, str) or not raw.strip():
                raise ConfigurationError(f"'{key}' must be a non-empty string")
            values[key] = Path(raw) if key in _PATH_KEYS else raw

        return cls(**values)


def _resolve_config_path(
    path: Path | str | None, environ: Mapping[str, str]
) -> Path | None:
    """Resolve the settings file path.

    Priority:
    1. Explicit path argument
    2. BOUNDS_VERIFIER_CONFIG environment variable
    3. No settings file
    """
    if path is not None:
        return Path(path)

    env_path = environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def _read_settings(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object")

    return data


def load_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> VerifierConfig:
    """Load settings from file and environment.

    Args:
        path: Optional settings file. If not provided, uses the
            BOUNDS_VERIFIER_CONFIG env var, or no file at all.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        ConfigurationError: If the file cannot be read or contains invalid data.
    """
    environ = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    config_path = _resolve_config_path(path, environ)
    if config_path is not None:
        logger.debug("Loading settings from %s", config_path)
        data = _read_settings(config_path)

    for key, variable in _ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value is not None and value.strip():
            data[key] = value.strip()

    return VerifierConfig.from_dict(data)


def with_overrides(config: VerifierConfig, **changes: Any) -> VerifierConfig:
    """Return a copy of ``config`` with the non-None ``changes`` applied."""
    applied = {key: value for key, value in changes.items() if value is not None}
    return replace(config, **applied) if applied else config


def require_tool(value: Path | str | None, variable: str) -> Path:
    """Validate that a configured tool path is set and executable.

    Returns the resolved path. Raises ConfigurationError naming ``variable``
    otherwise; performs no other side effect.
    """
    if value is None or not str(value).strip():
        raise ConfigurationError(f"{variable} is not set; it must name the tool to run")

    tool = Path(value)
    if not tool.exists():
        raise ConfigurationError(f"{variable} points to a missing file: {tool}")
    if not tool.is_file():
        raise ConfigurationError(f"{variable} does not point to a file: {tool}")
    if not os.access(tool, os.X_OK):
        raise ConfigurationError(f"{variable} points to a file that is not executable: {tool}")

    return tool.resolve()
