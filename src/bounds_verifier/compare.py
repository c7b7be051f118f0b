"""Invoke the external distro version comparator.

Independent of the lower-bound verification: validate the comparator path,
run it once, and surface its exit status unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .build import manifest_args
from .config import COMPARE_VERSIONS_TOOL_VAR, VerifierConfig, require_tool
from .process import CommandResult, CommandRunner, run_command

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ComparisonResult:
    """Exit status of the comparator; zero means versions match the distro."""

    tool: Path
    command: CommandResult

    @property
    def returncode(self) -> int:
        return self.command.returncode

    @property
    def matches(self) -> bool:
        return self.command.ok


def comparator_args(manifest_path: Path | None, release: str | None) -> list[str]:
    args = manifest_args(manifest_path)
    if release:
        args.append(f"--release={release}")
    return args


def compare_distro_versions(
    config: VerifierConfig,
    manifest_path: Path | None = None,
    release: str | None = None,
    runner: CommandRunner = run_command,
) -> ComparisonResult:
    """Compare declared versions against a distribution release.

    Raises:
        ConfigurationError: If COMPARE_FEDORA_VERSIONS is unset or invalid.
        ToolInvocationError: If the comparator cannot be started.
    """
    tool = require_tool(config.compare_versions_tool, COMPARE_VERSIONS_TOOL_VAR)
    manifest_path = manifest_path if manifest_path is not None else config.manifest_path
    release = release or config.release

    command = runner([str(tool), *comparator_args(manifest_path, release)])
    if command.ok:
        logger.info("Declared versions match the distribution reference")
    else:
        logger.warning("Version comparator exited with status %s", command.returncode)
    return ComparisonResult(tool=tool, command=command)
