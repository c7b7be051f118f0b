"""Invoke the external lower-bound setter."""

from __future__ import annotations

import logging
from pathlib import Path

from .build import manifest_args
from .errors import ToolInvocationError
from .process import CommandResult, CommandRunner, run_command

logger = logging.getLogger(__name__)


def rewrite_lower_bounds(
    tool: Path,
    manifest_path: Path | None = None,
    runner: CommandRunner = run_command,
) -> CommandResult:
    """Pin every dependency in the manifest to its declared minimum.

    The setter mutates the manifest in place. Its exit status is authoritative;
    how it lowers versions is not inspected.
    """
    result = runner([str(tool), *manifest_args(manifest_path)])
    if not result.ok:
        raise ToolInvocationError(
            tool.name,
            f"Lower-bound setter {tool} exited with status {result.returncode}",
            returncode=result.returncode,
            diagnostics=result.diagnostics,
        )

    logger.info("Lower-bound setter %s rewrote the manifest", tool.name)
    return result
