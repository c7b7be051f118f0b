"""Blocking subprocess execution for external tools."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

from .errors import ToolInvocationError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CommandResult:
    """Exit status and captured output of one tool invocation."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostics(self) -> str:
        """Return stdout and stderr joined, dropping empty streams."""
        parts = [part.rstrip() for part in (self.stdout, self.stderr) if part.strip()]
        return "\n".join(parts)


CommandRunner: TypeAlias = Callable[..., CommandResult]


def run_command(
    argv: Sequence[str],
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> CommandResult:
    """Run ``argv`` to completion and capture its output.

    ``env`` extends the parent environment rather than replacing it. A process
    that cannot be started raises ToolInvocationError with ``returncode=None``.
    """
    argv = tuple(str(arg) for arg in argv)
    merged_env = {**os.environ, **env} if env else None

    logger.info("Running: %s", " ".join(argv))
    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            env=merged_env,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise ToolInvocationError(
            argv[0],
            f"Failed to execute {argv[0]}: {exc}",
            diagnostics=str(exc),
        ) from exc

    logger.debug("%s exited with %s", argv[0], proc.returncode)
    return CommandResult(
        argv=argv,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
