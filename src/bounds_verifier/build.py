"""Strict cargo builds with lints promoted to errors."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import BuildFailure
from .flags import DENY, StrictFlags
from .process import CommandResult, CommandRunner, run_command

logger = logging.getLogger(__name__)


def manifest_args(manifest_path: Path | None) -> list[str]:
    """Return the ``--manifest-path`` argument, or nothing for cargo's default."""
    if manifest_path is None:
        return []
    return [f"--manifest-path={manifest_path}"]


class StrictBuildRunner:
    """Build the current manifest state with a fixed strict flag set.

    The flag set is bound at construction so repeated builds within one
    verification run are comparable.
    """

    def __init__(
        self,
        cargo: str = "cargo",
        flags: StrictFlags = DENY,
        runner: CommandRunner = run_command,
    ) -> None:
        self._cargo = cargo
        self._flags = flags
        self._runner = runner

    @property
    def flags(self) -> StrictFlags:
        return self._flags

    def build(self, manifest_path: Path | None = None, *, phase: str = "build") -> CommandResult:
        """Run ``cargo build`` and raise BuildFailure on a non-zero exit."""
        argv = [self._cargo, "build", *manifest_args(manifest_path)]
        env = {"RUSTFLAGS": self._flags.as_rustflags()}

        result = self._runner(argv, env=env)
        if not result.ok:
            logger.error("Strict build failed during %s (exit code %s)", phase, result.returncode)
            raise BuildFailure(phase, result.returncode, result.diagnostics)

        logger.info("Strict build succeeded during %s", phase)
        return result
