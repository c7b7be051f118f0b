"""Lower-bound verification entrypoints.

A run moves through a fixed sequence of states and stops at the first failure:

    idle -> validating-config -> baseline-build -> rewriting-bounds
         -> verification-build -> passed

Any error moves the run to ``failed`` with the state it failed in recorded.
A baseline failure means the project is already broken; a verification-build
failure means at least one declared lower bound is too low.

This module MUST NOT contain CLI or GitHub-specific code so it can be driven
from tests, the console script and other tooling alike.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .build import StrictBuildRunner
from .config import LOWER_BOUNDS_TOOL_VAR, VerifierConfig, require_tool
from .errors import VerifierError
from .manifest import (
    DeclaredRequirement,
    ManifestSnapshot,
    declared_requirements,
    diff_requirements,
    resolve_manifest,
)
from .process import CommandRunner, run_command
from .rewrite import rewrite_lower_bounds

logger = logging.getLogger(__name__)


class VerificationState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING_CONFIG = "validating-config"
    BASELINE_BUILD = "baseline-build"
    REWRITING_BOUNDS = "rewriting-bounds"
    VERIFICATION_BUILD = "verification-build"
    PASSED = "passed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({VerificationState.PASSED, VerificationState.FAILED})


@dataclass(slots=True, frozen=True)
class VerificationResult:
    """Outcome of one verification run. Never persisted."""

    state: VerificationState
    transitions: tuple[VerificationState, ...]
    failed_phase: VerificationState | None = None
    error: VerifierError | None = None
    manifest_path: Path | None = None
    requirements_before: tuple[DeclaredRequirement, ...] = field(default_factory=tuple)
    requirements_after: tuple[DeclaredRequirement, ...] = field(default_factory=tuple)
    manifest_restored: bool = False

    def __post_init__(self) -> None:
        if self.state not in TERMINAL_STATES:
            raise ValueError(f"Result state must be terminal, got {self.state.value}")
        if (self.state is VerificationState.FAILED) != (self.failed_phase is not None):
            raise ValueError("failed_phase must be set exactly when the run failed")

    @property
    def passed(self) -> bool:
        return self.state is VerificationState.PASSED

    @property
    def pinned(self) -> list[tuple[DeclaredRequirement, DeclaredRequirement]]:
        """Requirements the lower-bound setter changed."""
        return diff_requirements(self.requirements_before, self.requirements_after)


class LowerBoundsVerifier:
    """Differential strict build: latest resolved versions, then declared minimums."""

    def __init__(
        self,
        config: VerifierConfig,
        runner: CommandRunner = run_command,
        build_runner: StrictBuildRunner | None = None,
    ) -> None:
        self._config = config
        self._runner = runner
        self._builder = build_runner or StrictBuildRunner(cargo=config.cargo, runner=runner)

    @property
    def config(self) -> VerifierConfig:
        return self._config

    def verify(self, manifest_path: Path | str | None = None) -> VerificationResult:
        """Run the full verification and return its terminal result.

        Only VerifierError is converted into a failed result; anything else,
        including KeyboardInterrupt, propagates after the manifest is restored.
        """
        requested = manifest_path if manifest_path is not None else self._config.manifest_path
        transitions = [VerificationState.IDLE]

        def enter(state: VerificationState) -> None:
            logger.info("Verification state: %s -> %s", transitions[-1].value, state.value)
            transitions.append(state)

        manifest: Path | None = None
        tool_manifest: Path | None = None
        snapshot: ManifestSnapshot | None = None
        before: tuple[DeclaredRequirement, ...] = ()
        after: tuple[DeclaredRequirement, ...] = ()
        failure: VerifierError | None = None
        failed_phase: VerificationState | None = None
        restored = False

        try:
            enter(VerificationState.VALIDATING_CONFIG)
            tool = require_tool(self._config.lower_bounds_tool, LOWER_BOUNDS_TOOL_VAR)
            manifest = resolve_manifest(requested)
            tool_manifest = manifest if requested is not None else None
            before = tuple(declared_requirements(manifest))
            if self._config.restore_manifest:
                snapshot = ManifestSnapshot.capture(manifest)

            enter(VerificationState.BASELINE_BUILD)
            self._builder.build(tool_manifest, phase=VerificationState.BASELINE_BUILD.value)

            enter(VerificationState.REWRITING_BOUNDS)
            rewrite_lower_bounds(tool, tool_manifest, runner=self._runner)
            after = tuple(declared_requirements(manifest))

            enter(VerificationState.VERIFICATION_BUILD)
            self._builder.build(tool_manifest, phase=VerificationState.VERIFICATION_BUILD.value)
        except VerifierError as exc:
            failure = exc
            failed_phase = transitions[-1]
        finally:
            if snapshot is not None and not snapshot.is_current():
                snapshot.restore()
                restored = True

        if failure is not None:
            logger.error("Verification failed during %s: %s", failed_phase.value, failure)
            enter(VerificationState.FAILED)
        else:
            enter(VerificationState.PASSED)

        return VerificationResult(
            state=transitions[-1],
            transitions=tuple(transitions),
            failed_phase=failed_phase,
            error=failure,
            manifest_path=manifest,
            requirements_before=before,
            requirements_after=after,
            manifest_restored=restored,
        )


def verify_lower_bounds(
    config: VerifierConfig,
    manifest_path: Path | str | None = None,
    runner: CommandRunner = run_command,
) -> VerificationResult:
    """Verify that the manifest still builds strictly at its declared minimums."""
    return LowerBoundsVerifier(config, runner=runner).verify(manifest_path)
