"""Error taxonomy shared by the verifier, its invokers and the CLI."""

from __future__ import annotations


class VerifierError(RuntimeError):
    """Base error for every failure surfaced by a verification run."""


class ConfigurationError(VerifierError):
    """Raised when a required tool path or setting is missing or invalid."""


class ManifestError(ConfigurationError):
    """Raised when the manifest is missing or is not valid TOML."""


class BuildFailure(VerifierError):
    """Raised when a strict build exits non-zero."""

    def __init__(self, phase: str, returncode: int, diagnostics: str) -> None:
        self.phase = phase
        self.returncode = returncode
        self.diagnostics = diagnostics
        super().__init__(f"Strict build failed during {phase} (exit code {returncode})")


class ToolInvocationError(VerifierError):
    """Raised when an external tool cannot be run or reports failure.

    ``returncode`` is ``None`` when the process never started.
    """

    def __init__(
        self,
        tool: str,
        message: str,
        *,
        returncode: int | None = None,
        diagnostics: str = "",
    ) -> None:
        self.tool = tool
        self.returncode = returncode
        self.diagnostics = diagnostics
        super().__init__(message)
