from __future__ import annotations

import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from bounds_verifier.process import CommandResult

MANIFEST = """\
[package]
name = "demo"
version = "0.1.0"

[dependencies]
dep = ">=1.0"
"""

# Rewrites ">=X" requirements to "=X", like a real lower-bound setter would.
SETTER_SCRIPT = """\
#!/bin/sh
manifest=Cargo.toml
for arg in "$@"; do
  case "$arg" in
    --manifest-path=*) manifest="${arg#--manifest-path=}" ;;
  esac
done
sed -i 's/">=\\([0-9.]*\\)"/"=\\1"/' "$manifest"
"""

# Fails whenever dep is pinned to 1.0, i.e. the code needs a 1.2 symbol.
CARGO_SCRIPT = """\
#!/bin/sh
manifest=Cargo.toml
for arg in "$@"; do
  case "$arg" in
    --manifest-path=*) manifest="${arg#--manifest-path=}" ;;
  esac
done
echo "$RUSTFLAGS" >> "$(dirname "$0")/rustflags.log"
if grep -q '"=1.0"' "$manifest"; then
  echo "error[E0425]: cannot find function \\`added_in_1_2\\` in crate \\`dep\\`" >&2
  exit 101
fi
echo "Finished dev [unoptimized + debuginfo] target(s)"
"""


_ENV_VARS = (
    "BOUNDS_VERIFIER_CONFIG",
    "BOUNDS_VERIFIER_CREATE_GH_ISSUE",
    "SET_LOWER_BOUNDS",
    "COMPARE_FEDORA_VERSIONS",
    "MANIFEST_PATH",
    "FEDORA_RELEASE",
    "CARGO",
    "GITHUB_STEP_SUMMARY",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_tool(directory: Path, name: str, body: str = "#!/bin/sh\nexit 0\n") -> Path:
    path = directory / name
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def project(tmp_path) -> Path:
    """A crate directory containing Cargo.toml; returns the manifest path."""
    crate = tmp_path / "crate"
    crate.mkdir()
    manifest = crate / "Cargo.toml"
    manifest.write_text(MANIFEST, encoding="utf-8")
    return manifest


@pytest.fixture
def tools(tmp_path) -> Path:
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


class RecordingRunner:
    """Fake command runner that records calls and returns scripted exit codes."""

    def __init__(self, handler: Callable[[tuple[str, ...]], int] | None = None) -> None:
        self.calls: list[tuple[tuple[str, ...], dict[str, str]]] = []
        self._handler = handler or (lambda argv: 0)

    def __call__(self, argv, env=None, cwd=None) -> CommandResult:
        argv = tuple(str(a) for a in argv)
        self.calls.append((argv, dict(env or {})))
        returncode = self._handler(argv)
        stderr = f"{Path(argv[0]).name} failed" if returncode else ""
        return CommandResult(argv=argv, returncode=returncode, stdout="", stderr=stderr)

    def calls_to(self, name: str) -> list[tuple[tuple[str, ...], dict[str, str]]]:
        return [call for call in self.calls if Path(call[0][0]).name == name]

    @property
    def build_calls(self) -> list[tuple[tuple[str, ...], dict[str, str]]]:
        return [call for call in self.calls if call[0][1:2] == ("build",)]
