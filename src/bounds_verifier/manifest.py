"""Cargo manifest resolution, parsing and snapshot/restore.

Declared requirements are read from every dependency section, including
``target.<cfg>`` variants. Lower bounds are derived from cargo's requirement
syntax on top of ``packaging.version``:

- bare and caret requirements ``1.2`` / ``^1.2`` → ``1.2``
- tilde requirements ``~1.2.3`` → ``1.2.3``
- exact requirements ``=1.2.3`` → ``1.2.3``
- comparator lists ``>=1.2, <2`` → the highest lower comparator
- strict comparators ``>1.2`` → the next patch release, ``1.2.1``
- wildcards ``1.*`` / ``1.2.x`` → the fixed prefix; ``*`` has no bound
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any

from packaging.version import InvalidVersion, Version

from .errors import ManifestError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"
LOCKFILE_NAME = "Cargo.lock"

SECTIONS = (
    "dependencies",
    "dev-dependencies",
    "build-dependencies",
)

_WILDCARDS = {"*", "x", "X"}


def resolve_manifest(path: Path | str | None = None, cwd: Path | None = None) -> Path:
    """Return the manifest to verify.

    An explicit path must exist. Without one, the nearest Cargo.toml at or
    above ``cwd`` is used, matching cargo's own lookup.
    """
    if path is not None:
        manifest = Path(path)
        if not manifest.is_file():
            raise ManifestError(f"Manifest not found: {manifest}")
        return manifest.resolve()

    start = (cwd or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate

    raise ManifestError(f"Could not find {MANIFEST_NAME} in {start} or any parent directory")


def load_manifest(path: Path) -> dict[str, Any]:
    """Parse the manifest, raising ManifestError on unreadable or invalid TOML."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Failed to read manifest {path}: {exc}") from exc

    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Invalid TOML in manifest {path}: {exc}") from exc


@dataclass(slots=True, frozen=True)
class DeclaredRequirement:
    """A dependency and the version requirement declared for it."""

    name: str
    section: str
    requirement: str | None
    lower_bound: Version | None

    @property
    def key(self) -> tuple[str, str]:
        return (self.section, self.name)

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "section": self.section,
            "requirement": self.requirement,
            "lowerBound": str(self.lower_bound) if self.lower_bound is not None else None,
        }


def _parse_version(raw: str) -> Version | None:
    parts = raw.strip().split(".")
    fixed: list[str] = []
    for part in parts:
        if part in _WILDCARDS:
            break
        fixed.append(part)
    if not fixed:
        return None
    try:
        return Version(".".join(fixed))
    except InvalidVersion:
        return None


def _next_patch(version: Version) -> Version:
    major, minor, patch = (list(version.release) + [0, 0])[:3]
    return Version(f"{major}.{minor}.{patch + 1}")


def lower_bound(requirement: str | None) -> Version | None:
    """Return the minimum version a cargo requirement admits, if it has one.

    A strict ``>X.Y.Z`` admits ``X.Y.Z+1`` as its smallest release.
    """
    if not requirement:
        return None

    bounds: list[Version] = []
    for comparator in requirement.split(","):
        token = comparator.strip()
        if not token or token in _WILDCARDS:
            continue
        if token.startswith("<"):
            continue
        strict = False
        if token.startswith(">="):
            token = token[2:]
        elif token.startswith(">"):
            token = token[1:]
            strict = True
        elif token[0] in "=^~":
            token = token[1:]
        version = _parse_version(token)
        if version is None:
            continue
        bounds.append(_next_patch(version) if strict else version)

    return max(bounds) if bounds else None


def _requirement_text(spec: Any) -> str | None:
    if isinstance(spec, str):
        return spec
    if isinstance(spec, dict):
        version = spec.get("version")
        if isinstance(version, str):
            return version
    return None


def _iter_sections(data: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    for section in SECTIONS:
        table = data.get(section)
        if isinstance(table, dict):
            yield section, table

    targets = data.get("target")
    if isinstance(targets, dict):
        for cfg, target_data in targets.items():
            if not isinstance(target_data, dict):
                continue
            for section in SECTIONS:
                table = target_data.get(section)
                if isinstance(table, dict):
                    yield f"target.{cfg}.{section}", table


def declared_requirements(path: Path) -> list[DeclaredRequirement]:
    """Return every declared dependency requirement in manifest order."""
    data = load_manifest(path)
    requirements: list[DeclaredRequirement] = []
    for section, table in _iter_sections(data):
        for name, spec in table.items():
            text = _requirement_text(spec)
            requirements.append(
                DeclaredRequirement(
                    name=name,
                    section=section,
                    requirement=text,
                    lower_bound=lower_bound(text),
                )
            )
    return requirements


def diff_requirements(
    before: Iterable[DeclaredRequirement],
    after: Iterable[DeclaredRequirement],
) -> list[tuple[DeclaredRequirement, DeclaredRequirement]]:
    """Return (before, after) pairs whose requirement text changed."""
    previous = {req.key: req for req in before}
    changed: list[tuple[DeclaredRequirement, DeclaredRequirement]] = []
    for req in after:
        old = previous.get(req.key)
        if old is not None and old.requirement != req.requirement:
            changed.append((old, req))
    return changed


def _declares_workspace(manifest: Path) -> bool:
    try:
        data = tomllib.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return isinstance(data.get("workspace"), dict)


def lockfile_path(manifest_path: Path) -> Path:
    """Return the Cargo.lock governing ``manifest_path``.

    Workspace members share the lockfile at the workspace root: an explicit
    ``package.workspace`` key wins, otherwise the nearest manifest at or above
    the member that declares a ``[workspace]`` table. Standalone packages use
    the lockfile beside their manifest.
    """
    manifest_path = manifest_path.resolve()
    try:
        package = load_manifest(manifest_path).get("package")
    except ManifestError:
        package = None
    if isinstance(package, dict) and isinstance(package.get("workspace"), str):
        root = (manifest_path.parent / package["workspace"]).resolve()
        return root / LOCKFILE_NAME

    for directory in (manifest_path.parent, *manifest_path.parent.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file() and _declares_workspace(candidate):
            return directory / LOCKFILE_NAME
    return manifest_path.with_name(LOCKFILE_NAME)


@dataclass(slots=True, frozen=True)
class _FileState:
    path: Path
    content: bytes | None

    def restore(self) -> None:
        if self.content is None:
            if self.path.exists():
                self.path.unlink()
            return
        self.path.write_bytes(self.content)


@dataclass(slots=True, frozen=True)
class ManifestSnapshot:
    """Captured bytes of a manifest and its lockfile, restorable later."""

    manifest: _FileState
    lockfile: _FileState

    @property
    def content_hash(self) -> str:
        return sha256(self.manifest.content or b"").hexdigest()

    @classmethod
    def capture(cls, manifest_path: Path) -> ManifestSnapshot:
        lock_path = lockfile_path(manifest_path)
        lock_content = lock_path.read_bytes() if lock_path.exists() else None
        snapshot = cls(
            manifest=_FileState(manifest_path, manifest_path.read_bytes()),
            lockfile=_FileState(lock_path, lock_content),
        )
        logger.debug("Captured %s (sha256 %s)", manifest_path, snapshot.content_hash)
        return snapshot

    def is_current(self) -> bool:
        """Return True if the files on disk still match the snapshot."""
        for state in (self.manifest, self.lockfile):
            current = state.path.read_bytes() if state.path.exists() else None
            if current != state.content:
                return False
        return True

    def restore(self) -> None:
        self.manifest.restore()
        self.lockfile.restore()
        logger.info("Restored %s to its original content", self.manifest.path)
