"""Command-line entrypoint.

Usage:
  bounds-verifier verify-lower-bounds [--manifest-path PATH] [--no-restore] [--report FILE]
  bounds-verifier check-distro-versions [--manifest-path PATH] [--release ID]
  bounds-verifier show-bounds [--manifest-path PATH]
  bounds-verifier validate-report FILE

Tool locations come from SET_LOWER_BOUNDS and COMPARE_FEDORA_VERSIONS, or from
a JSON settings file given with --config / BOUNDS_VERIFIER_CONFIG.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import requests

from .alerts.github_issue import ensure_failure_issue
from .compare import compare_distro_versions
from .config import VerifierConfig, load_config, with_overrides
from .core import VerificationResult, verify_lower_bounds
from .errors import BuildFailure, ConfigurationError, ToolInvocationError, VerifierError
from .manifest import declared_requirements, resolve_manifest
from .report import build_report, validate_report
from .summary import render_summary

logger = logging.getLogger("bounds_verifier")

CREATE_ISSUE_ENV_VAR = "BOUNDS_VERIFIER_CREATE_GH_ISSUE"
_TRUTHY = {"1", "true", "yes", "y"}


def _configure_logging(verbose: bool) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def _load(args: argparse.Namespace) -> VerifierConfig:
    config = load_config(args.config)
    return with_overrides(config, manifest_path=args.manifest_path)


def _print_failure(result: VerificationResult) -> None:
    phase = result.failed_phase.value if result.failed_phase else "unknown"
    print(f"ERROR: Verification failed during {phase}: {result.error}", file=sys.stderr)
    if isinstance(result.error, (BuildFailure, ToolInvocationError)) and result.error.diagnostics:
        print(result.error.diagnostics, file=sys.stderr)


def _write_step_summary(report: dict[str, Any]) -> None:
    summary_path = os.getenv("GITHUB_STEP_SUMMARY", "").strip()
    if not summary_path:
        return
    with open(summary_path, "a", encoding="utf-8") as fh:
        fh.write(render_summary(report))


def _maybe_create_issue(report: dict[str, Any]) -> None:
    if report.get("passed"):
        return
    if os.getenv(CREATE_ISSUE_ENV_VAR, "").strip().lower() not in _TRUTHY:
        return

    token = os.getenv("GITHUB_TOKEN", "")
    repository = os.getenv("GITHUB_REPOSITORY", "")
    if not token or not repository:
        logger.warning("Skipping issue creation: GITHUB_TOKEN or GITHUB_REPOSITORY is not set")
        return

    try:
        url = ensure_failure_issue(
            repository=repository,
            token=token,
            report=report,
            run_id=os.getenv("GITHUB_RUN_ID", ""),
        )
    except requests.RequestException as exc:
        # Alerting never changes the verification outcome.
        logger.error("Failed to create or update failure issue: %s", exc)
        return
    logger.info("Failure issue: %s", url)


def cmd_verify(args: argparse.Namespace) -> int:
    """Run the lower-bound verification."""
    config = _load(args)
    if args.no_restore:
        config = with_overrides(config, restore_manifest=False)

    result = verify_lower_bounds(config)
    report = build_report(result)

    if args.report is not None:
        try:
            args.report.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            print(f"ERROR: Failed to write report: {exc}", file=sys.stderr)
    try:
        _write_step_summary(report)
    except OSError as exc:
        print(f"ERROR: Failed to write step summary: {exc}", file=sys.stderr)
    _maybe_create_issue(report)

    if not result.passed:
        _print_failure(result)
        return 1

    print("Lower bounds verified: the project builds at its declared minimum versions.")
    return 0


def cmd_compare(args: argparse.Namespace) -> int:
    """Run the distro version comparator and surface its exit status."""
    config = _load(args)
    result = compare_distro_versions(config, release=args.release)
    if result.command.stdout:
        print(result.command.stdout, end="")
    if result.command.stderr:
        print(result.command.stderr, end="", file=sys.stderr)
    return result.returncode


def cmd_show_bounds(args: argparse.Namespace) -> int:
    """Print the lower bound declared for every dependency."""
    config = _load(args)
    manifest = resolve_manifest(config.manifest_path)
    requirements = declared_requirements(manifest)

    print(f"Declared lower bounds in {manifest}")
    for req in requirements:
        bound = str(req.lower_bound) if req.lower_bound is not None else "none"
        print(f"  [{req.section}] {req.name} {req.requirement or '(unversioned)'} -> {bound}")
    print(f"Total: {len(requirements)} requirements")
    return 0


def cmd_validate_report(args: argparse.Namespace) -> int:
    """Validate a saved JSON report against the report schema."""
    try:
        report = json.loads(args.file.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as exc:
        print(f"ERROR: Failed to read JSON: {exc}", file=sys.stderr)
        return 1

    try:
        validate_report(report)
    except ValueError as exc:
        print(f"ERROR: Report failed validation:{exc}", file=sys.stderr)
        return 1

    print(f"Report {args.file} is valid")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="bounds-verifier",
        description="Verify that declared dependency lower bounds build under strict lints.",
    )
    parser.add_argument("--config", type=Path, default=None, help="JSON settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(title="commands", dest="command")

    manifest_parent = argparse.ArgumentParser(add_help=False)
    manifest_parent.add_argument(
        "--manifest-path",
        type=Path,
        default=None,
        help="Path to Cargo.toml (defaults to MANIFEST_PATH or cargo's lookup)",
    )

    verify_parser = subparsers.add_parser(
        "verify-lower-bounds",
        parents=[manifest_parent],
        help="Build strictly, pin dependencies to their lower bounds, build again",
    )
    verify_parser.add_argument(
        "--no-restore",
        action="store_true",
        help="Leave the rewritten manifest on disk after the run",
    )
    verify_parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write the JSON report to this file",
    )
    verify_parser.set_defaults(func=cmd_verify)

    compare_parser = subparsers.add_parser(
        "check-distro-versions",
        parents=[manifest_parent],
        help="Compare declared versions against a distribution release",
    )
    compare_parser.add_argument(
        "--release",
        default=None,
        help="Distribution release identifier (defaults to FEDORA_RELEASE)",
    )
    compare_parser.set_defaults(func=cmd_compare)

    bounds_parser = subparsers.add_parser(
        "show-bounds",
        parents=[manifest_parent],
        help="List the declared lower bound of every dependency",
    )
    bounds_parser.set_defaults(func=cmd_show_bounds)

    validate_parser = subparsers.add_parser(
        "validate-report",
        help="Validate a saved JSON report",
    )
    validate_parser.add_argument("file", type=Path, help="Report file to validate")
    validate_parser.set_defaults(func=cmd_validate_report)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except ConfigurationError as exc:
        print(f"ERROR: Configuration error: {exc}", file=sys.stderr)
        return 1
    except VerifierError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
