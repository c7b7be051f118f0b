"""Report serialisation and schema validation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from jsonschema import Draft202012Validator

from .core import VerificationResult
from .errors import BuildFailure, ToolInvocationError, VerifierError

REPORT_VERSION = "1"

_REQUIREMENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name", "section", "requirement", "lowerBound"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "section": {"type": "string", "minLength": 1},
        "requirement": {"type": ["string", "null"]},
        "lowerBound": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

_STATES = [
    "idle",
    "validating-config",
    "baseline-build",
    "rewriting-bounds",
    "verification-build",
    "passed",
    "failed",
]

REPORT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Lower-bound verification report",
    "type": "object",
    "required": [
        "version",
        "passed",
        "state",
        "failedPhase",
        "error",
        "transitions",
        "manifest",
        "requirements",
        "pinned",
        "manifestRestored",
    ],
    "properties": {
        "version": {"type": "string"},
        "passed": {"type": "boolean"},
        "state": {"enum": ["passed", "failed"]},
        "failedPhase": {"enum": _STATES[1:5] + [None]},
        "error": {
            "type": ["object", "null"],
            "required": ["type", "message", "diagnostics"],
            "properties": {
                "type": {"type": "string"},
                "message": {"type": "string"},
                "returncode": {"type": ["integer", "null"]},
                "diagnostics": {"type": "string"},
            },
        },
        "transitions": {"type": "array", "items": {"enum": _STATES}, "minItems": 2},
        "manifest": {"type": ["string", "null"]},
        "requirements": {"type": "array", "items": _REQUIREMENT_SCHEMA},
        "pinned": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "section", "from", "to"],
                "properties": {
                    "name": {"type": "string"},
                    "section": {"type": "string"},
                    "from": {"type": ["string", "null"]},
                    "to": {"type": ["string", "null"]},
                },
            },
        },
        "manifestRestored": {"type": "boolean"},
    },
    "additionalProperties": False,
}


def _error_dict(error: VerifierError | None) -> dict[str, Any] | None:
    if error is None:
        return None
    data: dict[str, Any] = {
        "type": type(error).__name__,
        "message": str(error),
        "diagnostics": "",
    }
    if isinstance(error, (BuildFailure, ToolInvocationError)):
        data["returncode"] = error.returncode
        data["diagnostics"] = error.diagnostics
    return data


def build_report(result: VerificationResult) -> dict[str, Any]:
    """Serialise a verification result into a schema-compatible report."""
    return {
        "version": REPORT_VERSION,
        "passed": result.passed,
        "state": result.state.value,
        "failedPhase": result.failed_phase.value if result.failed_phase else None,
        "error": _error_dict(result.error),
        "transitions": [state.value for state in result.transitions],
        "manifest": str(result.manifest_path) if result.manifest_path else None,
        "requirements": [req.to_dict() for req in result.requirements_before],
        "pinned": [
            {
                "name": new.name,
                "section": new.section,
                "from": old.requirement,
                "to": new.requirement,
            }
            for old, new in result.pinned
        ],
        "manifestRestored": result.manifest_restored,
    }


def _format_errors(errors: Iterable) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def validate_report(report: dict[str, Any]) -> None:
    """Raise ValueError listing every schema violation in ``report``."""
    validator = Draft202012Validator(REPORT_SCHEMA)
    errors = sorted(validator.iter_errors(report), key=lambda e: list(e.path))
    if errors:
        raise ValueError("\n" + _format_errors(errors))
