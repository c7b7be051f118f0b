"""Human-readable summary rendering for $GITHUB_STEP_SUMMARY."""

from __future__ import annotations

from typing import Any


def render_summary(report: dict[str, Any]) -> str:
    """Return a Markdown string with the outcome and a table of pinned requirements."""
    lines = []
    lines.append("# Lower-bound verification")
    lines.append("")

    if report.get("passed"):
        lines.append("Result: **passed**. Declared lower bounds build cleanly.")
    else:
        phase = report.get("failedPhase") or "unknown"
        lines.append(f"Result: **failed** during `{phase}`.")
        if phase == "baseline-build":
            lines.append("")
            lines.append("The project does not build at its currently resolved versions.")
        elif phase == "verification-build":
            lines.append("")
            lines.append("At least one declared lower bound is too low.")

    manifest = report.get("manifest")
    if manifest:
        lines.append("")
        lines.append(f"Manifest: `{manifest}`")

    lines.append("")
    lines.append("| Section | Dependency | Declared | Pinned |")
    lines.append("| --- | --- | --- | --- |")

    pinned = report.get("pinned") or []
    for entry in pinned:
        lines.append(
            f"| {entry.get('section', '')} | {entry.get('name', '')} "
            f"| {entry.get('from') or 'n/a'} | {entry.get('to') or 'n/a'} |"
        )
    if not pinned:
        lines.append("| n/a | No requirements rewritten | n/a | n/a |")

    error = report.get("error") or {}
    diagnostics = (error.get("diagnostics") or "").strip()
    if diagnostics:
        lines.append("")
        lines.append("<details><summary>Diagnostics</summary>")
        lines.append("")
        lines.append("```")
        lines.append(diagnostics)
        lines.append("```")
        lines.append("</details>")

    return "\n".join(lines) + "\n"
