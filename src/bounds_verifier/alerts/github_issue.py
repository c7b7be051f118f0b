"""Helpers for creating GitHub issues when lower-bound verification fails."""

from __future__ import annotations

from typing import Any

import requests
from requests import Response
from tenacity import retry, stop_after_attempt, wait_fixed

ISSUE_MARKER = "<!-- bounds-verifier-issue-marker: do-not-edit -->"
ISSUE_TITLE_PREFIX = "Lower-bound verification failed:"
ISSUE_LABELS = ["dependencies", "bounds-verifier"]


def _select_issue(issues: list[dict[str, Any]]) -> dict[str, Any] | None:
    for issue in issues:
        body = issue.get("body") or ""
        if ISSUE_MARKER in body:
            return issue
    for issue in issues:
        if str(issue.get("title", "")).startswith(ISSUE_TITLE_PREFIX):
            return issue
    return None


def _build_body(*, report: dict[str, Any], run_id: str) -> str:
    phase = report.get("failedPhase") or "unknown"
    error = report.get("error") or {}

    lines = [ISSUE_MARKER, "", f"Lower-bound verification failed during `{phase}`."]

    if run_id:
        lines.append(f"Run ID: `{run_id}`")
    manifest = report.get("manifest")
    if manifest:
        lines.append(f"Manifest: `{manifest}`")

    pinned = report.get("pinned") or []
    if pinned:
        lines.append("")
        lines.append("Requirements pinned to their lower bound:")
        for entry in pinned:
            lines.append(f"- {entry.get('name')}: `{entry.get('from')}` -> `{entry.get('to')}`")

    lines.append("")
    lines.append("Error details:")
    lines.append("```")
    lines.append(str(error.get("message", "")).strip())
    diagnostics = str(error.get("diagnostics") or "").strip()
    if diagnostics:
        lines.append("")
        lines.append(diagnostics)
    lines.append("```")

    return "\n".join(lines) + "\n"


@retry(reraise=True, stop=stop_after_attempt(3), wait=wait_fixed(2))
def _list_open_issues(url: str, headers: dict[str, str]) -> Response:
    response = requests.get(
        url,
        params={"state": "open", "per_page": 50},
        headers=headers,
        timeout=10,
    )
    response.raise_for_status()
    return response


def ensure_failure_issue(
    *,
    repository: str,
    token: str,
    report: dict[str, Any],
    run_id: str = "",
) -> str:
    """Create or update the verification failure issue and return its HTML URL."""

    base_url = f"https://api.github.com/repos/{repository}/issues"
    headers = {
        "Authorization": f"token {token}",
        "Accept": "application/vnd.github+json",
    }

    issues = _list_open_issues(base_url, headers).json()
    target = _select_issue(issues if isinstance(issues, list) else [])

    phase = report.get("failedPhase") or "unknown"
    title = f"{ISSUE_TITLE_PREFIX} {phase}"
    payload = {"title": title, "body": _build_body(report=report, run_id=run_id), "labels": ISSUE_LABELS}

    if target:
        issue_url = target.get("url")
        patch = requests.patch(issue_url, json=payload, headers=headers, timeout=10)
        patch.raise_for_status()
        return patch.json().get("html_url", "")

    post = requests.post(base_url, json=payload, headers=headers, timeout=10)
    post.raise_for_status()
    return post.json().get("html_url", "")
