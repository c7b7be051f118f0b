"""Optional failure alerts for CI runs."""

from .github_issue import ISSUE_MARKER, ensure_failure_issue

__all__ = [
    "ISSUE_MARKER",
    "ensure_failure_issue",
]
