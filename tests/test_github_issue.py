from bounds_verifier.alerts import github_issue
from bounds_verifier.alerts.github_issue import ISSUE_MARKER, ensure_failure_issue

REPORT = {
    "failedPhase": "verification-build",
    "manifest": "/src/Cargo.toml",
    "pinned": [{"name": "dep", "section": "dependencies", "from": ">=1.0", "to": "=1.0"}],
    "error": {"message": "Strict build failed", "diagnostics": "error[E0425]"},
}


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


def test_creates_issue_when_none_exists(monkeypatch):
    posted = {}

    monkeypatch.setattr(github_issue.requests, "get", lambda *a, **k: FakeResponse([]))

    def fake_post(url, json, headers, timeout):
        posted.update(url=url, payload=json, headers=headers)
        return FakeResponse({"html_url": "https://github.com/acme/crate/issues/1"})

    monkeypatch.setattr(github_issue.requests, "post", fake_post)

    url = ensure_failure_issue(repository="acme/crate", token="t0ken", report=REPORT, run_id="42")

    assert url == "https://github.com/acme/crate/issues/1"
    assert posted["url"] == "https://api.github.com/repos/acme/crate/issues"
    assert posted["headers"]["Authorization"] == "token t0ken"
    body = posted["payload"]["body"]
    assert body.startswith(ISSUE_MARKER)
    assert "`verification-build`" in body
    assert "Run ID: `42`" in body
    assert "- dep: `>=1.0` -> `=1.0`" in body
    assert "error[E0425]" in body
    assert posted["payload"]["title"] == "Lower-bound verification failed: verification-build"


def test_updates_issue_found_by_marker(monkeypatch):
    existing = [
        {"title": "unrelated", "body": "", "url": "https://api/1"},
        {"title": "renamed", "body": f"{ISSUE_MARKER}\nold", "url": "https://api/2"},
    ]
    patched = {}

    monkeypatch.setattr(github_issue.requests, "get", lambda *a, **k: FakeResponse(existing))

    def fake_patch(url, json, headers, timeout):
        patched["url"] = url
        return FakeResponse({"html_url": "https://github.com/acme/crate/issues/2"})

    monkeypatch.setattr(github_issue.requests, "patch", fake_patch)

    url = ensure_failure_issue(repository="acme/crate", token="t", report=REPORT)

    assert url == "https://github.com/acme/crate/issues/2"
    assert patched["url"] == "https://api/2"


def test_falls_back_to_title_prefix():
    issues = [{"title": "Lower-bound verification failed: baseline-build", "url": "u"}]

    assert github_issue._select_issue(issues) is issues[0]
    assert github_issue._select_issue([{"title": "other"}]) is None
