"""Tests for publishing the report."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from impactbot.github.event import EventContext
from impactbot.github.notifier import (
    COMMENT_MARKER,
    OUTPUT_NAME,
    post_github_comment,
    publish_report,
    set_output,
    write_step_summary,
)

PR_CONTEXT = EventContext(
    event_name="pull_request",
    repository="acme/analytics",
    payload={"pull_request": {"number": 7}},
)


@pytest.fixture
def gh(monkeypatch):
    """Record gh invocations; ``gh.existing`` is the id the lookup returns."""

    class GhRecorder:
        existing = ""
        returncode = 0
        calls: list[list[str]] = []
        envs: list[dict] = []

    rec = GhRecorder()
    rec.calls = []
    rec.envs = []

    def fake_run(args, capture_output=True, text=True, timeout=None, env=None):
        rec.calls.append(args)
        rec.envs.append(env or {})
        stdout = rec.existing if "--jq" in args else "{}"
        return subprocess.CompletedProcess(args, rec.returncode, stdout=stdout, stderr="denied")

    monkeypatch.setattr("impactbot.github.notifier.subprocess.run", fake_run)
    return rec


class TestPostComment:
    def test_creates_comment(self, gh):
        assert post_github_comment("report", PR_CONTEXT, "tok")
        create = gh.calls[-1]
        assert "POST" in create
        assert "repos/acme/analytics/issues/7/comments" in create
        assert f"body={COMMENT_MARKER}\nreport" in create
        assert gh.envs[-1]["GH_TOKEN"] == "tok"

    def test_updates_existing_comment(self, gh):
        gh.existing = "123"
        assert post_github_comment("report", PR_CONTEXT, "tok")
        update = gh.calls[-1]
        assert "PATCH" in update
        assert "repos/acme/analytics/issues/comments/123" in update

    def test_lookup_reads_every_page(self, gh):
        gh.existing = "\n456\n789\n"
        assert post_github_comment("report", PR_CONTEXT, "tok")
        lookup = gh.calls[0]
        assert "--paginate" in lookup
        update = gh.calls[-1]
        assert "PATCH" in update
        assert "repos/acme/analytics/issues/comments/456" in update
        assert len(gh.calls) == 2

    def test_failure_is_not_fatal(self, gh):
        gh.returncode = 1
        assert not post_github_comment("report", PR_CONTEXT, "tok")

    def test_gh_missing(self, monkeypatch):
        def missing(*args, **kwargs):
            raise FileNotFoundError("gh")

        monkeypatch.setattr("impactbot.github.notifier.subprocess.run", missing)
        assert not post_github_comment("report", PR_CONTEXT, "tok")

    def test_skipped_outside_pull_requests(self, gh):
        assert not post_github_comment("report", EventContext(), "tok")
        assert gh.calls == []

    def test_skipped_without_token(self, gh):
        assert not post_github_comment("report", PR_CONTEXT, "")
        assert gh.calls == []


class TestActionOutputs:
    def test_step_summary(self, tmp_path: Path):
        summary = tmp_path / "summary.md"
        assert write_step_summary("## Report", {"GITHUB_STEP_SUMMARY": str(summary)})
        assert summary.read_text() == "## Report\n"

    def test_step_summary_outside_actions(self):
        assert not write_step_summary("## Report", {})

    def test_multiline_output(self, tmp_path: Path):
        output = tmp_path / "output"
        assert set_output("impact_markdown", "line 1\nline 2", {"GITHUB_OUTPUT": str(output)})
        lines = output.read_text().splitlines()
        assert lines[0].startswith("impact_markdown<<ghadelimiter_")
        delimiter = lines[0].split("<<", 1)[1]
        assert lines[1:] == ["line 1", "line 2", delimiter]


class TestPublishReport:
    def test_always_writes_outputs(self, tmp_path: Path, gh):
        gh.returncode = 1
        env = {
            "GITHUB_STEP_SUMMARY": str(tmp_path / "summary.md"),
            "GITHUB_OUTPUT": str(tmp_path / "output"),
        }
        result = publish_report("## Report", PR_CONTEXT, token="tok", environ=env)
        assert result == {"comment": False, "summary": True, "output": True}
        assert OUTPUT_NAME in (tmp_path / "output").read_text()

    def test_comment_disabled(self, gh):
        result = publish_report("## Report", PR_CONTEXT, token="tok", comment=False, environ={})
        assert result == {"comment": False, "summary": False, "output": False}
        assert gh.calls == []
