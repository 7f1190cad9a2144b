"""Publish the report: PR comment, job step summary and step output."""

from __future__ import annotations

import logging
import os
import subprocess
import uuid
from collections.abc import Mapping

from impactbot.exceptions import NotifierError
from impactbot.github.event import EventContext

logger = logging.getLogger("impactbot.github")

COMMENT_MARKER = "<!-- impactbot-report -->"
OUTPUT_NAME = "impact_markdown"


def _gh(args: list[str], token: str) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    if token:
        env["GH_TOKEN"] = token
    return subprocess.run(
        ["gh", "api", *args],
        capture_output=True,
        text=True,
        timeout=15,
        env=env,
    )


def post_github_comment(report: str, context: EventContext, token: str) -> bool:
    """Post ``report`` on the PR, updating the comment left by a previous run.

    Returns False (after logging why) instead of raising.
    """
    if not context.is_pull_request:
        return False
    if not token:
        logger.warning("No GitHub token configured, skipping PR comment")
        return False
    if not context.pr_number or not context.repository:
        logger.warning("Pull request number or repository unknown, skipping PR comment")
        return False

    repo = context.repository
    body = f"{COMMENT_MARKER}\n{report}"

    try:
        result = _gh(
            [f"repos/{repo}/issues/{context.pr_number}/comments", "--paginate",
             "--jq", f'.[] | select(.body | startswith("{COMMENT_MARKER}")) | .id'],
            token,
        )
        # --jq runs once per page, so ids arrive one per line
        existing_id = next(iter(result.stdout.split()), "")

        if existing_id:
            update = _gh(
                ["--method", "PATCH", f"repos/{repo}/issues/comments/{existing_id}",
                 "-f", f"body={body}"],
                token,
            )
            if update.returncode != 0:
                raise NotifierError(update.stderr.strip())
        else:
            create = _gh(
                ["--method", "POST", f"repos/{repo}/issues/{context.pr_number}/comments",
                 "-f", f"body={body}"],
                token,
            )
            if create.returncode != 0:
                raise NotifierError(create.stderr.strip())
    except (NotifierError, subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.error(f"Failed to create comment: {e}")
        return False

    return True


def write_step_summary(report: str, environ: Mapping[str, str] | None = None) -> bool:
    """Append ``report`` to the job summary file, when running in Actions."""
    env = os.environ if environ is None else environ
    summary_path = env.get("GITHUB_STEP_SUMMARY")
    if not summary_path:
        return False
    with open(summary_path, "a", encoding="utf-8") as f:
        f.write(report)
        if not report.endswith("\n"):
            f.write("\n")
    return True


def set_output(name: str, value: str, environ: Mapping[str, str] | None = None) -> bool:
    """Write a (possibly multi-line) step output using the heredoc syntax."""
    env = os.environ if environ is None else environ
    output_path = env.get("GITHUB_OUTPUT")
    if not output_path:
        return False
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(output_path, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
    return True


def publish_report(
    report: str,
    context: EventContext,
    token: str = "",
    comment: bool = True,
    environ: Mapping[str, str] | None = None,
) -> dict[str, bool]:
    """Comment on the PR (best effort), then always emit summary and output.

    Returns which channels received the report.
    """
    commented = post_github_comment(report, context, token) if comment else False
    if commented:
        logger.info("Posted impact comment to PR")

    summary = write_step_summary(report, environ)
    output = set_output(OUTPUT_NAME, report, environ)
    if summary:
        logger.info("Wrote report to the job step summary")
    if output:
        logger.info(f"Set step output '{OUTPUT_NAME}'")

    return {"comment": commented, "summary": summary, "output": output}
