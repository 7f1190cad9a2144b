"""GitHub event context and changed-file enumeration."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger("impactbot.github")


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def load_event(event_path: str | os.PathLike | None) -> dict[str, Any]:
    """Read the webhook payload GitHub Actions writes to ``GITHUB_EVENT_PATH``."""
    if not event_path:
        return {}
    path = Path(event_path)
    if not path.exists():
        logger.warning(f"Event payload not found at {path}")
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Could not read event payload {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


@dataclass
class EventContext:
    """The parts of the triggering workflow event a run cares about."""

    event_name: str = ""
    repository: str = ""
    event_path: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    base_sha: str = ""
    head_sha: str = ""

    @property
    def pull_request(self) -> dict[str, Any]:
        pr = self.payload.get("pull_request")
        return pr if isinstance(pr, dict) else {}

    @property
    def is_pull_request(self) -> bool:
        return bool(self.pull_request)

    @property
    def pr_number(self) -> int | None:
        return self.pull_request.get("number")

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> EventContext:
        """Build the context from the standard Actions environment variables.

        ``GITHUB_BASE_SHA`` / ``GITHUB_HEAD_SHA`` win over revisions found in
        the payload; pull requests supply ``base.sha`` / ``head.sha`` and
        pushes supply ``before`` / ``after``.
        """
        env = os.environ if environ is None else environ
        event_path = env.get("GITHUB_EVENT_PATH", "")
        payload = load_event(event_path)

        pr = payload.get("pull_request") if isinstance(payload.get("pull_request"), dict) else {}
        base_sha = env.get("GITHUB_BASE_SHA") or (pr.get("base") or {}).get("sha") or ""
        head_sha = env.get("GITHUB_HEAD_SHA") or (pr.get("head") or {}).get("sha") or ""
        if not pr:
            base_sha = base_sha or payload.get("before") or ""
            head_sha = head_sha or payload.get("after") or ""

        return cls(
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            repository=env.get("GITHUB_REPOSITORY", ""),
            event_path=event_path,
            payload=payload,
            base_sha=base_sha,
            head_sha=head_sha,
        )


def parse_file_list(changed_files_list: str) -> list[str]:
    """Split an explicit comma-separated file list, dropping blanks."""
    return [f.strip() for f in changed_files_list.split(",") if f.strip()]


def files_from_payload(payload: Mapping[str, Any]) -> list[str]:
    """Collect added, modified and removed paths across every commit."""
    changed: dict[str, None] = {}
    for commit in _as_list(payload.get("commits")):
        if not isinstance(commit, dict):
            continue
        for key in ("added", "modified", "removed"):
            for path in _as_list(commit.get(key)):
                if path:
                    changed[path] = None
    return list(changed)


def get_changed_files(
    changed_files_list: str = "",
    event_path: str | os.PathLike | None = None,
) -> list[str]:
    """Return the unique files touched by this change.

    An explicit list takes precedence and the event payload is not read at all.
    Never raises; any failure yields an empty list.
    """
    try:
        if changed_files_list and isinstance(changed_files_list, str):
            return parse_file_list(changed_files_list)
        return files_from_payload(load_event(event_path))
    except Exception as e:
        logger.error(f"[get_changed_files] Error: {e}")
        return []


def file_kind(path: str) -> str:
    """Classify a changed file as ``sql``, ``yml`` or ``other``."""
    suffix = Path(path).suffix.lower()
    if suffix == ".sql":
        return "sql"
    if suffix in (".yml", ".yaml"):
        return "yml"
    return "other"


def model_name(path: str) -> str:
    """dbt model name for a file: its basename without extension."""
    return Path(path).stem
