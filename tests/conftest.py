"""Shared test fixtures for impactbot."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path

import pytest

from impactbot.config import ActionConfig
from impactbot.models import ColumnImpact, TableImpact, Task

BASE_SQL = """\
-- customer model
WITH source AS (
    SELECT * FROM raw.customers
)
SELECT
    customerid AS customer_id,
    firstname AS first_name,
    email
FROM source
"""

HEAD_SQL = """\
-- customer model
WITH source AS (
    SELECT * FROM raw.customers
)
SELECT
    customerid AS customer_id,
    email,
    s.phonenumber AS phone_number
FROM source s
"""

BASE_SCHEMA = """\
version: 2

models:
  - name: customer_full
    columns:
      - name: customer_id
        tests: [not_null, unique]
      - name: email
"""

HEAD_SCHEMA = """\
version: 2

models:
  - name: customer_full
    columns:
      - name: customer_id
        tests: [not_null, unique]
      - name: loyalty_points
        description: "Points balance"
"""


@pytest.fixture(autouse=True)
def reset_impactbot_logger():
    """The CLI installs its own handler; undo it so caplog keeps working."""
    yield
    logger = logging.getLogger("impactbot")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def config() -> ActionConfig:
    return ActionConfig(
        client_id="cid",
        client_secret="secret",
        base_url="https://lineage.example.com/",
        link_base_url="https://app.example.com",
    )


@pytest.fixture
def event_file(tmp_path: Path) -> Path:
    """A push event payload touching a model, its schema and a README."""
    payload = {
        "before": "base000",
        "after": "head111",
        "commits": [
            {
                "added": ["models/customers.sql"],
                "modified": ["models/schema.yml"],
                "removed": [],
            },
            {
                "added": [],
                "modified": ["models/customers.sql", "README.md"],
                "removed": ["models/legacy.sql"],
            },
        ],
    }
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload))
    return path


@pytest.fixture
def pr_event_file(tmp_path: Path) -> Path:
    payload = {
        "number": 7,
        "pull_request": {
            "number": 7,
            "base": {"sha": "basesha"},
            "head": {"sha": "headsha"},
        },
    }
    path = tmp_path / "pr_event.json"
    path.write_text(json.dumps(payload))
    return path


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path):
    """A repository with a base and a head commit of a dbt project.

    Returns (repo_path, base_sha, head_sha).
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    (repo / "models").mkdir(parents=True)
    _git(repo, "init", "-q")
    _git(repo, "config", "user.email", "ci@example.com")
    _git(repo, "config", "user.name", "CI")
    _git(repo, "config", "commit.gpgsign", "false")

    (repo / "models" / "customers.sql").write_text(BASE_SQL)
    (repo / "models" / "schema.yml").write_text(BASE_SCHEMA)
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "base")
    base_sha = _git(repo, "rev-parse", "HEAD")

    (repo / "models" / "customers.sql").write_text(HEAD_SQL)
    (repo / "models" / "schema.yml").write_text(HEAD_SCHEMA)
    (repo / "models" / "orders.sql").write_text("SELECT order_id, amount FROM raw.orders\n")
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "head")
    head_sha = _git(repo, "rev-parse", "HEAD")

    return repo, base_sha, head_sha


class FakeLineageClient:
    """In-memory stand-in for LineageClient that records every call."""

    def __init__(
        self,
        tasks: list[Task] | None = None,
        tables: dict[tuple, list[TableImpact]] | None = None,
        columns: dict[tuple, list[ColumnImpact]] | None = None,
    ) -> None:
        self.tasks = tasks or []
        self.tables = tables or {}
        self.columns = columns or {}
        self.calls: list[tuple] = []

    def get_tasks(self) -> list[Task]:
        self.calls.append(("tasks",))
        return list(self.tasks)

    def get_table_impacts(self, asset_id, connection_id, entity, is_direct=True):
        self.calls.append(("table", entity, is_direct))
        return list(self.tables.get((entity, is_direct), []))

    def get_column_impacts(self, asset_id, connection_id, entity, changed_columns, is_direct=True):
        self.calls.append(("column", entity, tuple(changed_columns), is_direct))
        return list(self.columns.get((entity, is_direct), []))


class FakeResponse:
    """Minimal requests.Response double."""

    def __init__(self, status_code: int = 200, payload=None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload
