"""PR Impact Bot - downstream impact analysis for changed dbt models.

This is the main pipeline behind ``impactbot run``. It:
1. Enumerates the files changed by the PR or push
2. Diffs model and schema columns between the base and head revisions
3. Matches changed models to dbt tasks known to the lineage service
4. Fetches direct and indirect, table and column impacts per task
5. Reconciles them and renders the markdown report

Everything runs sequentially in file enumeration order, so the report is
deterministic for a given set of service responses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TypeVar

from impactbot.config import ActionConfig
from impactbot.github.column_diff import (
    ColumnDiffSummary,
    ContentFetcher,
    collect_column_changes,
)
from impactbot.github.event import EventContext, file_kind, get_changed_files, model_name
from impactbot.github.renderer import render_impact_report
from impactbot.github.revisions import get_file_content
from impactbot.lineage.client import LineageClient
from impactbot.models import (
    ColumnImpact,
    FileColumnImpacts,
    FileImpacts,
    MatchedTask,
    TableImpact,
    Task,
)

logger = logging.getLogger("impactbot.github")

DBT_CONNECTION_TYPE = "dbt"

T = TypeVar("T", TableImpact, ColumnImpact)


@dataclass
class ImpactReport:
    """Everything one run found, plus the rendered markdown."""

    changed_files: list[str] = field(default_factory=list)
    matched_tasks: list[MatchedTask] = field(default_factory=list)
    file_impacts: dict[str, FileImpacts] = field(default_factory=dict)
    column_impacts: dict[str, FileColumnImpacts] = field(default_factory=dict)
    sql_changes: ColumnDiffSummary = field(default_factory=lambda: ColumnDiffSummary("sql"))
    yml_changes: ColumnDiffSummary = field(default_factory=lambda: ColumnDiffSummary("yml"))
    markdown: str = ""

    @property
    def total_direct(self) -> int:
        return sum(len(i.direct) for i in self.file_impacts.values())

    @property
    def total_indirect(self) -> int:
        return sum(len(i.indirect) for i in self.file_impacts.values())


def match_tasks(tasks: Iterable[Task], changed_files: list[str]) -> list[MatchedTask]:
    """Pair dbt tasks with the changed ``.sql`` model whose basename is the task name."""
    models: dict[str, str] = {}
    for path in changed_files:
        if path and file_kind(path) == "sql":
            models.setdefault(model_name(path), path)

    matched = []
    for task in tasks:
        if task.connection_type != DBT_CONNECTION_TYPE:
            continue
        file_path = models.get(task.name)
        if file_path:
            matched.append(MatchedTask(task=task, file_path=file_path))
    return matched


def dedupe(items: Iterable[T]) -> list[T]:
    """Drop items whose uniqueness key was already seen, keeping first occurrences."""
    seen: set[tuple] = set()
    result = []
    for item in items:
        if item.key in seen:
            continue
        seen.add(item.key)
        result.append(item)
    return result


def exclude_direct(indirect: Iterable[T], direct: Iterable[T]) -> list[T]:
    """Indirect impacts that are not also direct impacts."""
    direct_keys = {item.key for item in direct}
    return [item for item in indirect if item.key not in direct_keys]


def reconcile(impacts: FileImpacts | FileColumnImpacts) -> None:
    """Make a file's direct and indirect lists disjoint and duplicate-free."""
    impacts.indirect = dedupe(exclude_direct(impacts.indirect, impacts.direct))
    impacts.direct = dedupe(impacts.direct)


def collect_impacts(
    client: LineageClient,
    matched_tasks: list[MatchedTask],
    sql_changes: ColumnDiffSummary,
) -> tuple[dict[str, FileImpacts], dict[str, FileColumnImpacts]]:
    """Query table and column impacts for every matched task, keyed by file path."""
    file_impacts: dict[str, FileImpacts] = {}
    column_impacts: dict[str, FileColumnImpacts] = {}

    for mt in matched_tasks:
        task = mt.task
        table_entry = file_impacts.setdefault(
            mt.file_path, FileImpacts(file_path=mt.file_path, task_name=mt.name)
        )
        column_entry = column_impacts.setdefault(
            mt.file_path, FileColumnImpacts(file_path=mt.file_path, task_name=mt.name)
        )

        direct = client.get_table_impacts(task.asset_id, task.connection_id, mt.entity, True)
        # A model is not an impact of itself
        table_entry.direct.extend(t for t in direct if t.name != mt.name)

        indirect = client.get_table_impacts(task.asset_id, task.connection_id, mt.entity, False)
        table_entry.indirect.extend(indirect)

        changed_columns = sql_changes.changed_columns_for(mt.file_path)
        if not changed_columns:
            logger.info(f"No changed columns for {mt.name}, skipping column-level analysis")
            continue

        column_entry.changed_columns = changed_columns
        direct_cols = client.get_column_impacts(
            task.asset_id, task.connection_id, mt.entity, changed_columns, True
        )
        column_entry.direct.extend(c for c in direct_cols if c.table_name != mt.name)
        column_entry.indirect.extend(
            client.get_column_impacts(
                task.asset_id, task.connection_id, mt.entity, changed_columns, False
            )
        )

    for impacts in file_impacts.values():
        reconcile(impacts)
    for col_impacts in column_impacts.values():
        reconcile(col_impacts)

    return file_impacts, column_impacts


def run_impact_analysis(
    config: ActionConfig,
    context: EventContext,
    client: LineageClient | None = None,
    fetch: ContentFetcher = get_file_content,
) -> ImpactReport:
    """Run the full analysis pipeline and render the report."""
    client = client or LineageClient(config)
    report = ImpactReport()

    report.changed_files = get_changed_files(config.changed_files_list, context.event_path)
    logger.info(
        f"Found {len(report.changed_files)} changed files for {context.event_name or 'unknown'} event"
    )
    logger.info(f"Base SHA: {context.base_sha or '-'}, Head SHA: {context.head_sha or '-'}")

    report.sql_changes = collect_column_changes(
        report.changed_files, "sql", context.base_sha, context.head_sha, fetch
    )
    report.yml_changes = collect_column_changes(
        report.changed_files, "yml", context.base_sha, context.head_sha, fetch
    )

    tasks = client.get_tasks()
    logger.info(f"Retrieved {len(tasks)} tasks from the lineage service")

    report.matched_tasks = match_tasks(tasks, report.changed_files)
    logger.info(f"Found {len(report.matched_tasks)} matched tasks for changed models")
    for mt in report.matched_tasks:
        logger.info(f"Matched task: {mt.name} ({mt.entity}) -> {mt.file_path}")

    report.file_impacts, report.column_impacts = collect_impacts(
        client, report.matched_tasks, report.sql_changes
    )

    report.markdown = render_impact_report(
        file_impacts=report.file_impacts,
        column_impacts=report.column_impacts,
        sql_changes=report.sql_changes,
        yml_changes=report.yml_changes,
        link_base_url=config.link_base_url,
        table_collapse_threshold=config.table_collapse_threshold,
        column_collapse_threshold=config.column_collapse_threshold,
    )
    return report
