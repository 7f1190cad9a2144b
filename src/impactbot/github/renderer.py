"""Markdown renderer for the PR Impact Bot.

Generates the GitHub-flavored markdown report with:
  - Directly and indirectly impacted models per changed file
  - Directly and indirectly impacted columns per changed file
  - Totals
  - SQL and YML column changes
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit, urlunsplit

from impactbot.config import COLUMN_COLLAPSE_THRESHOLD, TABLE_COLLAPSE_THRESHOLD
from impactbot.github.column_diff import ColumnDiffSummary, column_names
from impactbot.models import ColumnImpact, FileColumnImpacts, FileImpacts, TableImpact

logger = logging.getLogger("impactbot.github")

PLACEHOLDER_URL = "#"

NO_COLUMN_IMPACTS_WARNING = (
    "## Column-Level Impact Analysis\n\n"
    "**⚠️ Column changes detected but no impacts found via DQLabs API.**\n\n"
    "This could indicate:\n"
    "- The DQLabs lineage data may not be up-to-date\n"
    "- Column-level lineage might not be fully configured\n"
    "- The changed columns may not have downstream dependencies\n"
    "- API connectivity or authentication issues\n\n"
    "**Recommendation:** Check the DQLabs platform directly to verify column-level impacts.\n\n"
)

NO_COLUMN_CHANGES = (
    "## Column-Level Impact Analysis\n\n**No column changes detected in SQL files.**\n\n"
)


def _with_path(base_url: str, path: str) -> str | None:
    """Replace the path of ``base_url``; None if it is not an absolute URL."""
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        return None
    return urlunsplit(parts._replace(path=path or "/"))


def build_item_url(item: TableImpact | None, base_url: str) -> str:
    """Link to the DQLabs page of an impacted table, pipeline or transform."""
    if item is None or not base_url:
        return PLACEHOLDER_URL
    try:
        if item.asset_group == "pipeline":
            if item.is_transform:
                path = f"/observe/pipeline/transformation/{item.redirect_id}/run"
            else:
                path = f"/observe/pipeline/task/{item.redirect_id}/run"
        elif item.asset_group == "data":
            path = f"/observe/data/{item.redirect_id}/measures"
        else:
            return PLACEHOLDER_URL
        return _with_path(base_url, path) or PLACEHOLDER_URL
    except Exception as e:
        logger.error(f"Error constructing URL for {item.name}: {e}")
        return PLACEHOLDER_URL


def build_column_url(item: ColumnImpact | None, base_url: str) -> str:
    """Link for an impacted column: its table's run page when known, else the app root."""
    if item is None or not base_url:
        return PLACEHOLDER_URL
    try:
        parts = urlsplit(base_url)
        path = f"/observe/pipeline/task/{item.redirect_id}/run" if item.redirect_id else parts.path
        return _with_path(base_url, path) or PLACEHOLDER_URL
    except Exception as e:
        logger.error(
            f"Error constructing column URL for {item.table_name}.{item.column_name}: {e}"
        )
        return PLACEHOLDER_URL


def _collapsible(summary: str, content: str) -> str:
    return (
        "<details>\n"
        f"<summary><b>{summary} - Click to expand</b></summary>\n\n"
        f"{content}\n"
        "</details>"
    )


def render_table_section(
    file_impacts: dict[str, FileImpacts],
    link_base_url: str = "",
    collapse_threshold: int = TABLE_COLLAPSE_THRESHOLD,
) -> str:
    """Per-file lists of directly and indirectly impacted models."""
    lines: list[str] = []
    total = 0
    for file_path, impacts in file_impacts.items():
        total += len(impacts.direct) + len(impacts.indirect)
        lines.append(f"### File: {file_path}")
        lines.append(f"**Model:** {impacts.task_name}")
        lines.append("")
        lines.append(f"#### Directly Impacted ({len(impacts.direct)})")
        for model in impacts.direct:
            lines.append(f"- [{model.name or 'Unknown'}]({build_item_url(model, link_base_url)})")
        lines.append("")
        lines.append(f"#### Indirectly Impacted ({len(impacts.indirect)})")
        for model in impacts.indirect:
            lines.append(f"- [{model.name or 'Unknown'}]({build_item_url(model, link_base_url)})")
        lines.append("")
        lines.append("")

    content = "\n".join(lines) + ("\n" if lines else "")
    if total > collapse_threshold:
        return _collapsible(
            f"Impact Analysis ({total} total impacts - {len(file_impacts)} files changed)",
            content,
        )
    return content


def _column_line(column: ColumnImpact, link_base_url: str) -> str:
    url = build_column_url(column, link_base_url)
    return (
        f"- [{column.table_name or 'Unknown'}.{column.column_name or 'Unknown'}]({url})"
        f" - *{column.impact_type or 'Referenced'}* ({column.data_type or 'Unknown Type'})"
    )


def render_column_section(
    column_impacts: dict[str, FileColumnImpacts],
    link_base_url: str = "",
    collapse_threshold: int = COLUMN_COLLAPSE_THRESHOLD,
) -> str:
    """Per-file column impacts, or a note explaining why there are none."""
    lines: list[str] = []
    total = 0
    files_with_changes = 0

    for file_path, impacts in column_impacts.items():
        if not impacts.changed_columns:
            continue
        files_with_changes += 1
        total += len(impacts.direct) + len(impacts.indirect)

        lines.append(f"### File: {file_path}")
        lines.append(f"**Model:** {impacts.task_name}")
        lines.append(f"**Changed Columns:** {', '.join(impacts.changed_columns)}")
        lines.append("")

        lines.append(f"#### Directly Impacted Columns ({len(impacts.direct)})")
        if impacts.direct:
            lines.extend(_column_line(c, link_base_url) for c in impacts.direct)
        else:
            lines.append("*No direct column impacts detected via DQLabs API*")

        lines.append("")
        lines.append(f"#### Indirectly Impacted Columns ({len(impacts.indirect)})")
        if impacts.indirect:
            lines.extend(_column_line(c, link_base_url) for c in impacts.indirect)
        else:
            lines.append("*No indirect column impacts detected via DQLabs API*")
        lines.append("")
        lines.append("")

    if not files_with_changes:
        return NO_COLUMN_CHANGES
    if total == 0:
        return NO_COLUMN_IMPACTS_WARNING

    content = "\n".join(lines) + "\n"
    if total > collapse_threshold:
        return _collapsible(
            f"Column-Level Impact Analysis ({total} total column impacts - "
            f"{files_with_changes} files with column changes)",
            content,
        )
    return f"## Column-Level Impact Analysis\n\n{content}"


def render_totals(
    file_impacts: dict[str, FileImpacts],
    column_impacts: dict[str, FileColumnImpacts],
) -> str:
    total_direct = sum(len(i.direct) for i in file_impacts.values())
    total_indirect = sum(len(i.indirect) for i in file_impacts.values())
    column_direct = sum(len(i.direct) for i in column_impacts.values())
    column_indirect = sum(len(i.indirect) for i in column_impacts.values())
    files_with_changes = sum(1 for i in column_impacts.values() if i.changed_columns)

    return (
        "\n## Summary of Impacts\n"
        "### Model-Level Impacts\n"
        f"- **Total Directly Impacted:** {total_direct}\n"
        f"- **Total Indirectly Impacted:** {total_indirect}\n"
        f"- **Files Changed:** {len(file_impacts)}\n\n"
        "### Column-Level Impacts\n"
        f"- **Total Directly Impacted Columns:** {column_direct}\n"
        f"- **Total Indirectly Impacted Columns:** {column_indirect}\n"
        f"- **Files with Column Changes:** {files_with_changes}\n\n"
    )


def render_column_changes(title: str, changes: ColumnDiffSummary) -> str:
    added = column_names(changes.added)
    removed = column_names(changes.removed)
    return (
        f"\n### {title} Column Changes\n"
        f"Added columns({len(added)}): {', '.join(added)}\n"
        f"Removed columns({len(removed)}): {', '.join(removed)}\n"
    )


def render_impact_report(
    file_impacts: dict[str, FileImpacts],
    column_impacts: dict[str, FileColumnImpacts],
    sql_changes: ColumnDiffSummary | None = None,
    yml_changes: ColumnDiffSummary | None = None,
    link_base_url: str = "",
    table_collapse_threshold: int = TABLE_COLLAPSE_THRESHOLD,
    column_collapse_threshold: int = COLUMN_COLLAPSE_THRESHOLD,
) -> str:
    """Render the full impact analysis as one markdown document."""
    sections = [
        "## Impact Analysis Report\n\n",
        render_table_section(file_impacts, link_base_url, table_collapse_threshold),
        render_column_section(column_impacts, link_base_url, column_collapse_threshold),
        render_totals(file_impacts, column_impacts),
        render_column_changes("SQL", sql_changes or ColumnDiffSummary("sql")),
        render_column_changes("YML", yml_changes or ColumnDiffSummary("yml")),
    ]
    return "".join(sections)
