"""Column diff engine - which columns did a change add or remove?

Compares the columns a model declares at the base revision with the columns
it declares at the head revision. SQL models are compared by bare column
name; schema YAML files are compared by each column's ``name`` but keep the
full column definition in the result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from impactbot.github.event import file_kind
from impactbot.github.revisions import get_file_content
from impactbot.parser import extract_columns_from_sql, extract_columns_from_yml

logger = logging.getLogger("impactbot.github")

ContentFetcher = Callable[[str, str], "str | None"]


@dataclass
class ColumnChange:
    """One column added to or removed from a file."""

    column: str
    file: str
    change_type: str  # 'added', 'removed'


@dataclass
class FileColumnDiff:
    """Column changes for a single file."""

    file: str
    added: list = field(default_factory=list)
    removed: list = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


@dataclass
class ColumnDiffSummary:
    """Column changes aggregated over every processed file of one kind."""

    kind: str  # 'sql', 'yml'
    changes: list[FileColumnDiff] = field(default_factory=list)
    added: list = field(default_factory=list)
    removed: list = field(default_factory=list)

    def add(self, diff: FileColumnDiff) -> None:
        self.added.extend(diff.added)
        self.removed.extend(diff.removed)
        if diff.has_changes:
            self.changes.append(diff)

    def column_changes(self) -> list[ColumnChange]:
        """Flatten to tagged ``{column, file}`` records, added first."""
        result = []
        for diff in self.changes:
            result.extend(ColumnChange(column_name(c), diff.file, "added") for c in diff.added)
        for diff in self.changes:
            result.extend(ColumnChange(column_name(c), diff.file, "removed") for c in diff.removed)
        return result

    def changed_columns_for(self, file: str) -> list[str]:
        """Names of the added then removed columns of ``file``."""
        added: list[str] = []
        removed: list[str] = []
        for diff in self.changes:
            if diff.file == file:
                added.extend(column_name(c) for c in diff.added)
                removed.extend(column_name(c) for c in diff.removed)
        return added + removed


def column_name(column: Any) -> str:
    """Name of a plain (str) or structured (dict) column."""
    if isinstance(column, dict):
        name = column.get("name")
        return "" if name is None else str(name)
    return str(column)


def column_names(columns: Iterable) -> list[str]:
    return [column_name(c) for c in columns]


def diff_plain(before: list[str], after: list[str]) -> tuple[list[str], list[str]]:
    """Added and removed names, compared by exact string equality."""
    before_set = set(before)
    after_set = set(after)
    added = [c for c in after if c not in before_set]
    removed = [c for c in before if c not in after_set]
    return added, removed


def diff_structured(
    before: list[dict[str, Any]], after: list[dict[str, Any]]
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Added and removed column definitions, compared by ``name`` only."""
    before_names = {c.get("name") for c in before}
    after_names = {c.get("name") for c in after}
    added = [c for c in after if c.get("name") not in before_names]
    removed = [c for c in before if c.get("name") not in after_names]
    return added, removed


def diff_file_columns(
    file: str,
    before_content: str | None,
    after_content: str,
) -> FileColumnDiff:
    """Diff the columns of one file's base and head contents."""
    if file_kind(file) == "yml":
        before = extract_columns_from_yml(before_content, file) if before_content else []
        after = extract_columns_from_yml(after_content, file)
        added, removed = diff_structured(before, after)
    else:
        before = extract_columns_from_sql(before_content) if before_content else []
        after = extract_columns_from_sql(after_content)
        logger.debug(f"Base columns for {file}: [{', '.join(before)}]")
        logger.debug(f"Head columns for {file}: [{', '.join(after)}]")
        added, removed = diff_plain(before, after)
    return FileColumnDiff(file=file, added=added, removed=removed)


def collect_column_changes(
    changed_files: Iterable[str],
    kind: str,
    base_sha: str | None,
    head_sha: str | None,
    fetch: ContentFetcher = get_file_content,
) -> ColumnDiffSummary:
    """Diff every changed file of ``kind`` ('sql' or 'yml').

    Files without head content (deleted, or unreadable) are skipped, and a
    failure in one file never stops the others.
    """
    summary = ColumnDiffSummary(kind=kind)
    for file in changed_files:
        if not file or file_kind(file) != kind:
            continue
        try:
            before_content = fetch(base_sha, file) if base_sha else None
            after_content = fetch(head_sha, file)
            if not after_content:
                logger.warning(f"No head content found for {file}")
                continue
            diff = diff_file_columns(file, before_content, after_content)
        except Exception as e:
            logger.error(f"Error extracting columns from {file}: {e}", exc_info=True)
            continue

        if diff.has_changes:
            logger.info(
                f"{file}: added [{', '.join(column_names(diff.added))}], "
                f"removed [{', '.join(column_names(diff.removed))}]"
            )
        summary.add(diff)

    for change in summary.column_changes():
        logger.debug(f"Column {change.change_type}: {change.column} ({change.file})")
    logger.info(
        f"{kind.upper()} column changes - added: {len(summary.added)}, "
        f"removed: {len(summary.removed)}"
    )
    return summary
