"""Best-effort column extraction from dbt model SQL.

This is a regex heuristic, not a SQL parser. The last ``SELECT ... FROM`` in
the file is taken as the model's output projection, so CTEs feeding into it
are ignored. Multi-line expressions, window functions with complex arguments
and nested CTEs with different column sets are only approximated.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

_LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_SELECT_FROM = re.compile(r"SELECT\s+([\s\S]+?)\s+FROM", re.IGNORECASE)
# dbt models sometimes end on a bare SELECT with no FROM
_SELECT_TRAILING = re.compile(r"SELECT\s+([\s\S]+?)(?:\s+FROM|\s*\Z)", re.IGNORECASE)
# Commas not enclosed in parentheses
_TOP_LEVEL_COMMA = re.compile(r"\s*,\s*(?![^(]*\))")
_ALIAS = re.compile(r"\s+as\s+.*$", re.IGNORECASE)
_TABLE_PREFIX = re.compile(r".*\.")
_QUOTES = re.compile(r"[`\"']")
_CALL = re.compile(r"\(.*$")
_NUMERIC = re.compile(r"^\d+$")

SQL_KEYWORDS = frozenset({"and", "or", "where", "group", "order", "having"})


def strip_comments(sql: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments."""
    return _BLOCK_COMMENT.sub("", _LINE_COMMENT.sub("", sql))


def final_select_clause(sql: str) -> str | None:
    """Return the projection text of the last SELECT in ``sql``, if any."""
    clean = strip_comments(sql)
    spans = [m.group(1) for m in _SELECT_FROM.finditer(clean)]
    if not spans:
        match = _SELECT_TRAILING.search(clean)
        if match:
            spans.append(match.group(1))
    return spans[-1] if spans else None


def _clean_column(expression: str) -> str:
    cleaned = _ALIAS.sub("", expression)
    cleaned = _TABLE_PREFIX.sub("", cleaned).strip()
    tokens = cleaned.split()
    cleaned = tokens[0] if tokens else ""
    cleaned = _QUOTES.sub("", cleaned)
    return _CALL.sub("", cleaned)


def _is_column(token: str) -> bool:
    return bool(
        token
        and not token.startswith("--")
        and not _NUMERIC.match(token)
        and token.lower() not in SQL_KEYWORDS
    )


def iter_columns_from_sql(sql: str | None) -> Iterator[str]:
    """Yield the projected column names of the final SELECT, first occurrence only."""
    if not sql or not isinstance(sql, str):
        return
    clause = final_select_clause(sql)
    if not clause:
        return

    seen: set[str] = set()
    for expression in _TOP_LEVEL_COMMA.split(clause):
        column = _clean_column(expression)
        if _is_column(column) and column not in seen:
            seen.add(column)
            yield column


def extract_columns_from_sql(sql: str | None) -> list[str]:
    """Extract the deduplicated output columns of a dbt model, in order."""
    return list(iter_columns_from_sql(sql))
