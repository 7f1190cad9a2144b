"""Layered column-name matching for column-level impact.

Lineage fields rarely carry the exact spelling a model uses, so a field
counts as impacted when any layer matches:

1. exact, case-insensitive
2. substring in either direction (``permissive`` mode only)
3. exact after stripping backtick, double and single quotes

The substring layer is permissive on purpose and will report e.g. ``valid``
for a changed ``id``. An empty name is a substring of every name, so in
``permissive`` mode a field without a name matches any changed column. Use
``strict`` mode to drop both.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_QUOTES = re.compile(r"[`\"']")


def column_matches(field_name: str, changed_column: str, mode: str = "permissive") -> bool:
    """Whether a lineage field refers to a changed column."""
    field_lower = (field_name or "").lower()
    changed_lower = (changed_column or "").lower()

    if mode == "permissive":
        if changed_lower in field_lower or field_lower in changed_lower:
            return True
    elif not field_lower or not changed_lower:
        return False

    if field_lower == changed_lower:
        return True

    return _QUOTES.sub("", field_lower) == _QUOTES.sub("", changed_lower)


def matches_any(field_name: str, changed_columns: Iterable[str], mode: str = "permissive") -> bool:
    return any(column_matches(field_name, col, mode) for col in changed_columns)
