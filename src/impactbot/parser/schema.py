"""Column extraction from dbt schema YAML files."""

from __future__ import annotations

import logging
from typing import Any

import yaml

logger = logging.getLogger("impactbot.parser")


def _normalize(columns: Any) -> list[dict[str, Any]]:
    if not isinstance(columns, list):
        return []
    result = []
    for column in columns:
        if isinstance(column, str):
            result.append({"name": column})
        elif isinstance(column, dict):
            result.append(column)
    return result


def extract_columns_from_yml(content: str | None, file_path: str = "") -> list[dict[str, Any]]:
    """Return the declared columns of a schema file as ``{"name": ..., ...}`` dicts.

    Columns of every model in a ``models`` list are flattened into one list;
    a file with only a top-level ``columns`` list uses that directly. Malformed
    YAML is logged and treated as declaring no columns.
    """
    if not content:
        return []
    try:
        schema = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {file_path or '<unknown>'}: {e}")
        return []

    if not isinstance(schema, dict):
        return []

    models = schema.get("models")
    if isinstance(models, list):
        columns: list[dict[str, Any]] = []
        for model in models:
            if isinstance(model, dict):
                columns.extend(_normalize(model.get("columns")))
        return columns

    if schema.get("columns"):
        return _normalize(schema["columns"])

    return []
