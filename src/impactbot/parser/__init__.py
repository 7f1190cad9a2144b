"""Column extraction for dbt model SQL and schema YAML files."""

from impactbot.parser.schema import extract_columns_from_yml
from impactbot.parser.sql import extract_columns_from_sql, iter_columns_from_sql

__all__ = [
    "extract_columns_from_sql",
    "extract_columns_from_yml",
    "iter_columns_from_sql",
]
