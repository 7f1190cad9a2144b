"""Configuration management for impactbot.

Inputs arrive the way GitHub Actions hands them to a step: one ``INPUT_<NAME>``
environment variable per action input. CLI options may override any of them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from impactbot.exceptions import ConfigError

# Action input name -> ActionConfig field
INPUT_FIELDS = {
    "api_client_id": "client_id",
    "api_client_secret": "client_secret",
    "changed_files_list": "changed_files_list",
    "github_token": "github_token",
    "dqlabs_base_url": "base_url",
    "dqlabs_createlink_url": "link_base_url",
    "column_match": "column_match",
    "request_timeout": "request_timeout",
}

COLUMN_MATCH_MODES = ("permissive", "strict")

TABLE_COLLAPSE_THRESHOLD = 20
COLUMN_COLLAPSE_THRESHOLD = 15


class ActionConfig(BaseModel):
    """Everything a run needs, constructed once at process entry."""

    client_id: str = ""
    client_secret: str = ""
    changed_files_list: str = ""
    github_token: str = ""
    base_url: str = ""
    link_base_url: str = ""
    column_match: str = "permissive"
    request_timeout: float | None = None
    table_collapse_threshold: int = Field(default=TABLE_COLLAPSE_THRESHOLD, ge=0)
    column_collapse_threshold: int = Field(default=COLUMN_COLLAPSE_THRESHOLD, ge=0)

    @field_validator("column_match")
    @classmethod
    def check_column_match(cls, value: str) -> str:
        value = (value or "permissive").strip().lower()
        if value not in COLUMN_MATCH_MODES:
            raise ValueError(
                f"column_match must be one of {', '.join(COLUMN_MATCH_MODES)}, got '{value}'"
            )
        return value

    @field_validator("request_timeout", mode="before")
    @classmethod
    def empty_timeout(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def api_url(self) -> str:
        """Base URL of the lineage service without a trailing slash."""
        return self.base_url.rstrip("/")


def _input_env_name(name: str) -> str:
    return "INPUT_" + name.replace(" ", "_").upper()


def load_config(environ: Mapping[str, str] | None = None, **overrides: Any) -> ActionConfig:
    """Build the run configuration from action inputs plus explicit overrides.

    Overrides whose value is None are ignored so that unset CLI options fall
    through to the environment.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}
    for input_name, field_name in INPUT_FIELDS.items():
        value = env.get(_input_env_name(input_name))
        if value is not None:
            data[field_name] = value.strip()

    # actions/checkout style workflows often expose the token only as GITHUB_TOKEN
    if not data.get("github_token") and env.get("GITHUB_TOKEN"):
        data["github_token"] = env["GITHUB_TOKEN"]

    for key, value in overrides.items():
        if key not in ActionConfig.model_fields:
            raise ConfigError(f"Invalid config key: {key}")
        if value is not None:
            data[key] = value

    try:
        return ActionConfig(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(problems) from e
