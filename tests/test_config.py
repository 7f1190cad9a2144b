"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from impactbot.config import INPUT_FIELDS, ActionConfig, load_config
from impactbot.exceptions import ConfigError


class TestConfig:
    def test_default_config(self):
        config = ActionConfig()
        assert config.client_id == ""
        assert config.base_url == ""
        assert config.column_match == "permissive"
        assert config.request_timeout is None
        assert config.table_collapse_threshold == 20
        assert config.column_collapse_threshold == 15

    def test_load_from_action_inputs(self):
        config = load_config({
            "INPUT_API_CLIENT_ID": "cid",
            "INPUT_API_CLIENT_SECRET": " secret ",
            "INPUT_CHANGED_FILES_LIST": "models/a.sql",
            "INPUT_GITHUB_TOKEN": "ghp_x",
            "INPUT_DQLABS_BASE_URL": "https://lineage.example.com/",
            "INPUT_DQLABS_CREATELINK_URL": "https://app.example.com",
        })
        assert config.client_id == "cid"
        assert config.client_secret == "secret"
        assert config.changed_files_list == "models/a.sql"
        assert config.github_token == "ghp_x"
        assert config.api_url == "https://lineage.example.com"
        assert config.link_base_url == "https://app.example.com"

    def test_missing_inputs_default_to_empty(self):
        config = load_config({})
        assert config.client_id == ""
        assert config.changed_files_list == ""

    def test_github_token_fallback(self):
        assert load_config({"GITHUB_TOKEN": "env-token"}).github_token == "env-token"

    def test_overrides_win(self):
        config = load_config(
            {"INPUT_DQLABS_BASE_URL": "https://env.example.com"},
            base_url="https://cli.example.com",
            changed_files_list=None,
        )
        assert config.base_url == "https://cli.example.com"
        assert config.changed_files_list == ""

    def test_column_match_normalized(self):
        assert load_config({"INPUT_COLUMN_MATCH": "STRICT"}).column_match == "strict"
        assert load_config({"INPUT_COLUMN_MATCH": ""}).column_match == "permissive"

    def test_invalid_column_match(self):
        with pytest.raises(ConfigError):
            load_config({"INPUT_COLUMN_MATCH": "fuzzy"})

    def test_request_timeout(self):
        assert load_config({"INPUT_REQUEST_TIMEOUT": "30"}).request_timeout == 30.0
        assert load_config({"INPUT_REQUEST_TIMEOUT": ""}).request_timeout is None

    def test_invalid_override_key(self):
        with pytest.raises(ConfigError):
            load_config({}, nonexistent="value")


class TestActionInputs:
    @pytest.fixture
    def action(self):
        path = Path(__file__).resolve().parent.parent / "action.yml"
        return yaml.safe_load(path.read_text(encoding="utf-8"))

    def test_every_input_is_declared(self, action):
        declared = {name.lower() for name in action["inputs"]}
        assert set(INPUT_FIELDS) <= declared

    def test_every_input_reaches_the_run_step(self, action):
        step = next(s for s in action["runs"]["steps"] if s.get("id") == "impact")
        for name in INPUT_FIELDS:
            assert f"INPUT_{name.upper()}" in step["env"], name

    def test_request_timeout_from_action(self):
        config = load_config({"INPUT_REQUEST_TIMEOUT": "12.5"})
        assert config.request_timeout == 12.5
        assert load_config({"INPUT_REQUEST_TIMEOUT": ""}).request_timeout is None
