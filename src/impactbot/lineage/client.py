"""DQLabs lineage API client.

Every public call makes exactly one request. Failures of any kind (network,
non-2xx status, malformed body) are logged with the entity involved and turn
into an empty result, so one bad call only thins out the report.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import BaseModel, ValidationError

from impactbot.config import ActionConfig
from impactbot.exceptions import LineageAPIError
from impactbot.lineage.matcher import matches_any
from impactbot.models import (
    ColumnImpact,
    ImpactAnalysisResponse,
    Identifier,
    TableImpact,
    Task,
    TaskListResponse,
)

logger = logging.getLogger("impactbot.lineage")

TASKS_PATH = "/api/pipeline/task/"
IMPACT_ANALYSIS_PATH = "/api/lineage/impact-analysis/"

INDIRECT_DEPTH = 10
FIELD_OFFSET = 0
FIELD_LIMIT = 200

TASK_LIST_PAYLOAD: dict[str, Any] = {
    "chartType": 0,
    "search": {},
    "page": 0,
    "pageLimit": 100,
    "sortBy": "name",
    "orderBy": "asc",
    "date_filter": {"days": "All", "selected": "All"},
    "chart_filter": {},
    "is_chart": True,
}


class LineageClient:
    """Talks to the task and impact-analysis endpoints of the lineage service."""

    def __init__(self, config: ActionConfig) -> None:
        self.config = config

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "client-id": self.config.client_id,
            "client-secret": self.config.client_secret,
        }

    def _post(self, path: str, payload: dict[str, Any], model: type[BaseModel]) -> Any:
        """POST ``payload`` and decode the body into ``model``.

        Raises:
            LineageAPIError: on transport errors, non-2xx responses and bodies
                that are not JSON or do not fit ``model``.
        """
        url = f"{self.config.api_url}{path}"
        try:
            response = requests.post(
                url,
                json=payload,
                headers=self.headers,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise LineageAPIError(f"request to {url} failed: {e}") from e

        if not response.ok:
            raise LineageAPIError(
                f"{url} returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise LineageAPIError(
                f"unexpected response body from {url}: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _log_failure(self, operation: str, entity: Identifier, error: LineageAPIError) -> None:
        logger.error(f"[{operation}] Error for {entity}: {error}")
        if error.status_code is not None:
            logger.error(f"[{operation}] Response status: {error.status_code}")
            logger.error(f"[{operation}] Response data: {error.body}")

    @staticmethod
    def impact_payload(
        asset_id: Identifier,
        connection_id: Identifier,
        entity: Identifier,
        view_by: str,
        is_direct: bool,
    ) -> dict[str, Any]:
        """Request body for impact analysis; only indirect requests set a depth."""
        more_options: dict[str, Any] = {"view_by": view_by}
        if not is_direct:
            more_options["depth"] = INDIRECT_DEPTH
        payload: dict[str, Any] = {
            "connection_id": connection_id,
            "asset_id": asset_id,
            "entity": entity,
            "moreOptions": more_options,
            "search_key": "",
        }
        if view_by == "column":
            payload["field_offset"] = FIELD_OFFSET
            payload["field_limit"] = FIELD_LIMIT
        return payload

    def get_tasks(self) -> list[Task]:
        """All pipeline tasks the service knows about (first page)."""
        try:
            body = self._post(TASKS_PATH, TASK_LIST_PAYLOAD, TaskListResponse)
        except LineageAPIError as e:
            self._log_failure("get_tasks", "task list", e)
            return []
        return body.response.data

    def get_table_impacts(
        self,
        asset_id: Identifier,
        connection_id: Identifier,
        entity: Identifier,
        is_direct: bool = True,
    ) -> list[TableImpact]:
        """Tables impacted by ``entity``; direct is one hop, indirect goes 10 deep."""
        payload = self.impact_payload(asset_id, connection_id, entity, "table", is_direct)
        try:
            body = self._post(IMPACT_ANALYSIS_PATH, payload, ImpactAnalysisResponse)
        except LineageAPIError as e:
            self._log_failure("get_table_impacts", entity, e)
            return []
        return body.response.data.tables

    def get_column_impacts(
        self,
        asset_id: Identifier,
        connection_id: Identifier,
        entity: Identifier,
        changed_columns: list[str],
        is_direct: bool = True,
    ) -> list[ColumnImpact]:
        """Downstream columns whose names match one of ``changed_columns``."""
        logger.info(
            f"[get_column_impacts] {entity} ({'direct' if is_direct else 'indirect'}), "
            f"changed columns: [{', '.join(changed_columns)}]"
        )
        payload = self.impact_payload(asset_id, connection_id, entity, "column", is_direct)
        logger.debug(f"[get_column_impacts] Payload: {payload}")
        try:
            body = self._post(IMPACT_ANALYSIS_PATH, payload, ImpactAnalysisResponse)
        except LineageAPIError as e:
            self._log_failure("get_column_impacts", entity, e)
            return []

        tables = body.response.data.tables
        logger.debug(f"[get_column_impacts] Found {len(tables)} tables in response")

        impacts: list[ColumnImpact] = []
        for table in tables:
            for column in table.fields:
                if matches_any(column.name, changed_columns, self.config.column_match):
                    logger.debug(f"[get_column_impacts] Impacted column: {table.name}.{column.name}")
                    impacts.append(ColumnImpact.from_field(table, column))

        logger.info(f"[get_column_impacts] Found {len(impacts)} column impacts for {entity}")
        return impacts
