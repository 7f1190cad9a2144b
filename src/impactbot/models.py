"""Data models for lineage service responses and impact results.

Service payloads are decoded into pydantic models at the client boundary so
downstream code can rely on well-formed lists and attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Identifier = Union[str, int, None]

COLUMN_REFERENCED = "Column Referenced"


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


class Task(BaseModel):
    """A pipeline task known to the lineage service."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    task_id: Identifier = None
    asset_id: Identifier = None
    connection_id: Identifier = None
    connection_type: str = ""

    @field_validator("name", "connection_type", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ImpactField(BaseModel):
    """A column of an impacted table (column view only)."""

    model_config = ConfigDict(extra="allow")

    id: Identifier = None
    name: str = ""
    data_type: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class TableImpact(BaseModel):
    """A downstream table, pipeline or report returned by impact analysis."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    id: Identifier = None
    entity: Identifier = None
    connection_id: Identifier = None
    asset_name: str | None = None
    redirect_id: Identifier = None
    asset_group: str | None = None
    is_transform: bool = False
    flow: str | None = None
    depth: int | None = None
    fields: list[ImpactField] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def default_fields(cls, value: Any) -> Any:
        return _none_to_list(value)

    @field_validator("is_transform", mode="before")
    @classmethod
    def coerce_transform(cls, value: Any) -> Any:
        return bool(value)

    @property
    def key(self) -> tuple:
        return (self.name, self.connection_id, self.asset_name)


class ColumnImpact(BaseModel):
    """A downstream column that references one of the changed columns."""

    table_name: str | None = None
    column_name: str = ""
    column_id: Identifier = None
    data_type: str | None = None
    table_id: Identifier = None
    redirect_id: Identifier = None
    entity: Identifier = None
    connection_id: Identifier = None
    asset_name: str | None = None
    flow: str | None = None
    depth: int | None = None
    impact_type: str = COLUMN_REFERENCED

    @property
    def key(self) -> tuple:
        return (self.table_name, self.column_name, self.connection_id)

    @classmethod
    def from_field(cls, table: TableImpact, column: ImpactField) -> ColumnImpact:
        return cls(
            table_name=table.name,
            column_name=column.name,
            column_id=column.id,
            data_type=column.data_type,
            table_id=table.id,
            redirect_id=table.redirect_id,
            entity=table.entity,
            connection_id=table.connection_id,
            asset_name=table.asset_name,
            flow=table.flow,
            depth=table.depth,
        )


class _ResponseEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TaskListData(_ResponseEnvelope):
    data: list[Task] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def default_data(cls, value: Any) -> Any:
        return _none_to_list(value)


class TaskListResponse(_ResponseEnvelope):
    """Body of ``POST /api/pipeline/task/``."""

    response: TaskListData = Field(default_factory=TaskListData)

    @field_validator("response", mode="before")
    @classmethod
    def default_response(cls, value: Any) -> Any:
        return {} if value is None else value


class ImpactTables(_ResponseEnvelope):
    tables: list[TableImpact] = Field(default_factory=list)

    @field_validator("tables", mode="before")
    @classmethod
    def default_tables(cls, value: Any) -> Any:
        return _none_to_list(value)


class ImpactData(_ResponseEnvelope):
    data: ImpactTables = Field(default_factory=ImpactTables)

    @field_validator("data", mode="before")
    @classmethod
    def default_data(cls, value: Any) -> Any:
        return {} if value is None else value


class ImpactAnalysisResponse(_ResponseEnvelope):
    """Body of ``POST /api/lineage/impact-analysis/``."""

    response: ImpactData = Field(default_factory=ImpactData)

    @field_validator("response", mode="before")
    @classmethod
    def default_response(cls, value: Any) -> Any:
        return {} if value is None else value


@dataclass
class MatchedTask:
    """A dbt task whose name matches a changed model file."""

    task: Task
    file_path: str

    def __post_init__(self) -> None:
        if not self.file_path:
            raise ValueError(f"Matched task '{self.task.name}' has no file path")

    @property
    def name(self) -> str:
        return self.task.name

    @property
    def entity(self) -> Identifier:
        return self.task.task_id if self.task.task_id is not None else ""


@dataclass
class FileImpacts:
    """Table-level impacts collected for one changed model file."""

    file_path: str
    task_name: str
    direct: list[TableImpact] = field(default_factory=list)
    indirect: list[TableImpact] = field(default_factory=list)


@dataclass
class FileColumnImpacts:
    """Column-level impacts collected for one changed model file."""

    file_path: str
    task_name: str
    changed_columns: list[str] = field(default_factory=list)
    direct: list[ColumnImpact] = field(default_factory=list)
    indirect: list[ColumnImpact] = field(default_factory=list)
