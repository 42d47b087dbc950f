"""MCP tool input models.

Each MCP tool validates its raw arguments by constructing the matching model.
Shape checks (types, enum values, required fields) live here; domain rules
such as empty names, allowed labels or traversal depth stay in the validation
engine so they surface as structured validation errors.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .entity import LabelMatchMode, MemoryEntity, MemoryRelationship, RelationshipDirection, RelationshipRef
from .tasks import Task, TaskInput, TaskProperties
from .update import EntityUpdate, ObservationsUpdate, PropertiesUpdate, RelationshipUpdate
from .validators import Labels, Observations, TaskLifecycle

# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class CreateEntitiesParams(BaseModel):
    """Validated input for the ``create_entities`` MCP tool."""

    entities: list[MemoryEntity] = Field(min_length=1)


class EntityNameParams(BaseModel):
    """Input for tools that only take an entity name."""

    name: str


class ObservationsParams(BaseModel):
    """Validated input for the set/add/remove observation tools."""

    name: str
    observations: Observations = []


class FindEntitiesByLabelsParams(BaseModel):
    labels: Labels = Field(min_length=1)
    match_mode: LabelMatchMode = LabelMatchMode.ANY
    required_label: str | None = None


class UpdateEntityParams(BaseModel):
    name: str
    update: EntityUpdate


class DeleteEntitiesParams(BaseModel):
    names: list[str] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


class CreateRelationshipsParams(BaseModel):
    """Validated input for the ``create_relationships`` MCP tool."""

    relationships: list[MemoryRelationship] = Field(min_length=1)


class FindRelationshipsParams(BaseModel):
    """Any combination of filters; all ``None`` matches every edge."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    name: str | None = None


class UpdateRelationshipParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    name: str
    update: RelationshipUpdate


class DeleteRelationshipsParams(BaseModel):
    relationships: list[RelationshipRef] = Field(min_length=1)


class FindRelatedEntitiesParams(BaseModel):
    """Validated input for ``find_related_entities``; depth bounds are a domain rule."""

    name: str
    relationship: str | None = None
    direction: RelationshipDirection | None = None
    depth: int = 1


# ---------------------------------------------------------------------------
# Tasks and projects
# ---------------------------------------------------------------------------


class CreateTaskParams(BaseModel):
    """Validated input for the ``create_task`` MCP tool."""

    task_name: str
    labels: Labels = []
    observations: Observations = []
    properties: TaskProperties | None = None
    project_name: str | None = None
    depends_on: Labels = []

    def to_task(self) -> Task:
        return Task(
            name=self.task_name,
            labels=self.labels,
            observations=self.observations,
            properties=self.properties or TaskProperties(),
        )


class CreateTasksParams(BaseModel):
    tasks: list[TaskInput] = Field(min_length=1)
    project_name: str | None = None


class TaskNameParams(BaseModel):
    task_name: str


class UpdateTaskParams(BaseModel):
    """Replaces the observations and/or properties of a task."""

    task_name: str
    observations: list[str] | None = None
    properties: TaskProperties | None = None

    def to_update(self) -> EntityUpdate:
        update = EntityUpdate()
        if self.observations is not None:
            update.observations = ObservationsUpdate(set=self.observations)
        if self.properties is not None:
            update.properties = PropertiesUpdate(set=self.properties.to_properties())
        return update


class ListTasksParams(BaseModel):
    project_name: str | None = None
    lifecycle: TaskLifecycle | None = None


class ListProjectsParams(BaseModel):
    name_filter: str | None = None


class ProjectContextParams(BaseModel):
    """Look a project up by its name or by a git repository name."""

    project_name: str | None = None
    repository_name: str | None = None

    @model_validator(mode="after")
    def require_one_filter(self) -> Self:
        if not self.project_name and not self.repository_name:
            raise ValueError("project_name or repository_name is required")
        return self


class GraphMetaParams(BaseModel):
    relationship: str | None = None
