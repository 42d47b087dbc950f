"""Task and project models layered on top of plain entities.

Task fields live in the entity's property map. ``TaskProperties.from_properties``
is lenient: unknown enum values and unparseable timestamps fall back to
defaults instead of failing, since tasks may have been written by hand.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .entity import MemoryEntity, to_json_dict
from .labels import TASK_LABEL
from .values import DateTimeValue, MemoryValue, Properties, StringValue

logger = logging.getLogger(__name__)


class TaskType(str, Enum):
    FEATURE = "feature"
    BUG = "bug"
    CHORE = "chore"
    IMPROVEMENT = "improvement"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_enum(enum_cls: type[Enum], raw: MemoryValue | None, default: Enum) -> Any:
    if not isinstance(raw, StringValue):
        return default
    text = raw.value.strip().lower()
    if enum_cls is TaskStatus and text == "inprogress":
        return TaskStatus.IN_PROGRESS
    try:
        return enum_cls(text)
    except ValueError:
        logger.debug(f"Unknown {enum_cls.__name__} value '{raw.value}', using {default.value}")
        return default


def _parse_timestamp(raw: MemoryValue | None) -> datetime | None:
    """DateTime variants are used as is; strings must be RFC 3339."""
    if isinstance(raw, DateTimeValue):
        return raw.value.astimezone(timezone.utc)
    if isinstance(raw, StringValue):
        text = raw.value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return None
        return parsed.astimezone(timezone.utc)
    return None


class TaskProperties(BaseModel):
    """Typed view of a task entity's property map."""

    description: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    due_date: datetime | None = None
    task_type: TaskType = TaskType.FEATURE
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM

    @classmethod
    def from_properties(cls, props: Properties) -> TaskProperties:
        raw_description = props.get("description")
        if isinstance(raw_description, StringValue):
            description = raw_description.value
        elif raw_description is not None:
            description = str(raw_description.value)
        else:
            description = ""

        return cls(
            description=description,
            created_at=_parse_timestamp(props.get("created_at")) or _utcnow(),
            updated_at=_parse_timestamp(props.get("updated_at")) or _utcnow(),
            due_date=_parse_timestamp(props.get("due_date")),
            task_type=_parse_enum(TaskType, props.get("task_type"), TaskType.FEATURE),
            status=_parse_enum(TaskStatus, props.get("status"), TaskStatus.TODO),
            priority=_parse_enum(Priority, props.get("priority"), Priority.MEDIUM),
        )

    def to_properties(self) -> Properties:
        props: Properties = {
            "description": StringValue(value=self.description),
            "created_at": DateTimeValue(value=self.created_at),
            "updated_at": DateTimeValue(value=self.updated_at),
            "task_type": StringValue(value=self.task_type.value),
            "status": StringValue(value=self.status.value),
            "priority": StringValue(value=self.priority.value),
        }
        if self.due_date is not None:
            props["due_date"] = DateTimeValue(value=self.due_date)
        return props


class Task(BaseModel):
    """A task entity with its typed properties."""

    name: str
    labels: list[str] = Field(default_factory=lambda: [TASK_LABEL])
    observations: list[str] = Field(default_factory=list)
    properties: TaskProperties = Field(default_factory=TaskProperties)

    @classmethod
    def from_entity(cls, entity: MemoryEntity) -> Task:
        return cls(
            name=entity.name,
            labels=list(entity.labels),
            observations=list(entity.observations),
            properties=TaskProperties.from_properties(entity.properties),
        )

    def to_entity(self) -> MemoryEntity:
        """Entity form; the Task label is always present."""
        labels = list(self.labels)
        if TASK_LABEL not in labels:
            labels.append(TASK_LABEL)
        return MemoryEntity(
            name=self.name,
            labels=labels,
            observations=list(self.observations),
            properties=self.properties.to_properties(),
        )

    def to_dict(self) -> dict[str, Any]:
        return to_json_dict(self)


class TaskInput(BaseModel):
    """One element of a batch task create."""

    task: Task
    depends_on: list[str] = Field(default_factory=list)


class ProjectContext(BaseModel):
    """A project entity and the entities grouped around it."""

    project: MemoryEntity
    git_repository: MemoryEntity | None = None
    tasks: list[MemoryEntity] = Field(default_factory=list)
    notes: list[MemoryEntity] = Field(default_factory=list)
    technologies: list[MemoryEntity] = Field(default_factory=list)
    other_related_entities: list[MemoryEntity] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return to_json_dict(self)
