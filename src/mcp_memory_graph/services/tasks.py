"""
Task helpers built on the memory service.

Tasks are entities labelled ``Task`` that a project reaches through a
``contains`` edge; dependencies are ``depends_on`` edges between tasks.
Creating a task and linking it are separate statements, so a failure while
linking leaves the task persisted without its edges.
"""

import asyncio
import logging

from ..errors import (
    BatchValidationError,
    EntityNotFoundError,
    MemoryValidationError,
    MissingProjectError,
    ValidationErrorKind,
)
from ..models.entity import MemoryRelationship, RelationshipDirection
from ..models.labels import CONTAINS, DEPENDS_ON, TASK_LABEL
from ..models.tasks import Task, TaskInput
from ..models.update import EntityUpdate
from .memory_service import MemoryService
from .operations import delete_by_name, get_by_name, update_by_name
from .validation import validate_name

logger = logging.getLogger(__name__)


class TaskService:
    """Task CRUD scoped to projects."""

    def __init__(self, memory_service: MemoryService):
        self.memory = memory_service

    def resolve_project(self, project_name: str | None) -> str:
        """The given project, else the configured default project."""
        project = project_name or self.memory.config.default_project
        if not project:
            raise MissingProjectError()
        return project

    async def create_task(self, task: Task, project_name: str | None = None, depends_on: list[str] | None = None) -> Task:
        """
        Create one task, link it to its project and to its dependencies.

        Raises:
            MissingProjectError: no project given and no default configured
            MemoryValidationError: empty name or the task depends on itself
            EntityNotFoundError: a dependency does not exist
            BatchValidationError: the task or one of its edges failed validation
        """
        validate_name(task.name)
        project = self.resolve_project(project_name)
        depends_on = list(depends_on or [])

        if task.name in depends_on:
            raise MemoryValidationError(ValidationErrorKind.self_dependency(task.name))
        for dep in depends_on:
            validate_name(dep)

        found = await asyncio.gather(*(self.memory.find_entity_by_name(dep) for dep in depends_on))
        for dep, entity in zip(depends_on, found):
            if entity is None:
                raise EntityNotFoundError(dep)

        await self.memory.create_entities([task.to_entity()])

        relationships = [MemoryRelationship(from_=project, to=task.name, name=CONTAINS)]
        relationships.extend(MemoryRelationship(from_=task.name, to=dep, name=DEPENDS_ON) for dep in depends_on)
        await self.memory.create_relationships(relationships)

        logger.info(f"Created task {task.name} in {project} with {len(depends_on)} dependencies")
        return task

    async def create_tasks(self, tasks: list[TaskInput], project_name: str | None = None) -> list[Task]:
        """
        Create a batch of tasks under one project.

        Every task is checked before anything is written: a self dependency or
        a dependency that is neither in the batch nor stored rejects the batch.

        Raises:
            MissingProjectError: no project given and no default configured
            BatchValidationError: dependency problems (nothing written), or
                entity/edge validation failures (valid items written)
        """
        project = self.resolve_project(project_name)
        new_names = {item.task.name for item in tasks}

        errors: list[tuple[str, MemoryValidationError]] = []
        for item in tasks:
            name = item.task.name
            if name in item.depends_on:
                errors.append((name, MemoryValidationError(ValidationErrorKind.self_dependency(name))))
            for dep in item.depends_on:
                if dep == name or dep in new_names:
                    continue
                if not dep or await self.memory.find_entity_by_name(dep) is None:
                    errors.append((name, MemoryValidationError(ValidationErrorKind.dependency_not_found(dep))))
        if errors:
            raise BatchValidationError(errors)

        await self.memory.create_entities([item.task.to_entity() for item in tasks])

        relationships: list[MemoryRelationship] = []
        for item in tasks:
            relationships.append(MemoryRelationship(from_=project, to=item.task.name, name=CONTAINS))
            relationships.extend(
                MemoryRelationship(from_=item.task.name, to=dep, name=DEPENDS_ON) for dep in item.depends_on
            )
        await self.memory.create_relationships(relationships)

        logger.info(f"Created {len(tasks)} tasks in {project}")
        return [item.task for item in tasks]

    async def get_task(self, name: str) -> Task | None:
        return await get_by_name(self.memory, name, Task.from_entity)

    async def update_task(self, name: str, update: EntityUpdate) -> None:
        await update_by_name(self.memory, name, update)

    async def delete_task(self, name: str) -> None:
        await delete_by_name(self.memory, name)

    async def list_tasks(self, project_name: str | None = None, lifecycle: str | None = None) -> list[Task]:
        """Tasks directly contained by the project, optionally filtered by a lifecycle label."""
        project = self.resolve_project(project_name)
        related = await self.memory.find_related_entities(project, CONTAINS, RelationshipDirection.OUTGOING, 1)
        tasks = [entity for entity in related if entity.has_label(TASK_LABEL)]
        if lifecycle:
            tasks = [entity for entity in tasks if entity.has_label(lifecycle)]
        return [Task.from_entity(entity) for entity in tasks]
