"""Project listing, project context and graph metadata helpers."""

import logging

from ..errors import EntityNotFoundError
from ..models.entity import LabelMatchMode, MemoryEntity, RelationshipDirection
from ..models.labels import (
    COMPONENT_LABEL,
    CONTAINS,
    GIT_REPOSITORY_LABEL,
    GRAPH_META_DEPTH,
    GRAPH_META_ROOT,
    NOTE_LABEL,
    PROJECT_LABEL,
    RELATES_TO,
    TASK_LABEL,
    TECHNOLOGY_LABEL,
    USES,
)
from ..models.tasks import ProjectContext
from .memory_service import MemoryService
from .operations import require_by_name

logger = logging.getLogger(__name__)

# Labels already grouped into their own context bucket.
_GROUPED_LABELS = frozenset({TASK_LABEL, NOTE_LABEL, COMPONENT_LABEL, TECHNOLOGY_LABEL})


class ProjectService:
    """Read-side helpers around project entities."""

    def __init__(self, memory_service: MemoryService):
        self.memory = memory_service

    async def list_projects(self, name_filter: str | None = None) -> list[MemoryEntity]:
        """All ``Project`` entities, optionally filtered by a substring of the name or an observation."""
        projects = await self.memory.find_entities_by_labels([PROJECT_LABEL], LabelMatchMode.ALL)
        if name_filter:
            projects = [
                p for p in projects if name_filter in p.name or any(name_filter in o for o in p.observations)
            ]
        return projects

    async def _related_by_label(
        self,
        name: str,
        relationship: str | None,
        direction: RelationshipDirection,
        label: str,
    ) -> list[MemoryEntity]:
        related = await self.memory.find_related_entities(name, relationship, direction, 1)
        return [entity for entity in related if entity.has_label(label)]

    async def get_project_context(self, name: str) -> ProjectContext:
        """
        Gather a project and the entities around it.

        Raises:
            EntityNotFoundError: no entity with that name, or it is not a Project
        """
        project = await require_by_name(self.memory, name)
        if not project.has_label(PROJECT_LABEL):
            raise EntityNotFoundError(name)
        return await self._build_context(project)

    async def get_project_context_by_repository(self, repository: str) -> ProjectContext:
        """
        Context of the first project contained by a matching git repository.

        Repositories match on a substring of their name or of an observation.
        """
        repositories = await self.memory.find_entities_by_labels([GIT_REPOSITORY_LABEL], LabelMatchMode.ALL)
        matches = [r for r in repositories if repository in r.name or any(repository in o for o in r.observations)]
        for repo in matches:
            projects = await self._related_by_label(repo.name, CONTAINS, RelationshipDirection.OUTGOING, PROJECT_LABEL)
            if projects:
                return await self._build_context(projects[0])
        logger.info(f"No project found for repository '{repository}' ({len(matches)} matching repositories)")
        raise EntityNotFoundError(repository)

    async def _build_context(self, project: MemoryEntity) -> ProjectContext:
        tasks = await self._related_by_label(project.name, CONTAINS, RelationshipDirection.OUTGOING, TASK_LABEL)
        notes = await self._related_by_label(project.name, RELATES_TO, RelationshipDirection.INCOMING, NOTE_LABEL)
        repositories = await self._related_by_label(
            project.name, CONTAINS, RelationshipDirection.INCOMING, GIT_REPOSITORY_LABEL
        )
        technologies = await self._related_by_label(project.name, USES, RelationshipDirection.OUTGOING, TECHNOLOGY_LABEL)
        others = await self.memory.find_related_entities(project.name, None, RelationshipDirection.BOTH, 1)

        return ProjectContext(
            project=project,
            git_repository=repositories[0] if repositories else None,
            tasks=tasks,
            notes=notes,
            technologies=technologies,
            other_related_entities=[e for e in others if not _GROUPED_LABELS.intersection(e.labels)],
        )

    async def get_graph_meta(self, relationship: str | None = None) -> list[MemoryEntity]:
        """Entities reachable from the graph metadata root (outgoing, up to five hops)."""
        return await self.memory.find_related_entities(
            GRAPH_META_ROOT, relationship, RelationshipDirection.OUTGOING, GRAPH_META_DEPTH
        )
