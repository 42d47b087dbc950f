"""
Memory Service - validated operations over the repository port.

This is the facade external collaborators call. It applies the validation
engine (default-label injection, name/label/relationship rules, depth and
update-descriptor checks) before any repository call, and forwards the valid
part of a batch in a single persistence call.
"""

import logging

from ..errors import BatchValidationError, MemoryValidationError, ValidationErrorKind
from ..models.entity import LabelMatchMode, MemoryEntity, MemoryRelationship, RelationshipDirection, RelationshipRef
from ..models.memory_config import MemoryConfig
from ..models.update import EntityUpdate, RelationshipUpdate
from ..storage.base import MemoryRepository
from .validation import (
    entity_violations,
    partition,
    relationship_violations,
    validate_depth,
    validate_name,
    validate_update,
    with_default_label,
)

logger = logging.getLogger(__name__)


class MemoryService:
    """
    Validated entry point for memory graph operations.

    The repository is injected at construction; nothing here depends on a
    concrete backend.
    """

    def __init__(self, repository: MemoryRepository, config: MemoryConfig | None = None):
        self.repository = repository
        self.config = config or MemoryConfig()

    # ── Entities ─────────────────────────────────────────────────────────

    async def create_entities(self, entities: list[MemoryEntity]) -> list[MemoryEntity]:
        """
        Validate and persist a batch of entities.

        The default label is appended to every entity first. Valid entities
        are persisted together even when others in the batch fail.

        Returns:
            The entities that were persisted (with default labels applied)

        Raises:
            BatchValidationError: if any entity failed validation; the valid
                ones have already been persisted
        """
        tagged = [with_default_label(entity, self.config) for entity in entities]
        valid, rejected = partition(
            tagged,
            lambda entity: entity_violations(entity, self.config),
            lambda entity: entity.name,
        )

        if valid:
            await self.repository.create_entities(valid)
            logger.info(f"Persisted {len(valid)} of {len(entities)} entities")

        if rejected:
            raise BatchValidationError(rejected, persisted=[entity.name for entity in valid])
        return valid

    async def find_entity_by_name(self, name: str) -> MemoryEntity | None:
        validate_name(name)
        return await self.repository.find_entity_by_name(name)

    async def find_entities_by_labels(
        self,
        labels: list[str],
        match_mode: LabelMatchMode = LabelMatchMode.ANY,
        required_label: str | None = None,
    ) -> list[MemoryEntity]:
        """Label search; the default label is required when no required label is given."""
        effective_required = required_label if required_label is not None else self.config.default_label
        return await self.repository.find_entities_by_labels(labels, match_mode, effective_required)

    async def update_entity(self, name: str, update: EntityUpdate) -> None:
        validate_name(name)
        validate_update(update)
        await self.repository.update_entity(name, update)

    async def delete_entities(self, names: list[str]) -> None:
        for name in names:
            validate_name(name)
        if names:
            await self.repository.delete_entities(names)

    # ── Observations ─────────────────────────────────────────────────────

    async def set_observations(self, name: str, observations: list[str]) -> None:
        validate_name(name)
        await self.repository.set_observations(name, observations)

    async def add_observations(self, name: str, observations: list[str]) -> None:
        validate_name(name)
        await self.repository.add_observations(name, observations)

    async def remove_observations(self, name: str, observations: list[str]) -> None:
        validate_name(name)
        await self.repository.remove_observations(name, observations)

    async def remove_all_observations(self, name: str) -> None:
        validate_name(name)
        await self.repository.remove_all_observations(name)

    # ── Relationships ────────────────────────────────────────────────────

    async def create_relationships(self, relationships: list[MemoryRelationship]) -> list[MemoryRelationship]:
        """
        Validate and persist a batch of relationships.

        Raises:
            BatchValidationError: if any relationship failed validation; the
                valid ones have already been persisted
        """
        valid, rejected = partition(
            relationships,
            lambda rel: relationship_violations(rel, self.config),
            lambda rel: rel.name,
        )

        if valid:
            await self.repository.create_relationships(valid)
            logger.info(f"Persisted {len(valid)} of {len(relationships)} relationships")

        if rejected:
            raise BatchValidationError(rejected, persisted=[rel.name for rel in valid])
        return valid

    async def find_relationships(
        self,
        from_: str | None = None,
        to: str | None = None,
        name: str | None = None,
    ) -> list[MemoryRelationship]:
        return await self.repository.find_relationships(from_, to, name)

    async def update_relationship(self, from_: str, to: str, name: str, update: RelationshipUpdate) -> None:
        if not from_ or not to:
            raise MemoryValidationError(ValidationErrorKind.empty_entity_name())
        validate_update(update)
        await self.repository.update_relationship(from_, to, name, update)

    async def delete_relationships(self, relationships: list[RelationshipRef]) -> None:
        for rel in relationships:
            if not rel.from_ or not rel.to:
                raise MemoryValidationError(ValidationErrorKind.empty_entity_name())
        if relationships:
            await self.repository.delete_relationships(relationships)

    # ── Traversal ────────────────────────────────────────────────────────

    async def find_related_entities(
        self,
        name: str,
        relationship_type: str | None = None,
        direction: RelationshipDirection | None = None,
        depth: int = 1,
    ) -> list[MemoryEntity]:
        validate_name(name)
        validate_depth(depth)
        return await self.repository.find_related_entities(name, relationship_type, direction, depth)
