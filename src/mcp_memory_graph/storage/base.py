"""
Abstract repository port for the memory graph.

The service facade depends only on this interface; the FalkorDB adapter
(``graph.repository.GraphMemoryRepository``) and test doubles implement it.
Every method is a coroutine and may raise ``StoreConnectionError``,
``QueryError`` or ``MemoryRuntimeError``.
"""

from abc import ABC, abstractmethod

from ..models.entity import LabelMatchMode, MemoryEntity, MemoryRelationship, RelationshipDirection, RelationshipRef
from ..models.update import EntityUpdate, RelationshipUpdate


class MemoryRepository(ABC):
    """Storage operations for entities and relationships."""

    # ── Entities ─────────────────────────────────────────────────────────

    @abstractmethod
    async def create_entities(self, entities: list[MemoryEntity]) -> None:
        """Persist a batch of entities in a single statement."""

    @abstractmethod
    async def find_entity_by_name(self, name: str) -> MemoryEntity | None:
        """Fetch one entity with its incident relationships, or None."""

    @abstractmethod
    async def find_entities_by_labels(
        self,
        labels: list[str],
        match_mode: LabelMatchMode,
        required_label: str | None = None,
    ) -> list[MemoryEntity]:
        """Label-set search; an empty ``labels`` with no required label matches everything."""

    @abstractmethod
    async def update_entity(self, name: str, update: EntityUpdate) -> None:
        pass

    @abstractmethod
    async def delete_entities(self, names: list[str]) -> None:
        """Delete entities by name, detaching their relationships."""

    # ── Observations ─────────────────────────────────────────────────────

    @abstractmethod
    async def set_observations(self, name: str, observations: list[str]) -> None:
        pass

    @abstractmethod
    async def add_observations(self, name: str, observations: list[str]) -> None:
        pass

    @abstractmethod
    async def remove_observations(self, name: str, observations: list[str]) -> None:
        pass

    @abstractmethod
    async def remove_all_observations(self, name: str) -> None:
        pass

    # ── Relationships ────────────────────────────────────────────────────

    @abstractmethod
    async def create_relationships(self, relationships: list[MemoryRelationship]) -> None:
        pass

    @abstractmethod
    async def find_relationships(
        self,
        from_: str | None = None,
        to: str | None = None,
        name: str | None = None,
    ) -> list[MemoryRelationship]:
        """Relationships matching every given part of the (from, to, name) triple."""

    @abstractmethod
    async def update_relationship(self, from_: str, to: str, name: str, update: RelationshipUpdate) -> None:
        pass

    @abstractmethod
    async def delete_relationships(self, relationships: list[RelationshipRef]) -> None:
        pass

    # ── Traversal ────────────────────────────────────────────────────────

    @abstractmethod
    async def find_related_entities(
        self,
        name: str,
        relationship_type: str | None = None,
        direction: RelationshipDirection | None = None,
        depth: int = 1,
    ) -> list[MemoryEntity]:
        """Distinct entities reachable from ``name`` within ``depth`` hops."""
