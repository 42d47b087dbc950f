"""Shared fixtures for unit tests: an in-memory repository and mock graph objects."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mcp_memory_graph.models.entity import (
    LabelMatchMode,
    MemoryEntity,
    MemoryRelationship,
    RelationshipDirection,
    RelationshipRef,
)
from mcp_memory_graph.models.update import EntityUpdate, PropertiesUpdate, RelationshipUpdate
from mcp_memory_graph.storage.base import MemoryRepository


def _apply_properties(current: dict, update: PropertiesUpdate, reserved: frozenset = frozenset()) -> dict:
    if update.add is not None:
        return {**current, **{k: v for k, v in update.add.items() if k not in reserved}}
    if update.remove is not None:
        return {k: v for k, v in current.items() if k not in update.remove}
    if update.set is not None:
        return {k: v for k, v in update.set.items() if k not in reserved}
    return current


class InMemoryRepository(MemoryRepository):
    """Dict-backed repository with the same observable semantics as the graph adapter."""

    def __init__(self):
        self.entities: dict[str, MemoryEntity] = {}
        self.relationships: list[MemoryRelationship] = []
        self.calls: list[str] = []

    def _with_relationships(self, entity: MemoryEntity) -> MemoryEntity:
        rels = [r for r in self.relationships if entity.name in (r.from_, r.to)]
        return entity.model_copy(update={"relationships": rels}, deep=True)

    async def create_entities(self, entities: list[MemoryEntity]) -> None:
        self.calls.append("create_entities")
        for entity in entities:
            self.entities[entity.name] = entity.model_copy(update={"relationships": []}, deep=True)

    async def find_entity_by_name(self, name: str) -> MemoryEntity | None:
        entity = self.entities.get(name)
        return self._with_relationships(entity) if entity is not None else None

    async def find_entities_by_labels(
        self,
        labels: list[str],
        match_mode: LabelMatchMode,
        required_label: str | None = None,
    ) -> list[MemoryEntity]:
        found = []
        for entity in self.entities.values():
            if required_label is not None and required_label not in entity.labels:
                continue
            if not labels:
                ok = True
            elif match_mode is LabelMatchMode.ALL:
                ok = all(label in entity.labels for label in labels)
            else:
                ok = any(label in entity.labels for label in labels)
            if ok:
                found.append(self._with_relationships(entity))
        return found

    async def update_entity(self, name: str, update: EntityUpdate) -> None:
        entity = self.entities.get(name)
        if entity is None:
            return
        changes: dict = {}
        if update.observations is not None:
            obs = update.observations
            if obs.set is not None:
                changes["observations"] = list(obs.set)
            elif obs.add is not None:
                changes["observations"] = entity.observations + list(obs.add)
            elif obs.remove is not None:
                changes["observations"] = [o for o in entity.observations if o not in obs.remove]
        if update.properties is not None:
            changes["properties"] = _apply_properties(
                entity.properties, update.properties, frozenset({"name", "observations"})
            )
        if update.labels is not None:
            labels = update.labels
            if labels.set is not None:
                changes["labels"] = list(labels.set)
            elif labels.add is not None:
                changes["labels"] = entity.labels + [label for label in labels.add if label not in entity.labels]
            elif labels.remove is not None:
                changes["labels"] = [label for label in entity.labels if label not in labels.remove]
        self.entities[name] = entity.model_copy(update=changes)

    async def delete_entities(self, names: list[str]) -> None:
        for name in names:
            self.entities.pop(name, None)
        self.relationships = [r for r in self.relationships if r.from_ not in names and r.to not in names]

    async def set_observations(self, name: str, observations: list[str]) -> None:
        if name in self.entities:
            self.entities[name] = self.entities[name].model_copy(update={"observations": list(observations)})

    async def add_observations(self, name: str, observations: list[str]) -> None:
        if name in self.entities:
            await self.set_observations(name, self.entities[name].observations + list(observations))

    async def remove_observations(self, name: str, observations: list[str]) -> None:
        if name in self.entities:
            await self.set_observations(name, [o for o in self.entities[name].observations if o not in observations])

    async def remove_all_observations(self, name: str) -> None:
        await self.set_observations(name, [])

    async def create_relationships(self, relationships: list[MemoryRelationship]) -> None:
        self.calls.append("create_relationships")
        for rel in relationships:
            if rel.from_ in self.entities and rel.to in self.entities:
                self.relationships.append(rel.model_copy(deep=True))

    async def find_relationships(
        self,
        from_: str | None = None,
        to: str | None = None,
        name: str | None = None,
    ) -> list[MemoryRelationship]:
        return [
            r
            for r in self.relationships
            if (from_ is None or r.from_ == from_) and (to is None or r.to == to) and (name is None or r.name == name)
        ]

    async def update_relationship(self, from_: str, to: str, name: str, update: RelationshipUpdate) -> None:
        if update.properties is None:
            return
        for i, rel in enumerate(self.relationships):
            if rel.ref == RelationshipRef(from_=from_, to=to, name=name):
                self.relationships[i] = rel.model_copy(
                    update={"properties": _apply_properties(rel.properties, update.properties)}
                )

    async def delete_relationships(self, relationships: list[RelationshipRef]) -> None:
        refs = set(relationships)
        self.relationships = [r for r in self.relationships if r.ref not in refs]

    async def find_related_entities(
        self,
        name: str,
        relationship_type: str | None = None,
        direction: RelationshipDirection | None = None,
        depth: int = 1,
    ) -> list[MemoryEntity]:
        direction = direction or RelationshipDirection.BOTH
        seen: list[str] = []
        frontier = [name]
        for _ in range(depth):
            next_frontier = []
            for current in frontier:
                for rel in self.relationships:
                    if relationship_type is not None and rel.name != relationship_type:
                        continue
                    neighbours = []
                    if direction in (RelationshipDirection.OUTGOING, RelationshipDirection.BOTH) and rel.from_ == current:
                        neighbours.append(rel.to)
                    if direction in (RelationshipDirection.INCOMING, RelationshipDirection.BOTH) and rel.to == current:
                        neighbours.append(rel.from_)
                    for neighbour in neighbours:
                        if neighbour != name and neighbour not in seen:
                            seen.append(neighbour)
                            next_frontier.append(neighbour)
            frontier = next_frontier
        return [self._with_relationships(self.entities[n]) for n in seen if n in self.entities]


@pytest.fixture
def memory_repo():
    return InMemoryRepository()


@pytest.fixture
def mock_repo():
    """Port mock whose reads return nothing by default."""
    repo = AsyncMock(spec=MemoryRepository)
    repo.find_entity_by_name.return_value = None
    repo.find_entities_by_labels.return_value = []
    repo.find_relationships.return_value = []
    repo.find_related_entities.return_value = []
    return repo


@pytest.fixture
def mock_graph():
    """Mock FalkorDB graph whose queries return an empty result set."""
    graph = AsyncMock()
    result = MagicMock()
    result.result_set = []
    graph.query.return_value = result
    return graph


@pytest.fixture
def graph_client(mock_graph):
    """GraphClient wired to ``mock_graph`` without touching the network."""
    from mcp_memory_graph.graph.client import GraphClient

    client = GraphClient.__new__(GraphClient)
    client.host = "localhost"
    client.port = 6379
    client.graph_name = "memory_graph"
    client._pool = None
    client._db = None
    client._graph = mock_graph
    client._initialized = True
    return client


def _result_set(rows):
    result = MagicMock()
    result.result_set = rows
    return result


def _entity_row(name, labels=("Memory",), observations=(), rels=(), **props):
    return [list(labels), {"name": name, "observations": list(observations), **props}, list(rels)]


@pytest.fixture
def result_set():
    """Wrap rows the way the FalkorDB driver returns them."""
    return _result_set


@pytest.fixture
def entity_row():
    """Build a row shaped like ENTITY_PROJECTION output."""
    return _entity_row
