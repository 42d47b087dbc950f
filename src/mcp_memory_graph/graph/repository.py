"""
FalkorDB implementation of the MemoryRepository port.

Each operation is one statement except the read-modify-write observation
updates (read, then set) and label replacement. Those are not atomic:
two concurrent ``add_observations`` calls on the same entity can lose an
update (last write wins).
"""

import logging
from collections import defaultdict

from ..errors import MemoryValidationError, ValidationErrorKind
from ..models.entity import LabelMatchMode, MemoryEntity, MemoryRelationship, RelationshipDirection, RelationshipRef
from ..models.update import EntityUpdate, LabelsUpdate, PropertiesUpdate, RelationshipUpdate
from ..storage.base import MemoryRepository
from . import cypher
from .client import GraphClient
from .conversions import encode_properties
from .rows import entity_from_row, relationship_from_row

logger = logging.getLogger(__name__)


def _require_name(name: str) -> None:
    if not name:
        raise MemoryValidationError(ValidationErrorKind.empty_entity_name())


class GraphMemoryRepository(MemoryRepository):
    """Repository backed by a FalkorDB graph reached through ``GraphClient``."""

    def __init__(self, client: GraphClient):
        self.client = client

    # ── Entities ─────────────────────────────────────────────────────────

    async def create_entities(self, entities: list[MemoryEntity]) -> None:
        if not entities:
            return
        for entity in entities:
            _require_name(entity.name)

        rows = []
        for entity in entities:
            props = {
                key: value
                for key, value in encode_properties(entity.properties).items()
                if key not in cypher.RESERVED_FIELDS
            }
            props["name"] = entity.name
            props["observations"] = list(entity.observations)
            rows.append({"labels": list(entity.labels), "props": props})

        query, params = cypher.create_entities(rows)
        await self.client.query(query, params, context="create entities")
        logger.info(f"Created {len(rows)} entities")

    async def find_entity_by_name(self, name: str) -> MemoryEntity | None:
        _require_name(name)
        query, params = cypher.find_entity_by_name(name)
        rows = await self.client.query(query, params, context=f"find entity {name}")
        if not rows:
            return None
        return entity_from_row(rows[0])

    async def find_entities_by_labels(
        self,
        labels: list[str],
        match_mode: LabelMatchMode,
        required_label: str | None = None,
    ) -> list[MemoryEntity]:
        query, params = cypher.find_entities_by_labels(labels, match_mode, required_label)
        rows = await self.client.query(query, params, context="find entities by labels")
        return [entity_from_row(row) for row in rows]

    async def update_entity(self, name: str, update: EntityUpdate) -> None:
        _require_name(name)

        if update.observations is not None:
            obs = update.observations
            if obs.set is not None:
                await self.set_observations(name, obs.set)
            elif obs.add is not None:
                await self.add_observations(name, obs.add)
            elif obs.remove is not None:
                await self.remove_observations(name, obs.remove)

        if update.properties is not None:
            await self._apply_properties_update(
                cypher.ENTITY_MATCH,
                "n",
                {"name": name},
                update.properties,
                preserve=True,
                context=f"properties for {name}",
            )

        if update.labels is not None:
            await self._apply_labels_update(name, update.labels)

    async def delete_entities(self, names: list[str]) -> None:
        if not names:
            return
        for name in names:
            _require_name(name)
        query, params = cypher.delete_entities(names)
        await self.client.query(query, params, context="delete entities")
        logger.info(f"Deleted entities: {len(names)} requested")

    # ── Observations ─────────────────────────────────────────────────────

    async def set_observations(self, name: str, observations: list[str]) -> None:
        _require_name(name)
        query, params = cypher.set_observations(name, observations)
        await self.client.query(query, params, context=f"set observations for entity {name}")

    async def add_observations(self, name: str, observations: list[str]) -> None:
        current = await self._current_observations(name)
        await self.set_observations(name, current + list(observations))

    async def remove_observations(self, name: str, observations: list[str]) -> None:
        current = await self._current_observations(name)
        drop = set(observations)
        await self.set_observations(name, [o for o in current if o not in drop])

    async def remove_all_observations(self, name: str) -> None:
        await self.set_observations(name, [])

    async def _current_observations(self, name: str) -> list[str]:
        entity = await self.find_entity_by_name(name)
        return list(entity.observations) if entity is not None else []

    # ── Relationships ────────────────────────────────────────────────────

    async def create_relationships(self, relationships: list[MemoryRelationship]) -> None:
        if not relationships:
            return

        # One statement per relationship type: the type cannot be a parameter.
        by_type: dict[str, list[dict]] = defaultdict(list)
        for rel in relationships:
            _require_name(rel.from_)
            _require_name(rel.to)
            by_type[rel.name].append(
                {"from_name": rel.from_, "to_name": rel.to, "props": encode_properties(rel.properties)}
            )

        for rel_type, rows in by_type.items():
            query, params = cypher.create_relationships(rel_type, rows)
            await self.client.query(query, params, context=f"create {rel_type} relationships")
        logger.info(f"Created {len(relationships)} relationships across {len(by_type)} types")

    async def find_relationships(
        self,
        from_: str | None = None,
        to: str | None = None,
        name: str | None = None,
    ) -> list[MemoryRelationship]:
        query, params = cypher.find_relationships(from_, to, name)
        rows = await self.client.query(query, params, context="query relationships")
        return [relationship_from_row(row) for row in rows]

    async def update_relationship(self, from_: str, to: str, name: str, update: RelationshipUpdate) -> None:
        _require_name(from_)
        _require_name(to)
        if update.properties is None:
            return
        await self._apply_properties_update(
            cypher.relationship_match(name),
            "r",
            {"from_name": from_, "to_name": to},
            update.properties,
            preserve=False,
            context="relationship properties",
        )

    async def delete_relationships(self, relationships: list[RelationshipRef]) -> None:
        if not relationships:
            return
        rows = [{"from_name": rel.from_, "to_name": rel.to, "name": rel.name} for rel in relationships]
        query, params = cypher.delete_relationships(rows)
        await self.client.query(query, params, context="delete relationships")

    # ── Traversal ────────────────────────────────────────────────────────

    async def find_related_entities(
        self,
        name: str,
        relationship_type: str | None = None,
        direction: RelationshipDirection | None = None,
        depth: int = 1,
    ) -> list[MemoryEntity]:
        _require_name(name)
        query, params = cypher.find_related_entities(name, relationship_type, direction, depth)
        rows = await self.client.query(query, params, context=f"find entities related to {name}")
        return [entity_from_row(row) for row in rows]

    # ── Update helpers ───────────────────────────────────────────────────

    async def _apply_properties_update(
        self,
        match_clause: str,
        var: str,
        match_params: dict[str, str],
        update: PropertiesUpdate,
        preserve: bool,
        context: str,
    ) -> None:
        """Apply whichever single strategy the descriptor carries."""
        if update.add is not None:
            props = encode_properties(update.add)
            if preserve:
                props = {k: v for k, v in props.items() if k not in cypher.RESERVED_FIELDS}
            if not props:
                return
            query, params = cypher.add_properties(match_clause, var, props)
            verb = "add"
        elif update.remove is not None:
            keys = [k for k in update.remove if not (preserve and k in cypher.RESERVED_FIELDS)]
            if not keys:
                return
            query, params = cypher.remove_properties(match_clause, var, keys)
            verb = "remove"
        elif update.set is not None:
            query, params = cypher.set_properties(match_clause, var, encode_properties(update.set), preserve=preserve)
            verb = "set"
        else:
            return

        await self.client.query(query, {**match_params, **params}, context=f"{verb} {context}")

    async def _apply_labels_update(self, name: str, update: LabelsUpdate) -> None:
        if update.add is not None:
            if update.add:
                query, params = cypher.add_labels(name, update.add)
                await self.client.query(query, params, context=f"add labels for {name}")
        elif update.remove is not None:
            if update.remove:
                query, params = cypher.remove_labels(name, update.remove)
                await self.client.query(query, params, context=f"remove labels for {name}")
        elif update.set is not None:
            # Read-modify-write: labels cannot be assigned as a list
            query, params = cypher.get_labels(name)
            rows = await self.client.query(query, params, context=f"read labels for {name}")
            if not rows:
                return
            current = list(rows[0][0] or [])
            to_remove = [label for label in current if label not in update.set]
            to_add = [label for label in update.set if label not in current]
            if to_remove:
                query, params = cypher.remove_labels(name, to_remove)
                await self.client.query(query, params, context=f"remove labels for {name}")
            if to_add:
                query, params = cypher.add_labels(name, to_add)
                await self.client.query(query, params, context=f"add labels for {name}")
