"""
Reconstruct domain objects from FalkorDB result rows.

Entity rows come from ``cypher.ENTITY_PROJECTION``: ``[labels, props, rels]``.
Relationship rows come from ``cypher.find_relationships``:
``[from_name, to_name, name, props]``.
"""

from typing import Any

from ..errors import MemoryRuntimeError
from ..models.entity import MemoryEntity, MemoryRelationship
from .conversions import decode_properties
from .cypher import RESERVED_FIELDS

REL_FIELDS = ("from_name", "to_name", "name")


def entity_from_row(row: list[Any]) -> MemoryEntity:
    """Build an entity from ``[labels, props, rels]``.

    Raises:
        MemoryRuntimeError: if ``name`` or ``observations`` is missing or
            malformed, a property cannot be decoded, or a relationship entry
            lacks one of from/to/name.
    """
    if len(row) < 2:
        raise MemoryRuntimeError("Entity row is too short", value=row)
    labels, props = row[0], row[1]
    rels = row[2] if len(row) > 2 else None

    if not isinstance(props, dict):
        raise MemoryRuntimeError("Entity properties are not a map", value=props)

    name = props.get("name")
    if not isinstance(name, str):
        raise MemoryRuntimeError("Entity is missing a string 'name'", value=props)

    observations = props.get("observations")
    if not isinstance(observations, list) or not all(isinstance(o, str) for o in observations):
        raise MemoryRuntimeError(f"Entity '{name}' has missing or malformed observations", value=observations)

    return MemoryEntity(
        name=name,
        labels=list(labels or []),
        observations=observations,
        properties=decode_properties(props, skip=RESERVED_FIELDS),
        relationships=relationships_from_projection(rels),
    )


def relationships_from_projection(rels: Any) -> list[MemoryRelationship]:
    """Decode the aggregated relationship list; null/empty entries are skipped."""
    if not rels:
        return []
    if not isinstance(rels, list):
        raise MemoryRuntimeError("Relationship projection is not a list", value=rels)

    out = []
    for item in rels:
        if not item:
            continue
        if not isinstance(item, dict):
            raise MemoryRuntimeError("Relationship entry is not a map", value=item)
        missing = [field for field in REL_FIELDS if not isinstance(item.get(field), str)]
        if missing:
            raise MemoryRuntimeError(f"Relationship entry is missing {', '.join(missing)}", value=item)
        out.append(
            MemoryRelationship(
                from_=item["from_name"],
                to=item["to_name"],
                name=item["name"],
                properties=decode_properties(item.get("properties") or {}),
            )
        )
    return out


def relationship_from_row(row: list[Any]) -> MemoryRelationship:
    """Build a relationship from ``[from_name, to_name, name, props]``."""
    if len(row) < 3 or not all(isinstance(v, str) for v in row[:3]):
        raise MemoryRuntimeError("Relationship row is missing from/to/name", value=row)
    props = row[3] if len(row) > 3 else None
    if props is not None and not isinstance(props, dict):
        raise MemoryRuntimeError("Relationship properties are not a map", value=props)
    return MemoryRelationship(from_=row[0], to=row[1], name=row[2], properties=decode_properties(props or {}))
