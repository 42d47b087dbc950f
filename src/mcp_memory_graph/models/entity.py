"""Entity and relationship models.

Entities are named graph nodes; relationships are directed, typed edges
identified by their ``(from, to, name)`` triple. ``MemoryEntity.relationships``
is populated on read only and ignored by create/update paths.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticSerializationError

from ..errors import SerializationError
from .validators import Labels, Observations
from .values import Properties, memory_value


class LabelMatchMode(str, Enum):
    """Label-set search semantics."""

    ANY = "any"  # node labels intersect the query labels
    ALL = "all"  # query labels are a subset of node labels


class RelationshipDirection(str, Enum):
    """Traversal direction relative to the start entity."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"
    BOTH = "both"


def to_json_dict(model: BaseModel) -> dict[str, Any]:
    """Dump a model to JSON-compatible data using wire aliases."""
    try:
        return model.model_dump(mode="json", by_alias=True)
    except PydanticSerializationError as e:
        raise SerializationError(f"Cannot serialize {type(model).__name__}", e) from e


def coerce_properties(v: Any) -> Any:
    """Wrap plain Python values; tagged dicts and MemoryValue models pass through.

    Raises ValueError for values with no MemoryValue representation (maps, None).
    """
    if not isinstance(v, dict):
        return v
    out: dict[str, Any] = {}
    for key, item in v.items():
        if isinstance(item, dict) and "type" in item:
            out[key] = item
            continue
        try:
            out[key] = memory_value(item)
        except TypeError as e:
            raise ValueError(f"property '{key}': {e}") from e
    return out


class RelationshipRef(BaseModel):
    """Natural key of a relationship, used by update and delete."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: str = Field(alias="from")
    to: str
    name: str


class MemoryRelationship(BaseModel):
    """A directed, typed edge between two entities."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    name: str
    properties: Properties = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def wrap_properties(cls, v: Any) -> Any:
        return coerce_properties(v)

    @property
    def ref(self) -> RelationshipRef:
        return RelationshipRef(from_=self.from_, to=self.to, name=self.name)

    def to_dict(self) -> dict[str, Any]:
        return to_json_dict(self)


class MemoryEntity(BaseModel):
    """A named node with labels, observations, typed properties and (on read) incident edges."""

    name: str
    labels: Labels = Field(default_factory=list)
    observations: Observations = Field(default_factory=list)
    properties: Properties = Field(default_factory=dict)
    relationships: list[MemoryRelationship] = Field(default_factory=list)

    @field_validator("properties", mode="before")
    @classmethod
    def wrap_properties(cls, v: Any) -> Any:
        return coerce_properties(v)

    def has_label(self, label: str) -> bool:
        return label in self.labels

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dict with tagged property values."""
        return to_json_dict(self)
