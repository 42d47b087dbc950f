"""Partial-update descriptors.

Each field group (labels, observations, properties) carries at most one of
``add``, ``remove`` or ``set``. The service rejects descriptors that combine
strategies; the repository applies whichever single one is present.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator

from .entity import coerce_properties
from .validators import Labels
from .values import Properties


class StrategyDescriptor(BaseModel):
    """Base for add/remove/set descriptors."""

    def strategy_count(self) -> int:
        """Number of add/remove/set strategies present."""
        return sum(1 for op in (self.add, self.remove, self.set) if op is not None)

    def is_empty(self) -> bool:
        return self.strategy_count() == 0


class LabelsUpdate(StrategyDescriptor):
    add: Labels | None = None
    remove: Labels | None = None
    set: Labels | None = None


class ObservationsUpdate(StrategyDescriptor):
    add: list[str] | None = None
    remove: list[str] | None = None
    set: list[str] | None = None


class PropertiesUpdate(StrategyDescriptor):
    """``add`` merges, ``remove`` deletes keys, ``set`` replaces the whole map."""

    add: Properties | None = None
    remove: list[str] | None = None
    set: Properties | None = None

    @field_validator("add", "set", mode="before")
    @classmethod
    def wrap_properties(cls, v: Any) -> Any:
        return coerce_properties(v)


class EntityUpdate(BaseModel):
    labels: LabelsUpdate | None = None
    observations: ObservationsUpdate | None = None
    properties: PropertiesUpdate | None = None

    def descriptors(self) -> dict[str, StrategyDescriptor]:
        """Present descriptors keyed by field name."""
        return {
            field: desc
            for field, desc in (
                ("labels", self.labels),
                ("observations", self.observations),
                ("properties", self.properties),
            )
            if desc is not None
        }


class RelationshipUpdate(BaseModel):
    properties: PropertiesUpdate | None = None

    def descriptors(self) -> dict[str, StrategyDescriptor]:
        return {"properties": self.properties} if self.properties is not None else {}
