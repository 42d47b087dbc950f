"""Domain models for the memory graph."""

from .entity import LabelMatchMode, MemoryEntity, MemoryRelationship, RelationshipDirection, RelationshipRef
from .memory_config import DEFAULT_LABELS, DEFAULT_RELATIONSHIPS, MemoryConfig
from .update import EntityUpdate, LabelsUpdate, ObservationsUpdate, PropertiesUpdate, RelationshipUpdate
from .values import MemoryValue, Properties, memory_properties, memory_value

__all__ = [
    "DEFAULT_LABELS",
    "DEFAULT_RELATIONSHIPS",
    "EntityUpdate",
    "LabelMatchMode",
    "LabelsUpdate",
    "MemoryConfig",
    "MemoryEntity",
    "MemoryRelationship",
    "MemoryValue",
    "ObservationsUpdate",
    "Properties",
    "PropertiesUpdate",
    "RelationshipDirection",
    "RelationshipRef",
    "RelationshipUpdate",
    "memory_properties",
    "memory_value",
]
