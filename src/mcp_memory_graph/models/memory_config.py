"""Domain configuration consumed by the validation engine.

Built from ``settings.memory`` by the composition root; tests construct it
directly.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .validators import Labels

# Labels every deployment accepts when label enforcement is on.
DEFAULT_LABELS: frozenset[str] = frozenset(
    {
        "Memory",
        "Project",
        "Task",
        "Note",
        "Component",
        "Technology",
        "GitRepository",
        "Person",
        "Idea",
        "Decision",
        "Reference",
        # task lifecycle
        "Active",
        "Blocked",
        "Done",
        "Cancelled",
        "Archived",
    }
)

# Relationship types implicitly allowed when relationship enforcement is on.
DEFAULT_RELATIONSHIPS: frozenset[str] = frozenset(
    {
        "contains",
        "depends_on",
        "relates_to",
        "implements",
        "uses",
        "part_of",
        "references",
        "blocks",
        "owned_by",
        "created_by",
        "documented_in",
        "follows",
    }
)


class MemoryConfig(BaseModel):
    """Label/relationship policy plus the fallback project for task helpers."""

    default_label: str | None = "Memory"
    allow_default_labels: bool = False
    allowed_labels: Labels = Field(default_factory=list)
    allow_default_relationships: bool = True
    allowed_relationships: list[str] = Field(default_factory=list)
    default_project: str | None = None

    def is_label_allowed(self, label: str) -> bool:
        return label in DEFAULT_LABELS or label in self.allowed_labels or label == self.default_label

    def is_relationship_allowed(self, name: str) -> bool:
        return name in DEFAULT_RELATIONSHIPS or name in self.allowed_relationships
