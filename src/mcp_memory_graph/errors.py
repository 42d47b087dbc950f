"""
Error taxonomy for the memory graph.

Every failure raised by the core derives from MemoryStoreError. Backend
failures keep the original driver exception as ``source`` (and as
``__cause__`` when raised with ``from``) so callers can log the full chain
without the core depending on one driver's exception types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# ---------------------------------------------------------------------------
# Base + backend errors
# ---------------------------------------------------------------------------


class MemoryStoreError(Exception):
    """Base class for all memory graph errors."""

    kind = "memory_error"

    def __init__(self, message: str, source: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.source = source
        if source is not None:
            self.__cause__ = source

    def __str__(self) -> str:
        if self.source is not None:
            return f"{self.message}: {self.source}"
        return self.message


class StoreConnectionError(MemoryStoreError):
    """The backing store could not be reached or refused authentication."""

    kind = "connection_error"


class QueryError(MemoryStoreError):
    """The backend rejected or failed to execute a well-formed request."""

    kind = "query_error"


class MemoryRuntimeError(MemoryStoreError, RuntimeError):
    """Adapter-internal encode/decode failure.

    Always carries the offending value for diagnostics.
    """

    kind = "runtime_error"

    def __init__(self, message: str, value: Any = None, source: BaseException | None = None):
        super().__init__(message, source)
        self.value = value

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (value={self.value!r})"


class SerializationError(MemoryStoreError):
    """Structured-text encode/decode failure at the protocol boundary."""

    kind = "serialization_error"


class EntityNotFoundError(MemoryStoreError):
    """A referenced entity does not exist."""

    kind = "entity_not_found"

    def __init__(self, name: str):
        super().__init__(f"Entity not found: {name}")
        self.name = name


class MissingProjectError(MemoryStoreError):
    """A project-scoped operation had no project and no default project."""

    kind = "missing_project"

    def __init__(self) -> None:
        super().__init__("No project given and no default project configured")


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

EMPTY_ENTITY_NAME = "EMPTY_ENTITY_NAME"
NO_LABELS = "NO_LABELS"
INVALID_RELATIONSHIP_FORMAT = "INVALID_RELATIONSHIP_FORMAT"
UNKNOWN_RELATIONSHIP = "UNKNOWN_RELATIONSHIP"
UNKNOWN_LABEL = "UNKNOWN_LABEL"
INVALID_DEPTH = "INVALID_DEPTH"
CONFLICTING_OPERATIONS = "CONFLICTING_OPERATIONS"
SELF_DEPENDENCY = "SELF_DEPENDENCY"
DEPENDENCY_NOT_FOUND = "DEPENDENCY_NOT_FOUND"


@dataclass(frozen=True)
class ValidationErrorKind:
    """A single rule violation. ``subject`` is the offending name/label/field."""

    code: str
    subject: Any = None

    @classmethod
    def empty_entity_name(cls) -> ValidationErrorKind:
        return cls(EMPTY_ENTITY_NAME)

    @classmethod
    def no_labels(cls, name: str) -> ValidationErrorKind:
        return cls(NO_LABELS, name)

    @classmethod
    def invalid_relationship_format(cls, name: str) -> ValidationErrorKind:
        return cls(INVALID_RELATIONSHIP_FORMAT, name)

    @classmethod
    def unknown_relationship(cls, name: str) -> ValidationErrorKind:
        return cls(UNKNOWN_RELATIONSHIP, name)

    @classmethod
    def unknown_label(cls, label: str) -> ValidationErrorKind:
        return cls(UNKNOWN_LABEL, label)

    @classmethod
    def invalid_depth(cls, depth: int) -> ValidationErrorKind:
        return cls(INVALID_DEPTH, depth)

    @classmethod
    def conflicting_operations(cls, field: str) -> ValidationErrorKind:
        return cls(CONFLICTING_OPERATIONS, field)

    @classmethod
    def self_dependency(cls, name: str) -> ValidationErrorKind:
        return cls(SELF_DEPENDENCY, name)

    @classmethod
    def dependency_not_found(cls, name: str) -> ValidationErrorKind:
        return cls(DEPENDENCY_NOT_FOUND, name)

    @property
    def message(self) -> str:
        if self.code == EMPTY_ENTITY_NAME:
            return "Entity name cannot be empty"
        if self.code == NO_LABELS:
            return f"Entity '{self.subject}' must have at least one label"
        if self.code == INVALID_RELATIONSHIP_FORMAT:
            return f"Relationship type '{self.subject}' is not in snake_case format"
        if self.code == UNKNOWN_RELATIONSHIP:
            return f"Relationship type '{self.subject}' is not allowed"
        if self.code == UNKNOWN_LABEL:
            return f"Label '{self.subject}' is not allowed"
        if self.code == INVALID_DEPTH:
            return f"Traversal depth '{self.subject}' is out of range (1-5)"
        if self.code == CONFLICTING_OPERATIONS:
            return f"Conflicting operations for {self.subject}"
        if self.code == SELF_DEPENDENCY:
            return f"Task '{self.subject}' cannot depend on itself"
        if self.code == DEPENDENCY_NOT_FOUND:
            return f"Dependency '{self.subject}' does not exist"
        return self.code

    def __str__(self) -> str:
        return self.message


class MemoryValidationError(MemoryStoreError, ValueError):
    """One or more validation rules failed for a single item."""

    kind = "validation_error"

    def __init__(self, kinds: ValidationErrorKind | list[ValidationErrorKind]):
        if isinstance(kinds, ValidationErrorKind):
            kinds = [kinds]
        self.kinds: list[ValidationErrorKind] = list(kinds)
        super().__init__("; ".join(k.message for k in self.kinds))

    @property
    def codes(self) -> list[str]:
        return [k.code for k in self.kinds]

    def __contains__(self, code: str) -> bool:
        return code in self.codes


class BatchValidationError(MemoryStoreError):
    """Some items of a batch were rejected.

    Valid items of the same batch have already been persisted; callers are
    expected to resubmit corrected items only.
    """

    kind = "batch_validation"

    def __init__(self, errors: list[tuple[str, MemoryValidationError]], persisted: list[str] | None = None):
        self.errors = list(errors)
        self.persisted = list(persisted or [])
        summary = ", ".join(f"{ident!r}: {err.message}" for ident, err in self.errors)
        super().__init__(f"{len(self.errors)} item(s) failed validation: {summary}")

    def to_dict(self) -> list[dict[str, Any]]:
        return [
            {"identifier": ident, "errors": [{"code": k.code, "message": k.message} for k in err.kinds]}
            for ident, err in self.errors
        ]
