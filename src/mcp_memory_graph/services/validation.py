"""
Validation rules and batch partitioning.

Single-item rules collect every violation rather than stopping at the first,
except that an empty entity name skips the label checks. ``partition``
splits a batch into the items to persist and the (identifier, error) pairs
to report; valid items are always forwarded even when others fail.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from ..errors import MemoryValidationError, ValidationErrorKind
from ..models.entity import MemoryEntity, MemoryRelationship
from ..models.memory_config import MemoryConfig
from ..models.update import EntityUpdate, RelationshipUpdate
from ..models.validators import MAX_DEPTH, MIN_DEPTH, is_snake_case

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_default_label(entity: MemoryEntity, config: MemoryConfig) -> MemoryEntity:
    """Return ``entity`` with the configured default label appended if missing."""
    if config.default_label and config.default_label not in entity.labels:
        return entity.model_copy(update={"labels": [*entity.labels, config.default_label]})
    return entity


def entity_violations(entity: MemoryEntity, config: MemoryConfig) -> list[ValidationErrorKind]:
    """Rule violations for an entity whose default label is already applied."""
    if not entity.name:
        return [ValidationErrorKind.empty_entity_name()]

    errors: list[ValidationErrorKind] = []
    if not entity.labels:
        errors.append(ValidationErrorKind.no_labels(entity.name))
    if config.allow_default_labels:
        errors.extend(
            ValidationErrorKind.unknown_label(label) for label in entity.labels if not config.is_label_allowed(label)
        )
    return errors


def relationship_violations(rel: MemoryRelationship, config: MemoryConfig) -> list[ValidationErrorKind]:
    errors: list[ValidationErrorKind] = []
    if not rel.from_ or not rel.to:
        errors.append(ValidationErrorKind.empty_entity_name())
    if not is_snake_case(rel.name):
        errors.append(ValidationErrorKind.invalid_relationship_format(rel.name))
    if config.allow_default_relationships and not config.is_relationship_allowed(rel.name):
        errors.append(ValidationErrorKind.unknown_relationship(rel.name))
    return errors


def validate_name(name: str) -> None:
    if not name:
        raise MemoryValidationError(ValidationErrorKind.empty_entity_name())


def validate_depth(depth: int) -> None:
    if not MIN_DEPTH <= depth <= MAX_DEPTH:
        raise MemoryValidationError(ValidationErrorKind.invalid_depth(depth))


def validate_update(update: EntityUpdate | RelationshipUpdate) -> None:
    """Reject descriptors carrying more than one add/remove/set strategy."""
    errors = [
        ValidationErrorKind.conflicting_operations(field)
        for field, desc in update.descriptors().items()
        if desc.strategy_count() > 1
    ]
    if errors:
        raise MemoryValidationError(errors)


def partition(
    items: list[T],
    check: Callable[[T], list[ValidationErrorKind]],
    identify: Callable[[T], str],
) -> tuple[list[T], list[tuple[str, MemoryValidationError]]]:
    """Split ``items`` into (valid, [(identifier, error), ...])."""
    valid: list[T] = []
    rejected: list[tuple[str, MemoryValidationError]] = []
    for item in items:
        violations = check(item)
        if violations:
            rejected.append((identify(item), MemoryValidationError(violations)))
        else:
            valid.append(item)
    if rejected:
        logger.info(f"Batch validation: {len(valid)} valid, {len(rejected)} rejected")
    return valid, rejected
