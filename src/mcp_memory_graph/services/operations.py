"""Generic by-name helpers shared by the typed convenience services.

Each helper validates the name, calls the facade, and optionally converts
the result, so the task/project wrappers stay one-liners.
"""

from collections.abc import Callable
from typing import TypeVar

from ..errors import EntityNotFoundError
from ..models.entity import MemoryEntity
from ..models.update import EntityUpdate
from .memory_service import MemoryService
from .validation import validate_name

T = TypeVar("T")


async def get_by_name(
    service: MemoryService,
    name: str,
    convert: Callable[[MemoryEntity], T] | None = None,
) -> T | MemoryEntity | None:
    """Fetch an entity and optionally convert it; None when missing."""
    validate_name(name)
    entity = await service.find_entity_by_name(name)
    if entity is None or convert is None:
        return entity
    return convert(entity)


async def require_by_name(
    service: MemoryService,
    name: str,
    convert: Callable[[MemoryEntity], T] | None = None,
) -> T | MemoryEntity:
    """Like ``get_by_name`` but raises EntityNotFoundError when missing."""
    found = await get_by_name(service, name, convert)
    if found is None:
        raise EntityNotFoundError(name)
    return found


async def update_by_name(service: MemoryService, name: str, update: EntityUpdate) -> None:
    validate_name(name)
    await service.update_entity(name, update)


async def delete_by_name(service: MemoryService, name: str) -> None:
    validate_name(name)
    await service.delete_entities([name])
