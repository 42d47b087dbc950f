#!/usr/bin/env python3
"""FastMCP server for the memory graph.

Native MCP protocol implementation using FastMCP with Pydantic-validated
tool inputs. Each tool handler constructs an input model for validation,
calls the service layer, and returns a JSON-compatible dict. Property values
travel in their tagged form, e.g. ``{"type": "integer", "value": 3}``.
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP
from pydantic import ValidationError

from .errors import (
    BatchValidationError,
    EntityNotFoundError,
    MemoryRuntimeError,
    MemoryStoreError,
    MemoryValidationError,
    QueryError,
    StoreConnectionError,
)
from .graph.client import GraphClient
from .models.entity import MemoryEntity
from .models.mcp_inputs import (
    CreateEntitiesParams,
    CreateRelationshipsParams,
    CreateTaskParams,
    CreateTasksParams,
    DeleteEntitiesParams,
    DeleteRelationshipsParams,
    EntityNameParams,
    FindEntitiesByLabelsParams,
    FindRelatedEntitiesParams,
    FindRelationshipsParams,
    GraphMetaParams,
    ListProjectsParams,
    ListTasksParams,
    ObservationsParams,
    ProjectContextParams,
    TaskNameParams,
    UpdateEntityParams,
    UpdateRelationshipParams,
    UpdateTaskParams,
)
from .services.memory_service import MemoryService
from .services.projects import ProjectService
from .services.tasks import TaskService

logger = logging.getLogger(__name__)

# Backend failures are logged in full but reported generically to the caller.
_BACKEND_ERRORS = (QueryError, MemoryRuntimeError, StoreConnectionError)


@dataclass
class MCPServerContext:
    """Application context for the MCP server with all required components."""

    graph_client: GraphClient | None
    memory_service: MemoryService
    task_service: TaskService
    project_service: ProjectService


@asynccontextmanager
async def mcp_server_lifespan(server: FastMCP) -> AsyncIterator[MCPServerContext]:
    """Initialize the shared graph layer on startup and close its pool on shutdown."""
    from .shared_storage import (
        close_shared_storage,
        get_graph_client,
        get_memory_service,
        get_project_service,
        get_task_service,
        is_storage_initialized,
    )

    owns_storage = not is_storage_initialized()
    if owns_storage:
        logger.info("No shared storage found, initializing graph layer")
    memory_service = await get_memory_service()

    try:
        yield MCPServerContext(
            graph_client=get_graph_client(),
            memory_service=memory_service,
            task_service=get_task_service(),
            project_service=get_project_service(),
        )
    finally:
        if owns_storage:
            logger.info("Shutting down memory graph components...")
            await close_shared_storage()


# Create FastMCP server instance
mcp = FastMCP("MCP Memory Graph", lifespan=mcp_server_lifespan)


def _services(ctx: Context) -> MCPServerContext:
    return ctx.request_context.lifespan_context


def _invalid_input(e: ValidationError) -> dict[str, Any]:
    return {"success": False, "error": str(e), "error_type": "invalid_input"}


def _error_response(e: MemoryStoreError) -> dict[str, Any]:
    """Map a memory error onto the tool wire format. Call from an ``except`` block."""
    if isinstance(e, _BACKEND_ERRORS):
        logger.exception(f"Memory graph backend failure: {e}")
        return {"success": False, "error": "Memory graph backend failure", "error_type": e.kind}

    response: dict[str, Any] = {"success": False, "error": str(e), "error_type": e.kind}
    if isinstance(e, BatchValidationError):
        response["errors"] = e.to_dict()
        response["persisted"] = e.persisted
    elif isinstance(e, MemoryValidationError):
        response["errors"] = [{"code": k.code, "message": k.message} for k in e.kinds]
    return response


def _entities(entities: list[MemoryEntity]) -> list[dict[str, Any]]:
    return [entity.to_dict() for entity in entities]


# =============================================================================
# ENTITY OPERATIONS
# =============================================================================


@mcp.tool()
async def create_entities(entities: list[dict[str, Any]], ctx: Context) -> dict[str, Any]:
    """Create entities in the memory graph.

    Args:
        entities: Entities as {name, labels, observations, properties}. Property
            values are plain JSON values or tagged {"type", "value"} objects.

    Returns:
        {success, created} with the names persisted. When some entities fail
        validation the valid ones are still created and listed under ``persisted``.
    """
    try:
        params = CreateEntitiesParams(entities=entities)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        created = await _services(ctx).memory_service.create_entities(params.entities)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "created": [entity.name for entity in created]}


@mcp.tool()
async def get_entity(name: str, ctx: Context) -> dict[str, Any]:
    """Fetch one entity with its incident relationships.

    Args:
        name: Entity name, conventionally ``scope:kind:name``
    """
    try:
        params = EntityNameParams(name=name)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        entity = await _services(ctx).memory_service.find_entity_by_name(params.name)
        if entity is None:
            return _error_response(EntityNotFoundError(params.name))
        return {"success": True, "entity": entity.to_dict()}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def find_entities_by_labels(
    labels: str | list[str],
    ctx: Context,
    match_mode: str = "any",
    required_label: str | None = None,
) -> dict[str, Any]:
    """Find entities by label.

    Args:
        labels: Labels to match, as a list or "A,B"
        match_mode: "any" (at least one label) or "all" (every label)
        required_label: Label every result must carry; defaults to the configured default label
    """
    try:
        params = FindEntitiesByLabelsParams(labels=labels, match_mode=match_mode, required_label=required_label)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        found = await _services(ctx).memory_service.find_entities_by_labels(
            params.labels, params.match_mode, params.required_label
        )
        return {"success": True, "entities": _entities(found)}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def update_entity(name: str, update: dict[str, Any], ctx: Context) -> dict[str, Any]:
    """Partially update an entity.

    Args:
        name: Entity to update
        update: {labels?, observations?, properties?}; each group carries exactly
            one of add, remove or set
    """
    try:
        params = UpdateEntityParams(name=name, update=update)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        await _services(ctx).memory_service.update_entity(params.name, params.update)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "name": params.name}


@mcp.tool()
async def delete_entities(names: list[str], ctx: Context) -> dict[str, Any]:
    """Delete entities and every relationship attached to them. Missing names are ignored."""
    try:
        params = DeleteEntitiesParams(names=names)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        await _services(ctx).memory_service.delete_entities(params.names)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "deleted": params.names}


# =============================================================================
# OBSERVATIONS
# =============================================================================


async def _observations_call(ctx: Context, operation: str, name: str, observations: Any) -> dict[str, Any]:
    try:
        params = ObservationsParams(name=name, observations=observations)
    except ValidationError as e:
        return _invalid_input(e)

    service = _services(ctx).memory_service
    try:
        await getattr(service, operation)(params.name, params.observations)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "name": params.name}


@mcp.tool()
async def set_observations(name: str, observations: list[str], ctx: Context) -> dict[str, Any]:
    """Replace all observations of an entity."""
    return await _observations_call(ctx, "set_observations", name, observations)


@mcp.tool()
async def add_observations(name: str, observations: list[str], ctx: Context) -> dict[str, Any]:
    """Append observations to an entity."""
    return await _observations_call(ctx, "add_observations", name, observations)


@mcp.tool()
async def remove_observations(name: str, observations: list[str], ctx: Context) -> dict[str, Any]:
    """Remove every occurrence of the given observations from an entity."""
    return await _observations_call(ctx, "remove_observations", name, observations)


@mcp.tool()
async def remove_all_observations(name: str, ctx: Context) -> dict[str, Any]:
    """Clear the observations of an entity."""
    try:
        params = EntityNameParams(name=name)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        await _services(ctx).memory_service.remove_all_observations(params.name)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "name": params.name}


# =============================================================================
# RELATIONSHIPS
# =============================================================================


@mcp.tool()
async def create_relationships(relationships: list[dict[str, Any]], ctx: Context) -> dict[str, Any]:
    """Create directed relationships between existing entities.

    Args:
        relationships: Edges as {from, to, name, properties?}; ``name`` is a
            snake_case relationship type
    """
    try:
        params = CreateRelationshipsParams(relationships=relationships)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        created = await _services(ctx).memory_service.create_relationships(params.relationships)
        return {"success": True, "created": [rel.to_dict() for rel in created]}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def find_relationships(
    ctx: Context,
    from_: str | None = None,
    to: str | None = None,
    name: str | None = None,
) -> dict[str, Any]:
    """Find relationships by source, target and/or type. No filters returns every edge."""
    try:
        params = FindRelationshipsParams(from_=from_, to=to, name=name)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        found = await _services(ctx).memory_service.find_relationships(params.from_, params.to, params.name)
        return {"success": True, "relationships": [rel.to_dict() for rel in found]}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def update_relationship(
    from_: str,
    to: str,
    name: str,
    update: dict[str, Any],
    ctx: Context,
) -> dict[str, Any]:
    """Update the properties of one relationship identified by (from, to, name)."""
    try:
        params = UpdateRelationshipParams(from_=from_, to=to, name=name, update=update)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        await _services(ctx).memory_service.update_relationship(params.from_, params.to, params.name, params.update)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True}


@mcp.tool()
async def delete_relationships(relationships: list[dict[str, Any]], ctx: Context) -> dict[str, Any]:
    """Delete relationships given as {from, to, name}. Missing edges are ignored."""
    try:
        params = DeleteRelationshipsParams(relationships=relationships)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        await _services(ctx).memory_service.delete_relationships(params.relationships)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "deleted": len(params.relationships)}


@mcp.tool()
async def find_related_entities(
    name: str,
    ctx: Context,
    relationship: str | None = None,
    direction: str | None = None,
    depth: int = 1,
) -> dict[str, Any]:
    """Traverse the graph from an entity.

    Args:
        name: Start entity
        relationship: Only follow edges of this type
        direction: "outgoing", "incoming" or "both" (default)
        depth: Maximum hops, 1 to 5
    """
    try:
        params = FindRelatedEntitiesParams(name=name, relationship=relationship, direction=direction, depth=depth)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        found = await _services(ctx).memory_service.find_related_entities(
            params.name, params.relationship, params.direction, params.depth
        )
        return {"success": True, "entities": _entities(found)}
    except MemoryStoreError as e:
        return _error_response(e)


# =============================================================================
# TASKS
# =============================================================================


@mcp.tool()
async def create_task(
    task_name: str,
    ctx: Context,
    labels: str | list[str] | None = None,
    observations: list[str] | None = None,
    properties: dict[str, Any] | None = None,
    project_name: str | None = None,
    depends_on: list[str] | None = None,
) -> dict[str, Any]:
    """Create a task and attach it to a project.

    Args:
        task_name: Unique task name
        labels: Extra labels such as a lifecycle label; ``Task`` is always added
        observations: Free-text notes about the task
        properties: {description, due_date, task_type, status, priority}
        project_name: Owning project; defaults to the configured default project
        depends_on: Existing tasks this task depends on
    """
    try:
        params = CreateTaskParams(
            task_name=task_name,
            labels=labels,
            observations=observations,
            properties=properties,
            project_name=project_name,
            depends_on=depends_on,
        )
    except ValidationError as e:
        return _invalid_input(e)

    try:
        task = await _services(ctx).task_service.create_task(params.to_task(), params.project_name, params.depends_on)
        return {"success": True, "task": task.to_dict()}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def create_tasks(tasks: list[dict[str, Any]], ctx: Context, project_name: str | None = None) -> dict[str, Any]:
    """Create several tasks under one project.

    Args:
        tasks: Items as {task: {name, labels, observations, properties}, depends_on}.
            Dependencies may name other tasks of the same batch.
        project_name: Owning project; defaults to the configured default project
    """
    try:
        params = CreateTasksParams(tasks=tasks, project_name=project_name)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        created = await _services(ctx).task_service.create_tasks(params.tasks, params.project_name)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "created": [task.name for task in created]}


@mcp.tool()
async def get_task(task_name: str, ctx: Context) -> dict[str, Any]:
    """Fetch a task with its typed properties."""
    try:
        params = TaskNameParams(task_name=task_name)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        task = await _services(ctx).task_service.get_task(params.task_name)
        if task is None:
            return _error_response(EntityNotFoundError(params.task_name))
        return {"success": True, "task": task.to_dict()}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def update_task(
    task_name: str,
    ctx: Context,
    observations: list[str] | None = None,
    properties: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Replace the observations and/or properties of a task.

    Args:
        task_name: Task to update
        observations: New observation list
        properties: New task properties
    """
    try:
        params = UpdateTaskParams(
            task_name=task_name,
            observations=observations,
            properties=properties,
        )
    except ValidationError as e:
        return _invalid_input(e)

    try:
        await _services(ctx).task_service.update_task(params.task_name, params.to_update())
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "task_name": params.task_name}


@mcp.tool()
async def delete_task(task_name: str, ctx: Context) -> dict[str, Any]:
    """Delete a task and its relationships."""
    try:
        params = TaskNameParams(task_name=task_name)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        await _services(ctx).task_service.delete_task(params.task_name)
    except MemoryStoreError as e:
        return _error_response(e)
    return {"success": True, "task_name": params.task_name}


@mcp.tool()
async def list_tasks(
    ctx: Context,
    project_name: str | None = None,
    lifecycle: str | None = None,
) -> dict[str, Any]:
    """List the tasks of a project.

    Args:
        project_name: Project to list; defaults to the configured default project
        lifecycle: Only tasks carrying this lifecycle label (Active, Blocked, Done, Cancelled, Archived)
    """
    try:
        params = ListTasksParams(project_name=project_name, lifecycle=lifecycle)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        tasks = await _services(ctx).task_service.list_tasks(params.project_name, params.lifecycle)
        return {"success": True, "tasks": [task.to_dict() for task in tasks]}
    except MemoryStoreError as e:
        return _error_response(e)


# =============================================================================
# PROJECTS AND METADATA
# =============================================================================


@mcp.tool()
async def list_projects(ctx: Context, name_filter: str | None = None) -> dict[str, Any]:
    """List project entities, optionally filtered by text in the name or observations."""
    try:
        params = ListProjectsParams(name_filter=name_filter)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        projects = await _services(ctx).project_service.list_projects(params.name_filter)
        return {"success": True, "projects": _entities(projects)}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def get_project_context(
    ctx: Context,
    project_name: str | None = None,
    repository_name: str | None = None,
) -> dict[str, Any]:
    """Get a project with its tasks, notes, repository, technologies and other neighbours.

    Args:
        project_name: Project entity name (e.g. "acme:project:billing")
        repository_name: Git repository name (e.g. "acme/billing"); used when
            project_name is not given
    """
    try:
        params = ProjectContextParams(project_name=project_name, repository_name=repository_name)
    except ValidationError as e:
        return _invalid_input(e)

    project_service = _services(ctx).project_service
    try:
        if params.project_name:
            context = await project_service.get_project_context(params.project_name)
        else:
            context = await project_service.get_project_context_by_repository(params.repository_name)
        return {"success": True, "context": context.to_dict()}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def get_graph_meta(ctx: Context, relationship: str | None = None) -> dict[str, Any]:
    """Describe the graph conventions stored under the metadata root entity."""
    try:
        params = GraphMetaParams(relationship=relationship)
    except ValidationError as e:
        return _invalid_input(e)

    try:
        entities = await _services(ctx).project_service.get_graph_meta(params.relationship)
        return {"success": True, "entities": _entities(entities)}
    except MemoryStoreError as e:
        return _error_response(e)


@mcp.tool()
async def check_database_health(ctx: Context) -> dict[str, Any]:
    """Check FalkorDB connectivity and return node and edge counts."""
    client = _services(ctx).graph_client
    if client is None:
        return {"status": "error", "error": "Graph client not initialized"}
    return await client.get_graph_stats()


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main():
    """Main entry point for the memory graph MCP server."""
    logging.basicConfig(level=os.getenv("MCP_LOG_LEVEL", "INFO").upper())

    port = int(os.getenv("MCP_SERVER_PORT", "8000"))
    host = os.getenv("MCP_SERVER_HOST", "0.0.0.0")
    transport_mode = os.getenv("MCP_TRANSPORT_MODE", "http")

    logger.info(f"Starting MCP Memory Graph server ({transport_mode})")

    if transport_mode == "stdio":
        mcp.run(transport="stdio")
    else:
        logger.info(f"Listening on {host}:{port}")
        mcp.run(transport="http", host=host, port=port, stateless_http=True)


if __name__ == "__main__":
    main()
