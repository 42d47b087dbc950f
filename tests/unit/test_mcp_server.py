"""
Tests for the MCP tool handlers.

Handlers are called directly with a fake request context whose lifespan
context wraps services built on the in-memory repository.
"""

import inspect
from unittest.mock import AsyncMock, MagicMock

import pytest

from mcp_memory_graph import mcp_server
from mcp_memory_graph.errors import (
    EMPTY_ENTITY_NAME,
    BatchValidationError,
    EntityNotFoundError,
    MemoryValidationError,
    QueryError,
    ValidationErrorKind,
)
from mcp_memory_graph.mcp_server import MCPServerContext, _error_response
from mcp_memory_graph.models.memory_config import MemoryConfig
from mcp_memory_graph.services import MemoryService, ProjectService, TaskService

PROJECT = "acme:project:billing"


def tool(name):
    """Underlying coroutine of a registered tool."""
    registered = getattr(mcp_server, name)
    return getattr(registered, "fn", registered)


@pytest.fixture
def ctx(memory_repo):
    memory = MemoryService(memory_repo, MemoryConfig())
    context = MagicMock()
    context.request_context.lifespan_context = MCPServerContext(
        graph_client=None,
        memory_service=memory,
        task_service=TaskService(memory),
        project_service=ProjectService(memory),
    )
    return context


class TestErrorResponse:
    def test_validation_error_lists_codes(self):
        response = _error_response(MemoryValidationError(ValidationErrorKind.empty_entity_name()))

        assert response["success"] is False
        assert response["error_type"] == "validation_error"
        assert response["errors"][0]["code"] == EMPTY_ENTITY_NAME

    def test_batch_error_reports_persisted(self):
        error = BatchValidationError(
            [("", MemoryValidationError(ValidationErrorKind.empty_entity_name()))],
            persisted=["a"],
        )

        response = _error_response(error)

        assert response["error_type"] == "batch_validation"
        assert response["persisted"] == ["a"]
        assert response["errors"][0]["identifier"] == ""

    def test_backend_error_is_generic(self):
        response = _error_response(QueryError("Failed to run MATCH (n) ... with secret params"))

        assert response["error"] == "Memory graph backend failure"
        assert response["error_type"] == "query_error"

    def test_not_found(self):
        response = _error_response(EntityNotFoundError("ghost"))
        assert response["error_type"] == "entity_not_found"
        assert "ghost" in response["error"]


class TestEntityTools:
    @pytest.mark.asyncio
    async def test_create_and_get(self, ctx):
        created = await tool("create_entities")(
            entities=[{"name": PROJECT, "labels": ["Project"], "properties": {"stars": 3}}], ctx=ctx
        )
        assert created == {"success": True, "created": [PROJECT]}

        fetched = await tool("get_entity")(name=PROJECT, ctx=ctx)

        assert fetched["success"] is True
        assert fetched["entity"]["labels"] == ["Project", "Memory"]
        assert fetched["entity"]["properties"]["stars"]["value"] == 3

    @pytest.mark.asyncio
    async def test_get_missing_entity(self, ctx):
        response = await tool("get_entity")(name="ghost", ctx=ctx)
        assert response["error_type"] == "entity_not_found"

    @pytest.mark.asyncio
    async def test_partial_batch(self, ctx, memory_repo):
        response = await tool("create_entities")(
            entities=[{"name": "a", "labels": ["Note"]}, {"name": "", "labels": ["Note"]}], ctx=ctx
        )

        assert response["success"] is False
        assert response["persisted"] == ["a"]
        assert "a" in memory_repo.entities

    @pytest.mark.asyncio
    async def test_invalid_input(self, ctx):
        response = await tool("create_entities")(entities=[], ctx=ctx)
        assert response["error_type"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_observations(self, ctx):
        await tool("create_entities")(entities=[{"name": "a", "labels": ["Note"]}], ctx=ctx)

        await tool("add_observations")(name="a", observations=["x", "y"], ctx=ctx)
        await tool("remove_observations")(name="a", observations=["x"], ctx=ctx)

        fetched = await tool("get_entity")(name="a", ctx=ctx)
        assert fetched["entity"]["observations"] == ["y"]

    @pytest.mark.asyncio
    async def test_empty_name_is_validation_error(self, ctx):
        response = await tool("set_observations")(name="", observations=["x"], ctx=ctx)
        assert [e["code"] for e in response["errors"]] == [EMPTY_ENTITY_NAME]


class TestRelationshipTools:
    @pytest.mark.asyncio
    async def test_create_find_traverse(self, ctx):
        await tool("create_entities")(
            entities=[{"name": "a", "labels": ["Task"]}, {"name": "b", "labels": ["Task"]}], ctx=ctx
        )

        created = await tool("create_relationships")(
            relationships=[{"from": "a", "to": "b", "name": "depends_on"}], ctx=ctx
        )
        assert created["created"][0]["from"] == "a"

        found = await tool("find_relationships")(ctx=ctx, from_="a")
        assert [r["to"] for r in found["relationships"]] == ["b"]

        related = await tool("find_related_entities")(name="a", ctx=ctx, direction="outgoing")
        assert [e["name"] for e in related["entities"]] == ["b"]

    @pytest.mark.asyncio
    async def test_depth_out_of_range(self, ctx):
        response = await tool("find_related_entities")(name="a", ctx=ctx, depth=6)
        assert response["error_type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_direction(self, ctx):
        response = await tool("find_related_entities")(name="a", ctx=ctx, direction="sideways")
        assert response["error_type"] == "invalid_input"


class TestTaskAndProjectTools:
    @pytest.mark.asyncio
    async def test_task_flow(self, ctx):
        await tool("create_entities")(entities=[{"name": PROJECT, "labels": ["Project"]}], ctx=ctx)

        created = await tool("create_task")(
            task_name="t1", ctx=ctx, project_name=PROJECT, properties={"priority": "high"}
        )
        assert created["success"] is True

        listed = await tool("list_tasks")(ctx=ctx, project_name=PROJECT)
        assert [t["name"] for t in listed["tasks"]] == ["t1"]

        context = await tool("get_project_context")(ctx=ctx, project_name=PROJECT)
        assert [t["name"] for t in context["context"]["tasks"]] == ["t1"]

        await tool("delete_task")(task_name="t1", ctx=ctx)
        missing = await tool("get_task")(task_name="t1", ctx=ctx)
        assert missing["error_type"] == "entity_not_found"

    @pytest.mark.asyncio
    async def test_update_task_replaces_observations_and_properties(self, ctx):
        await tool("create_entities")(entities=[{"name": PROJECT, "labels": ["Project"]}], ctx=ctx)
        await tool("create_task")(task_name="t1", ctx=ctx, project_name=PROJECT)

        response = await tool("update_task")(
            task_name="t1", ctx=ctx, observations=["started"], properties={"priority": "critical"}
        )
        assert response == {"success": True, "task_name": "t1"}

        task = (await tool("get_task")(task_name="t1", ctx=ctx))["task"]
        assert task["observations"] == ["started"]
        assert task["properties"]["priority"] == "critical"

    def test_update_task_takes_no_project(self):
        assert "project_name" not in inspect.signature(tool("update_task")).parameters

    @pytest.mark.asyncio
    async def test_missing_project(self, ctx):
        response = await tool("create_task")(task_name="t1", ctx=ctx)
        assert response["error_type"] == "missing_project"

    @pytest.mark.asyncio
    async def test_project_context_needs_filter(self, ctx):
        response = await tool("get_project_context")(ctx=ctx)
        assert response["error_type"] == "invalid_input"


class TestHealth:
    @pytest.mark.asyncio
    async def test_without_client(self, ctx):
        response = await tool("check_database_health")(ctx=ctx)
        assert response["status"] == "error"

    @pytest.mark.asyncio
    async def test_reports_stats(self, ctx):
        client = MagicMock()
        client.get_graph_stats = AsyncMock(
            return_value={"graph": "memory_graph", "status": "healthy", "node_count": 2, "edge_count": 1}
        )
        ctx.request_context.lifespan_context.graph_client = client

        response = await tool("check_database_health")(ctx=ctx)

        assert response["node_count"] == 2
