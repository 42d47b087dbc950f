"""
Unit tests for GraphClient.

Tests the FalkorDB graph client with mocked FalkorDB/Redis connections.
Validates schema initialization, query execution and driver error mapping.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis import exceptions as redis_exceptions

from mcp_memory_graph.errors import QueryError, StoreConnectionError


class TestGraphClientInit:
    """Test GraphClient initialization and schema application."""

    @pytest.mark.asyncio
    @patch("mcp_memory_graph.graph.client.BlockingConnectionPool")
    @patch("mcp_memory_graph.graph.client.FalkorDB")
    async def test_initialize_creates_pool_and_applies_schema(self, mock_falkordb_cls, mock_pool_cls):
        from mcp_memory_graph.graph.client import GraphClient
        from mcp_memory_graph.graph.schema import SCHEMA_STATEMENTS

        mock_pool_cls.return_value = MagicMock(aclose=AsyncMock())
        mock_graph_instance = AsyncMock()
        mock_db_instance = MagicMock()
        mock_db_instance.select_graph.return_value = mock_graph_instance
        mock_falkordb_cls.return_value = mock_db_instance

        client = GraphClient(host="testhost", port=6380, graph_name="test_graph", max_connections=8)
        await client.initialize()

        mock_pool_cls.assert_called_once_with(
            host="testhost",
            port=6380,
            username=None,
            password=None,
            max_connections=8,
            timeout=None,
            decode_responses=True,
        )
        mock_db_instance.select_graph.assert_called_once_with("test_graph")
        assert mock_graph_instance.query.call_count == len(SCHEMA_STATEMENTS)

        # Idempotent: second call is no-op
        await client.initialize()
        assert mock_graph_instance.query.call_count == len(SCHEMA_STATEMENTS)

    @pytest.mark.asyncio
    @patch("mcp_memory_graph.graph.client.BlockingConnectionPool")
    @patch("mcp_memory_graph.graph.client.FalkorDB")
    async def test_initialize_handles_existing_index(self, mock_falkordb_cls, mock_pool_cls):
        """Schema statements that fail with 'already indexed' are ignored."""
        from mcp_memory_graph.graph.client import GraphClient

        mock_pool_cls.return_value = MagicMock(aclose=AsyncMock())
        mock_graph = AsyncMock()
        mock_graph.query.side_effect = Exception("Attribute 'name' is already indexed")
        mock_falkordb_cls.return_value = MagicMock(select_graph=MagicMock(return_value=mock_graph))

        client = GraphClient()
        await client.initialize()  # Should not raise

    @pytest.mark.asyncio
    @patch("mcp_memory_graph.graph.client.BlockingConnectionPool")
    @patch("mcp_memory_graph.graph.client.FalkorDB")
    async def test_initialize_unreachable_server(self, mock_falkordb_cls, mock_pool_cls):
        from mcp_memory_graph.graph.client import GraphClient

        mock_pool_cls.return_value = MagicMock(aclose=AsyncMock())
        mock_graph = AsyncMock()
        mock_graph.query.side_effect = redis_exceptions.ConnectionError("Connection refused")
        mock_falkordb_cls.return_value = MagicMock(select_graph=MagicMock(return_value=mock_graph))

        client = GraphClient(host="nowhere")
        with pytest.raises(StoreConnectionError) as exc_info:
            await client.initialize()

        assert isinstance(exc_info.value.source, redis_exceptions.ConnectionError)
        assert "nowhere" in str(exc_info.value)


class TestGraphClientQuery:
    @pytest.mark.asyncio
    async def test_query_returns_rows(self, graph_client, mock_graph, result_set):
        mock_graph.query.return_value = result_set([[1], [2]])

        rows = await graph_client.query("MATCH (n) RETURN 1", {"a": 1})

        assert rows == [[1], [2]]
        mock_graph.query.assert_called_once_with("MATCH (n) RETURN 1", params={"a": 1})

    @pytest.mark.asyncio
    async def test_query_without_params_sends_empty_dict(self, graph_client, mock_graph):
        await graph_client.query("RETURN 1")
        assert mock_graph.query.call_args[1]["params"] == {}

    @pytest.mark.asyncio
    async def test_auth_failure_is_connection_error(self, graph_client, mock_graph):
        mock_graph.query.side_effect = redis_exceptions.AuthenticationError("invalid password")

        with pytest.raises(StoreConnectionError):
            await graph_client.query("RETURN 1", context="ping")

    @pytest.mark.asyncio
    async def test_driver_failure_is_query_error(self, graph_client, mock_graph):
        cause = redis_exceptions.ResponseError("Invalid input")
        mock_graph.query.side_effect = cause

        with pytest.raises(QueryError) as exc_info:
            await graph_client.query("BROKEN", context="create entities")

        assert exc_info.value.message == "Failed to create entities"
        assert exc_info.value.__cause__ is cause

    def test_uninitialized_graph_access(self):
        from mcp_memory_graph.graph.client import GraphClient

        client = GraphClient()
        with pytest.raises(RuntimeError):
            _ = client.graph


class TestGraphClientStats:
    @pytest.mark.asyncio
    async def test_graph_stats(self, graph_client, mock_graph, result_set):
        mock_graph.query.side_effect = [result_set([[5]]), result_set([["uses", 2], ["contains", 3]])]

        stats = await graph_client.get_graph_stats()

        assert stats["node_count"] == 5
        assert stats["edge_count"] == 5
        assert stats["edge_counts_by_type"] == {"uses": 2, "contains": 3}
        assert stats["status"] == "healthy"
        assert stats["graph"] == "memory_graph"

    @pytest.mark.asyncio
    async def test_graph_stats_reports_errors(self, graph_client, mock_graph):
        mock_graph.query.side_effect = Exception("boom")

        stats = await graph_client.get_graph_stats()

        assert stats["status"] == "error"
        assert "count nodes" in stats["error"]


class TestGraphClientClose:
    @pytest.mark.asyncio
    async def test_close_releases_pool(self, graph_client):
        pool = MagicMock(aclose=AsyncMock())
        graph_client._pool = pool

        await graph_client.close()

        pool.aclose.assert_awaited_once()
        assert graph_client._graph is None
        assert graph_client._initialized is False

    @pytest.mark.asyncio
    async def test_close_without_pool_resets_state(self, graph_client):
        await graph_client.close()

        assert graph_client._initialized is False
        with pytest.raises(RuntimeError):
            _ = graph_client.graph
