"""
FalkorDB graph client for the memory graph.

Owns the Redis connection pool and the selected graph. All repository
queries go through ``query()``, which maps driver failures onto the memory
error taxonomy:

- Redis connection/authentication/timeout failures -> StoreConnectionError
- anything else the driver raises                    -> QueryError

Nothing is retried here; failures propagate to the caller immediately.
"""

import logging
from typing import Any

from falkordb.asyncio import FalkorDB
from redis import exceptions as redis_exceptions
from redis.asyncio import BlockingConnectionPool

from ..errors import MemoryStoreError, QueryError, StoreConnectionError
from .schema import SCHEMA_STATEMENTS

logger = logging.getLogger(__name__)

CONNECTION_ERRORS = (
    redis_exceptions.ConnectionError,
    redis_exceptions.TimeoutError,
    OSError,
)


class GraphClient:
    """
    Async FalkorDB client.

    Concurrent callers share one pool; the client holds no other mutable
    state once initialized, so no application-level locking is needed.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        username: str | None = None,
        password: str | None = None,
        graph_name: str = "memory_graph",
        max_connections: int = 16,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.graph_name = graph_name
        self.max_connections = max_connections

        self._pool: BlockingConnectionPool | None = None
        self._db: FalkorDB | None = None
        self._graph = None
        self._initialized = False

    async def initialize(self) -> None:
        """Create the connection pool, select the graph, and apply schema.

        Raises:
            StoreConnectionError: if FalkorDB cannot be reached.
        """
        if self._initialized:
            return

        self._pool = BlockingConnectionPool(
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            max_connections=self.max_connections,
            timeout=None,
            decode_responses=True,
        )

        self._db = FalkorDB(connection_pool=self._pool)
        self._graph = self._db.select_graph(self.graph_name)

        # Apply schema idempotently
        for stmt in SCHEMA_STATEMENTS:
            try:
                await self._graph.query(stmt)
            except CONNECTION_ERRORS as e:
                logger.error(f"Cannot reach FalkorDB at {self.host}:{self.port}: {e}")
                raise StoreConnectionError(f"Failed to connect to FalkorDB at {self.host}:{self.port}", e) from e
            except Exception as e:
                # Index already exists is not an error
                if "already indexed" not in str(e).lower():
                    logger.warning(f"Schema statement warning: {stmt} -> {e}")

        self._initialized = True
        logger.info(f"GraphClient initialized: {self.host}:{self.port}/{self.graph_name}")

    @property
    def graph(self):
        """The selected graph; only available after ``initialize()``."""
        if not self._initialized or self._graph is None:
            raise RuntimeError(f"Graph '{self.graph_name}' is not open; await initialize() first")
        return self._graph

    # ── Query execution ──────────────────────────────────────────────────

    async def query(self, cypher: str, params: dict[str, Any] | None = None, context: str = "query") -> list[list[Any]]:
        """
        Run one Cypher statement and return its result rows.

        Args:
            cypher: Query text
            params: Query parameters (already encoded to native values)
            context: Short description of the operation, used in error messages

        Returns:
            The result set as a list of rows

        Raises:
            StoreConnectionError: on connection, authentication or timeout failure
            QueryError: on any other driver failure
        """
        logger.debug(f"Cypher [{context}]: {cypher} params={list((params or {}).keys())}")
        try:
            result = await self.graph.query(cypher, params=params or {})
        except CONNECTION_ERRORS as e:
            logger.error(f"FalkorDB connection failure during {context}: {e}")
            raise StoreConnectionError(f"Connection failure during {context}", e) from e
        except Exception as e:
            logger.error(f"FalkorDB query failure during {context}: {e}")
            raise QueryError(f"Failed to {context}", e) from e
        return list(result.result_set or [])

    async def get_graph_stats(self) -> dict[str, Any]:
        """
        Count nodes and relationships for the health tool.

        Failures are reported in the returned dict rather than raised, so a
        health probe always gets an answer.
        """
        report: dict[str, Any] = {"graph": self.graph_name, "host": f"{self.host}:{self.port}"}
        try:
            node_rows = await self.query("MATCH (n) RETURN count(n)", context="count nodes")
            edge_rows = await self.query("MATCH ()-[r]->() RETURN type(r), count(r)", context="count relationships")
        except (MemoryStoreError, RuntimeError) as e:
            logger.error(f"Health check on graph '{self.graph_name}' failed: {e}")
            report.update(status="error", error=str(e))
            return report

        by_type = {rel_type: int(count) for rel_type, count in edge_rows}
        report.update(
            status="healthy",
            node_count=int(node_rows[0][0]) if node_rows else 0,
            edge_count=sum(by_type.values()),
            edge_counts_by_type=by_type,
        )
        return report

    async def close(self) -> None:
        """Release the connection pool; the client can be initialized again afterwards."""
        pool, self._pool = self._pool, None
        self._db = None
        self._graph = None
        self._initialized = False
        if pool is None:
            return
        try:
            await pool.aclose()
        except (redis_exceptions.RedisError, OSError) as e:
            logger.warning(f"Connection pool for graph '{self.graph_name}' did not close cleanly: {e}")
        else:
            logger.info(f"Released FalkorDB connections for graph '{self.graph_name}'")
