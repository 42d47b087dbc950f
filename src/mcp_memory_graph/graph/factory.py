"""
Factory for creating and initializing the graph layer.

Creates a GraphClient and the FalkorDB-backed repository from settings.
"""

import logging

from ..config import FalkorDBSettings, settings
from .client import GraphClient
from .repository import GraphMemoryRepository

logger = logging.getLogger(__name__)


async def create_graph_layer(config: FalkorDBSettings | None = None) -> tuple[GraphClient, GraphMemoryRepository]:
    """
    Create and initialize the FalkorDB graph layer.

    Args:
        config: Connection settings; defaults to ``settings.falkordb``

    Returns:
        Tuple of (GraphClient, GraphMemoryRepository)

    Raises:
        StoreConnectionError: if FalkorDB cannot be reached
    """
    config = config or settings.falkordb

    password = config.password.get_secret_value() if config.password else None

    client = GraphClient(
        host=config.host,
        port=config.port,
        username=config.username,
        password=password,
        graph_name=config.graph_name,
        max_connections=config.max_connections,
    )

    await client.initialize()

    repository = GraphMemoryRepository(client)

    logger.info(f"Graph layer initialized: {config.host}:{config.port}/{config.graph_name}")
    return client, repository
