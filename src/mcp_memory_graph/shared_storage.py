#!/usr/bin/env python3
"""
Shared storage manager for the memory graph.

Holds a single graph client and the services built on it so that every
server transport in the process reuses one connection pool.
"""

import asyncio
import logging
from threading import Lock
from typing import Optional

from .config import Settings, settings
from .graph.client import GraphClient
from .graph.factory import create_graph_layer
from .services.memory_service import MemoryService
from .services.projects import ProjectService
from .services.tasks import TaskService

logger = logging.getLogger(__name__)


class StorageManager:
    """Manages the singleton graph client and services for shared access."""

    _instance: Optional["StorageManager"] = None
    _lock: Lock = Lock()

    def __init__(self):
        self._graph_client: GraphClient | None = None
        self._memory_service: MemoryService | None = None
        self._task_service: TaskService | None = None
        self._project_service: ProjectService | None = None
        self._initialization_lock: asyncio.Lock = asyncio.Lock()
        self._initialized: bool = False

    @classmethod
    def get_instance(cls) -> "StorageManager":
        """Get the process-wide StorageManager (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
                    logger.info("Created new StorageManager singleton instance")
        return cls._instance

    async def get_memory_service(self, config: Settings | None = None) -> MemoryService:
        """Get or create the shared memory service.

        Concurrent first calls initialize the graph layer only once.

        Raises:
            StoreConnectionError: if FalkorDB cannot be reached
        """
        if self._initialized and self._memory_service is not None:
            return self._memory_service

        async with self._initialization_lock:
            if self._initialized and self._memory_service is not None:
                return self._memory_service

            config = config or settings
            logger.info("Initializing shared memory graph services...")

            self._graph_client, repository = await create_graph_layer(config.falkordb)
            self._memory_service = MemoryService(repository, config.memory.to_memory_config())
            self._task_service = TaskService(self._memory_service)
            self._project_service = ProjectService(self._memory_service)
            self._initialized = True

            logger.info(f"Shared memory graph initialized: {type(repository).__name__}")
            return self._memory_service

    @property
    def graph_client(self) -> GraphClient | None:
        return self._graph_client

    @property
    def task_service(self) -> TaskService | None:
        return self._task_service

    @property
    def project_service(self) -> ProjectService | None:
        return self._project_service

    async def close(self) -> None:
        """Close the graph client. Safe to call before initialization."""
        if self._graph_client is not None:
            try:
                logger.info("Closing shared graph client...")
                await self._graph_client.close()
            except Exception as e:
                logger.warning(f"Error closing graph client: {e}")
            self._graph_client = None

        self._memory_service = None
        self._task_service = None
        self._project_service = None
        self._initialized = False

    def is_initialized(self) -> bool:
        return self._initialized and self._memory_service is not None


# Module-level convenience functions
_manager = StorageManager.get_instance()


async def get_memory_service() -> MemoryService:
    """Get the shared memory service, initializing it on first use."""
    return await _manager.get_memory_service()


async def close_shared_storage() -> None:
    await _manager.close()


def is_storage_initialized() -> bool:
    return _manager.is_initialized()


def get_graph_client() -> GraphClient | None:
    return _manager.graph_client


def get_task_service() -> TaskService | None:
    return _manager.task_service


def get_project_service() -> ProjectService | None:
    return _manager.project_service
