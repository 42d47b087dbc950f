"""
Graph layer for the memory graph.

Provides the FalkorDB-backed implementation of the repository port:
- GraphClient owns the connection pool and maps driver errors
- cypher builds parameterized queries, rows decodes their results
- GraphMemoryRepository ties them together
"""

from .client import GraphClient
from .repository import GraphMemoryRepository
from .schema import SCHEMA_STATEMENTS

__all__ = [
    "GraphClient",
    "GraphMemoryRepository",
    "SCHEMA_STATEMENTS",
]
