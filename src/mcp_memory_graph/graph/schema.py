"""
Graph schema for the memory knowledge graph.

Entities are nodes keyed by ``name``; every node carries one or more labels
and an ``observations`` list. Relationship types are free-form snake_case
names validated by the service layer, not by the schema.

Indices:
    Memory(name)  - default label applied to every created entity
    Project(name) - project lookups from the task helpers
    Task(name)    - task lookups
"""

# Cypher statements executed idempotently on graph initialization.
# FalkorDB supports CREATE INDEX IF NOT EXISTS syntax.
SCHEMA_STATEMENTS: list[str] = [
    "CREATE INDEX IF NOT EXISTS FOR (n:Memory) ON (n.name)",
    "CREATE INDEX IF NOT EXISTS FOR (n:Project) ON (n.name)",
    "CREATE INDEX IF NOT EXISTS FOR (n:Task) ON (n.name)",
]
