"""
Unit tests for graph schema definitions.

Validates the schema statements are idempotent index creations on entity names.
"""

from mcp_memory_graph.graph.schema import SCHEMA_STATEMENTS


class TestGraphSchema:
    """Test graph schema definitions."""

    def test_schema_statements_not_empty(self):
        assert len(SCHEMA_STATEMENTS) > 0

    def test_all_statements_are_index_creation(self):
        """All schema statements should be idempotent index creation."""
        for stmt in SCHEMA_STATEMENTS:
            assert "CREATE INDEX IF NOT EXISTS" in stmt

    def test_all_indices_are_on_name(self):
        for stmt in SCHEMA_STATEMENTS:
            assert stmt.endswith("ON (n.name)")

    def test_default_label_is_indexed(self):
        """Every created entity carries Memory by default, so lookups hit this index."""
        assert any("(n:Memory)" in stmt for stmt in SCHEMA_STATEMENTS)

    def test_task_helper_labels_are_indexed(self):
        assert any("(n:Project)" in stmt for stmt in SCHEMA_STATEMENTS)
        assert any("(n:Task)" in stmt for stmt in SCHEMA_STATEMENTS)
