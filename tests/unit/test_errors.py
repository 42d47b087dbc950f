"""Unit tests for the error taxonomy."""

from mcp_memory_graph.errors import (
    BatchValidationError,
    EntityNotFoundError,
    MemoryRuntimeError,
    MemoryStoreError,
    MemoryValidationError,
    QueryError,
    StoreConnectionError,
    ValidationErrorKind,
)


class TestMemoryStoreError:
    def test_source_is_chained(self):
        cause = ConnectionRefusedError("refused")
        err = StoreConnectionError("Failed to connect", cause)

        assert err.source is cause
        assert err.__cause__ is cause
        assert str(err) == "Failed to connect: refused"

    def test_message_without_source(self):
        err = QueryError("Failed to create entities")
        assert str(err) == "Failed to create entities"
        assert err.__cause__ is None

    def test_runtime_error_carries_value(self):
        err = MemoryRuntimeError("Map values are not supported as properties", value={"a": 1})

        assert isinstance(err, RuntimeError)
        assert isinstance(err, MemoryStoreError)
        assert err.value == {"a": 1}
        assert "{'a': 1}" in str(err)

    def test_entity_not_found(self):
        err = EntityNotFoundError("proj:alpha")
        assert err.name == "proj:alpha"
        assert "proj:alpha" in str(err)
        assert err.kind == "entity_not_found"


class TestValidationErrors:
    def test_single_kind_is_wrapped(self):
        err = MemoryValidationError(ValidationErrorKind.empty_entity_name())
        assert err.codes == ["EMPTY_ENTITY_NAME"]
        assert "EMPTY_ENTITY_NAME" in err
        assert isinstance(err, ValueError)

    def test_messages_name_the_subject(self):
        assert "Bad-Type" in ValidationErrorKind.invalid_relationship_format("Bad-Type").message
        assert "7" in ValidationErrorKind.invalid_depth(7).message
        assert "labels" in ValidationErrorKind.conflicting_operations("labels").message

    def test_kinds_compare_by_value(self):
        assert ValidationErrorKind.unknown_label("Foo") == ValidationErrorKind.unknown_label("Foo")
        assert ValidationErrorKind.unknown_label("Foo") != ValidationErrorKind.unknown_label("Bar")

    def test_multiple_kinds_join_messages(self):
        err = MemoryValidationError(
            [ValidationErrorKind.invalid_relationship_format("X"), ValidationErrorKind.unknown_relationship("X")]
        )
        assert err.codes == ["INVALID_RELATIONSHIP_FORMAT", "UNKNOWN_RELATIONSHIP"]
        assert "; " in str(err)


class TestBatchValidationError:
    def test_to_dict_and_persisted(self):
        err = BatchValidationError(
            [("", MemoryValidationError(ValidationErrorKind.empty_entity_name()))],
            persisted=["good"],
        )

        assert err.persisted == ["good"]
        assert err.to_dict() == [
            {"identifier": "", "errors": [{"code": "EMPTY_ENTITY_NAME", "message": "Entity name cannot be empty"}]}
        ]
        assert str(err).startswith("1 item(s) failed validation")
