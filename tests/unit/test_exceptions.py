import pytest

from sqlbind.exceptions import (
    BatchExecutionError,
    DuplicateParameterError,
    ImproperConfigurationError,
    InvalidChunkSizeError,
    MalformedQueryError,
    MissingKeyFieldDeclarationError,
    MissingParametersError,
    NoParametersSetError,
    ParameterError,
    ParameterIndexOutOfRangeError,
    SQLBindError,
    SQLExecutionError,
    UnknownMappedFieldError,
    UnknownParameterError,
    UnsupportedReturnShapeError,
    wrap_exceptions,
)


def test_exception_hierarchy() -> None:
    """Test exception classes inherit from the expected bases."""
    assert issubclass(UnknownParameterError, MalformedQueryError)
    assert issubclass(MalformedQueryError, ParameterError)
    assert issubclass(NoParametersSetError, MissingParametersError)
    assert issubclass(MissingKeyFieldDeclarationError, ImproperConfigurationError)
    assert issubclass(InvalidChunkSizeError, ImproperConfigurationError)
    assert issubclass(BatchExecutionError, SQLExecutionError)
    assert issubclass(ParameterError, SQLBindError)


def test_parameter_error_appends_sql() -> None:
    exc = UnknownParameterError("idx", "select * from t where id = :id")
    assert str(exc) == "Unknown query parameter: idx\nSQL: select * from t where id = :id"
    assert exc.sql == "select * from t where id = :id"
    assert exc.name == "idx"


def test_out_of_range_message() -> None:
    exc = ParameterIndexOutOfRangeError(3, 2)
    assert str(exc) == "Parameter index 3 is out of range of this query's parameters (max parameters: 2)"


def test_duplicate_parameter_message_embeds_sql() -> None:
    assert str(DuplicateParameterError("city", "select :city")) == "Duplicate parameter 'city' in query:\nselect :city"
    assert str(DuplicateParameterError(2, "select ?, ?")) == "Duplicate parameter 2 in query:\nselect ?, ?"


def test_missing_parameters_lists_every_parameter() -> None:
    exc = MissingParametersError(["a", 2])
    assert exc.missing == ("a", 2)
    assert str(exc) == "Missing parameter values for the following parameters: [a, 2]"
    assert str(NoParametersSetError(["a"])) == "No parameters set"


def test_unknown_mapped_field_message() -> None:
    class Address:
        pass

    exc = UnknownMappedFieldError("STREET_NAME", "streetName", Address)
    assert "Custom-mapped field streetName not found in class" in str(exc)
    assert str(exc).endswith("for result set column STREET_NAME")


def test_unsupported_return_shape_message() -> None:
    assert "No valid query interpreters found for set" in str(UnsupportedReturnShapeError(set))
    assert str(UnsupportedReturnShapeError(int, "not a record")).endswith(": not a record")


def test_batch_execution_error_location() -> None:
    exc = BatchExecutionError("boom", chunk_index=2, row_index=1, sql="insert")
    assert exc.chunk_index == 2
    assert exc.row_index == 1
    assert str(exc).startswith("Batch execution failed at chunk 2, row 1: boom")
    assert BatchExecutionError("boom", chunk_index=0).row_index is None


def test_repr_includes_detail() -> None:
    assert repr(SQLBindError("something broke")) == "SQLBindError - something broke"
    assert repr(SQLBindError()) == "SQLBindError"


def test_wrap_exceptions_converts_foreign_errors() -> None:
    with pytest.raises(SQLExecutionError) as exc_info, wrap_exceptions("select 1"):
        raise ValueError("bad value")
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert exc_info.value.sql == "select 1"
    assert "ValueError: bad value" in str(exc_info.value)


def test_wrap_exceptions_passes_own_errors_through() -> None:
    original = InvalidChunkSizeError(0)
    with pytest.raises(InvalidChunkSizeError) as exc_info, wrap_exceptions():
        raise original
    assert exc_info.value is original
