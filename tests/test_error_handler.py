import pytest
from src.utils.error_handler import (
    handle_model_error,
    BaseNavigatorError,
    ModelError,
    EmbeddingError,
    IngestionError,
    VectorStoreError
)


def test_model_error():
    """Test ModelError exception."""
    with pytest.raises(ModelError) as exc_info:
        raise ModelError("Test model error")
    assert str(exc_info.value) == "Test model error"


def test_errors_share_base_class():
    for error_class in (ModelError, EmbeddingError, IngestionError, VectorStoreError):
        assert issubclass(error_class, BaseNavigatorError)


def test_handle_model_error_messages():
    """Test user-facing messages for each error type."""
    assert handle_model_error(ModelError("boom")) == "Model Error: boom"
    assert handle_model_error(VectorStoreError("down")) == "Vector Store Error: down"
    assert handle_model_error(EmbeddingError("401")) == "Embedding Error: 401"
    assert handle_model_error(IngestionError("No articles fetched from sources")) == \
        "Ingestion Error: No articles fetched from sources"


def test_handle_connection_and_unknown_errors():
    assert "Could not connect" in handle_model_error(ConnectionError("refused"))
    assert "Out of Memory" in handle_model_error(RuntimeError("CUDA out of memory"))
    assert handle_model_error(KeyError("x")).startswith("An unexpected error occurred")
