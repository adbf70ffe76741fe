import logging

logger = logging.getLogger(__name__)

# --- Custom Exception Classes ---

class BaseNavigatorError(Exception):
    """Base exception for all application-specific errors."""
    pass

class ModelError(BaseNavigatorError):
    """Exception for generation model related errors."""
    pass

class EmbeddingError(BaseNavigatorError):
    """Exception for embedding service errors."""
    pass

class VectorStoreError(BaseNavigatorError):
    """Exception for errors related to vector store operations."""
    pass

class IngestionError(BaseNavigatorError):
    """Exception for errors while fetching or ingesting news articles."""
    pass

# --- Error Handling Function ---

def handle_model_error(error: Exception) -> str:
    """
    Provides a user-friendly message for common model/pipeline errors.
    Logs the original error.
    """
    error_str = str(error)
    logger.error(f"Handling error: {error_str}", exc_info=True) # Log full traceback

    # Check for specific known error patterns (use sparingly, prefer exception types)
    if "out of memory" in error_str.lower():
        return "Model execution failed (Out of Memory). Try a smaller model or fewer context articles."
    elif isinstance(error, (ConnectionError, TimeoutError)) or "ConnectionError" in error_str:
        return "Could not connect to an external service (check network and service endpoints)."
    elif isinstance(error, ModelError):
        return f"Model Error: {error_str}"
    elif isinstance(error, EmbeddingError):
        return f"Embedding Error: {error_str}"
    elif isinstance(error, VectorStoreError):
        return f"Vector Store Error: {error_str}"
    elif isinstance(error, IngestionError):
        return f"Ingestion Error: {error_str}"
    else:
        # Generic fallback
        return f"An unexpected error occurred: {error_str}"
