"""Utility modules for the Context Memory Engine."""

from src.utils.exceptions import (
    AdapterError,
    ConfigurationError,
    ContextMemoryError,
    ContextRetrievalError,
    DocumentStoreError,
    EmbeddingError,
    GraphStoreError,
    LLMError,
    NotFoundError,
    StateTransitionError,
    StoreError,
    ValidationError,
    VectorStoreError,
)
from src.utils.id_generator import generate_chunk_id, generate_document_id, generate_session_id
from src.utils.logger import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    # ID Generators
    "generate_document_id",
    "generate_chunk_id",
    "generate_session_id",
    # Exceptions
    "ContextMemoryError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "StateTransitionError",
    "AdapterError",
    "StoreError",
    "VectorStoreError",
    "GraphStoreError",
    "DocumentStoreError",
    "EmbeddingError",
    "LLMError",
    "ContextRetrievalError",
]
