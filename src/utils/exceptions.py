"""
Custom exception hierarchy for the Context Memory Engine.

Provides structured error types so callers can scope failures
(per document, per session, per request) instead of catching everything.
All exceptions inherit from ContextMemoryError for easy catching.
"""


class ContextMemoryError(Exception):
    """
    Base exception for all engine errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize engine error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationError(ContextMemoryError):
    """
    Validation errors.
    Raised synchronously when input is malformed (empty content, empty query,
    out-of-range options). The operation never starts.
    """

    pass


class NotFoundError(ContextMemoryError):
    """
    Resource not found errors.
    Raised when a requested document or service doesn't exist.
    """

    pass


class ConfigurationError(ContextMemoryError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class StateTransitionError(ContextMemoryError):
    """
    Illegal lifecycle transition.
    Raised when a processing status would regress or a session is reused.
    """

    pass


class AdapterError(ContextMemoryError):
    """
    Base exception for downstream collaborator failures
    (vector store, graph store, document store, embedder, LLM).
    """

    pass


class StoreError(AdapterError):
    """
    Base exception for store operations.
    Used for errors related to data storage operations.
    """

    pass


class VectorStoreError(StoreError):
    """
    Vector store operation errors.
    Raised when vector database operations fail.
    """

    pass


class GraphStoreError(StoreError):
    """
    Graph store operation errors.
    Raised when graph database operations fail.
    """

    pass


class DocumentStoreError(StoreError):
    """Document store operation errors."""

    pass


class EmbeddingError(AdapterError):
    """
    Embedding generation errors.
    Raised when embedding generation fails.
    """

    pass


class LLMError(AdapterError):
    """
    LLM operation errors.
    Raised when LLM operations fail (API errors, timeouts, etc.).
    """

    pass


class ContextRetrievalError(ContextMemoryError):
    """
    Context retrieval errors.
    Raised when the primary vector search (or query embedding) fails.
    """

    pass
