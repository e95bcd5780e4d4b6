"""
Factory for creating document stores.
"""

from src.config import Config
from src.core.document_store.base import DocumentStore
from src.core.document_store.memory import InMemoryDocumentStore


class DocumentStoreFactory:
    """Factory for creating document stores from configuration."""

    @staticmethod
    def create(config: Config | None = None) -> DocumentStore:
        """
        Create the document store.

        Only the in-process backend exists today; `config` is accepted so
        callers build every store the same way.
        """
        return InMemoryDocumentStore()
