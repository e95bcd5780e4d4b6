"""
Document repositories holding ingested documents and processing state.
"""

from src.core.document_store.base import DocumentStore
from src.core.document_store.memory import InMemoryDocumentStore

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
]
