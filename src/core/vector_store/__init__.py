"""
Vector store implementations for document chunks.

Provides abstract base and concrete implementations for vector storage.
"""

from src.core.vector_store.base import VectorStore
from src.core.vector_store.qdrant import QdrantStore

__all__ = [
    "VectorStore",
    "QdrantStore",
]
