"""
Shared test fixtures for vector store tests.
"""

import pytest

from src.core.vector_store.qdrant import QdrantStore
from src.models.document import Chunk


@pytest.fixture
def qdrant_store():
    """Create Qdrant store for testing."""
    return QdrantStore(
        host="localhost",
        port=6333,
        collection_name="test_documents",
        vector_size=4,
        batch_size=2,
    )


@pytest.fixture
def sample_chunks():
    """Create embedded chunks for one document."""
    return [
        Chunk(document_id="doc_1", ordinal=i, text=text, embedding=[0.1 * (i + 1)] * 4)
        for i, text in enumerate(["AAAA", " BBB", "B"])
    ]
