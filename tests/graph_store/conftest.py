"""
Shared test fixtures for graph store tests.
"""

import pytest

from src.core.graph_store.neo4j_store import Neo4jGraphStore
from src.core.graph_store.sqlite_store import SQLiteGraphStore
from src.models.relationships import Relationship


@pytest.fixture
def neo4j_store():
    """Create Neo4j store for testing."""
    return Neo4jGraphStore(
        uri="bolt://localhost:7687",
        username="neo4j",
        password="password",
        database="neo4j",
    )


@pytest.fixture
async def sqlite_store(tmp_path):
    """Create an initialized SQLite store in a temporary directory."""
    store = SQLiteGraphStore(db_path=str(tmp_path / "graph" / "test.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def sample_relationships():
    """Create relationships extracted from one document."""
    return [
        Relationship(
            source="Alice", target="Acme", type="WORKS_FOR", confidence=0.9, document_id="doc_1"
        ),
        Relationship(
            source="Acme",
            target="Berlin",
            type="LOCATED_IN",
            confidence=0.7,
            document_id="doc_1",
            metadata={"context": "Acme, based in Berlin"},
        ),
    ]
