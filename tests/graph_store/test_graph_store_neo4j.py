"""
Tests for Neo4j graph store implementation.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.utils.exceptions import GraphStoreError, ValidationError


def create_mock_session():
    """Create a properly configured mock session for async context manager."""
    mock_session = AsyncMock()
    mock_session_context = MagicMock()
    mock_session_context.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session_context.__aexit__ = AsyncMock(return_value=None)
    return mock_session, mock_session_context


def create_mock_driver():
    """Create a driver whose sessions share one mock session."""
    mock_driver = MagicMock()
    mock_driver.close = AsyncMock()
    mock_driver.verify_connectivity = AsyncMock()
    mock_session, mock_session_context = create_mock_session()
    mock_driver.session = MagicMock(return_value=mock_session_context)
    return mock_driver, mock_session


def mock_result(single=None, data=None):
    result = AsyncMock()
    result.single.return_value = single
    result.data.return_value = data or []
    return result


@pytest.mark.unit
@pytest.mark.asyncio
class TestNeo4jGraphStore:
    """Test Neo4j graph store implementation."""

    async def test_initialization(self, neo4j_store):
        """Test store initialization."""
        assert neo4j_store.uri == "bolt://localhost:7687"
        assert neo4j_store.username == "neo4j"
        assert neo4j_store.database == "neo4j"
        assert neo4j_store.driver is None

    async def test_connect(self, neo4j_store):
        """Test connection to Neo4j."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_db.driver.return_value = MagicMock()
            await neo4j_store.connect()
            assert neo4j_store.driver is not None
            assert mock_db.driver.call_args.kwargs["auth"] == ("neo4j", "password")

    async def test_connect_failure(self, neo4j_store):
        """Test connection failure handling."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_db.driver.side_effect = Exception("Connection failed")
            with pytest.raises(GraphStoreError, match="Failed to connect"):
                await neo4j_store.connect()

    async def test_initialize(self, neo4j_store):
        """Test constraint and index creation."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_db.driver.return_value = mock_driver

            await neo4j_store.initialize()

            assert mock_session.run.call_count == 2
            statements = [call.args[0] for call in mock_session.run.call_args_list]
            assert "entity_name" in statements[0]
            assert "related_document" in statements[1]

    async def test_upsert_relationships(self, neo4j_store, sample_relationships):
        """Test relationships are written in one UNWIND statement."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_session.run.return_value = mock_result(single={"created": 2})
            mock_db.driver.return_value = mock_driver

            created = await neo4j_store.upsert_relationships("doc_1", sample_relationships)

            assert created == 2
            params = mock_session.run.call_args.args[1]
            assert params["document_id"] == "doc_1"
            assert params["rows"][0]["source"] == "Alice"
            assert json.loads(params["rows"][1]["metadata"]) == {"context": "Acme, based in Berlin"}

    async def test_upsert_empty(self, neo4j_store):
        """Test upserting nothing makes no request."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            assert await neo4j_store.upsert_relationships("doc_1", []) == 0
            mock_db.driver.assert_not_called()

    async def test_upsert_empty_document_id(self, neo4j_store, sample_relationships):
        """Test document ID validation."""
        with pytest.raises(ValidationError):
            await neo4j_store.upsert_relationships(" ", sample_relationships)

    async def test_upsert_failure(self, neo4j_store, sample_relationships):
        """Test write failures are wrapped."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_session.run.side_effect = Exception("write failed")
            mock_db.driver.return_value = mock_driver

            with pytest.raises(GraphStoreError, match="Failed to upsert"):
                await neo4j_store.upsert_relationships("doc_1", sample_relationships)

    async def test_delete_relationships(self, neo4j_store):
        """Test delete returns the edge count and removes orphans."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_session.run.return_value = mock_result(single={"deleted": 3})
            mock_db.driver.return_value = mock_driver

            assert await neo4j_store.delete_relationships("doc_1") == 3
            assert mock_session.run.call_count == 2
            assert "NOT (e)--()" in mock_session.run.call_args_list[1].args[0]

    async def test_get_document_entities(self, neo4j_store):
        """Test entity lookup by documents."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_session.run.return_value = mock_result(data=[{"name": "Acme"}, {"name": "Alice"}])
            mock_db.driver.return_value = mock_driver

            assert await neo4j_store.get_document_entities(["doc_1"]) == ["Acme", "Alice"]

    async def test_get_document_entities_empty(self, neo4j_store):
        """Test no documents means no entities and no request."""
        assert await neo4j_store.get_document_entities([]) == []
        assert neo4j_store.driver is None

    async def test_query(self, neo4j_store):
        """Test relationship records are mapped to models."""
        record = {
            "source": "Alice",
            "target": "Acme",
            "type": "WORKS_FOR",
            "confidence": 0.9,
            "document_id": "doc_1",
            "created_at": "2024-01-02T03:04:05",
            "metadata": '{"context": "Alice works at Acme"}',
        }
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_session.run.return_value = mock_result(data=[record])
            mock_db.driver.return_value = mock_driver

            relationships = await neo4j_store.query(["Alice"], limit=5)

            assert len(relationships) == 1
            assert relationships[0].key == ("Alice", "Acme", "WORKS_FOR")
            assert relationships[0].metadata == {"context": "Alice works at Acme"}
            assert relationships[0].created_at.year == 2024
            assert mock_session.run.call_args.args[1]["limit"] == 5

    async def test_query_failure(self, neo4j_store):
        """Test read failures are wrapped."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_session.run.side_effect = Exception("read failed")
            mock_db.driver.return_value = mock_driver

            with pytest.raises(GraphStoreError, match="Failed to query"):
                await neo4j_store.query(["Alice"])

    async def test_stats(self, neo4j_store):
        """Test node and relationship counts."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, mock_session = create_mock_driver()
            mock_session.run.side_effect = [
                mock_result(single={"count": 4}),
                mock_result(single={"count": 6}),
            ]
            mock_db.driver.return_value = mock_driver

            stats = await neo4j_store.stats()

            assert stats.node_count == 4
            assert stats.relationship_count == 6

    async def test_health_check(self, neo4j_store):
        """Test health check verifies connectivity."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, _ = create_mock_driver()
            mock_db.driver.return_value = mock_driver

            assert await neo4j_store.health_check() is True
            mock_driver.verify_connectivity.assert_called_once()

    async def test_close(self, neo4j_store):
        """Test closing the driver."""
        with patch("src.core.graph_store.neo4j_store.AsyncGraphDatabase") as mock_db:
            mock_driver, _ = create_mock_driver()
            mock_db.driver.return_value = mock_driver

            await neo4j_store.connect()
            await neo4j_store.close()

            mock_driver.close.assert_called_once()
            assert neo4j_store.driver is None
