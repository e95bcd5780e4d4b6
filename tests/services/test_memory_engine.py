"""
Tests for MemoryEngine service.

Tests the unified engine wiring ingestion, retrieval, streaming analysis
and health checks over in-memory adapters.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.config import Config
from src.models.analysis import AnalysisEventType
from src.models.context import ContextOptions, SearchOptions
from src.models.document import Document, ProcessingStatus
from src.models.health import HealthStatus
from src.models.ingestion import IngestionOptions
from src.models.relationships import ExtractedRelationship
from src.services.analysis_session import StreamingAnalysisSession
from src.services.memory_engine import MemoryEngine
from src.utils.exceptions import GraphStoreError, NotFoundError, ValidationError


@pytest.fixture
def engine(llm, embedder, graph_store, vector_store, document_store, config):
    return MemoryEngine(
        llm=llm,
        embedder=embedder,
        graph_store=graph_store,
        vector_store=vector_store,
        document_store=document_store,
        config=config,
    )


@pytest.fixture
def chunked():
    return IngestionOptions(chunk_size=4)


@pytest.mark.unit
@pytest.mark.asyncio
class TestMemoryEngineUnit:
    """Unit tests for MemoryEngine."""

    async def test_initialization(self, engine, llm, embedder, graph_store, vector_store, config):
        """Test engine wiring."""
        assert engine.llm is llm
        assert engine.embedder is embedder
        assert engine.graph_store is graph_store
        assert engine.vector_store is vector_store
        assert engine.config is config
        assert engine.pipeline.vector_store is vector_store
        assert engine.context_engine.graph_store is graph_store
        assert sorted(engine.health_cache.services) == [
            "embedder",
            "graph_store",
            "llm",
            "vector_store",
        ]

    async def test_initialize_stores(self, engine, graph_store, vector_store, document_store):
        """Test initialize prepares every store."""
        graph_store.initialize = AsyncMock()
        vector_store.initialize = AsyncMock()
        document_store.initialize = AsyncMock()

        await engine.initialize()

        graph_store.initialize.assert_awaited_once()
        vector_store.initialize.assert_awaited_once()
        document_store.initialize.assert_awaited_once()

    async def test_health_cache_from_config(
        self, llm, embedder, graph_store, vector_store, document_store
    ):
        """Test the health cache takes TTL and timeout from config."""
        config = Config(health={"ttl_seconds": 12, "timeout_seconds": 3})

        engine = MemoryEngine(
            llm=llm,
            embedder=embedder,
            graph_store=graph_store,
            vector_store=vector_store,
            document_store=document_store,
            config=config,
        )

        assert engine.health_cache.ttl_seconds == 12
        assert engine.health_cache.timeout_seconds == 3

    async def test_from_config(self, llm, embedder, graph_store, vector_store, document_store):
        """Test building an engine from configuration via the factories."""
        config = Config()
        with (
            patch("src.services.memory_engine.LLMFactory") as llm_factory,
            patch("src.services.memory_engine.EmbedderFactory") as embedder_factory,
            patch("src.services.memory_engine.GraphStoreFactory") as graph_factory,
            patch("src.services.memory_engine.VectorStoreFactory") as vector_factory,
            patch("src.services.memory_engine.DocumentStoreFactory") as document_factory,
            patch("src.services.memory_engine.setup_logging_from_config") as setup_logging,
        ):
            llm_factory.create.return_value = llm
            embedder_factory.create.return_value = embedder
            embedder_factory.get_dimension = AsyncMock(return_value=4)
            graph_factory.create.return_value = graph_store
            vector_factory.create.return_value = vector_store
            document_factory.create.return_value = document_store

            engine = await MemoryEngine.from_config(config, configure_logging=True)

        vector_factory.create.assert_called_once_with(config.qdrant, 4)
        setup_logging.assert_called_once_with(config.logging)
        assert engine.llm is llm
        assert engine.vector_store is vector_store
        assert engine.document_store is document_store

    async def test_get_document_empty_id(self, engine):
        """Test empty document ID validation."""
        with pytest.raises(ValidationError):
            await engine.get_document("")

    async def test_get_document_not_found(self, engine):
        """Test unknown documents raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await engine.get_document("missing")

    async def test_analyze_stream_returns_session(self, engine):
        """Test analyze_stream builds a session without running it."""
        session = engine.analyze_stream("AAAA", ContextOptions(min_score=0.0))

        assert isinstance(session, StreamingAnalysisSession)
        assert session.config is engine.config.streaming
        assert session.analysis_chunks == 0

    async def test_analyze_stream_invalid_query(self, engine):
        """Test an empty analysis query is rejected immediately."""
        with pytest.raises(ValidationError):
            engine.analyze_stream("")

    async def test_list_models(self, engine):
        """Test model listing is delegated to the LLM."""
        assert await engine.list_models() == ["fake-model"]

    async def test_close(self, engine, llm, embedder, graph_store, vector_store, document_store):
        """Test close shuts down the cache and every component."""
        engine.health_cache = MagicMock(close=AsyncMock())
        for component in (llm, embedder, graph_store, vector_store, document_store):
            component.close = AsyncMock()

        await engine.close()

        engine.health_cache.close.assert_awaited_once()
        for component in (llm, embedder, graph_store, vector_store, document_store):
            component.close.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.asyncio
class TestMemoryEngineFlow:
    """End-to-end flows over in-memory adapters."""

    async def test_ingest_then_get_context(self, engine, vector_store, chunked):
        """Test a chunked document is found by a matching query."""
        result = await engine.ingest_document(Document(id="d1", content="AAAA BBBB"), chunked)

        assert result.status == ProcessingStatus.COMPLETED
        assert result.chunks_created == 3
        assert vector_store.chunks_of("d1") == ["AAAA", " BBB", "B"]

        context = await engine.get_context("AAAA", ContextOptions(min_score=0.0, max_documents=1))

        assert [d.id for d in context.context.documents] == ["d1"]
        assert context.total_results == 1
        assert context.context.documents[0].content == "AAAA BBBB"

    async def test_ingest_documents_batch(self, engine, chunked):
        """Test a batch reports per-document outcomes."""
        result = await engine.ingest_documents(
            [Document(id="a", content="AAAA"), Document(id="b", content="   ")], chunked
        )

        assert result.total_documents == 2
        assert result.successful_documents == 1
        assert result.failed_documents == 1
        assert result.get("b").status == ProcessingStatus.FAILED

    async def test_get_document(self, engine, chunked):
        """Test a stored document carries its processing state."""
        await engine.ingest_document(Document(id="d1", content="AAAA BBBB"), chunked)

        document = await engine.get_document("d1")

        assert document.content == "AAAA BBBB"
        assert document.processing.status == ProcessingStatus.COMPLETED
        assert document.processing.chunk_count == 3
        assert document.processing.summary == "A short summary."

    async def test_search(self, engine, chunked):
        """Test paged search through the engine."""
        await engine.ingest_documents(
            [Document(id="a", content="AAAA"), Document(id="b", content="BBBB")], chunked
        )

        response = await engine.search("AAAA", SearchOptions(limit=1))

        assert [r.id for r in response.results] == ["a"]
        assert response.total_results == 2

    async def test_delete_document(self, engine, vector_store, graph_store, llm, chunked):
        """Test deletion removes vectors, relationships and the document."""
        llm.extracted = [ExtractedRelationship(source="A", target="B", type="LINKS", confidence=0.8)]
        await engine.ingest_document(Document(id="d1", content="AAAA BBBB"), chunked)

        assert await engine.delete_document("d1") is True

        assert vector_store.chunks_of("d1") == []
        assert graph_store.relationships == []
        with pytest.raises(NotFoundError):
            await engine.get_document("d1")
        assert await engine.delete_document("d1") is False

    async def test_get_statistics(self, engine, llm, chunked):
        """Test counts and the storage estimate."""
        llm.extracted = [ExtractedRelationship(source="A", target="B", type="LINKS", confidence=0.8)]
        await engine.ingest_document(Document(id="d1", content="AAAA BBBB"), chunked)

        stats = await engine.get_statistics()

        assert stats.document_count == 1
        assert stats.vector_count == 3
        assert stats.relationship_count == 1
        assert stats.node_count == 2
        assert stats.memory_usage_bytes == 10_000 + 3 * 3_000 + 500

    async def test_get_statistics_empty(self, engine):
        """Test statistics of an empty engine."""
        stats = await engine.get_statistics()

        assert stats.document_count == 0
        assert stats.memory_usage_bytes == 0

    async def test_analyze_stream_runs(self, engine, chunked):
        """Test a session created by the engine streams to completion."""
        await engine.ingest_document(Document(id="d1", content="AAAA"), chunked)

        session = engine.analyze_stream("AAAA", ContextOptions(min_score=0.5))
        events = [event async for event in session.events()]

        assert events[-1].type == AnalysisEventType.DONE
        assert "".join(e.data for e in events if e.type == AnalysisEventType.ANALYSIS) == (
            "Insight one. Insight two."
        )


@pytest.mark.unit
@pytest.mark.asyncio
class TestMemoryEngineHealth:
    """Health checks through the shared cache."""

    async def test_check_all_health(self, engine):
        """Test every registered service is probed."""
        results = await engine.check_all_health()

        assert set(results) == {"vector_store", "graph_store", "llm", "embedder"}
        assert all(r.status == HealthStatus.HEALTHY for r in results.values())
        assert await engine.is_healthy() is True

    async def test_check_health_cached(self, engine):
        """Test repeated checks hit the cache."""
        await engine.check_health("llm")
        second = await engine.check_health("llm")

        assert second.from_cache is True
        stats = engine.get_health_cache_statistics()
        assert stats.cache_hits == 1
        assert stats.cache_misses == 1

    async def test_unhealthy_service(self, engine, graph_store):
        """Test a failing store makes the engine unhealthy."""
        graph_store.stats = AsyncMock(side_effect=GraphStoreError("graph store unavailable"))

        result = await engine.check_health("graph_store")

        assert result.status == HealthStatus.UNHEALTHY
        assert result.error_message == "graph store unavailable"
        assert await engine.is_healthy() is False

    async def test_unknown_service(self, engine):
        """Test checking an unknown service."""
        with pytest.raises(NotFoundError):
            await engine.check_health("redis")
