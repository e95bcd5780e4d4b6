"""
Tests for the context fusion engine.
"""

import pytest

from src.models.context import ContextOptions, SearchOptions, VectorSearchResult
from src.models.document import Document, DocumentMetadata
from src.models.ingestion import IngestionOptions
from src.models.relationships import ExtractedRelationship, Relationship
from src.services.context_engine import rank_candidates, rank_relationships
from src.utils.exceptions import ContextRetrievalError, ValidationError


def hit(document_id, score, ordinal=0):
    return VectorSearchResult(document_id=document_id, content=f"{document_id}-{ordinal}", score=score, ordinal=ordinal)


def rel(source, target, type_="LINKS", confidence=0.5, document_id="d1"):
    return Relationship(
        source=source, target=target, type=type_, confidence=confidence, document_id=document_id
    )


@pytest.mark.unit
class TestRanking:
    """Test the pure ranking helpers."""

    def test_orders_by_descending_score(self):
        """Test distinct scores come back strictly descending."""
        ranked = rank_candidates([hit("a", 0.2), hit("b", 0.9), hit("c", 0.5)], 0.0)
        assert [c.document_id for c in ranked] == ["b", "c", "a"]

    def test_filters_below_min_score(self):
        """Test candidates under the floor are dropped."""
        ranked = rank_candidates([hit("a", 0.49), hit("b", 0.5)], 0.5)
        assert [c.document_id for c in ranked] == ["b"]

    def test_best_chunk_per_document(self):
        """Test one entry per document, keeping its best chunk."""
        ranked = rank_candidates([hit("a", 0.4, 0), hit("a", 0.8, 2), hit("b", 0.6)], 0.0)

        assert [(c.document_id, c.ordinal) for c in ranked] == [("a", 2), ("b", 0)]

    def test_ties_prefer_lower_ordinal_then_id(self):
        """Test equal scores break ties deterministically."""
        ranked = rank_candidates([hit("b", 0.7, 0), hit("a", 0.7, 3), hit("a", 0.7, 1)], 0.0)

        assert [(c.document_id, c.ordinal) for c in ranked] == [("b", 0), ("a", 1)]

    def test_relationships_deduplicated_and_budgeted(self):
        """Test duplicates keep the most confident copy and the budget caps output."""
        ranked = rank_relationships(
            [
                rel("A", "B", confidence=0.3, document_id="d1"),
                rel("A", "B", confidence=0.8, document_id="d2"),
                rel("B", "C", confidence=0.6),
                rel("C", "D", confidence=0.1),
            ],
            budget=2,
        )

        assert [(r.source, r.confidence) for r in ranked] == [("A", 0.8), ("B", 0.6)]


@pytest.fixture
async def ingested(pipeline, llm):
    """Three documents with different letter profiles and one relationship."""
    llm.extracted = [
        ExtractedRelationship(source="Alpha", target="Beta", type="PRECEDES", confidence=0.9)
    ]
    await pipeline.ingest(
        [
            Document(id="a", content="AAAA", metadata=DocumentMetadata(title="As", tags=["x"])),
            Document(id="b", content="BBBB", metadata=DocumentMetadata(title="Bs")),
            Document(id="ab", content="AAAB", metadata=DocumentMetadata(title="Mixed", tags=["x", "y"])),
        ],
        IngestionOptions(chunk_size=4),
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestContextFusionEngine:
    """Test get_context and search."""

    async def test_get_context_ranks_and_truncates(self, context_engine, ingested):
        """Test truncation to max_documents with pre-truncation total."""
        response = await context_engine.get_context(
            "AAAA", ContextOptions(max_documents=1, min_score=0.0, include_relationships=False)
        )

        assert [d.id for d in response.context.documents] == ["a"]
        assert response.total_results == 3
        assert response.context.documents[0].score == pytest.approx(1.0)
        assert response.context.relationships == []

    async def test_min_score_filter(self, context_engine, ingested):
        """Test no returned document scores below min_score."""
        response = await context_engine.get_context("AAAA", ContextOptions(min_score=0.5))

        assert {d.id for d in response.context.documents} == {"a", "ab"}
        assert all(d.score >= 0.5 for d in response.context.documents)

    async def test_over_fetch_limit(self, context_engine, vector_store, config, ingested):
        """Test the vector search over-fetches by the configured factor."""
        await context_engine.get_context("AAAA", ContextOptions(max_documents=2, min_score=0.1))

        assert vector_store.search_calls[-1] == {
            "limit": 2 * config.context.over_fetch_factor,
            "score_threshold": 0.1,
        }

    async def test_documents_hydrated(self, context_engine, ingested):
        """Test surfaced documents carry stored content, metadata and summary."""
        response = await context_engine.get_context("AAAB", ContextOptions(max_documents=1, min_score=0.0))

        document = response.context.documents[0]
        assert document.id == "ab"
        assert document.metadata["title"] == "Mixed"
        assert document.summary == "A short summary."
        assert document.matched_content == "AAAB"

    async def test_relationships_included(self, context_engine, ingested):
        """Test relationships of surfaced documents are fused in."""
        response = await context_engine.get_context("AAAA", ContextOptions(min_score=0.0))

        assert [r.type for r in response.context.relationships] == ["PRECEDES"]

    async def test_relationship_budget(self, context_engine, config, ingested):
        """Test a zero budget omits relationships."""
        config.context.max_relationships = 0

        response = await context_engine.get_context("AAAA", ContextOptions(min_score=0.0))

        assert response.context.relationships == []

    async def test_graph_failure_degrades(self, context_engine, graph_store, ingested):
        """Test a graph failure omits relationships instead of failing the request."""
        graph_store.fail_query = True

        response = await context_engine.get_context("AAAA", ContextOptions(min_score=0.0))

        assert response.context.documents
        assert response.context.relationships == []

    async def test_vector_failure_is_fatal(self, context_engine, vector_store, ingested):
        """Test a vector search failure fails the whole request."""
        vector_store.fail_search = True

        with pytest.raises(ContextRetrievalError):
            await context_engine.get_context("AAAA")

    async def test_no_matches(self, context_engine):
        """Test an empty store yields an empty payload."""
        response = await context_engine.get_context("AAAA", ContextOptions(min_score=0.0))

        assert response.context.documents == []
        assert response.total_results == 0

    async def test_generate_summary(self, context_engine, llm, ingested):
        """Test an optional context summary."""
        llm.summary = "Context summary."

        response = await context_engine.get_context(
            "AAAA", ContextOptions(min_score=0.0, generate_summary=True)
        )

        assert response.context.summary == "Context summary."

    async def test_summary_failure_degrades(self, context_engine, llm, ingested):
        """Test summary failures leave the summary empty."""
        llm.fail_complete = True

        response = await context_engine.get_context(
            "AAAA", ContextOptions(min_score=0.0, generate_summary=True)
        )

        assert response.context.summary is None
        assert response.context.documents

    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query(self, context_engine, query):
        """Test empty queries are rejected."""
        with pytest.raises(ValidationError):
            await context_engine.get_context(query)

    @pytest.mark.parametrize(
        "options",
        [ContextOptions(max_documents=0), ContextOptions(min_score=-0.1), ContextOptions(min_score=1.1)],
    )
    async def test_invalid_options(self, context_engine, vector_store, options):
        """Test out-of-range options are rejected before any search."""
        with pytest.raises(ValidationError):
            await context_engine.get_context("AAAA", options)
        assert vector_store.search_calls == []

    async def test_search_paging(self, context_engine, ingested):
        """Test offset and limit page through ranked results."""
        first = await context_engine.search("AAAA", SearchOptions(limit=1, offset=0))
        second = await context_engine.search("AAAA", SearchOptions(limit=1, offset=1))

        assert [d.id for d in first.results] == ["a"]
        assert [d.id for d in second.results] == ["ab"]
        assert first.total_results == 3

    async def test_search_filters(self, context_engine, ingested):
        """Test metadata filters, with containment for list fields."""
        response = await context_engine.search("AAAA", SearchOptions(filters={"tags": "y"}))
        assert [d.id for d in response.results] == ["ab"]

        response = await context_engine.search("AAAA", SearchOptions(filters={"title": "Bs"}))
        assert [d.id for d in response.results] == ["b"]

    async def test_search_invalid_options(self, context_engine):
        """Test paging validation."""
        with pytest.raises(ValidationError):
            await context_engine.search("AAAA", SearchOptions(limit=0))
