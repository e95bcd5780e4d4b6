"""Fixtures for service tests.

Services are exercised against in-memory adapters so the tests need no
running Qdrant, Neo4j or LLM server. The fakes implement the same abstract
interfaces as the real adapters and record how they were called.
"""

import asyncio
import math

import pytest

from src.config import Config
from src.core.document_store.memory import InMemoryDocumentStore
from src.core.embeddings.base import Embedder
from src.core.graph_store.base import GraphStore
from src.core.llm.base import LLMProvider
from src.core.vector_store.base import VectorStore
from src.models.context import VectorSearchResult
from src.models.relationships import ExtractedRelationship, GraphStats, RelationshipExtraction
from src.services.context_engine import ContextFusionEngine
from src.services.ingestion_pipeline import IngestionPipeline
from src.utils.exceptions import EmbeddingError, GraphStoreError, LLMError, VectorStoreError


class FakeEmbedder(Embedder):
    """Embeds text as letter counts over a tiny alphabet (A, B, C, other)."""

    def __init__(self):
        self.batches: list[list[str]] = []
        self.fail_on: str | None = None
        self.short_batch = False

    @staticmethod
    def vectorize(text: str) -> list[float]:
        counts = [0.0, 0.0, 0.0, 0.0]
        for char in text:
            index = "ABC".find(char.upper())
            counts[index if index >= 0 else 3] += 1.0
        return counts

    async def embed(self, text: str, **kwargs) -> list[float]:
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError("embedder unavailable")
        return self.vectorize(text)

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        self.batches.append(list(texts))
        vectors = [await self.embed(text) for text in texts]
        return vectors[:-1] if self.short_batch else vectors

    async def close(self):
        pass


class FakeVectorStore(VectorStore):
    """Brute-force cosine search over stored chunks."""

    def __init__(self):
        self.points: dict[tuple[str, int], tuple[list[float], str, dict]] = {}
        self.fail_search = False
        self.fail_store = False
        self.search_calls: list[dict] = []

    async def initialize(self) -> None:
        pass

    async def store_embeddings(self, chunks, metadata=None) -> int:
        if self.fail_store:
            raise VectorStoreError("vector store unavailable")
        for chunk in chunks:
            self.points[(chunk.document_id, chunk.ordinal)] = (
                chunk.embedding,
                chunk.text,
                dict(metadata or {}),
            )
        return len(chunks)

    async def search(self, vector, limit=10, score_threshold=None):
        self.search_calls.append({"limit": limit, "score_threshold": score_threshold})
        if self.fail_search:
            raise VectorStoreError("vector store unavailable")

        results = []
        for (document_id, ordinal), (embedding, text, metadata) in self.points.items():
            score = max(0.0, min(1.0, _cosine(vector, embedding)))
            if score_threshold is not None and score < score_threshold:
                continue
            results.append(
                VectorSearchResult(
                    document_id=document_id,
                    content=text,
                    score=score,
                    ordinal=ordinal,
                    metadata=metadata,
                )
            )
        results.sort(key=lambda r: -r.score)
        return results[:limit]

    async def delete_embeddings(self, document_id: str) -> int:
        keys = [key for key in self.points if key[0] == document_id]
        for key in keys:
            del self.points[key]
        return len(keys)

    async def count(self) -> int:
        return len(self.points)

    async def close(self) -> None:
        pass

    def chunks_of(self, document_id: str) -> list[str]:
        return [
            text
            for (doc_id, _), (_, text, _) in sorted(self.points.items())
            if doc_id == document_id
        ]


class FakeGraphStore(GraphStore):
    """List-backed relationship graph."""

    def __init__(self):
        self.relationships = []
        self.fail_query = False
        self.fail_upsert = False

    async def initialize(self) -> None:
        pass

    async def upsert_relationships(self, document_id, relationships) -> int:
        if self.fail_upsert:
            raise GraphStoreError("graph store unavailable")
        self.relationships.extend(relationships)
        return len(relationships)

    async def delete_relationships(self, document_id) -> int:
        before = len(self.relationships)
        self.relationships = [r for r in self.relationships if r.document_id != document_id]
        return before - len(self.relationships)

    async def get_document_entities(self, document_ids) -> list[str]:
        if self.fail_query:
            raise GraphStoreError("graph store unavailable")
        names = set()
        for rel in self.relationships:
            if rel.document_id in document_ids:
                names.update((rel.source, rel.target))
        return sorted(names)

    async def query(self, entity_ids, limit=100):
        if self.fail_query:
            raise GraphStoreError("graph store unavailable")
        found = [r for r in self.relationships if r.source in entity_ids or r.target in entity_ids]
        found.sort(key=lambda r: (-r.confidence, r.source, r.target, r.type))
        return found[:limit]

    async def stats(self) -> GraphStats:
        names = {r.source for r in self.relationships} | {r.target for r in self.relationships}
        return GraphStats(node_count=len(names), relationship_count=len(self.relationships))

    async def close(self) -> None:
        pass


class FakeLLM(LLMProvider):
    """Scriptable LLM: fixed extractions, summaries and streamed parts."""

    def __init__(self):
        self.extracted: list[ExtractedRelationship] = []
        self.summary = "A short summary."
        self.stream_parts: list[str] = ["Insight one. ", "Insight two."]
        self.stream_delay = 0.0
        self.stream_error: Exception | None = None
        self.fail_complete = False
        self.stream_messages = None
        self.stream_started = asyncio.Event()
        self.stream_finished = False
        self.extraction_calls = 0

    async def complete(self, prompt, response_format=None, max_tokens=2000, temperature=0.0, **kwargs):
        if self.fail_complete:
            raise LLMError("llm unavailable")
        if response_format is RelationshipExtraction:
            self.extraction_calls += 1
            return RelationshipExtraction(relationships=list(self.extracted))
        return self.summary

    async def stream_chat(self, messages, **kwargs):
        self.stream_messages = messages
        self.stream_started.set()
        try:
            for part in self.stream_parts:
                if self.stream_delay:
                    await asyncio.sleep(self.stream_delay)
                yield part
            if self.stream_error is not None:
                raise self.stream_error
        finally:
            self.stream_finished = True

    async def health_check(self) -> bool:
        return True

    async def list_models(self) -> list[str]:
        return ["fake-model"]

    async def close(self):
        pass


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


# Fixtures


@pytest.fixture
def config() -> Config:
    """Default engine configuration."""
    return Config()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def graph_store() -> FakeGraphStore:
    return FakeGraphStore()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def pipeline(embedder, llm, vector_store, graph_store, document_store, config) -> IngestionPipeline:
    return IngestionPipeline(
        embedder=embedder,
        llm=llm,
        vector_store=vector_store,
        graph_store=graph_store,
        document_store=document_store,
        config=config,
    )


@pytest.fixture
def context_engine(
    embedder, llm, vector_store, graph_store, document_store, config
) -> ContextFusionEngine:
    return ContextFusionEngine(
        embedder=embedder,
        llm=llm,
        vector_store=vector_store,
        graph_store=graph_store,
        document_store=document_store,
        config=config,
    )
