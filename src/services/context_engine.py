"""
Context fusion engine.

Combines vector similarity hits with graph relationships into one ranked
context payload under document and relationship budgets.
"""

import asyncio
import time
from typing import Any

from src.config import Config
from src.core.document_store.base import DocumentStore
from src.core.embeddings.base import Embedder
from src.core.graph_store.base import GraphStore
from src.core.llm.base import LLMProvider
from src.core.vector_store.base import VectorStore
from src.models.context import (
    ContextData,
    ContextDocument,
    ContextOptions,
    ContextResponse,
    SearchOptions,
    SearchResponse,
    VectorSearchResult,
)
from src.models.document import Document
from src.models.relationships import Relationship
from src.utils.exceptions import ContextRetrievalError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


def rank_candidates(
    candidates: list[VectorSearchResult], min_score: float
) -> list[VectorSearchResult]:
    """
    Filter, deduplicate and order vector hits.

    Drops hits below `min_score`, keeps the best chunk per document (ties go
    to the lower ordinal) and sorts by score descending, then ordinal, then
    document ID.
    """
    best: dict[str, VectorSearchResult] = {}
    for candidate in candidates:
        if candidate.score < min_score:
            continue
        current = best.get(candidate.document_id)
        if current is None or (candidate.score, -candidate.ordinal) > (
            current.score,
            -current.ordinal,
        ):
            best[candidate.document_id] = candidate

    return sorted(best.values(), key=lambda c: (-c.score, c.ordinal, c.document_id))


def rank_relationships(relationships: list[Relationship], budget: int) -> list[Relationship]:
    """
    Deduplicate relationships by (source, target, type), keeping the most
    confident, and return at most `budget` of them by confidence descending.
    """
    best: dict[tuple[str, str, str], Relationship] = {}
    for relationship in relationships:
        current = best.get(relationship.key)
        if current is None or relationship.confidence > current.confidence:
            best[relationship.key] = relationship

    ranked = sorted(
        best.values(),
        key=lambda r: (-r.confidence, r.source, r.target, r.type, r.document_id),
    )
    return ranked[:budget]


def _matches_filters(metadata: dict[str, Any], filters: dict[str, Any]) -> bool:
    for key, expected in filters.items():
        actual = metadata.get(key)
        if isinstance(actual, list) and not isinstance(expected, list):
            if expected not in actual:
                return False
        elif actual != expected:
            return False
    return True


class ContextFusionEngine:
    """
    Retrieve, rank and assemble query context.

    The vector search is the primary source: its failure fails the request.
    Relationships, document hydration and the summary are secondary: their
    failures are logged and the payload degrades without them.
    """

    def __init__(
        self,
        embedder: Embedder,
        llm: LLMProvider,
        vector_store: VectorStore,
        graph_store: GraphStore,
        document_store: DocumentStore,
        config: Config,
    ):
        """
        Initialize the context engine.

        Args:
            embedder: Embeds the query text
            llm: Generates optional context summaries
            vector_store: Chunk similarity search
            graph_store: Entity relationship lookup
            document_store: Document hydration
            config: Engine configuration (budgets, defaults, feature flags)
        """
        self.embedder = embedder
        self.llm = llm
        self.vector_store = vector_store
        self.graph_store = graph_store
        self.document_store = document_store
        self.config = config

    def default_options(self) -> ContextOptions:
        return ContextOptions(
            max_documents=self.config.context.max_documents,
            min_score=self.config.context.min_score,
        )

    @staticmethod
    def validate_query(query: str) -> None:
        if not query or not query.strip():
            raise ValidationError("Query cannot be empty")

    @staticmethod
    def validate_options(options: ContextOptions) -> None:
        if options.max_documents < 1:
            raise ValidationError(
                f"max_documents must be at least 1, got {options.max_documents}",
                context={"max_documents": options.max_documents},
            )
        if not 0.0 <= options.min_score <= 1.0:
            raise ValidationError(
                f"min_score must be within [0, 1], got {options.min_score}",
                context={"min_score": options.min_score},
            )

    async def get_context(
        self, query: str, options: ContextOptions | None = None
    ) -> ContextResponse:
        """
        Build the fused context for a query.

        Args:
            query: Query text
            options: Retrieval options (defaults from configuration)

        Returns:
            Ranked documents and relationships, optional summary, the
            pre-truncation match count and end-to-end timing

        Raises:
            ValidationError: If the query or options are invalid
            ContextRetrievalError: If embedding the query or the vector search fails
        """
        options = options or self.default_options()
        self.validate_query(query)
        self.validate_options(options)

        start = time.perf_counter()
        limit = options.max_documents * self.config.context.over_fetch_factor

        candidates = await self._search(query, limit, options.min_score)
        ranked = rank_candidates(candidates, options.min_score)
        total_results = len(ranked)
        surfaced = ranked[: options.max_documents]

        include_relationships = (
            options.include_relationships and self.config.context.max_relationships > 0
        )
        documents, relationships = await asyncio.gather(
            self._hydrate(surfaced),
            self._fetch_relationships([c.document_id for c in surfaced])
            if include_relationships and surfaced
            else self._no_relationships(),
        )

        summary = None
        if options.generate_summary and documents:
            summary = await self._summarize(query, documents)

        response = ContextResponse(
            query=query,
            context=ContextData(documents=documents, relationships=relationships, summary=summary),
            total_results=total_results,
            processing_time_ms=(time.perf_counter() - start) * 1000,
        )

        logger.bind(
            operation="get_context",
            candidates=len(candidates),
            total_results=total_results,
            documents=len(documents),
            relationships=len(relationships),
            duration_ms=response.processing_time_ms,
        ).info(f"Context built: {len(documents)} documents, {len(relationships)} relationships")
        return response

    async def search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        """
        Paged search over documents with exact-match metadata filters.

        List-valued metadata (e.g. tags) matches when it contains the filter value.

        Raises:
            ValidationError: If the query or options are invalid
            ContextRetrievalError: If embedding the query or the vector search fails
        """
        options = options or SearchOptions()
        self.validate_query(query)
        if options.limit < 1 or options.offset < 0:
            raise ValidationError(
                "limit must be at least 1 and offset non-negative",
                context={"limit": options.limit, "offset": options.offset},
            )
        if not 0.0 <= options.min_score <= 1.0:
            raise ValidationError(f"min_score must be within [0, 1], got {options.min_score}")

        start = time.perf_counter()
        limit = (options.offset + options.limit) * self.config.context.over_fetch_factor

        candidates = await self._search(query, limit, options.min_score)
        ranked = [
            candidate
            for candidate in rank_candidates(candidates, options.min_score)
            if _matches_filters(candidate.metadata, options.filters)
        ]
        page = ranked[options.offset : options.offset + options.limit]

        return SearchResponse(
            query=query,
            results=await self._hydrate(page),
            total_results=len(ranked),
            offset=options.offset,
            limit=options.limit,
            processing_time_ms=(time.perf_counter() - start) * 1000,
        )

    async def _search(
        self, query: str, limit: int, min_score: float
    ) -> list[VectorSearchResult]:
        try:
            vector = await self.embedder.embed(query)
            return await self.vector_store.search(vector, limit=limit, score_threshold=min_score)
        except ValidationError:
            raise
        except Exception as e:
            logger.bind(operation="vector_search", error=str(e), error_type=type(e).__name__).error(
                f"Vector retrieval failed: {e}"
            )
            raise ContextRetrievalError(f"Vector retrieval failed: {e}") from e

    async def _hydrate(self, surfaced: list[VectorSearchResult]) -> list[ContextDocument]:
        stored: dict[str, Document] = {}
        if surfaced:
            try:
                stored = await self.document_store.get_many([c.document_id for c in surfaced])
            except Exception as e:
                logger.bind(operation="hydrate", error=str(e)).warning(
                    f"Document hydration failed, using matched chunks only: {e}"
                )

        return [self._to_context_document(c, stored.get(c.document_id)) for c in surfaced]

    @staticmethod
    def _to_context_document(
        candidate: VectorSearchResult, document: Document | None
    ) -> ContextDocument:
        if document is None:
            return ContextDocument(
                id=candidate.document_id,
                content=candidate.content,
                matched_content=candidate.content,
                score=candidate.score,
                ordinal=candidate.ordinal,
                metadata=candidate.metadata,
            )
        return ContextDocument(
            id=candidate.document_id,
            content=document.content,
            matched_content=candidate.content,
            score=candidate.score,
            ordinal=candidate.ordinal,
            metadata=document.metadata.flatten(),
            source=document.source,
            summary=document.processing.summary,
        )

    async def _fetch_relationships(self, document_ids: list[str]) -> list[Relationship]:
        budget = self.config.context.max_relationships
        try:
            entities = await self.graph_store.get_document_entities(document_ids)
            if not entities:
                return []
            found = await self.graph_store.query(
                entities, limit=budget * self.config.context.over_fetch_factor
            )
        except Exception as e:
            logger.bind(
                operation="fetch_relationships",
                documents=len(document_ids),
                error=str(e),
            ).warning(f"Relationship fetch failed, omitting relationships: {e}")
            return []

        return rank_relationships(found, budget)

    @staticmethod
    async def _no_relationships() -> list[Relationship]:
        return []

    async def _summarize(self, query: str, documents: list[ContextDocument]) -> str | None:
        max_chars = self.config.streaming.max_document_chars
        sections = [f"Query: {query}"]
        for document in documents:
            title = document.metadata.get("title") or document.id
            sections.append(f"[{title}]\n{document.content[:max_chars]}")

        try:
            return await self.llm.summarize(
                "\n\n".join(sections), max_length=self.config.context.summary_max_length
            )
        except Exception as e:
            logger.bind(operation="context_summary", error=str(e)).warning(
                f"Context summary failed, omitting summary: {e}"
            )
            return None
