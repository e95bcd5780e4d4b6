"""
Memory Context Engine - Integrates all components.

Brings together:
- LLM & Embedder providers
- Vector, Graph & Document stores
- Ingestion pipeline
- Context fusion and streaming analysis
- Cached health checks
"""

import asyncio

from src.config import Config
from src.core.document_store.base import DocumentStore
from src.core.embeddings.base import Embedder
from src.core.factory import (
    DocumentStoreFactory,
    EmbedderFactory,
    GraphStoreFactory,
    LLMFactory,
    VectorStoreFactory,
)
from src.core.graph_store.base import GraphStore
from src.core.llm.base import LLMProvider
from src.core.vector_store.base import VectorStore
from src.models.context import ContextOptions, ContextResponse, SearchOptions, SearchResponse
from src.models.document import Document
from src.models.health import HealthCheckCacheStatistics, HealthCheckResult, MemoryStatistics
from src.models.ingestion import DocumentIngestionResult, IngestionOptions, IngestionResult
from src.services.analysis_session import StreamingAnalysisSession
from src.services.context_engine import ContextFusionEngine
from src.services.health_cache import HealthCheckCache
from src.services.ingestion_pipeline import IngestionPipeline
from src.utils.exceptions import NotFoundError, ValidationError
from src.utils.logger import get_logger, setup_logging_from_config

logger = get_logger(__name__)

# Rough per-item storage estimates used by get_statistics
_BYTES_PER_DOCUMENT = 10_000
_BYTES_PER_VECTOR = 3_000
_BYTES_PER_RELATIONSHIP = 500


class MemoryEngine:
    """
    Unified Memory Context Engine.

    Features:
    - Batch document ingestion with relationship extraction and summaries
    - Ranked context retrieval fusing vector hits and graph relationships
    - Cancellable streaming analysis sessions
    - TTL-cached downstream health checks
    """

    def __init__(
        self,
        llm: LLMProvider,
        embedder: Embedder,
        graph_store: GraphStore,
        vector_store: VectorStore,
        document_store: DocumentStore,
        config: Config,
        health_cache: HealthCheckCache | None = None,
    ):
        """
        Initialize the engine.

        Args:
            llm: LLM provider for extraction, summaries and analysis
            embedder: Embedder for chunk and query vectors
            graph_store: Relationship graph (Neo4j or SQLite)
            vector_store: Chunk vectors (Qdrant)
            document_store: Document repository
            config: Configuration object
            health_cache: Shared health cache (one is built from config if omitted)
        """
        self.llm = llm
        self.embedder = embedder
        self.graph_store = graph_store
        self.vector_store = vector_store
        self.document_store = document_store
        self.config = config

        self.pipeline = IngestionPipeline(
            embedder=embedder,
            llm=llm,
            vector_store=vector_store,
            graph_store=graph_store,
            document_store=document_store,
            config=config,
        )
        self.context_engine = ContextFusionEngine(
            embedder=embedder,
            llm=llm,
            vector_store=vector_store,
            graph_store=graph_store,
            document_store=document_store,
            config=config,
        )

        self.health_cache = health_cache or HealthCheckCache(
            ttl_seconds=config.health.ttl_seconds,
            timeout_seconds=config.health.timeout_seconds,
        )
        self.health_cache.register("vector_store", vector_store.health_check)
        self.health_cache.register("graph_store", graph_store.health_check)
        self.health_cache.register("llm", llm.health_check)
        self.health_cache.register("embedder", embedder.health_check)

    @classmethod
    async def from_config(cls, config: Config, configure_logging: bool = False) -> "MemoryEngine":
        """
        Build an engine with components created from configuration.

        The embedding dimension is taken from config or detected from the
        embedder before the vector store is created. With `configure_logging`
        the `logging` section replaces the current Loguru sinks first.
        """
        if configure_logging:
            setup_logging_from_config(config.logging)

        llm = LLMFactory.create(config.llm)
        embedder = EmbedderFactory.create(config.embedder)
        vector_size = await EmbedderFactory.get_dimension(embedder, config.embedder)
        logger.bind(vector_size=vector_size).info(f"Using vector size {vector_size}")

        return cls(
            llm=llm,
            embedder=embedder,
            graph_store=GraphStoreFactory.create(config),
            vector_store=VectorStoreFactory.create(config.qdrant, vector_size),
            document_store=DocumentStoreFactory.create(config),
            config=config,
        )

    async def initialize(self) -> None:
        """Initialize all stores."""
        logger.info("Initializing Memory Context Engine")

        await self.graph_store.initialize()
        logger.info("Graph store initialized")

        await self.vector_store.initialize()
        logger.info("Vector store initialized")

        await self.document_store.initialize()

        logger.info("Memory Context Engine ready")

    # INGESTION

    async def ingest_documents(
        self, documents: list[Document], options: IngestionOptions | None = None
    ) -> IngestionResult:
        """
        Ingest a batch of documents.

        Per-document failures are reported in the result; they never raise.

        Raises:
            ValidationError: If the options are invalid
        """
        return await self.pipeline.ingest(documents, options)

    async def ingest_document(
        self, document: Document, options: IngestionOptions | None = None
    ) -> DocumentIngestionResult:
        """Ingest a single document and return its result."""
        batch = await self.pipeline.ingest([document], options)
        return batch.results[0]

    async def get_document(self, document_id: str) -> Document:
        """
        Get a stored document with its processing state.

        Raises:
            ValidationError: If document_id is empty
            NotFoundError: If the document does not exist
        """
        if not document_id:
            raise ValidationError("document_id is required")

        document = await self.document_store.get(document_id)
        if document is None:
            raise NotFoundError(
                f"Document not found: {document_id}", context={"document_id": document_id}
            )
        return document

    async def delete_document(self, document_id: str) -> bool:
        """Delete a document with its vectors and relationships."""
        return await self.pipeline.delete_document(document_id)

    # RETRIEVAL

    async def get_context(
        self, query: str, options: ContextOptions | None = None
    ) -> ContextResponse:
        return await self.context_engine.get_context(query, options)

    async def search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        return await self.context_engine.search(query, options)

    def analyze_stream(
        self, query: str, options: ContextOptions | None = None
    ) -> StreamingAnalysisSession:
        """
        Create a streaming analysis session for a query.

        Iterate `session.events()` (or `session.sse()`) to run it.

        Raises:
            ValidationError: If the query or options are invalid
        """
        return StreamingAnalysisSession(
            query=query,
            context_engine=self.context_engine,
            llm=self.llm,
            options=options,
            config=self.config.streaming,
        )

    # STATISTICS & MONITORING

    async def get_statistics(self) -> MemoryStatistics:
        """
        Get storage statistics.

        Returns:
            Document, vector, relationship and entity counts with a rough
            memory usage estimate
        """
        document_count, vector_count, graph_stats = await asyncio.gather(
            self.document_store.count(),
            self.vector_store.count(),
            self.graph_store.stats(),
        )

        return MemoryStatistics(
            document_count=document_count,
            vector_count=vector_count,
            relationship_count=graph_stats.relationship_count,
            node_count=graph_stats.node_count,
            memory_usage_bytes=document_count * _BYTES_PER_DOCUMENT
            + vector_count * _BYTES_PER_VECTOR
            + graph_stats.relationship_count * _BYTES_PER_RELATIONSHIP,
        )

    async def check_health(self, service_name: str) -> HealthCheckResult:
        """
        Check one downstream service through the health cache.

        Raises:
            NotFoundError: If the service is unknown
        """
        return await self.health_cache.check_health(service_name)

    async def check_all_health(self) -> dict[str, HealthCheckResult]:
        services = self.health_cache.services
        results = await asyncio.gather(*(self.health_cache.check_health(s) for s in services))
        return dict(zip(services, results))

    async def is_healthy(self) -> bool:
        results = await self.check_all_health()
        return all(result.is_healthy for result in results.values())

    def get_health_cache_statistics(self) -> HealthCheckCacheStatistics:
        return self.health_cache.get_statistics()

    async def list_models(self) -> list[str]:
        return await self.llm.list_models()

    # LIFECYCLE MANAGEMENT

    async def close(self) -> None:
        """Close all connections and cancel in-flight health probes."""
        logger.info("Shutting down Memory Context Engine")

        await self.health_cache.close()

        await self.graph_store.close()
        await self.vector_store.close()
        await self.document_store.close()

        await self.llm.close()
        await self.embedder.close()

        logger.info("Memory Context Engine shutdown complete")
