"""
Ingestion pipeline.

Turns submitted documents into stored chunks, vectors, relationships and
summaries. Documents run with bounded concurrency; each document's failure
is recorded on its own result and never aborts the batch.
"""

import asyncio
import time

from src.config import Config
from src.core.chunker.chunker import TextChunker
from src.core.document_store.base import DocumentStore
from src.core.embeddings.base import Embedder
from src.core.graph_store.base import GraphStore
from src.core.llm.base import LLMProvider
from src.core.vector_store.base import VectorStore
from src.models.document import Chunk, Document, DocumentProcessing, ProcessingStatus
from src.models.ingestion import DocumentIngestionResult, IngestionOptions, IngestionResult
from src.utils.exceptions import EmbeddingError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class IngestionPipeline:
    """
    Chunk, embed, store, link and summarize documents.

    Per document, in order:
    1. Validate content and batch-unique ID
    2. Chunk content
    3. Embed every chunk (all or nothing)
    4. Replace the document's vectors
    5. Concurrently: replace its relationships, generate its summary
    6. Mark completed
    """

    def __init__(
        self,
        embedder: Embedder,
        llm: LLMProvider,
        vector_store: VectorStore,
        graph_store: GraphStore,
        document_store: DocumentStore,
        config: Config,
        chunker: TextChunker | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            embedder: Embedding provider for chunk vectors
            llm: LLM provider for relationship extraction and summaries
            vector_store: Chunk vector storage
            graph_store: Entity relationship storage
            document_store: Document repository
            config: Engine configuration
            chunker: Optional chunker (defaults to one built from config)
        """
        self.embedder = embedder
        self.llm = llm
        self.vector_store = vector_store
        self.graph_store = graph_store
        self.document_store = document_store
        self.config = config
        self.chunker = chunker or TextChunker(config.ingestion)

    def default_options(self) -> IngestionOptions:
        return IngestionOptions(chunk_size=self.config.ingestion.chunk_size)

    async def ingest(
        self, documents: list[Document], options: IngestionOptions | None = None
    ) -> IngestionResult:
        """
        Ingest a batch of documents.

        Args:
            documents: Documents to ingest
            options: Batch options (defaults from configuration)

        Returns:
            Per-document results; ordering is not significant

        Raises:
            ValidationError: If the options are invalid (nothing is ingested)
        """
        options = options or self.default_options()
        if options.chunk_size < 1:
            raise ValidationError(
                f"Chunk size must be at least 1, got {options.chunk_size}",
                context={"chunk_size": options.chunk_size},
            )

        start = time.perf_counter()
        logger.bind(
            operation="ingest",
            documents=len(documents),
            chunk_size=options.chunk_size,
            max_concurrency=self.config.ingestion.max_concurrent_documents,
        ).info(f"Ingesting batch of {len(documents)} documents")

        # Later occurrences of an ID already seen in the batch are rejected
        seen: set[str] = set()
        planned: list[tuple[Document, str | None]] = []
        for document in documents:
            rejection = None
            if document.id in seen:
                rejection = f"Duplicate document id in batch: {document.id}"
            seen.add(document.id)
            planned.append((document, rejection))

        semaphore = asyncio.Semaphore(self.config.ingestion.max_concurrent_documents)

        async def run(document: Document, rejection: str | None) -> DocumentIngestionResult:
            async with semaphore:
                return await self._ingest_document(document, options, rejection)

        results = await asyncio.gather(*(run(doc, rejection) for doc, rejection in planned))

        successful = sum(1 for result in results if result.succeeded)
        batch = IngestionResult(
            total_documents=len(results),
            successful_documents=successful,
            failed_documents=len(results) - successful,
            results=list(results),
            total_processing_time_ms=_elapsed_ms(start),
        )

        logger.bind(
            operation="ingest",
            successful=successful,
            failed=batch.failed_documents,
            duration_ms=batch.total_processing_time_ms,
        ).info(f"Batch ingested: {successful}/{len(results)} documents succeeded")
        return batch

    def _validate(self, document: Document, rejection: str | None) -> None:
        if rejection:
            raise ValidationError(rejection, context={"document_id": document.id})
        if not document.id or not document.id.strip():
            raise ValidationError("Document ID cannot be empty")
        if not document.content or not document.content.strip():
            raise ValidationError(
                "Document content cannot be empty", context={"document_id": document.id}
            )

    async def _ingest_document(
        self, submitted: Document, options: IngestionOptions, rejection: str | None
    ) -> DocumentIngestionResult:
        start = time.perf_counter()
        document = submitted.model_copy(deep=True)

        try:
            self._validate(document, rejection)
        except ValidationError as e:
            logger.bind(document_id=document.id, reason=e.message).warning(
                f"Rejected document {document.id}: {e.message}"
            )
            return DocumentIngestionResult(
                document_id=document.id,
                status=ProcessingStatus.FAILED,
                error=e.message,
                processing_time_ms=_elapsed_ms(start),
            )

        # Every ingestion run starts a fresh lifecycle
        document.processing = DocumentProcessing()
        processing = document.processing

        try:
            processing.transition_to(ProcessingStatus.PROCESSING)
            await self.document_store.save(document)

            chunk_count, relationship_count, summary = await self._process(document, options)

            processing.chunk_count = chunk_count
            processing.relationship_count = relationship_count
            processing.summary = summary
            processing.transition_to(ProcessingStatus.COMPLETED)
            await self.document_store.save(document)
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or type(e).__name__
            logger.bind(document_id=document.id, error=message, error_type=type(e).__name__).error(
                f"Failed to ingest document {document.id}: {message}"
            )
            if not processing.status.is_terminal:
                processing.transition_to(ProcessingStatus.FAILED)
            processing.error = message
            await self._discard_embeddings(document.id)
            await self._record_failure(document)
            return DocumentIngestionResult(
                document_id=document.id,
                status=ProcessingStatus.FAILED,
                error=message,
                processing_time_ms=_elapsed_ms(start),
            )

        logger.bind(
            document_id=document.id,
            chunks=chunk_count,
            relationships=relationship_count,
        ).debug(f"Ingested document {document.id}")
        return DocumentIngestionResult(
            document_id=document.id,
            status=ProcessingStatus.COMPLETED,
            chunks_created=chunk_count,
            relationships_extracted=relationship_count,
            summary=summary,
            processing_time_ms=_elapsed_ms(start),
        )

    async def _process(
        self, document: Document, options: IngestionOptions
    ) -> tuple[int, int, str | None]:
        chunks = self.chunker.build_chunks(document.id, document.content, options.chunk_size)
        if not chunks:
            raise ValidationError(
                "Document produced no chunks", context={"document_id": document.id}
            )

        await self._embed_chunks(chunks)

        await self.vector_store.delete_embeddings(document.id)
        stored = await self.vector_store.store_embeddings(
            chunks, metadata=self._payload_metadata(document)
        )

        relationships, summary = await asyncio.gather(
            self._replace_relationships(document, options),
            self._summarize(document, options),
            return_exceptions=True,
        )
        for outcome in (relationships, summary):
            if isinstance(outcome, BaseException):
                raise outcome

        return stored, relationships, summary

    async def _embed_chunks(self, chunks: list[Chunk]) -> None:
        vectors = await self.embedder.batch_embed([chunk.text for chunk in chunks])
        if len(vectors) != len(chunks) or any(not vector for vector in vectors):
            raise EmbeddingError(
                "Embedding provider returned an incomplete result",
                context={"expected": len(chunks), "received": len(vectors)},
            )
        for chunk, vector in zip(chunks, vectors):
            chunk.embedding = vector

    async def _replace_relationships(self, document: Document, options: IngestionOptions) -> int:
        # Prior relationships go even when extraction is off for this run
        enabled = options.extract_relationships and self.config.features.relationship_extraction
        extracted = await self.llm.extract_relationships(document.content) if enabled else []

        await self.graph_store.delete_relationships(document.id)
        if not extracted:
            return 0

        relationships = [item.to_relationship(document.id) for item in extracted]
        return await self.graph_store.upsert_relationships(document.id, relationships)

    async def _summarize(self, document: Document, options: IngestionOptions) -> str | None:
        if not (options.auto_summarize and self.config.features.contextual_summarization):
            return None
        return await self.llm.summarize(
            document.content, max_length=self.config.ingestion.summary_max_length
        )

    async def _discard_embeddings(self, document_id: str) -> None:
        # A failed document must not stay retrievable
        try:
            await self.vector_store.delete_embeddings(document_id)
        except Exception as e:
            logger.bind(document_id=document_id, error=str(e)).warning(
                f"Could not remove embeddings of failed document {document_id}: {e}"
            )

    async def _record_failure(self, document: Document) -> None:
        try:
            await self.document_store.save(document)
        except Exception as e:
            logger.bind(document_id=document.id, error=str(e)).warning(
                f"Could not record failure for {document.id}: {e}"
            )

    @staticmethod
    def _payload_metadata(document: Document) -> dict:
        metadata = document.metadata.flatten()
        metadata["source_type"] = document.source.type
        if document.source.path:
            metadata["source_path"] = document.source.path
        return metadata

    async def delete_document(self, document_id: str) -> bool:
        """
        Remove a document and everything derived from it.

        Vectors, relationships and the stored document are deleted concurrently.

        Returns:
            False if nothing was stored under the ID

        Raises:
            ValidationError: If document_id is empty
            AdapterError: If a store fails
        """
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID cannot be empty")

        vectors, relationships, removed = await asyncio.gather(
            self.vector_store.delete_embeddings(document_id),
            self.graph_store.delete_relationships(document_id),
            self.document_store.delete(document_id),
        )

        logger.bind(
            document_id=document_id,
            vectors=vectors,
            relationships=relationships,
            document_removed=removed,
        ).info(f"Deleted document {document_id}")
        return bool(removed or vectors or relationships)
