"""
Qdrant vector store implementation for document chunks.
"""

from typing import Any
from uuid import NAMESPACE_DNS, UUID, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    HnswConfigDiff,
    MatchValue,
    PointStruct,
    VectorParams,
)

from src.core.vector_store.base import VectorStore
from src.models.context import VectorSearchResult
from src.models.document import Chunk
from src.utils.exceptions import ValidationError, VectorStoreError
from src.utils.id_generator import generate_chunk_id
from src.utils.logger import get_logger

logger = get_logger(__name__)


class QdrantStore(VectorStore):
    """
    Qdrant vector store for chunk embeddings.

    Features:
    - Deterministic point IDs derived from (document_id, ordinal)
    - HNSW indexing with cosine distance
    - Keyword payload index on document_id for per-document deletes
    - Batched upserts
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        collection_name: str = "documents",
        vector_size: int = 1024,
        use_grpc: bool = False,
        hnsw_m: int = 16,
        hnsw_ef_construct: int = 100,
        on_disk: bool = False,
        batch_size: int = 100,
        timeout: int = 30,
    ):
        """
        Initialize Qdrant store.

        Args:
            host: Qdrant host
            port: Qdrant port (6333 for HTTP, 6334 for gRPC)
            collection_name: Collection name
            vector_size: Embedding dimension
            use_grpc: Use gRPC connection
            hnsw_m: HNSW M parameter (connections per node)
            hnsw_ef_construct: HNSW ef_construct parameter
            on_disk: Store vectors on disk (reduces RAM usage)
            batch_size: Points per upsert request
            timeout: Client request timeout in seconds
        """
        self.host = host
        self.port = port
        self.collection_name = collection_name
        self.vector_size = vector_size
        self.use_grpc = use_grpc
        self.hnsw_m = hnsw_m
        self.hnsw_ef_construct = hnsw_ef_construct
        self.on_disk = on_disk
        self.batch_size = batch_size
        self.timeout = timeout
        self.client: AsyncQdrantClient | None = None

    def _to_uuid(self, id_str: str) -> str:
        """
        Convert string ID to UUID format consistently.

        Args:
            id_str: String identifier

        Returns:
            UUID string
        """
        try:
            UUID(id_str)
            return id_str
        except ValueError:
            return str(uuid5(NAMESPACE_DNS, id_str))

    def _point_id(self, document_id: str, ordinal: int) -> str:
        return self._to_uuid(generate_chunk_id(document_id, ordinal))

    @staticmethod
    def _document_filter(document_id: str) -> Filter:
        return Filter(
            must=[FieldCondition(key="document_id", match=MatchValue(value=document_id))]
        )

    async def connect(self) -> None:
        """
        Establish connection to Qdrant.

        Raises:
            VectorStoreError: If connection fails
        """
        if self.client is None:
            try:
                self.client = AsyncQdrantClient(
                    host=self.host,
                    port=self.port,
                    prefer_grpc=self.use_grpc,
                    timeout=self.timeout,
                )
            except Exception as e:
                logger.bind(host=self.host, port=self.port, error=str(e)).error(
                    f"Failed to connect to Qdrant: {e}"
                )
                raise VectorStoreError(f"Failed to connect to Qdrant: {e}") from e

    async def initialize(self) -> None:
        """
        Create the collection and payload indices if missing.

        Raises:
            VectorStoreError: If initialization fails
        """
        try:
            await self.connect()

            collections = await self.client.get_collections()
            collection_names = [col.name for col in collections.collections]

            if self.collection_name in collection_names:
                return

            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(
                    size=self.vector_size,
                    distance=Distance.COSINE,
                    hnsw_config=HnswConfigDiff(
                        m=self.hnsw_m,
                        ef_construct=self.hnsw_ef_construct,
                    ),
                    on_disk=self.on_disk,
                ),
            )

            await self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name="document_id",
                field_schema="keyword",
            )

            logger.bind(collection=self.collection_name, vector_size=self.vector_size).info(
                f"Created Qdrant collection {self.collection_name}"
            )
        except VectorStoreError:
            raise
        except Exception as e:
            logger.bind(collection=self.collection_name, error=str(e)).error(
                f"Failed to initialize Qdrant collection: {e}"
            )
            raise VectorStoreError(f"Failed to initialize Qdrant collection: {e}") from e

    def _chunk_to_point(self, chunk: Chunk, metadata: dict[str, Any]) -> PointStruct:
        return PointStruct(
            id=self._point_id(chunk.document_id, chunk.ordinal),
            vector=chunk.embedding,
            payload={
                "document_id": chunk.document_id,
                "ordinal": chunk.ordinal,
                "content": chunk.text,
                "metadata": metadata,
            },
        )

    async def store_embeddings(
        self, chunks: list[Chunk], metadata: dict[str, Any] | None = None
    ) -> int:
        """
        Upsert embedded chunks in batches.

        Raises:
            ValidationError: If a chunk has no embedding
            VectorStoreError: If an upsert fails
        """
        if not chunks:
            return 0
        for chunk in chunks:
            if not chunk.embedding:
                raise ValidationError(
                    f"Chunk {chunk.chunk_id} has no embedding",
                    context={"document_id": chunk.document_id, "ordinal": chunk.ordinal},
                )

        payload_metadata = metadata or {}
        try:
            await self.connect()

            for i in range(0, len(chunks), self.batch_size):
                points = [
                    self._chunk_to_point(chunk, payload_metadata)
                    for chunk in chunks[i : i + self.batch_size]
                ]
                await self.client.upsert(
                    collection_name=self.collection_name,
                    points=points,
                    wait=True,
                )
        except Exception as e:
            logger.bind(document_id=chunks[0].document_id, error=str(e)).error(
                f"Failed to store embeddings for {chunks[0].document_id}: {e}"
            )
            raise VectorStoreError(f"Failed to store embeddings: {e}") from e

        return len(chunks)

    async def search(
        self,
        vector: list[float],
        limit: int = 10,
        score_threshold: float | None = None,
    ) -> list[VectorSearchResult]:
        """
        Similarity search over stored chunks.

        Cosine scores are clamped into [0, 1].

        Raises:
            VectorStoreError: If the query fails
        """
        try:
            await self.connect()

            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            logger.bind(collection=self.collection_name, limit=limit, error=str(e)).error(
                f"Qdrant search failed: {e}"
            )
            raise VectorStoreError(f"Vector search failed: {e}") from e

        results = []
        for point in response.points:
            payload = point.payload or {}
            results.append(
                VectorSearchResult(
                    document_id=payload["document_id"],
                    content=payload.get("content", ""),
                    score=min(1.0, max(0.0, point.score)),
                    ordinal=payload.get("ordinal", 0),
                    metadata=payload.get("metadata") or {},
                )
            )

        return results

    async def delete_embeddings(self, document_id: str) -> int:
        """
        Delete every chunk point of a document.

        Returns:
            Number of points that matched before deletion

        Raises:
            ValidationError: If document_id is empty
            VectorStoreError: If deletion fails
        """
        if not document_id or not document_id.strip():
            raise ValidationError("Document ID cannot be empty")

        try:
            await self.connect()

            doc_filter = self._document_filter(document_id)
            existing = await self.client.count(
                collection_name=self.collection_name,
                count_filter=doc_filter,
                exact=True,
            )
            if existing.count == 0:
                return 0

            await self.client.delete(
                collection_name=self.collection_name,
                points_selector=FilterSelector(filter=doc_filter),
                wait=True,
            )
            return existing.count
        except Exception as e:
            logger.bind(document_id=document_id, error=str(e)).error(
                f"Failed to delete embeddings for {document_id}: {e}"
            )
            raise VectorStoreError(f"Failed to delete embeddings: {e}") from e

    async def count(self) -> int:
        """
        Count all chunk points.

        Raises:
            VectorStoreError: If the count fails
        """
        try:
            await self.connect()
            response = await self.client.count(collection_name=self.collection_name, exact=True)
            return response.count
        except Exception as e:
            logger.bind(collection=self.collection_name, error=str(e)).error(
                f"Failed to count points: {e}"
            )
            raise VectorStoreError(f"Failed to count points: {e}") from e

    async def health_check(self) -> bool:
        """Probe Qdrant by fetching the collection info."""
        await self.connect()
        await self.client.get_collection(self.collection_name)
        return True

    async def close(self) -> None:
        """Close the connection to Qdrant."""
        if self.client is not None:
            await self.client.close()
            self.client = None
