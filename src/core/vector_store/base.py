"""
Base interface for vector storage of document chunks.
"""

from abc import ABC, abstractmethod
from typing import Any

from src.models.context import VectorSearchResult
from src.models.document import Chunk


class VectorStore(ABC):
    """
    Abstract base class for chunk vector storage.

    Points are keyed by (document_id, ordinal) so storing a chunk twice
    overwrites it. Cancellation is asyncio task cancellation.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the vector store (create collections/indices).

        Raises:
            VectorStoreError: If initialization fails
        """
        pass

    @abstractmethod
    async def store_embeddings(
        self, chunks: list[Chunk], metadata: dict[str, Any] | None = None
    ) -> int:
        """
        Upsert embedded chunks.

        Args:
            chunks: Chunks carrying embeddings
            metadata: Document metadata copied onto every point

        Returns:
            Number of points written

        Raises:
            ValidationError: If a chunk has no embedding
            VectorStoreError: If the upsert fails
        """
        pass

    @abstractmethod
    async def search(
        self,
        vector: list[float],
        limit: int = 10,
        score_threshold: float | None = None,
    ) -> list[VectorSearchResult]:
        """
        Similarity search over stored chunks.

        Args:
            vector: Query embedding
            limit: Maximum results
            score_threshold: Minimum similarity score

        Returns:
            Results ordered by descending score, scores in [0, 1]

        Raises:
            VectorStoreError: If the search fails
        """
        pass

    @abstractmethod
    async def delete_embeddings(self, document_id: str) -> int:
        """
        Delete every chunk of a document.

        Returns:
            Number of points deleted

        Raises:
            VectorStoreError: If deletion fails
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Total number of stored chunk points."""
        pass

    async def health_check(self) -> bool:
        """Probe the store. Default implementation counts points."""
        await self.count()
        return True

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the vector store."""
        pass
