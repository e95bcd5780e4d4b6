"""
Base interface for the entity relationship graph.
"""

from abc import ABC, abstractmethod

from src.models.relationships import GraphStats, Relationship


class GraphStore(ABC):
    """
    Abstract base class for graph storage implementations.

    Entities are free-form string identifiers; relationships carry the ID
    of the document they were extracted from so a document's set can be
    replaced wholesale on re-ingestion.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the graph store (create schema, indexes)."""
        pass

    @abstractmethod
    async def upsert_relationships(
        self, document_id: str, relationships: list[Relationship]
    ) -> int:
        """
        Insert relationships extracted from a document.

        Args:
            document_id: Provenance document ID
            relationships: Relationships to insert

        Returns:
            Number of relationships written

        Raises:
            GraphStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_relationships(self, document_id: str) -> int:
        """
        Delete every relationship extracted from a document.

        Returns:
            Number of relationships deleted

        Raises:
            GraphStoreError: If the delete fails
        """
        pass

    @abstractmethod
    async def get_document_entities(self, document_ids: list[str]) -> list[str]:
        """
        Entities mentioned by relationships of the given documents.

        Args:
            document_ids: Document IDs

        Returns:
            Distinct entity identifiers, sorted
        """
        pass

    @abstractmethod
    async def query(self, entity_ids: list[str], limit: int = 100) -> list[Relationship]:
        """
        Relationships whose source or target is one of the given entities.

        Args:
            entity_ids: Entity identifiers
            limit: Maximum relationships returned

        Returns:
            Relationships ordered by confidence descending
        """
        pass

    @abstractmethod
    async def stats(self) -> GraphStats:
        """Entity and relationship counts."""
        pass

    async def health_check(self) -> bool:
        """Probe the store. Default implementation reads stats."""
        await self.stats()
        return True

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the graph store."""
        pass
