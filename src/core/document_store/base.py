"""
Abstract base class for document repositories.
"""

from abc import ABC, abstractmethod

from src.models.document import Document


class DocumentStore(ABC):
    """
    Repository of ingested documents and their processing state.

    The vector and graph stores hold derived data; this store holds the
    document itself so context results can be hydrated with full content,
    metadata, provenance and summary.
    """

    async def initialize(self) -> None:
        """Prepare the store. No-op by default."""
        return None

    @abstractmethod
    async def save(self, document: Document) -> None:
        """
        Insert or replace a document by ID.

        Raises:
            DocumentStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        """Document by ID, or None."""
        pass

    async def get_many(self, document_ids: list[str]) -> dict[str, Document]:
        """
        Documents by ID. Unknown IDs are absent from the result.

        Default implementation calls `get` per ID.
        """
        found = {}
        for document_id in document_ids:
            document = await self.get(document_id)
            if document is not None:
                found[document_id] = document
        return found

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        """
        Delete a document.

        Returns:
            True if a document was removed
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of stored documents."""
        pass

    async def health_check(self) -> bool:
        await self.count()
        return True

    async def close(self) -> None:
        """Release resources. No-op by default."""
        return None
