"""
In-process document repository.
"""

import asyncio

from src.core.document_store.base import DocumentStore
from src.models.document import Document
from src.utils.exceptions import ValidationError


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store guarded by an asyncio.Lock.

    Documents are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self):
        self._documents: dict[str, Document] = {}
        self._lock = asyncio.Lock()

    async def save(self, document: Document) -> None:
        if not document.id or not document.id.strip():
            raise ValidationError("Document ID cannot be empty")

        async with self._lock:
            self._documents[document.id] = document.model_copy(deep=True)

    async def get(self, document_id: str) -> Document | None:
        async with self._lock:
            document = self._documents.get(document_id)
            return document.model_copy(deep=True) if document else None

    async def get_many(self, document_ids: list[str]) -> dict[str, Document]:
        async with self._lock:
            return {
                document_id: self._documents[document_id].model_copy(deep=True)
                for document_id in document_ids
                if document_id in self._documents
            }

    async def delete(self, document_id: str) -> bool:
        async with self._lock:
            return self._documents.pop(document_id, None) is not None

    async def count(self) -> int:
        async with self._lock:
            return len(self._documents)

    async def close(self) -> None:
        async with self._lock:
            self._documents.clear()
