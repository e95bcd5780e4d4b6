"""
Document and Chunk models.

A Document is the unit callers submit for ingestion. It is split into
Chunks (the unit of embedding) whose lifetime is bound to the parent
document: deleting a document deletes all of its chunks.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.utils.exceptions import StateTransitionError
from src.utils.id_generator import generate_chunk_id, generate_document_id


class ProcessingStatus(str, Enum):
    """Lifecycle of a document inside the ingestion pipeline."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.FAILED)


# Forward-only transitions; terminal states have no successors.
_ALLOWED_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset(
        {ProcessingStatus.PROCESSING, ProcessingStatus.FAILED}
    ),
    ProcessingStatus.PROCESSING: frozenset(
        {ProcessingStatus.COMPLETED, ProcessingStatus.FAILED}
    ),
    ProcessingStatus.COMPLETED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}


class DocumentMetadata(BaseModel):
    """
    Descriptive metadata for a document.

    Well-known fields are explicit and typed; anything else goes into
    `extensions`, an open key/value map kept separate from the typed fields.
    """

    title: str | None = Field(default=None, description="Document title")
    author: str | None = Field(default=None, description="Document author")
    type: str | None = Field(default=None, description="Content type, e.g. 'article'")
    tags: list[str] = Field(default_factory=list, description="Ordered list of tags")
    created: datetime | None = Field(default=None, description="Authoring timestamp")
    modified: datetime | None = Field(default=None, description="Last modification timestamp")
    extensions: dict[str, Any] = Field(
        default_factory=dict, description="Open-ended key/value extension map"
    )

    def flatten(self) -> dict[str, Any]:
        """
        Flatten into a single JSON-compatible dict for store payloads.

        Typed fields win over extension keys with the same name.
        """
        typed = self.model_dump(mode="json", exclude={"extensions"}, exclude_none=True)
        return {**self.extensions, **typed}


class DocumentSource(BaseModel):
    """Provenance of a document. Never re-fetched by the engine."""

    type: str = Field(default="text", description="Source type, e.g. 'file', 'url', 'text'")
    path: str | None = Field(default=None, description="Source location")
    modified: datetime | None = Field(default=None, description="Source modification time")


class DocumentProcessing(BaseModel):
    """Processing state recorded on a document by the ingestion pipeline."""

    status: ProcessingStatus = Field(default=ProcessingStatus.PENDING)
    chunk_count: int = Field(default=0, ge=0)
    relationship_count: int = Field(default=0, ge=0)
    summary: str | None = None
    error: str | None = None
    updated_at: datetime = Field(default_factory=datetime.now)

    def transition_to(self, status: ProcessingStatus) -> None:
        """
        Move to a new status, enforcing forward-only progress.

        Repeating the current status is a no-op.

        Raises:
            StateTransitionError: If the move would regress or leave a terminal state
        """
        if status == self.status:
            return
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise StateTransitionError(
                f"Illegal processing transition {self.status.value} -> {status.value}",
                context={"from": self.status.value, "to": status.value},
            )
        self.status = status
        self.updated_at = datetime.now()


class Document(BaseModel):
    """A document submitted for ingestion."""

    id: str = Field(default_factory=generate_document_id, description="Unique document ID")
    content: str = Field(..., description="Raw text content")
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    source: DocumentSource = Field(default_factory=DocumentSource)
    processing: DocumentProcessing = Field(default_factory=DocumentProcessing)
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    class Config:
        """Pydantic configuration."""

        json_encoders = {datetime: lambda v: v.isoformat()}

    @property
    def content_preview(self) -> str:
        """First 200 characters of content."""
        return self.content[:200] if len(self.content) > 200 else self.content


class Chunk(BaseModel):
    """
    A bounded-size slice of a document's text.

    Chunks are addressed by (document_id, ordinal); ordinals are 0-based
    and stable within a document.
    """

    document_id: str = Field(..., description="Owning document ID")
    ordinal: int = Field(..., ge=0, description="Zero-based position within the document")
    text: str = Field(..., description="Chunk text")
    embedding: list[float] = Field(default_factory=list, description="Vector embedding")

    @property
    def chunk_id(self) -> str:
        return generate_chunk_id(self.document_id, self.ordinal)
