"""
Context retrieval models: vector search hits, options and the fused
context payload returned to callers.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.document import DocumentSource
from src.models.relationships import Relationship


class VectorSearchResult(BaseModel):
    """A single chunk match from the vector store. Computed per query, never persisted."""

    document_id: str
    content: str = Field(..., description="Matched chunk text")
    score: float = Field(..., ge=0.0, le=1.0, description="Similarity, higher is closer")
    ordinal: int = Field(default=0, ge=0, description="Ordinal of the matched chunk")
    metadata: dict[str, Any] = Field(default_factory=dict)


class ContextOptions(BaseModel):
    """
    Per-request context retrieval options.

    Ranges are checked by the context engine so bad options surface as the
    engine's ValidationError.
    """

    max_documents: int = Field(default=10, description="Documents to surface, at least 1")
    include_relationships: bool = True
    min_score: float = Field(default=0.5, description="Score floor in [0, 1]")
    generate_summary: bool = False


class ContextDocument(BaseModel):
    """A document surfaced in a context payload."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str = Field(..., description="Full document content when known, else matched chunk")
    matched_content: str = Field(..., description="Best matching chunk text")
    score: float
    ordinal: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    source: DocumentSource | None = None
    summary: str | None = None


class ContextData(BaseModel):
    """Ranked documents and relationships plus an optional synthesized summary."""

    model_config = ConfigDict(frozen=True)

    documents: list[ContextDocument] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    summary: str | None = None


class ContextResponse(BaseModel):
    """Fused context for a query. Built fresh per request and never mutated."""

    model_config = ConfigDict(frozen=True)

    query: str
    context: ContextData
    total_results: int = Field(..., ge=0, description="Matching documents before truncation")
    processing_time_ms: float = Field(default=0.0, ge=0)


class SearchOptions(BaseModel):
    """Paged search options."""

    limit: int = 10
    offset: int = 0
    min_score: float = 0.0
    filters: dict[str, Any] = Field(
        default_factory=dict, description="Exact-match filters on flattened document metadata"
    )


class SearchResponse(BaseModel):
    """A page of ranked search hits."""

    query: str
    results: list[ContextDocument] = Field(default_factory=list)
    total_results: int = Field(default=0, ge=0)
    offset: int = 0
    limit: int = 10
    processing_time_ms: float = Field(default=0.0, ge=0)
