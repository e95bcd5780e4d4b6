"""
Relationship models for the entity graph.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Relationship(BaseModel):
    """
    Directed relationship between two entities, extracted from a document.

    Relationships are append-only per document; re-ingesting a document
    replaces its previous set.
    """

    source: str = Field(..., description="Source entity identifier")
    target: str = Field(..., description="Target entity identifier")
    type: str = Field(..., description="Verb-like relationship label")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    document_id: str = Field(..., description="Document the relationship was extracted from")
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)

    class Config:
        """Pydantic configuration."""

        json_encoders = {datetime: lambda v: v.isoformat()}

    @property
    def key(self) -> tuple[str, str, str]:
        """Identity used for deduplication across documents."""
        return (self.source, self.target, self.type)


class ExtractedRelationship(BaseModel):
    """Individual relationship for LLM structured output."""

    model_config = {"extra": "ignore"}

    source: str = Field(..., description="Source entity name")
    target: str = Field(..., description="Target entity name")
    type: str = Field(..., description="Relationship type, e.g. WORKS_FOR, LOCATED_IN")
    confidence: float = Field(
        ..., ge=0.0, le=1.0, description="Confidence (0-1) that the relationship holds"
    )
    context: str = Field(default="", description="Sentence or phrase supporting it")

    def to_relationship(self, document_id: str) -> Relationship:
        metadata = {"context": self.context} if self.context else {}
        return Relationship(
            source=self.source,
            target=self.target,
            type=self.type,
            confidence=self.confidence,
            document_id=document_id,
            metadata=metadata,
        )


class RelationshipExtraction(BaseModel):
    """Complete set of relationships extracted from a text (LLM structured output)."""

    model_config = {"extra": "ignore"}

    relationships: list[ExtractedRelationship] = Field(
        default_factory=list, description="Relationships found in the text (or empty)"
    )


class GraphStats(BaseModel):
    """Size of the entity graph."""

    node_count: int = Field(default=0, ge=0)
    relationship_count: int = Field(default=0, ge=0)
