"""
Ingestion option and result models.

A batch ingestion returns a result per document; failures are recorded
per document and never abort the batch.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.models.document import ProcessingStatus


class IngestionOptions(BaseModel):
    """Options applied to every document of an ingestion batch."""

    auto_summarize: bool = True
    extract_relationships: bool = True
    chunk_size: int = Field(default=1000, description="Maximum chunk length in characters")


class DocumentIngestionResult(BaseModel):
    """Outcome of ingesting a single document."""

    document_id: str = Field(..., description="ID of the ingested document")
    status: ProcessingStatus = Field(..., description="Final processing status")
    chunks_created: int = Field(default=0, ge=0)
    relationships_extracted: int = Field(default=0, ge=0)
    summary: str | None = None
    error: str | None = Field(default=None, description="Failure reason when status is failed")
    processing_time_ms: float = Field(default=0.0, ge=0)

    @property
    def succeeded(self) -> bool:
        return self.status == ProcessingStatus.COMPLETED


class IngestionResult(BaseModel):
    """Result of a batch ingestion."""

    total_documents: int = Field(default=0, ge=0)
    successful_documents: int = Field(default=0, ge=0)
    failed_documents: int = Field(default=0, ge=0)
    results: list[DocumentIngestionResult] = Field(default_factory=list)
    total_processing_time_ms: float = Field(default=0.0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)

    class Config:
        """Pydantic configuration."""

        json_encoders = {datetime: lambda v: v.isoformat()}

    def get(self, document_id: str) -> DocumentIngestionResult | None:
        """Result for a document, keyed by ID."""
        for result in self.results:
            if result.document_id == document_id:
                return result
        return None
