"""
Data models for the Context Memory Engine.

- Document, Chunk: submitted content and its embedded slices
- Relationship, GraphStats: entity graph
- IngestionOptions, IngestionResult: batch ingestion
- ContextOptions, ContextResponse: fused query context
- AnalysisEvent, SessionState: streaming analysis
- HealthCheckResult, HealthCheckCacheStatistics: health probes
"""

from src.models.analysis import (
    AnalysisEvent,
    AnalysisEventType,
    SessionState,
    format_sse_event,
)
from src.models.context import (
    ContextData,
    ContextDocument,
    ContextOptions,
    ContextResponse,
    SearchOptions,
    SearchResponse,
    VectorSearchResult,
)
from src.models.document import (
    Chunk,
    Document,
    DocumentMetadata,
    DocumentProcessing,
    DocumentSource,
    ProcessingStatus,
)
from src.models.health import (
    HealthCheckCacheStatistics,
    HealthCheckResult,
    HealthStatus,
    MemoryStatistics,
)
from src.models.ingestion import DocumentIngestionResult, IngestionOptions, IngestionResult
from src.models.relationships import (
    ExtractedRelationship,
    GraphStats,
    Relationship,
    RelationshipExtraction,
)

__all__ = [
    # Document models
    "Document",
    "DocumentMetadata",
    "DocumentSource",
    "DocumentProcessing",
    "ProcessingStatus",
    "Chunk",
    # Relationship models
    "Relationship",
    "ExtractedRelationship",
    "RelationshipExtraction",
    "GraphStats",
    # Ingestion models
    "IngestionOptions",
    "IngestionResult",
    "DocumentIngestionResult",
    # Context models
    "VectorSearchResult",
    "ContextOptions",
    "ContextDocument",
    "ContextData",
    "ContextResponse",
    "SearchOptions",
    "SearchResponse",
    # Analysis models
    "AnalysisEvent",
    "AnalysisEventType",
    "SessionState",
    "format_sse_event",
    # Health models
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckCacheStatistics",
    "MemoryStatistics",
]
