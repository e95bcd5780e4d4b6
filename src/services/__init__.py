"""
Services for the Memory Context Engine.

High-level business logic services:
- MemoryEngine: Unified interface for all engine operations
- IngestionPipeline: Chunk, embed, link and summarize documents
- ContextFusionEngine: Ranked vector + graph context retrieval
- StreamingAnalysisSession: Cancellable streaming LLM analysis
- HealthCheckCache: TTL-cached, single-flight health probes
"""

from src.services.analysis_session import StreamingAnalysisSession
from src.services.context_engine import ContextFusionEngine
from src.services.health_cache import HealthCheckCache, calculate_health_score
from src.services.ingestion_pipeline import IngestionPipeline
from src.services.memory_engine import MemoryEngine

__all__ = [
    "MemoryEngine",
    "IngestionPipeline",
    "ContextFusionEngine",
    "StreamingAnalysisSession",
    "HealthCheckCache",
    "calculate_health_score",
]
