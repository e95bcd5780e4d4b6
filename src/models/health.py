"""
Health check and statistics models.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Outcome of a downstream health probe."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class HealthCheckResult(BaseModel):
    """Result of probing a single downstream service."""

    service_name: str
    status: HealthStatus
    response_time_ms: float = Field(default=0.0, ge=0)
    timestamp: datetime = Field(default_factory=datetime.now)
    error_message: str | None = None
    additional_info: dict[str, Any] = Field(default_factory=dict)
    score: int = Field(default=0, ge=0, le=100)
    from_cache: bool = False

    class Config:
        """Pydantic configuration."""

        json_encoders = {datetime: lambda v: v.isoformat()}

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY


class HealthCheckCacheStatistics(BaseModel):
    """Counters of a health check cache. The hit ratio is derived, never stored."""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    cached_entries: int = 0
    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def cache_hit_ratio(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.cache_hits / self.total_requests


class MemoryStatistics(BaseModel):
    """Aggregate size of the stored memory."""

    document_count: int = 0
    vector_count: int = 0
    relationship_count: int = 0
    node_count: int = 0
    memory_usage_bytes: int = Field(default=0, description="Rough storage estimate")
    last_updated: datetime = Field(default_factory=datetime.now)
