"""
Health check cache.

Wraps downstream health probes with a per-service TTL cache. Concurrent
checks of a cold service share one in-flight probe.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from src.models.health import HealthCheckCacheStatistics, HealthCheckResult, HealthStatus
from src.utils.exceptions import NotFoundError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)

# A probe reports healthy/unhealthy, optionally with extra info for scoring
ProbeResult = bool | tuple[bool, dict[str, Any]]
HealthProbe = Callable[[], Awaitable[ProbeResult]]

_BASE_SCORES = {
    HealthStatus.HEALTHY: 100,
    HealthStatus.UNHEALTHY: 0,
    HealthStatus.TIMEOUT: 25,
    HealthStatus.CANCELLED: 50,
}

# (upper bound in ms, penalty)
_RESPONSE_TIME_PENALTIES = [(1000, 0), (3000, 5), (5000, 15), (10000, 30)]
_SLOW_PENALTY = 50


def calculate_health_score(
    status: HealthStatus, response_time_ms: float, additional_info: dict[str, Any] | None = None
) -> int:
    """
    Score a probe outcome on a 0-100 scale.

    Starts from the status base score, subtracts a response time penalty and
    applies adjustments from `connections` and `errors` in additional_info.
    """
    score = _BASE_SCORES[status]

    penalty = _SLOW_PENALTY
    for bound, value in _RESPONSE_TIME_PENALTIES:
        if response_time_ms < bound:
            penalty = value
            break
    score -= penalty

    info = additional_info or {}
    connections = info.get("connections")
    if isinstance(connections, (int, float)) and connections > 0:
        score += 5
    errors = info.get("errors")
    if isinstance(errors, (int, float)) and errors > 0:
        score -= min(20, int(errors * 2))

    return max(0, min(100, score))


class _CacheEntry:
    __slots__ = ("result", "expires_at")

    def __init__(self, result: HealthCheckResult, expires_at: float):
        self.result = result
        self.expires_at = expires_at


class HealthCheckCache:
    """
    TTL cache over health probes with single-flight refresh.

    Statistics count every request: `cache_hits + cache_misses` always
    equals `total_requests`. They survive entry expiry, `invalidate` and
    `clear`.
    """

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        timeout_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0 or timeout_seconds <= 0:
            raise ValidationError(
                "Health check TTL and timeout must be positive",
                context={"ttl_seconds": ttl_seconds, "timeout_seconds": timeout_seconds},
            )
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self._clock = clock

        self._probes: dict[str, HealthProbe] = {}
        self._entries: dict[str, _CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()

        self._total_requests = 0
        self._cache_hits = 0
        self._cache_misses = 0
        self._last_updated = datetime.now()

    @property
    def services(self) -> list[str]:
        return list(self._probes)

    def register(self, service_name: str, probe: HealthProbe) -> None:
        if not service_name:
            raise ValidationError("Service name cannot be empty")
        self._probes[service_name] = probe

    async def check_health(
        self, service_name: str, probe: HealthProbe | None = None
    ) -> HealthCheckResult:
        """
        Return the service's health, from cache when fresh.

        Args:
            service_name: Cache key
            probe: Probe to use instead of the registered one

        Raises:
            NotFoundError: If no probe is given or registered for the service
        """
        probe = probe or self._probes.get(service_name)

        async with self._lock:
            self._total_requests += 1
            self._last_updated = datetime.now()

            entry = self._entries.get(service_name)
            if entry is not None and self._clock() < entry.expires_at:
                self._cache_hits += 1
                return entry.result.model_copy(update={"from_cache": True})

            if probe is None:
                # Count the request as a miss so hits + misses == total
                self._cache_misses += 1
                raise NotFoundError(
                    f"No health probe registered for service: {service_name}",
                    context={"service_name": service_name},
                )

            self._cache_misses += 1
            task = self._in_flight.get(service_name)
            if task is None:
                task = asyncio.create_task(
                    self._refresh(service_name, probe), name=f"health-{service_name}"
                )
                self._in_flight[service_name] = task

        try:
            result = await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                # The shared probe itself was cancelled (cache closed)
                return self._result(
                    service_name, HealthStatus.CANCELLED, 0.0, "Health check cancelled"
                )
            raise
        return result.model_copy()

    async def _refresh(self, service_name: str, probe: HealthProbe) -> HealthCheckResult:
        try:
            result = await self._run_probe(service_name, probe)
            if result.status != HealthStatus.CANCELLED:
                self._entries[service_name] = _CacheEntry(
                    result, self._clock() + self.ttl_seconds
                )
            return result
        finally:
            self._in_flight.pop(service_name, None)

    async def _run_probe(self, service_name: str, probe: HealthProbe) -> HealthCheckResult:
        start = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - start) * 1000

        try:
            outcome = await asyncio.wait_for(probe(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.bind(service=service_name, timeout_seconds=self.timeout_seconds).warning(
                f"Health check timed out for {service_name}"
            )
            return self._result(
                service_name,
                HealthStatus.TIMEOUT,
                elapsed(),
                f"Health check timed out after {self.timeout_seconds}s",
            )
        except asyncio.CancelledError:
            logger.bind(service=service_name).info(f"Health check cancelled for {service_name}")
            return self._result(
                service_name, HealthStatus.CANCELLED, elapsed(), "Health check cancelled"
            )
        except Exception as e:
            logger.bind(service=service_name, error=str(e), error_type=type(e).__name__).warning(
                f"Health check failed for {service_name}: {e}"
            )
            return self._result(service_name, HealthStatus.UNHEALTHY, elapsed(), str(e))

        if isinstance(outcome, tuple):
            healthy, info = outcome
        else:
            healthy, info = outcome, {}

        if healthy:
            return self._result(service_name, HealthStatus.HEALTHY, elapsed(), None, info)
        return self._result(
            service_name, HealthStatus.UNHEALTHY, elapsed(), "Health probe reported unhealthy", info
        )

    @staticmethod
    def _result(
        service_name: str,
        status: HealthStatus,
        response_time_ms: float,
        error_message: str | None,
        additional_info: dict[str, Any] | None = None,
    ) -> HealthCheckResult:
        info = dict(additional_info or {})
        return HealthCheckResult(
            service_name=service_name,
            status=status,
            response_time_ms=response_time_ms,
            error_message=error_message,
            additional_info=info,
            score=calculate_health_score(status, response_time_ms, info),
        )

    def get_statistics(self) -> HealthCheckCacheStatistics:
        return HealthCheckCacheStatistics(
            total_requests=self._total_requests,
            cache_hits=self._cache_hits,
            cache_misses=self._cache_misses,
            cached_entries=len(self._entries),
            last_updated=self._last_updated,
        )

    def invalidate(self, service_name: str) -> bool:
        """Drop one cached result. Returns False if nothing was cached."""
        return self._entries.pop(service_name, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    async def close(self) -> None:
        """Cancel in-flight probes and drop cached results."""
        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()
        self._entries.clear()
