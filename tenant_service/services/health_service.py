"""System health aggregation over the database and the optional cache.

Every probe runs on a worker thread and is awaited with an explicit deadline.
Probe failures are reported as component statuses and never raised to the
caller of `get_system_health()`.
"""

from __future__ import annotations

import gc
import logging
import os
import platform
import queue
import sys
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from tenant_service.cache import CachePort
from tenant_service.db import DatabaseHealthPort
from tenant_service.domain import (
    APIMetrics,
    CacheMetrics,
    DatabaseMetrics,
    HealthComponentReport,
    HealthComponentStatus,
    StorageMetrics,
    SystemHealthMetrics,
    SystemHealthResponse,
)

from .formatting import format_bytes, format_duration

logger = logging.getLogger(__name__)

T = TypeVar("T")

DATABASE_COMPONENT = "database"
CACHE_COMPONENT = "cache"

HEALTH_PROBE_MAX_IN_FLIGHT = 8
_health_probe_slots = threading.BoundedSemaphore(HEALTH_PROBE_MAX_IN_FLIGHT)


@dataclass(frozen=True)
class HealthCheckConfig:
    """Deadlines and latency thresholds for health probes.

    Attributes:
        database_timeout_seconds: Deadline for the database probe.
        cache_timeout_seconds: Deadline for the cache probe.
        database_degraded_seconds: Database latency above which status is degraded.
        cache_degraded_seconds: Cache latency above which status is degraded.
    """

    database_timeout_seconds: float = 5.0
    cache_timeout_seconds: float = 3.0
    database_degraded_seconds: float = 0.5
    cache_degraded_seconds: float = 0.1


def health_aggregate_status(
    database_status: HealthComponentStatus,
    cache_status: HealthComponentStatus,
) -> HealthComponentStatus:
    """Combine component statuses into the overall system status.

    The database is a hard dependency: unhealthy database means unhealthy
    system. The cache is optional: an unhealthy cache only degrades the
    system and an unavailable cache does not affect it.

    Args:
        database_status: Database component status.
        cache_status: Cache component status.

    Returns:
        HealthComponentStatus: Overall status.
    """

    overall_status = HealthComponentStatus.HEALTHY
    if database_status is HealthComponentStatus.UNHEALTHY:
        overall_status = HealthComponentStatus.UNHEALTHY
    elif database_status is HealthComponentStatus.DEGRADED and overall_status is HealthComponentStatus.HEALTHY:
        overall_status = HealthComponentStatus.DEGRADED

    if cache_status is HealthComponentStatus.UNHEALTHY and overall_status is HealthComponentStatus.HEALTHY:
        overall_status = HealthComponentStatus.DEGRADED
    return overall_status


def health_call_with_timeout(operation: Callable[[], T], timeout_seconds: float) -> T:
    """Run a blocking call on a daemon thread and wait at most `timeout_seconds`.

    On timeout the thread is abandoned and this function returns control
    immediately. Abandoned threads never delay interpreter exit. At most
    `HEALTH_PROBE_MAX_IN_FLIGHT` probes run at once; further calls fail fast
    while earlier probes are still stuck.

    Args:
        operation: Blocking zero-argument callable.
        timeout_seconds: Maximum wait.

    Returns:
        T: Operation result.

    Raises:
        TimeoutError: Raised when the deadline passes first or no probe slot is free.
        Exception: Any exception raised by the operation.
    """

    probe_slots = _health_probe_slots
    if not probe_slots.acquire(blocking=False):
        raise TimeoutError(f"{HEALTH_PROBE_MAX_IN_FLIGHT} health probes still in flight")

    outcome: queue.Queue[tuple[bool, Any]] = queue.Queue(maxsize=1)

    def _health_run_probe() -> None:
        try:
            outcome.put((True, operation()))
        except Exception as error:  # pylint: disable=broad-exception-caught
            outcome.put((False, error))
        finally:
            probe_slots.release()

    threading.Thread(target=_health_run_probe, name="health-probe", daemon=True).start()
    try:
        succeeded, value = outcome.get(timeout=timeout_seconds)
    except queue.Empty as error:
        raise TimeoutError(f"timed out after {timeout_seconds:g}s") from error
    if not succeeded:
        raise value
    return value


class SystemHealthService:
    """Point-in-time health and metrics reporting for the running service."""

    def __init__(
        self,
        database_health: DatabaseHealthPort,
        cache: CachePort | None = None,
        config: HealthCheckConfig | None = None,
        clock: Callable[[], float] = time.perf_counter,
        now_utc: Callable[[], datetime] | None = None,
    ):
        """Initialize health service.

        Args:
            database_health: DB-layer health port.
            cache: Optional cache port; None means no cache is configured.
            config: Probe deadlines and thresholds.
            clock: Monotonic clock in seconds used for latency and uptime.
            now_utc: Wall clock used for report timestamps.

        Raises:
            ValueError: Raised when database_health is None.
        """

        if database_health is None:
            raise ValueError("database_health must not be None")
        self._database = database_health
        self._cache = cache
        self._config = config or HealthCheckConfig()
        self._clock = clock
        self._now_utc = now_utc or (lambda: datetime.now(timezone.utc))
        self._started_at = clock()

    def get_system_health(self) -> SystemHealthResponse:
        """Probe all components and aggregate the overall status.

        Returns:
            SystemHealthResponse: Report with database first, then cache.
        """

        database_report = self.check_database_health()
        cache_report = self.check_cache_health()
        overall_status = health_aggregate_status(database_report.status, cache_report.status)
        if overall_status is not HealthComponentStatus.HEALTHY:
            logger.warning(
                "System health is %s (database=%s, cache=%s)",
                overall_status.value,
                database_report.status.value,
                cache_report.status.value,
            )

        return SystemHealthResponse(
            status=overall_status,
            timestamp=self._timestamp(),
            components=(database_report, cache_report),
            metrics=self.get_system_metrics(),
        )

    def check_database_health(self) -> HealthComponentReport:
        """Probe database connectivity and latency.

        Returns:
            HealthComponentReport: `unhealthy` on failure or timeout, `degraded`
            above the latency threshold, otherwise `healthy`.
        """

        started_at = self._clock()
        try:
            health_call_with_timeout(self._database.db_ping, self._config.database_timeout_seconds)
        except TimeoutError as error:
            logger.warning("Database health probe timed out: %s", error)
            return self._unhealthy_report(DATABASE_COMPONENT, f"Database ping timed out: {error}")
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning("Database health probe failed: %s", error)
            return self._unhealthy_report(DATABASE_COMPONENT, f"Database ping failed: {error}")

        latency_seconds = self._clock() - started_at
        status = HealthComponentStatus.HEALTHY
        message = "Database connection is healthy"
        if latency_seconds > self._config.database_degraded_seconds:
            status = HealthComponentStatus.DEGRADED
            message = "Database response time is slow"

        return HealthComponentReport(
            name=DATABASE_COMPONENT,
            status=status,
            message=message,
            latency=format_duration(latency_seconds),
            last_check=self._timestamp(),
            details=self._database_pool_details(),
        )

    def check_cache_health(self) -> HealthComponentReport:
        """Probe cache connectivity and latency.

        Returns:
            HealthComponentReport: `unavailable` when no cache is configured or
            it reports unavailable, `unhealthy` on ping failure or timeout,
            `degraded` above the latency threshold, otherwise `healthy`.
        """

        if not self._cache_is_usable():
            return HealthComponentReport(
                name=CACHE_COMPONENT,
                status=HealthComponentStatus.UNAVAILABLE,
                message="Cache is not configured or unavailable",
                last_check=self._timestamp(),
            )

        started_at = self._clock()
        try:
            health_call_with_timeout(self._cache.cache_ping, self._config.cache_timeout_seconds)
        except TimeoutError as error:
            logger.warning("Cache health probe timed out: %s", error)
            return self._unhealthy_report(CACHE_COMPONENT, f"Cache ping timed out: {error}")
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning("Cache health probe failed: %s", error)
            return self._unhealthy_report(CACHE_COMPONENT, f"Cache ping failed: {error}")

        latency_seconds = self._clock() - started_at
        status = HealthComponentStatus.HEALTHY
        message = "Cache connection is healthy"
        if latency_seconds > self._config.cache_degraded_seconds:
            status = HealthComponentStatus.DEGRADED
            message = "Cache response time is slow"

        return HealthComponentReport(
            name=CACHE_COMPONENT,
            status=status,
            message=message,
            latency=format_duration(latency_seconds),
            last_check=self._timestamp(),
            details={"type": self._cache.cache_backend_name()},
        )

    def get_system_metrics(self) -> SystemHealthMetrics:
        """Collect database, cache, storage and API metrics.

        Returns:
            SystemHealthMetrics: Metrics snapshot; failures show as component status.
        """

        return SystemHealthMetrics(
            database=self._database_metrics(),
            cache=self._cache_metrics(),
            storage=self._storage_metrics(),
            api=APIMetrics(),
        )

    def get_detailed_database_health(self) -> dict[str, Any]:
        """Return pool counters and probe query timing.

        Returns:
            dict[str, Any]: Detailed database diagnostics.

        Raises:
            ConnectionError: Raised when the probe query fails or times out.
        """

        started_at = self._clock()
        try:
            health_call_with_timeout(self._database.db_execute_probe_query, self._config.database_timeout_seconds)
        except TimeoutError as error:
            raise ConnectionError(f"database probe query timed out: {error}") from error
        query_seconds = self._clock() - started_at
        statistics = self._database.db_pool_statistics()

        return {
            "status": HealthComponentStatus.HEALTHY.value,
            "target": self._database.db_connection_label(),
            "query_time": format_duration(query_seconds),
            "open_connections": statistics.open_connections,
            "in_use_connections": statistics.in_use,
            "idle_connections": statistics.idle,
            "max_open_connections": statistics.max_open,
            "overflow_connections": statistics.overflow,
            "pool_class": statistics.pool_class,
        }

    def get_detailed_cache_health(self) -> dict[str, Any]:
        """Return cache availability and ping timing.

        Returns:
            dict[str, Any]: Detailed cache diagnostics. Never raises; failures
            are reported in the `status` and `error` fields.
        """

        if not self._cache_is_usable():
            return {
                "status": HealthComponentStatus.UNAVAILABLE.value,
                "message": "Cache is not configured or unavailable",
            }

        started_at = self._clock()
        try:
            health_call_with_timeout(self._cache.cache_ping, self._config.cache_timeout_seconds)
        except Exception as error:  # pylint: disable=broad-exception-caught
            return {
                "status": HealthComponentStatus.UNHEALTHY.value,
                "error": str(error),
            }
        ping_seconds = self._clock() - started_at

        return {
            "status": HealthComponentStatus.HEALTHY.value,
            "ping_time": format_duration(ping_seconds),
            "type": self._cache.cache_backend_name(),
            "available": self._cache.cache_is_available(),
        }

    def get_runtime_metrics(self) -> dict[str, Any]:
        """Return interpreter and process runtime metrics.

        Returns:
            dict[str, Any]: Thread, garbage collector, interpreter and uptime values.
        """

        return {
            "threads": threading.active_count(),
            "gc_collections": sum(generation["collections"] for generation in gc.get_stats()),
            "gc_tracked_counts": list(gc.get_count()),
            "python_version": platform.python_version(),
            "python_implementation": platform.python_implementation(),
            "num_cpu": os.cpu_count() or 0,
            "pid": os.getpid(),
            "max_rss": _health_peak_memory(),
            "uptime": format_duration(self._uptime_seconds()),
        }

    def _database_metrics(self) -> DatabaseMetrics:
        try:
            statistics = self._database.db_pool_statistics()
            started_at = self._clock()
            health_call_with_timeout(self._database.db_execute_probe_query, self._config.database_timeout_seconds)
            query_seconds = self._clock() - started_at
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning("Database metrics collection failed: %s", error)
            return DatabaseMetrics(
                status=HealthComponentStatus.UNHEALTHY.value,
                uptime=format_duration(self._uptime_seconds()),
            )

        return DatabaseMetrics(
            status=HealthComponentStatus.HEALTHY.value,
            connections_active=statistics.in_use,
            connections_idle=statistics.idle,
            connections_max=statistics.max_open,
            avg_query_time=format_duration(query_seconds),
            slow_queries=0,
            uptime=format_duration(self._uptime_seconds()),
        )

    def _cache_metrics(self) -> CacheMetrics:
        if not self._cache_is_usable():
            return CacheMetrics(status=HealthComponentStatus.UNAVAILABLE.value)
        try:
            health_call_with_timeout(self._cache.cache_ping, self._config.cache_timeout_seconds)
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning("Cache metrics collection failed: %s", error)
            return CacheMetrics(status=HealthComponentStatus.UNHEALTHY.value)
        return CacheMetrics(status=HealthComponentStatus.HEALTHY.value)

    def _storage_metrics(self) -> StorageMetrics:
        try:
            usage = health_call_with_timeout(self._database.db_file_storage_usage, self._config.database_timeout_seconds)
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning("Storage metrics collection failed: %s", error)
            return StorageMetrics(status=HealthComponentStatus.UNHEALTHY.value)
        return StorageMetrics(
            status=HealthComponentStatus.HEALTHY.value,
            used=format_bytes(usage.total_bytes),
            file_count=usage.file_count,
        )

    def _database_pool_details(self) -> dict[str, Any]:
        try:
            statistics = self._database.db_pool_statistics()
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning("Database pool statistics unavailable: %s", error)
            return {}
        return {
            "open_connections": statistics.open_connections,
            "in_use": statistics.in_use,
            "idle": statistics.idle,
            "max_open": statistics.max_open,
        }

    def _cache_is_usable(self) -> bool:
        return (
            self._cache is not None
            and self._cache.cache_is_configured()
            and self._cache.cache_is_available()
        )

    def _unhealthy_report(self, name: str, message: str) -> HealthComponentReport:
        return HealthComponentReport(
            name=name,
            status=HealthComponentStatus.UNHEALTHY,
            message=message,
            last_check=self._timestamp(),
        )

    def _uptime_seconds(self) -> float:
        return max(self._clock() - self._started_at, 0.0)

    def _timestamp(self) -> str:
        return self._now_utc().isoformat(timespec="seconds")


def _health_peak_memory() -> str:
    """Return the process peak resident set size, or `N/A` where unsupported."""

    try:
        import resource  # pylint: disable=import-outside-toplevel
    except ImportError:
        return "N/A"
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS bytes.
    if sys.platform != "darwin":
        max_rss *= 1024
    return format_bytes(max_rss)
