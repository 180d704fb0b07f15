"""Tests for system health aggregation, probe deadlines and metrics."""

from __future__ import annotations

import subprocess
import sys
import threading
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tenant_service.db import DatabasePoolStatistics, FileStorageUsage
from tenant_service.domain import HealthComponentStatus
from tenant_service.services import (
    HealthCheckConfig,
    SystemHealthService,
    health_aggregate_status,
    health_call_with_timeout,
)
from tenant_service.services import health_service as health_service_module

_FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class _DatabaseStub:
    """Database health port stub with configurable failure modes."""

    def __init__(self, ping_error: Exception | None = None, ping_release: threading.Event | None = None):
        """Initialize database stub.

        Args:
            ping_error: Optional error raised by db_ping.
            ping_release: Optional event db_ping waits on before returning.
        """

        self._ping_error = ping_error
        self._ping_release = ping_release
        self.ping_calls = 0

    def db_connection_label(self) -> str:
        return "postgresql://test"

    def db_ping(self) -> None:
        self.ping_calls += 1
        if self._ping_release is not None:
            self._ping_release.wait(timeout=5)
        if self._ping_error is not None:
            raise self._ping_error

    def db_pool_statistics(self) -> DatabasePoolStatistics:
        return DatabasePoolStatistics(
            open_connections=3,
            in_use=1,
            idle=2,
            max_open=20,
            overflow=0,
            pool_class="QueuePool",
        )

    def db_execute_probe_query(self) -> int:
        if self._ping_error is not None:
            raise self._ping_error
        return 1

    def db_file_storage_usage(self) -> FileStorageUsage:
        if self._ping_error is not None:
            raise self._ping_error
        return FileStorageUsage(file_count=4, total_bytes=1048576)


class _CacheStub:
    """Cache port stub with configurable availability and ping failure."""

    def __init__(self, available: bool = True, ping_error: Exception | None = None):
        self._available = available
        self._ping_error = ping_error

    def cache_backend_name(self) -> str:
        return "redis"

    def cache_is_configured(self) -> bool:
        return True

    def cache_is_available(self) -> bool:
        return self._available

    def cache_ping(self) -> None:
        if self._ping_error is not None:
            raise self._ping_error


class _SteppingClock:
    """Clock advancing by a fixed step on every read."""

    def __init__(self, step: float):
        self._step = step
        self._now = 0.0

    def __call__(self) -> float:
        self._now += self._step
        return self._now


def _build_service(database=None, cache=None, clock=None, config=None) -> SystemHealthService:
    """Create a health service with deterministic timestamps.

    Returns:
        SystemHealthService: Service under test.
    """

    return SystemHealthService(
        database_health=database or _DatabaseStub(),
        cache=cache,
        config=config,
        clock=clock or _SteppingClock(step=0.001),
        now_utc=lambda: _FIXED_NOW,
    )


def test_services_health_reports_healthy_when_all_components_respond() -> None:
    """Report healthy with database first and cache second.

    Raises:
        AssertionError: Raised when aggregation or ordering diverges.
    """

    health = _build_service(cache=_CacheStub()).get_system_health()

    assert health.status is HealthComponentStatus.HEALTHY
    assert [component.name for component in health.components] == ["database", "cache"]
    assert health.timestamp == "2026-10-18T12:00:00+00:00"
    database_report = health.component("database")
    assert database_report.details == {"open_connections": 3, "in_use": 1, "idle": 2, "max_open": 20}
    assert health.component("cache").details == {"type": "redis"}


@pytest.mark.parametrize("cache", [None, _CacheStub(), _CacheStub(ping_error=ConnectionError("refused"))])
def test_services_health_database_failure_makes_system_unhealthy(cache) -> None:
    """Report unhealthy whenever the database probe fails, whatever the cache does.

    Raises:
        AssertionError: Raised when database failure does not dominate.
    """

    database = _DatabaseStub(ping_error=ConnectionError("connection refused"))

    health = _build_service(database=database, cache=cache).get_system_health()

    assert health.status is HealthComponentStatus.UNHEALTHY
    database_report = health.component("database")
    assert database_report.status is HealthComponentStatus.UNHEALTHY
    assert "connection refused" in database_report.message
    assert health.metrics.database.status == "unhealthy"
    assert health.metrics.storage.status == "unhealthy"


def test_services_health_cache_failure_only_degrades_system() -> None:
    health = _build_service(cache=_CacheStub(ping_error=ConnectionError("refused"))).get_system_health()

    assert health.status is HealthComponentStatus.DEGRADED
    assert health.component("cache").status is HealthComponentStatus.UNHEALTHY
    assert health.metrics.cache.status == "unhealthy"


@pytest.mark.parametrize("cache", [None, _CacheStub(available=False)])
def test_services_health_missing_cache_is_unavailable_and_not_a_fault(cache) -> None:
    """Report unavailable cache without affecting overall health.

    Raises:
        AssertionError: Raised when a missing cache changes overall status.
    """

    health = _build_service(cache=cache).get_system_health()

    assert health.status is HealthComponentStatus.HEALTHY
    assert health.component("cache").status is HealthComponentStatus.UNAVAILABLE
    assert health.metrics.cache.status == "unavailable"


def test_services_health_slow_database_is_degraded() -> None:
    clock_values = iter([0.0, 10.0, 10.6])
    service = _build_service(clock=lambda: next(clock_values))

    database_report = service.check_database_health()

    assert database_report.status is HealthComponentStatus.DEGRADED
    assert database_report.latency == "600.000ms"


def test_services_health_slow_probes_degrade_system() -> None:
    health = _build_service(cache=_CacheStub(), clock=_SteppingClock(step=0.6)).get_system_health()

    assert health.status is HealthComponentStatus.DEGRADED
    assert health.component("database").status is HealthComponentStatus.DEGRADED
    assert health.component("cache").status is HealthComponentStatus.DEGRADED


def test_services_health_database_timeout_returns_promptly() -> None:
    """Return unhealthy at the deadline instead of waiting for a stuck probe.

    Raises:
        AssertionError: Raised when the aggregator blocks on the stuck worker.
    """

    release = threading.Event()
    database = _DatabaseStub(ping_release=release)
    service = SystemHealthService(
        database_health=database,
        config=HealthCheckConfig(database_timeout_seconds=0.05),
        now_utc=lambda: _FIXED_NOW,
    )

    started_at = time.perf_counter()
    try:
        database_report = service.check_database_health()
    finally:
        release.set()
    elapsed_seconds = time.perf_counter() - started_at

    assert database_report.status is HealthComponentStatus.UNHEALTHY
    assert "timed out" in database_report.message
    assert elapsed_seconds < 2.0


def test_services_health_call_with_timeout_propagates_operation_errors() -> None:
    def failing_operation() -> None:
        raise ValueError("probe failed")

    assert health_call_with_timeout(lambda: 7, timeout_seconds=1.0) == 7
    with pytest.raises(ValueError, match="probe failed"):
        health_call_with_timeout(failing_operation, timeout_seconds=1.0)


def test_services_health_call_with_timeout_does_not_hold_process_exit() -> None:
    """Let a process exit right after a timeout while the probe is still stuck.

    Raises:
        AssertionError: Raised when interpreter shutdown waits for the abandoned probe.
    """

    script = (
        "import time\n"
        "from tenant_service.services import health_call_with_timeout\n"
        "try:\n"
        "    health_call_with_timeout(lambda: time.sleep(30), timeout_seconds=0.1)\n"
        "except TimeoutError as error:\n"
        "    print(error)\n"
    )

    started_at = time.perf_counter()
    completed = subprocess.run(
        [sys.executable, "-c", script],
        capture_output=True,
        text=True,
        timeout=20,
        check=True,
        cwd=_PROJECT_ROOT,
    )
    elapsed_seconds = time.perf_counter() - started_at

    assert completed.stdout.strip() == "timed out after 0.1s"
    assert elapsed_seconds < 10.0


def test_services_health_call_with_timeout_caps_probes_in_flight(monkeypatch) -> None:
    """Fail fast while every probe slot is held by a stuck probe.

    Raises:
        AssertionError: Raised when stuck probes are not bounded.
    """

    monkeypatch.setattr(health_service_module, "_health_probe_slots", threading.BoundedSemaphore(1))
    release = threading.Event()
    try:
        with pytest.raises(TimeoutError, match="timed out"):
            health_call_with_timeout(lambda: release.wait(timeout=5), timeout_seconds=0.05)
        with pytest.raises(TimeoutError, match="still in flight"):
            health_call_with_timeout(lambda: 7, timeout_seconds=1.0)
    finally:
        release.set()

    deadline = time.perf_counter() + 2.0
    while time.perf_counter() < deadline:
        try:
            assert health_call_with_timeout(lambda: 7, timeout_seconds=1.0) == 7
            break
        except TimeoutError:
            time.sleep(0.01)
    else:
        pytest.fail("probe slot was not released after the stuck probe finished")


@pytest.mark.parametrize(
    ("database_status", "cache_status", "expected"),
    [
        (HealthComponentStatus.HEALTHY, HealthComponentStatus.HEALTHY, HealthComponentStatus.HEALTHY),
        (HealthComponentStatus.HEALTHY, HealthComponentStatus.UNAVAILABLE, HealthComponentStatus.HEALTHY),
        (HealthComponentStatus.HEALTHY, HealthComponentStatus.DEGRADED, HealthComponentStatus.HEALTHY),
        (HealthComponentStatus.HEALTHY, HealthComponentStatus.UNHEALTHY, HealthComponentStatus.DEGRADED),
        (HealthComponentStatus.DEGRADED, HealthComponentStatus.UNHEALTHY, HealthComponentStatus.DEGRADED),
        (HealthComponentStatus.UNHEALTHY, HealthComponentStatus.HEALTHY, HealthComponentStatus.UNHEALTHY),
        (HealthComponentStatus.UNHEALTHY, HealthComponentStatus.UNHEALTHY, HealthComponentStatus.UNHEALTHY),
    ],
)
def test_services_health_aggregate_status_is_worst_of_with_optional_cache(
    database_status, cache_status, expected
) -> None:
    assert health_aggregate_status(database_status, cache_status) is expected


def test_services_health_storage_metrics_render_file_volume() -> None:
    metrics = _build_service().get_system_metrics()

    assert metrics.storage.status == "healthy"
    assert metrics.storage.used == "1.0 MB"
    assert metrics.storage.file_count == 4
    assert metrics.storage.available == "N/A"
    assert metrics.database.connections_active == 1
    assert metrics.database.connections_max == 20
    assert metrics.api.requests_per_minute == 0


def test_services_health_detailed_database_health_reports_pool_and_raises_when_down() -> None:
    """Return pool counters, and raise ConnectionError when unreachable.

    Raises:
        AssertionError: Raised when detail payload or failure contract diverges.
    """

    details = _build_service().get_detailed_database_health()

    assert details["status"] == "healthy"
    assert details["open_connections"] == 3
    assert details["max_open_connections"] == 20
    assert details["target"] == "postgresql://test"

    failing_service = _build_service(database=_DatabaseStub(ping_error=ConnectionError("down")))
    with pytest.raises(ConnectionError):
        failing_service.get_detailed_database_health()


def test_services_health_detailed_cache_health_never_raises() -> None:
    assert _build_service().get_detailed_cache_health()["status"] == "unavailable"

    failing = _build_service(cache=_CacheStub(ping_error=ConnectionError("refused"))).get_detailed_cache_health()
    assert failing == {"status": "unhealthy", "error": "refused"}

    healthy = _build_service(cache=_CacheStub()).get_detailed_cache_health()
    assert healthy["status"] == "healthy"
    assert healthy["type"] == "redis"
    assert healthy["available"] is True


def test_services_health_runtime_metrics_include_process_values() -> None:
    runtime = _build_service().get_runtime_metrics()

    assert runtime["threads"] >= 1
    assert runtime["num_cpu"] >= 1
    assert runtime["python_version"]
    assert "uptime" in runtime
    assert "max_rss" in runtime
