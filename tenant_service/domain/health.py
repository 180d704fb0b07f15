"""Health report contracts shared by the health service and API routers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class HealthComponentStatus(str, Enum):
    """Status of one monitored component or of the whole system.

    `unavailable` means the component is not configured; it is not a fault.
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class HealthComponentReport:
    """Point-in-time health snapshot of one component.

    Attributes:
        name: Component name (`database`, `cache`).
        status: Component status.
        message: Human-readable status message.
        last_check: ISO-8601 timestamp of the probe.
        latency: Optional rendered probe latency.
        details: Free-form component detail values.
    """

    name: str
    status: HealthComponentStatus
    message: str
    last_check: str
    latency: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Render the report as a JSON-compatible mapping."""

        payload: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "last_check": self.last_check,
        }
        if self.latency is not None:
            payload["latency"] = self.latency
        if self.details:
            payload["details"] = dict(self.details)
        return payload


@dataclass(frozen=True)
class DatabaseMetrics:
    """Database pool and query metrics."""

    status: str
    connections_active: int = 0
    connections_idle: int = 0
    connections_max: int = 0
    avg_query_time: str = "N/A"
    slow_queries: int = 0
    uptime: str = "N/A"


@dataclass(frozen=True)
class CacheMetrics:
    """Cache metrics. Detailed values are placeholders; the cache port exposes no stats."""

    status: str
    memory_used: str = "N/A"
    memory_max: str = "N/A"
    hit_rate: float = 0.0
    keys: int = 0
    connections: int = 0


@dataclass(frozen=True)
class StorageMetrics:
    """Stored file volume metrics."""

    status: str
    used: str = "0 B"
    available: str = "N/A"
    total: str = "N/A"
    used_percent: float = 0.0
    file_count: int = 0


@dataclass(frozen=True)
class APIMetrics:
    """API traffic metrics. Not wired to request tracking; always placeholders."""

    requests_per_minute: int = 0
    avg_response_time: str = "N/A"
    p50_response_time: str = "N/A"
    p95_response_time: str = "N/A"
    p99_response_time: str = "N/A"
    error_rate: float = 0.0


@dataclass(frozen=True)
class SystemHealthMetrics:
    """Metrics snapshot attached to a system health response."""

    database: DatabaseMetrics
    cache: CacheMetrics
    storage: StorageMetrics
    api: APIMetrics

    def to_payload(self) -> dict[str, Any]:
        """Render metrics as a JSON-compatible mapping."""

        return {
            "database": asdict(self.database),
            "cache": asdict(self.cache),
            "storage": asdict(self.storage),
            "api": asdict(self.api),
        }


@dataclass(frozen=True)
class SystemHealthResponse:
    """Aggregated system health report.

    Attributes:
        status: Worst-of overall status.
        timestamp: ISO-8601 report timestamp.
        components: Component reports, database first then cache.
        metrics: Metrics snapshot.
    """

    status: HealthComponentStatus
    timestamp: str
    components: tuple[HealthComponentReport, ...]
    metrics: SystemHealthMetrics | None

    def component(self, name: str) -> HealthComponentReport | None:
        """Return the component report with the given name, if present."""

        for component_report in self.components:
            if component_report.name == name:
                return component_report
        return None

    def to_payload(self) -> dict[str, Any]:
        """Render the response as a JSON-compatible mapping."""

        payload: dict[str, Any] = {
            "status": self.status.value,
            "timestamp": self.timestamp,
            "components": [component_report.to_payload() for component_report in self.components],
        }
        if self.metrics is not None:
            payload["metrics"] = self.metrics.to_payload()
        return payload
