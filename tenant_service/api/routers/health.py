"""Health endpoint router composition for liveness, readiness and admin diagnostics."""

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from tenant_service.domain import HealthComponentStatus
from tenant_service.services import SystemHealthService

from ..errors import api_error_response
from ..identity import api_require_admin


def api_create_health_router(health_service: SystemHealthService) -> APIRouter:
    """Create health-check router.

    Args:
        health_service: Aggregating system health service.

    Returns:
        APIRouter: Router exposing `/health`, `/health/ready` and `/admin/health*` endpoints.

    Raises:
        ValueError: Raised when health_service is invalid.
    """

    if health_service is None:
        raise ValueError("health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status(verbose: bool = Query(default=False)) -> JSONResponse:
        """Return aggregated component health.

        Args:
            verbose: Include interpreter runtime metrics when true.

        Returns:
            JSONResponse: Health payload; 503 when the system is unhealthy.
        """

        health = health_service.get_system_health()
        payload = health.to_payload()
        if verbose:
            payload["runtime"] = health_service.get_runtime_metrics()
        status_code = status.HTTP_200_OK
        if health.status is HealthComponentStatus.UNHEALTHY:
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(content=payload, status_code=status_code)

    @router.get("/health/ready")
    def api_health_ready() -> JSONResponse:
        """Return a compact readiness verdict for deployment orchestration.

        The database is critical; a failing cache only degrades readiness.
        """

        database_report = health_service.check_database_health()
        cache_report = health_service.check_cache_health()
        payload = {
            "status": HealthComponentStatus.HEALTHY.value,
            "database": database_report.status.value,
            "cache": cache_report.status.value,
        }
        status_code = status.HTTP_200_OK
        if database_report.status is HealthComponentStatus.UNHEALTHY:
            payload["status"] = HealthComponentStatus.UNHEALTHY.value
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        elif cache_report.status is HealthComponentStatus.UNHEALTHY:
            payload["status"] = HealthComponentStatus.DEGRADED.value
        return JSONResponse(content=payload, status_code=status_code)

    admin_router = APIRouter(prefix="/admin/health", dependencies=[Depends(api_require_admin)])

    @admin_router.get("")
    def api_admin_system_health() -> JSONResponse:
        return JSONResponse(content=health_service.get_system_health().to_payload(), status_code=status.HTTP_200_OK)

    @admin_router.get("/metrics")
    def api_admin_system_metrics() -> JSONResponse:
        return JSONResponse(content=health_service.get_system_metrics().to_payload(), status_code=status.HTTP_200_OK)

    @admin_router.get("/database")
    def api_admin_database_health(request: Request) -> JSONResponse:
        """Return detailed database diagnostics.

        Returns:
            JSONResponse: Pool and probe query details, or a 500 error body when
            the probe fails.
        """

        try:
            payload = health_service.get_detailed_database_health()
        except ConnectionError:
            return api_error_response(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "INTERNAL_ERROR",
                "Failed to get database health",
            )
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @admin_router.get("/cache")
    def api_admin_cache_health() -> JSONResponse:
        return JSONResponse(content=health_service.get_detailed_cache_health(), status_code=status.HTTP_200_OK)

    @admin_router.get("/runtime")
    def api_admin_runtime_metrics() -> JSONResponse:
        return JSONResponse(content=health_service.get_runtime_metrics(), status_code=status.HTTP_200_OK)

    router.include_router(admin_router)
    return router
