"""FastAPI application factory composing routers and error handlers."""

from fastapi import FastAPI

from tenant_service import __version__
from tenant_service.config import AppSettings
from tenant_service.errors import ErrorClassificationRegistry
from tenant_service.services import (
    FileAccessService,
    OrganizationService,
    SystemHealthService,
    UserPreferencesService,
)

from .errors import api_register_error_handlers
from .routers import (
    api_create_file_router,
    api_create_health_router,
    api_create_organization_router,
    api_create_preferences_router,
)


def create_api_application(
    settings: AppSettings,
    health_service: SystemHealthService,
    error_registry: ErrorClassificationRegistry,
    organization_service: OrganizationService,
    file_service: FileAccessService,
    preferences_service: UserPreferencesService,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        health_service: Aggregating health service used by health endpoints.
        error_registry: Frozen sentinel classification registry.
        organization_service: Organization business service.
        file_service: Ownership-checked file access service.
        preferences_service: User preferences service.

    Returns:
        FastAPI: Framework application instance.
    """
    application = FastAPI(title="Tenant Service", version=__version__)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        return {
            "service": "tenant-service",
            "version": __version__,
            "environment": settings.environment_name,
        }

    api_register_error_handlers(application, error_registry)
    application.include_router(api_create_health_router(health_service=health_service))
    application.include_router(api_create_organization_router(organization_service=organization_service))
    application.include_router(api_create_file_router(settings=settings, file_service=file_service))
    application.include_router(api_create_preferences_router(preferences_service=preferences_service))

    return application
