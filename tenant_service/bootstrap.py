"""Application bootstrap wiring for startup validation and dependency assembly."""

import logging
from datetime import timedelta

from fastapi import FastAPI
from sqlalchemy import Engine

from tenant_service.api import create_api_application
from tenant_service.cache import CachePort, MemoryCacheService, RedisCacheService
from tenant_service.config import AppSettings, config_configure_logging, config_load_settings
from tenant_service.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyFileRepository,
    SQLAlchemyOrganizationRepository,
    SQLAlchemyUserPreferencesRepository,
    db_create_engine,
)
from tenant_service.errors import errors_build_default_registry
from tenant_service.services import (
    FileAccessService,
    HealthCheckConfig,
    OrganizationService,
    OrganizationServiceConfig,
    SystemHealthService,
    UserPreferencesService,
)

logger = logging.getLogger(__name__)


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    config_configure_logging(settings.log_level)
    engine = bootstrap_create_engine(settings)
    cache = bootstrap_create_cache(settings)

    organization_service = OrganizationService(
        repository=SQLAlchemyOrganizationRepository(engine=engine),
        cache=cache,
        config=OrganizationServiceConfig(invitation_ttl=timedelta(days=settings.invitation_ttl_days)),
    )
    file_service = FileAccessService(repository=SQLAlchemyFileRepository(engine=engine))
    preferences_service = UserPreferencesService(repository=SQLAlchemyUserPreferencesRepository(engine=engine))

    logger.info("Application assembled for environment %s", settings.environment_name)
    return create_api_application(
        settings=settings,
        health_service=bootstrap_create_health_service(settings, engine=engine, cache=cache),
        error_registry=errors_build_default_registry(),
        organization_service=organization_service,
        file_service=file_service,
        preferences_service=preferences_service,
    )


def bootstrap_create_engine(settings: AppSettings) -> Engine:
    return db_create_engine(
        database_url=settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )


def bootstrap_create_cache(settings: AppSettings) -> CachePort | None:
    """Build the configured cache backend.

    An unreachable Redis server is logged and left unavailable; the service
    keeps running without caching.

    Args:
        settings: Validated application settings.

    Returns:
        CachePort | None: Cache backend, or None when caching is disabled.
    """

    if settings.cache_backend == "memory":
        return MemoryCacheService()
    if settings.cache_backend == "redis":
        cache = RedisCacheService.from_url(
            settings.redis_url,
            socket_timeout_seconds=settings.health_cache_timeout_seconds,
        )
        cache.cache_connect()
        return cache
    return None


def bootstrap_create_health_service(
    settings: AppSettings,
    engine: Engine | None = None,
    cache: CachePort | None = None,
) -> SystemHealthService:
    """Build the system health service.

    Args:
        settings: Validated application settings.
        engine: Optional existing engine; a new one is created when omitted.
        cache: Optional cache backend.

    Returns:
        SystemHealthService: Health service with configured deadlines.
    """

    return SystemHealthService(
        database_health=SQLAlchemyDatabaseHealthService(engine=engine or bootstrap_create_engine(settings)),
        cache=cache,
        config=HealthCheckConfig(
            database_timeout_seconds=settings.health_database_timeout_seconds,
            cache_timeout_seconds=settings.health_cache_timeout_seconds,
            database_degraded_seconds=settings.health_database_degraded_ms / 1000.0,
            cache_degraded_seconds=settings.health_cache_degraded_ms / 1000.0,
        ),
    )
