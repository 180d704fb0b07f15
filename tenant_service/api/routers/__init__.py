"""API router package for endpoint composition."""

from .files import api_create_file_router
from .health import api_create_health_router
from .organizations import api_create_organization_router
from .preferences import api_create_preferences_router

__all__ = [
    "api_create_file_router",
    "api_create_health_router",
    "api_create_organization_router",
    "api_create_preferences_router",
]
