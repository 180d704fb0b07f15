"""Application services holding business rules between the API and db layers."""

from .file_service import FileAccessService
from .formatting import format_bytes, format_duration
from .health_service import (
	HealthCheckConfig,
	SystemHealthService,
	health_aggregate_status,
	health_call_with_timeout,
)
from .organization_service import OrganizationService, OrganizationServiceConfig, organization_normalize_slug
from .user_preferences_service import UserPreferencesService

__all__ = [
	"FileAccessService",
	"HealthCheckConfig",
	"OrganizationService",
	"OrganizationServiceConfig",
	"SystemHealthService",
	"UserPreferencesService",
	"format_bytes",
	"format_duration",
	"health_aggregate_status",
	"health_call_with_timeout",
	"organization_normalize_slug",
]
