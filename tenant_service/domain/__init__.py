"""Domain models used across application layer boundaries."""

from .health import (
    APIMetrics,
    CacheMetrics,
    DatabaseMetrics,
    HealthComponentReport,
    HealthComponentStatus,
    StorageMetrics,
    SystemHealthMetrics,
    SystemHealthResponse,
)
from .models import (
    MemberStatus,
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationPlan,
    OrganizationRole,
    OrganizationWithRole,
    PlanFeatures,
    StoredFile,
    domain_plan_features,
)
from .preferences import (
    SUPPORTED_DATE_FORMATS,
    SUPPORTED_LANGUAGES,
    EmailNotificationSettings,
    ThemePreference,
    TimeFormatPreference,
    UserPreferences,
    UserPreferencesUpdate,
    domain_default_preferences,
)

__all__ = [
    "SUPPORTED_DATE_FORMATS",
    "SUPPORTED_LANGUAGES",
    "APIMetrics",
    "CacheMetrics",
    "DatabaseMetrics",
    "EmailNotificationSettings",
    "HealthComponentReport",
    "HealthComponentStatus",
    "MemberStatus",
    "Organization",
    "OrganizationInvitation",
    "OrganizationMember",
    "OrganizationPlan",
    "OrganizationRole",
    "OrganizationWithRole",
    "PlanFeatures",
    "StorageMetrics",
    "StoredFile",
    "SystemHealthMetrics",
    "SystemHealthResponse",
    "ThemePreference",
    "TimeFormatPreference",
    "UserPreferences",
    "UserPreferencesUpdate",
    "domain_default_preferences",
    "domain_plan_features",
]
