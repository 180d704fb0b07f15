"""Database layer package for all SQL and persistence boundaries."""

from .files import SQLAlchemyFileRepository
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	DatabaseHealthPort,
	DatabasePoolStatistics,
	FileRepositoryPort,
	FileStorageUsage,
	OrganizationRepositoryPort,
	UserPreferencesRepositoryPort,
)
from .organization import (
	InvitationAlreadyAcceptedError,
	OrganizationMemberConflictError,
	OrganizationSlugConflictError,
	SQLAlchemyOrganizationRepository,
)
from .session import db_create_engine
from .user_preferences import PreferencesUserNotFoundError, SQLAlchemyUserPreferencesRepository

__all__ = [
	"DatabaseHealthPort",
	"DatabasePoolStatistics",
	"FileRepositoryPort",
	"FileStorageUsage",
	"InvitationAlreadyAcceptedError",
	"OrganizationMemberConflictError",
	"OrganizationRepositoryPort",
	"OrganizationSlugConflictError",
	"PreferencesUserNotFoundError",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyFileRepository",
	"SQLAlchemyOrganizationRepository",
	"SQLAlchemyUserPreferencesRepository",
	"UserPreferencesRepositoryPort",
	"db_create_engine",
]
