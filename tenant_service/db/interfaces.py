"""Typed interfaces for database-layer services.

All SQL and engine access must remain in the db package and its submodules.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from tenant_service.domain import (
    MemberStatus,
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationPlan,
    OrganizationRole,
    OrganizationWithRole,
    StoredFile,
    UserPreferences,
)


@dataclass(frozen=True)
class DatabasePoolStatistics:
    """Connection pool counters for diagnostics.

    Attributes:
        open_connections: Connections currently held by the pool (idle + in use).
        in_use: Connections checked out by callers.
        idle: Connections idle in the pool.
        max_open: Upper bound of simultaneously open connections (0 when unbounded or unknown).
        overflow: Connections opened above the configured pool size.
        pool_class: Pool implementation name.
    """

    open_connections: int
    in_use: int
    idle: int
    max_open: int
    overflow: int
    pool_class: str


@dataclass(frozen=True)
class FileStorageUsage:
    """Aggregate stored file volume.

    Attributes:
        file_count: Number of stored file rows.
        total_bytes: Summed file size in bytes.
    """

    file_count: int
    total_bytes: int


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification and metrics."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.
        """

    def db_ping(self) -> None:
        """Acquire a connection and run a connectivity check.

        Raises:
            ConnectionError: Raised when the database cannot be reached.
        """

    def db_pool_statistics(self) -> DatabasePoolStatistics:
        """Return current connection pool counters.

        Returns:
            DatabasePoolStatistics: Pool counters.
        """

    def db_execute_probe_query(self) -> int:
        """Run a trivial scalar query.

        Returns:
            int: Scalar result of the probe query.

        Raises:
            ConnectionError: Raised when the query cannot be executed.
        """

    def db_file_storage_usage(self) -> FileStorageUsage:
        """Count stored files and sum their sizes.

        Returns:
            FileStorageUsage: Aggregate stored file volume.

        Raises:
            ConnectionError: Raised when the aggregate query fails.
        """


class OrganizationRepositoryPort(Protocol):
    """Port definition for organization, membership and invitation persistence."""

    def db_organization_count_by_slug(self, slug: str) -> int:
        """Count organizations using a slug."""

    def db_organization_create_with_owner(
        self,
        name: str,
        slug: str,
        plan: OrganizationPlan,
        owner_user_id: int,
        created_at_utc: datetime,
    ) -> Organization:
        """Create an organization and its owner membership in one transaction."""

    def db_organization_get_by_slug(self, slug: str) -> Organization | None:
        """Return one organization by slug."""

    def db_organization_get_by_id(self, organization_id: int) -> Organization | None:
        """Return one organization by id."""

    def db_organization_update_name(self, organization_id: int, name: str, updated_at_utc: datetime) -> None:
        """Persist a new organization display name."""

    def db_organization_delete(self, organization_id: int) -> None:
        """Delete an organization with its invitations and memberships."""

    def db_member_get(self, organization_id: int, user_id: int) -> OrganizationMember | None:
        """Return one membership."""

    def db_member_list(self, organization_id: int) -> list[OrganizationMember]:
        """Return all memberships of one organization."""

    def db_member_list_organizations_with_roles(self, user_id: int) -> list[OrganizationWithRole]:
        """Return organizations of one user together with the user's role."""

    def db_member_count_by_role(self, organization_id: int, role: OrganizationRole) -> int:
        """Count memberships holding a role."""

    def db_member_count_by_status(self, organization_id: int, status: MemberStatus) -> int:
        """Count memberships in a status."""

    def db_member_update_role(self, member_id: int, role: OrganizationRole) -> None:
        """Persist a new membership role."""

    def db_member_delete(self, member_id: int) -> None:
        """Delete one membership."""

    def db_invitation_count_pending(self, organization_id: int, now_utc: datetime, email: str | None = None) -> int:
        """Count unexpired, unaccepted invitations, optionally for one email."""

    def db_invitation_create(
        self,
        organization_id: int,
        email: str,
        role: OrganizationRole,
        token: str,
        invited_by_user_id: int,
        expires_at_utc: datetime,
        created_at_utc: datetime,
    ) -> OrganizationInvitation:
        """Persist a new invitation."""

    def db_invitation_get_by_token(self, token: str) -> OrganizationInvitation | None:
        """Return one invitation by token."""

    def db_invitation_accept(
        self,
        invitation: OrganizationInvitation,
        user_id: int,
        accepted_at_utc: datetime,
    ) -> OrganizationMember:
        """Mark an invitation accepted and create the membership in one transaction."""

    def db_invitation_list_pending(self, organization_id: int, now_utc: datetime) -> list[OrganizationInvitation]:
        """Return unexpired, unaccepted invitations of one organization."""

    def db_invitation_delete(self, invitation_id: int, organization_id: int) -> int:
        """Delete one invitation scoped to an organization and return affected rows."""

    def db_invitation_delete_expired(self, now_utc: datetime) -> int:
        """Delete expired, unaccepted invitations and return affected rows."""

    def db_user_get_email(self, user_id: int) -> str | None:
        """Return a user's email."""

    def db_user_get_id_by_email(self, email: str) -> int | None:
        """Return a user id by case-insensitive email."""


class FileRepositoryPort(Protocol):
    """Port definition for stored file metadata reads."""

    def db_file_get_by_id(self, file_id: int) -> StoredFile | None:
        """Return one file metadata row."""

    def db_file_list(self, limit: int, offset: int) -> list[StoredFile]:
        """Return a page of file metadata rows ordered by newest first."""


class UserPreferencesRepositoryPort(Protocol):
    """Port definition for per-user preference persistence."""

    def db_preferences_get(self, user_id: int) -> UserPreferences | None:
        """Return one user's preferences."""

    def db_preferences_create_if_missing(self, preferences: UserPreferences) -> UserPreferences:
        """Insert preferences unless a row exists and return the stored row."""

    def db_preferences_update(self, preferences: UserPreferences) -> UserPreferences:
        """Overwrite one user's preferences and return the stored row."""

    def db_preferences_delete(self, user_id: int) -> int:
        """Delete one user's preferences and return affected rows."""
