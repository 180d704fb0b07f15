"""Database service for organization, membership and invitation persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tenant_service.domain import (
    MemberStatus,
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationPlan,
    OrganizationRole,
    OrganizationWithRole,
)

from .interfaces import OrganizationRepositoryPort

_ORGANIZATION_COLUMNS = (
    "organization.organization_id, organization.name, organization.slug, organization.plan, "
    "organization.created_by_user_id, organization.created_at_utc, organization.updated_at_utc"
)
_MEMBER_COLUMNS = (
    "member_id, organization_id, user_id, role, status, invited_by_user_id, accepted_at_utc, created_at_utc"
)
_INVITATION_COLUMNS = (
    "invitation_id, organization_id, email, role, token, invited_by_user_id, "
    "expires_at_utc, accepted_at_utc, created_at_utc"
)


class OrganizationSlugConflictError(RuntimeError):
    """Raised when an insert loses a race on the unique organization slug."""


class InvitationAlreadyAcceptedError(RuntimeError):
    """Raised when another request marked the invitation accepted first."""


class OrganizationMemberConflictError(RuntimeError):
    """Raised when a membership insert hits the unique organization/user pair."""


class SQLAlchemyOrganizationRepository(OrganizationRepositoryPort):
    """SQLAlchemy-backed organization repository.

    Multi-row writes (organization + owner, invitation acceptance, cascading
    delete) run inside one `engine.begin()` transaction.
    """

    def __init__(self, engine: Engine):
        """Initialize organization persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_organization_count_by_slug(self, slug: str) -> int:
        return self._db_scalar_count(
            "SELECT COUNT(*) FROM organization WHERE slug = :slug",
            {"slug": slug},
            "failed to count organizations by slug",
        )

    def db_organization_create_with_owner(
        self,
        name: str,
        slug: str,
        plan: OrganizationPlan,
        owner_user_id: int,
        created_at_utc: datetime,
    ) -> Organization:
        """Create an organization and its active owner membership atomically.

        Args:
            name: Display name.
            slug: Normalized unique slug.
            plan: Initial plan.
            owner_user_id: Creating user, stored as owner.
            created_at_utc: Creation timestamp.

        Returns:
            Organization: Newly created organization.

        Raises:
            OrganizationSlugConflictError: Raised when the slug was taken concurrently.
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                organization_row = connection.execute(
                    text(
                        "INSERT INTO organization (name, slug, plan, created_by_user_id, created_at_utc, updated_at_utc) "
                        "VALUES (:name, :slug, :plan, :created_by_user_id, :created_at_utc, :created_at_utc) "
                        f"RETURNING {_ORGANIZATION_COLUMNS}"
                    ),
                    {
                        "name": name,
                        "slug": slug,
                        "plan": plan.value,
                        "created_by_user_id": owner_user_id,
                        "created_at_utc": created_at_utc,
                    },
                ).mappings().one()
                organization = _db_map_organization(organization_row)
                connection.execute(
                    text(
                        "INSERT INTO organization_member ("
                        "organization_id, user_id, role, status, accepted_at_utc, created_at_utc"
                        ") VALUES ("
                        ":organization_id, :user_id, :role, :status, :created_at_utc, :created_at_utc"
                        ")"
                    ),
                    {
                        "organization_id": organization.organization_id,
                        "user_id": owner_user_id,
                        "role": OrganizationRole.OWNER.value,
                        "status": MemberStatus.ACTIVE.value,
                        "created_at_utc": created_at_utc,
                    },
                )
                return organization
        except IntegrityError as error:
            if "slug" in str(error.orig):
                raise OrganizationSlugConflictError("organization slug is already taken") from error
            raise RuntimeError("failed to create organization") from error
        except SQLAlchemyError as error:
            raise RuntimeError("failed to create organization") from error

    def db_organization_get_by_slug(self, slug: str) -> Organization | None:
        row = self._db_fetch_one(
            f"SELECT {_ORGANIZATION_COLUMNS} FROM organization WHERE slug = :slug",
            {"slug": slug},
            "failed to load organization by slug",
        )
        return _db_map_organization(row) if row is not None else None

    def db_organization_get_by_id(self, organization_id: int) -> Organization | None:
        row = self._db_fetch_one(
            f"SELECT {_ORGANIZATION_COLUMNS} FROM organization WHERE organization_id = :organization_id",
            {"organization_id": organization_id},
            "failed to load organization by id",
        )
        return _db_map_organization(row) if row is not None else None

    def db_organization_update_name(self, organization_id: int, name: str, updated_at_utc: datetime) -> None:
        self._db_execute_write(
            "UPDATE organization SET name = :name, updated_at_utc = :updated_at_utc "
            "WHERE organization_id = :organization_id",
            {"organization_id": organization_id, "name": name, "updated_at_utc": updated_at_utc},
            "failed to update organization",
        )

    def db_organization_delete(self, organization_id: int) -> None:
        """Delete invitations, memberships and the organization in one transaction.

        Args:
            organization_id: Organization to delete.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        parameters = {"organization_id": organization_id}
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text("DELETE FROM organization_invitation WHERE organization_id = :organization_id"),
                    parameters,
                )
                connection.execute(
                    text("DELETE FROM organization_member WHERE organization_id = :organization_id"),
                    parameters,
                )
                connection.execute(
                    text("DELETE FROM organization WHERE organization_id = :organization_id"),
                    parameters,
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to delete organization") from error

    def db_member_get(self, organization_id: int, user_id: int) -> OrganizationMember | None:
        row = self._db_fetch_one(
            f"SELECT {_MEMBER_COLUMNS} FROM organization_member "
            "WHERE organization_id = :organization_id AND user_id = :user_id",
            {"organization_id": organization_id, "user_id": user_id},
            "failed to load organization member",
        )
        return _db_map_member(row) if row is not None else None

    def db_member_list(self, organization_id: int) -> list[OrganizationMember]:
        rows = self._db_fetch_all(
            f"SELECT {_MEMBER_COLUMNS} FROM organization_member "
            "WHERE organization_id = :organization_id ORDER BY created_at_utc ASC, member_id ASC",
            {"organization_id": organization_id},
            "failed to list organization members",
        )
        return [_db_map_member(row) for row in rows]

    def db_member_list_organizations_with_roles(self, user_id: int) -> list[OrganizationWithRole]:
        rows = self._db_fetch_all(
            f"SELECT {_ORGANIZATION_COLUMNS}, organization_member.role AS member_role "
            "FROM organization "
            "JOIN organization_member ON organization_member.organization_id = organization.organization_id "
            "WHERE organization_member.user_id = :user_id "
            "ORDER BY organization.name ASC",
            {"user_id": user_id},
            "failed to list user organizations",
        )
        return [
            OrganizationWithRole(
                organization=_db_map_organization(row),
                role=OrganizationRole(row["member_role"]),
            )
            for row in rows
        ]

    def db_member_count_by_role(self, organization_id: int, role: OrganizationRole) -> int:
        return self._db_scalar_count(
            "SELECT COUNT(*) FROM organization_member WHERE organization_id = :organization_id AND role = :role",
            {"organization_id": organization_id, "role": role.value},
            "failed to count members by role",
        )

    def db_member_count_by_status(self, organization_id: int, status: MemberStatus) -> int:
        return self._db_scalar_count(
            "SELECT COUNT(*) FROM organization_member WHERE organization_id = :organization_id AND status = :status",
            {"organization_id": organization_id, "status": status.value},
            "failed to count members by status",
        )

    def db_member_update_role(self, member_id: int, role: OrganizationRole) -> None:
        self._db_execute_write(
            "UPDATE organization_member SET role = :role WHERE member_id = :member_id",
            {"member_id": member_id, "role": role.value},
            "failed to update member role",
        )

    def db_member_delete(self, member_id: int) -> None:
        self._db_execute_write(
            "DELETE FROM organization_member WHERE member_id = :member_id",
            {"member_id": member_id},
            "failed to delete member",
        )

    def db_invitation_count_pending(self, organization_id: int, now_utc: datetime, email: str | None = None) -> int:
        query = (
            "SELECT COUNT(*) FROM organization_invitation "
            "WHERE organization_id = :organization_id AND accepted_at_utc IS NULL AND expires_at_utc >= :now_utc"
        )
        parameters: dict[str, Any] = {"organization_id": organization_id, "now_utc": now_utc}
        if email is not None:
            query += " AND email = :email"
            parameters["email"] = email
        return self._db_scalar_count(query, parameters, "failed to count pending invitations")

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
        try:
            with self._engine.begin() as connection:
                row = connection.execute(
                    text(
                        "INSERT INTO organization_invitation ("
                        "organization_id, email, role, token, invited_by_user_id, expires_at_utc, created_at_utc"
                        ") VALUES ("
                        ":organization_id, :email, :role, :token, :invited_by_user_id, :expires_at_utc, :created_at_utc"
                        f") RETURNING {_INVITATION_COLUMNS}"
                    ),
                    {
                        "organization_id": organization_id,
                        "email": email,
                        "role": role.value,
                        "token": token,
                        "invited_by_user_id": invited_by_user_id,
                        "expires_at_utc": expires_at_utc,
                        "created_at_utc": created_at_utc,
                    },
                ).mappings().one()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to create invitation") from error
        return _db_map_invitation(row)

    def db_invitation_get_by_token(self, token: str) -> OrganizationInvitation | None:
        row = self._db_fetch_one(
            f"SELECT {_INVITATION_COLUMNS} FROM organization_invitation WHERE token = :token",
            {"token": token},
            "failed to load invitation by token",
        )
        return _db_map_invitation(row) if row is not None else None

    def db_invitation_accept(
        self,
        invitation: OrganizationInvitation,
        user_id: int,
        accepted_at_utc: datetime,
    ) -> OrganizationMember:
        """Mark one invitation accepted and create the resulting membership.

        Args:
            invitation: Invitation being accepted.
            user_id: Accepting user.
            accepted_at_utc: Acceptance timestamp.

        Returns:
            OrganizationMember: Newly created membership.

        Raises:
            InvitationAlreadyAcceptedError: Raised when the invitation was accepted concurrently.
            OrganizationMemberConflictError: Raised when the user became a member concurrently.
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                updated = connection.execute(
                    text(
                        "UPDATE organization_invitation SET accepted_at_utc = :accepted_at_utc "
                        "WHERE invitation_id = :invitation_id AND accepted_at_utc IS NULL"
                    ),
                    {"invitation_id": invitation.invitation_id, "accepted_at_utc": accepted_at_utc},
                )
                if updated.rowcount != 1:
                    raise InvitationAlreadyAcceptedError("invitation was accepted concurrently")
                member_row = self._db_insert_member(
                    connection=connection,
                    organization_id=invitation.organization_id,
                    user_id=user_id,
                    role=invitation.role,
                    invited_by_user_id=invitation.invited_by_user_id,
                    accepted_at_utc=accepted_at_utc,
                )
        except IntegrityError as error:
            if "organization_member" in str(error.orig):
                raise OrganizationMemberConflictError("user is already a member of this organization") from error
            raise RuntimeError("failed to accept invitation") from error
        except SQLAlchemyError as error:
            raise RuntimeError("failed to accept invitation") from error
        return _db_map_member(member_row)

    def db_invitation_list_pending(self, organization_id: int, now_utc: datetime) -> list[OrganizationInvitation]:
        rows = self._db_fetch_all(
            f"SELECT {_INVITATION_COLUMNS} FROM organization_invitation "
            "WHERE organization_id = :organization_id AND accepted_at_utc IS NULL AND expires_at_utc >= :now_utc "
            "ORDER BY created_at_utc DESC, invitation_id DESC",
            {"organization_id": organization_id, "now_utc": now_utc},
            "failed to list pending invitations",
        )
        return [_db_map_invitation(row) for row in rows]

    def db_invitation_delete(self, invitation_id: int, organization_id: int) -> int:
        return self._db_execute_write(
            "DELETE FROM organization_invitation "
            "WHERE invitation_id = :invitation_id AND organization_id = :organization_id",
            {"invitation_id": invitation_id, "organization_id": organization_id},
            "failed to delete invitation",
        )

    def db_invitation_delete_expired(self, now_utc: datetime) -> int:
        return self._db_execute_write(
            "DELETE FROM organization_invitation WHERE accepted_at_utc IS NULL AND expires_at_utc < :now_utc",
            {"now_utc": now_utc},
            "failed to delete expired invitations",
        )

    def db_user_get_email(self, user_id: int) -> str | None:
        row = self._db_fetch_one(
            "SELECT email FROM app_user WHERE user_id = :user_id",
            {"user_id": user_id},
            "failed to load user email",
        )
        return str(row["email"]) if row is not None else None

    def db_user_get_id_by_email(self, email: str) -> int | None:
        row = self._db_fetch_one(
            "SELECT user_id FROM app_user WHERE lower(email) = :email",
            {"email": email.lower()},
            "failed to load user by email",
        )
        return int(row["user_id"]) if row is not None else None

    def _db_insert_member(
        self,
        connection: Connection,
        organization_id: int,
        user_id: int,
        role: OrganizationRole,
        invited_by_user_id: int | None,
        accepted_at_utc: datetime,
    ) -> Mapping[str, Any]:
        return connection.execute(
            text(
                "INSERT INTO organization_member ("
                "organization_id, user_id, role, status, invited_by_user_id, accepted_at_utc, created_at_utc"
                ") VALUES ("
                ":organization_id, :user_id, :role, :status, :invited_by_user_id, :accepted_at_utc, :accepted_at_utc"
                f") RETURNING {_MEMBER_COLUMNS}"
            ),
            {
                "organization_id": organization_id,
                "user_id": user_id,
                "role": role.value,
                "status": MemberStatus.ACTIVE.value,
                "invited_by_user_id": invited_by_user_id,
                "accepted_at_utc": accepted_at_utc,
            },
        ).mappings().one()

    def _db_fetch_one(self, query: str, parameters: dict[str, Any], failure_message: str) -> Mapping[str, Any] | None:
        try:
            with self._engine.connect() as connection:
                return connection.execute(text(query), parameters).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError(failure_message) from error

    def _db_fetch_all(self, query: str, parameters: dict[str, Any], failure_message: str) -> list[Mapping[str, Any]]:
        try:
            with self._engine.connect() as connection:
                return list(connection.execute(text(query), parameters).mappings().all())
        except SQLAlchemyError as error:
            raise RuntimeError(failure_message) from error

    def _db_scalar_count(self, query: str, parameters: dict[str, Any], failure_message: str) -> int:
        try:
            with self._engine.connect() as connection:
                return int(connection.execute(text(query), parameters).scalar_one())
        except SQLAlchemyError as error:
            raise RuntimeError(failure_message) from error

    def _db_execute_write(self, query: str, parameters: dict[str, Any], failure_message: str) -> int:
        try:
            with self._engine.begin() as connection:
                return int(connection.execute(text(query), parameters).rowcount)
        except SQLAlchemyError as error:
            raise RuntimeError(failure_message) from error


def _db_map_organization(row: Mapping[str, Any]) -> Organization:
    return Organization(
        organization_id=int(row["organization_id"]),
        name=str(row["name"]),
        slug=str(row["slug"]),
        plan=OrganizationPlan(row["plan"]),
        created_by_user_id=int(row["created_by_user_id"]),
        created_at_utc=row["created_at_utc"],
        updated_at_utc=row["updated_at_utc"],
    )


def _db_map_member(row: Mapping[str, Any]) -> OrganizationMember:
    invited_by_user_id = row["invited_by_user_id"]
    return OrganizationMember(
        member_id=int(row["member_id"]),
        organization_id=int(row["organization_id"]),
        user_id=int(row["user_id"]),
        role=OrganizationRole(row["role"]),
        status=MemberStatus(row["status"]),
        invited_by_user_id=int(invited_by_user_id) if invited_by_user_id is not None else None,
        accepted_at_utc=row["accepted_at_utc"],
        created_at_utc=row["created_at_utc"],
    )


def _db_map_invitation(row: Mapping[str, Any]) -> OrganizationInvitation:
    return OrganizationInvitation(
        invitation_id=int(row["invitation_id"]),
        organization_id=int(row["organization_id"]),
        email=str(row["email"]),
        role=OrganizationRole(row["role"]),
        token=str(row["token"]),
        invited_by_user_id=int(row["invited_by_user_id"]),
        expires_at_utc=row["expires_at_utc"],
        accepted_at_utc=row["accepted_at_utc"],
        created_at_utc=row["created_at_utc"],
    )
