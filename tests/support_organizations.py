"""In-memory organization repository shared by service and API tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from tenant_service.db import OrganizationSlugConflictError
from tenant_service.domain import (
    MemberStatus,
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationRole,
    OrganizationWithRole,
)

FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

OWNER_ID = 1
ADMIN_ID = 2
MEMBER_ID = 3
OUTSIDER_ID = 4


class InMemoryOrganizationRepository:
    """Organization repository stub keeping rows in dictionaries."""

    def __init__(self) -> None:
        """Initialize empty tables with a few known users."""

        self.organizations: dict[int, Organization] = {}
        self.members: dict[int, OrganizationMember] = {}
        self.invitations: dict[int, OrganizationInvitation] = {}
        self.user_emails: dict[int, str] = {
            OWNER_ID: "owner@example.com",
            ADMIN_ID: "admin@example.com",
            MEMBER_ID: "member@example.com",
            OUTSIDER_ID: "Outsider@Example.com",
        }
        self.slug_lookups = 0
        self.raise_slug_conflict = False
        self.accept_error: Exception | None = None
        self._next_id = 100

    def _allocate_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def db_organization_count_by_slug(self, slug: str) -> int:
        return sum(1 for organization in self.organizations.values() if organization.slug == slug)

    def db_organization_create_with_owner(self, name, slug, plan, owner_user_id, created_at_utc) -> Organization:
        """Insert organization and owner membership.

        Raises:
            OrganizationSlugConflictError: Raised when configured to simulate a race.
        """

        if self.raise_slug_conflict:
            raise OrganizationSlugConflictError(slug)
        organization = Organization(
            organization_id=self._allocate_id(),
            name=name,
            slug=slug,
            plan=plan,
            created_by_user_id=owner_user_id,
            created_at_utc=created_at_utc,
            updated_at_utc=created_at_utc,
        )
        self.organizations[organization.organization_id] = organization
        self.add_member(organization.organization_id, owner_user_id, OrganizationRole.OWNER)
        return organization

    def db_organization_get_by_slug(self, slug: str) -> Organization | None:
        self.slug_lookups += 1
        for organization in self.organizations.values():
            if organization.slug == slug:
                return organization
        return None

    def db_organization_get_by_id(self, organization_id: int) -> Organization | None:
        return self.organizations.get(organization_id)

    def db_organization_update_name(self, organization_id: int, name: str, updated_at_utc: datetime) -> None:
        organization = self.organizations[organization_id]
        self.organizations[organization_id] = replace(organization, name=name, updated_at_utc=updated_at_utc)

    def db_organization_delete(self, organization_id: int) -> None:
        self.organizations.pop(organization_id, None)
        self.members = {key: row for key, row in self.members.items() if row.organization_id != organization_id}
        self.invitations = {
            key: row for key, row in self.invitations.items() if row.organization_id != organization_id
        }

    def db_member_get(self, organization_id: int, user_id: int) -> OrganizationMember | None:
        for member in self.members.values():
            if member.organization_id == organization_id and member.user_id == user_id:
                return member
        return None

    def db_member_list(self, organization_id: int) -> list[OrganizationMember]:
        return [member for member in self.members.values() if member.organization_id == organization_id]

    def db_member_list_organizations_with_roles(self, user_id: int) -> list[OrganizationWithRole]:
        return [
            OrganizationWithRole(organization=self.organizations[member.organization_id], role=member.role)
            for member in self.members.values()
            if member.user_id == user_id
        ]

    def db_member_count_by_role(self, organization_id: int, role: OrganizationRole) -> int:
        return sum(1 for member in self.db_member_list(organization_id) if member.role is role)

    def db_member_count_by_status(self, organization_id: int, status: MemberStatus) -> int:
        return sum(1 for member in self.db_member_list(organization_id) if member.status is status)

    def db_member_update_role(self, member_id: int, role: OrganizationRole) -> None:
        self.members[member_id] = replace(self.members[member_id], role=role)

    def db_member_delete(self, member_id: int) -> None:
        del self.members[member_id]

    def db_invitation_count_pending(self, organization_id: int, now_utc: datetime, email: str | None = None) -> int:
        return len(
            [
                invitation
                for invitation in self.db_invitation_list_pending(organization_id, now_utc)
                if email is None or invitation.email == email
            ]
        )

    def db_invitation_create(
        self, organization_id, email, role, token, invited_by_user_id, expires_at_utc, created_at_utc
    ) -> OrganizationInvitation:
        invitation = OrganizationInvitation(
            invitation_id=self._allocate_id(),
            organization_id=organization_id,
            email=email,
            role=role,
            token=token,
            invited_by_user_id=invited_by_user_id,
            expires_at_utc=expires_at_utc,
            accepted_at_utc=None,
            created_at_utc=created_at_utc,
        )
        self.invitations[invitation.invitation_id] = invitation
        return invitation

    def db_invitation_get_by_token(self, token: str) -> OrganizationInvitation | None:
        for invitation in self.invitations.values():
            if invitation.token == token:
                return invitation
        return None

    def db_invitation_accept(self, invitation, user_id, accepted_at_utc) -> OrganizationMember:
        if self.accept_error is not None:
            raise self.accept_error
        self.invitations[invitation.invitation_id] = replace(invitation, accepted_at_utc=accepted_at_utc)
        return self.add_member(
            invitation.organization_id,
            user_id,
            invitation.role,
            invited_by_user_id=invitation.invited_by_user_id,
        )

    def db_invitation_list_pending(self, organization_id: int, now_utc: datetime) -> list[OrganizationInvitation]:
        return [
            invitation
            for invitation in self.invitations.values()
            if invitation.organization_id == organization_id
            and invitation.accepted_at_utc is None
            and invitation.expires_at_utc >= now_utc
        ]

    def db_invitation_delete(self, invitation_id: int, organization_id: int) -> int:
        invitation = self.invitations.get(invitation_id)
        if invitation is None or invitation.organization_id != organization_id:
            return 0
        del self.invitations[invitation_id]
        return 1

    def db_invitation_delete_expired(self, now_utc: datetime) -> int:
        expired_ids = [
            invitation.invitation_id
            for invitation in self.invitations.values()
            if invitation.accepted_at_utc is None and invitation.expires_at_utc < now_utc
        ]
        for invitation_id in expired_ids:
            del self.invitations[invitation_id]
        return len(expired_ids)

    def db_user_get_email(self, user_id: int) -> str | None:
        return self.user_emails.get(user_id)

    def db_user_get_id_by_email(self, email: str) -> int | None:
        for user_id, user_email in self.user_emails.items():
            if user_email.lower() == email.lower():
                return user_id
        return None

    def add_member(
        self,
        organization_id: int,
        user_id: int,
        role: OrganizationRole,
        invited_by_user_id: int | None = None,
    ) -> OrganizationMember:
        """Insert one active membership row directly.

        Returns:
            OrganizationMember: Inserted membership.
        """

        member = OrganizationMember(
            member_id=self._allocate_id(),
            organization_id=organization_id,
            user_id=user_id,
            role=role,
            status=MemberStatus.ACTIVE,
            invited_by_user_id=invited_by_user_id,
            accepted_at_utc=FIXED_NOW,
            created_at_utc=FIXED_NOW,
        )
        self.members[member.member_id] = member
        return member

