"""Typed domain models for organizations, memberships, invitations and files.

These are plain frozen dataclasses passed between the db layer, services and
API routers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Final


class OrganizationRole(str, Enum):
    """Membership role inside one organization."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def rank(self) -> int:
        """Return hierarchy rank (owner > admin > member)."""

        return ORGANIZATION_ROLE_RANKS[self]

    def is_higher_or_equal_to(self, other: OrganizationRole) -> bool:
        """Compare roles by hierarchy rank."""

        return self.rank >= other.rank

    def can_manage_members(self) -> bool:
        return self in (OrganizationRole.OWNER, OrganizationRole.ADMIN)

    def can_manage_settings(self) -> bool:
        return self in (OrganizationRole.OWNER, OrganizationRole.ADMIN)

    def can_delete_organization(self) -> bool:
        return self is OrganizationRole.OWNER


ORGANIZATION_ROLE_RANKS: Final[dict[OrganizationRole, int]] = {
    OrganizationRole.OWNER: 3,
    OrganizationRole.ADMIN: 2,
    OrganizationRole.MEMBER: 1,
}


class OrganizationPlan(str, Enum):
    """Subscription plan attached to an organization."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class MemberStatus(str, Enum):
    """Lifecycle status of one membership row."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


@dataclass(frozen=True)
class PlanFeatures:
    """Limits granted by one plan. Zero means unlimited.

    Attributes:
        seat_limit: Maximum active members plus pending invitations.
        storage_limit_mb: Maximum stored file volume in megabytes.
        api_call_limit: Monthly API call allowance.
    """

    seat_limit: int
    storage_limit_mb: int
    api_call_limit: int


PLAN_FEATURES: Final[dict[OrganizationPlan, PlanFeatures]] = {
    OrganizationPlan.FREE: PlanFeatures(seat_limit=5, storage_limit_mb=1024, api_call_limit=10000),
    OrganizationPlan.PRO: PlanFeatures(seat_limit=25, storage_limit_mb=10240, api_call_limit=100000),
    OrganizationPlan.ENTERPRISE: PlanFeatures(seat_limit=0, storage_limit_mb=0, api_call_limit=0),
}


def domain_plan_features(plan: OrganizationPlan) -> PlanFeatures:
    """Return plan limits, falling back to the free plan for unknown values."""

    return PLAN_FEATURES.get(plan, PLAN_FEATURES[OrganizationPlan.FREE])


@dataclass(frozen=True)
class Organization:
    """One tenant organization.

    Attributes:
        organization_id: Surrogate primary key.
        name: Display name.
        slug: URL-safe unique identifier.
        plan: Subscription plan.
        created_by_user_id: User who created the organization.
        created_at_utc: Creation timestamp in UTC.
        updated_at_utc: Last update timestamp in UTC.
    """

    organization_id: int
    name: str
    slug: str
    plan: OrganizationPlan
    created_by_user_id: int
    created_at_utc: datetime
    updated_at_utc: datetime

    @property
    def seat_limit(self) -> int:
        """Return plan seat limit; zero means unlimited."""

        return domain_plan_features(self.plan).seat_limit


@dataclass(frozen=True)
class OrganizationMember:
    """Membership of one user in one organization.

    Attributes:
        member_id: Surrogate primary key.
        organization_id: Owning organization.
        user_id: Member user.
        role: Role inside the organization.
        status: Membership status.
        invited_by_user_id: Optional inviter.
        accepted_at_utc: Optional acceptance timestamp.
        created_at_utc: Creation timestamp in UTC.
    """

    member_id: int
    organization_id: int
    user_id: int
    role: OrganizationRole
    status: MemberStatus
    invited_by_user_id: int | None
    accepted_at_utc: datetime | None
    created_at_utc: datetime


@dataclass(frozen=True)
class OrganizationInvitation:
    """Pending or accepted invitation to join an organization.

    Attributes:
        invitation_id: Surrogate primary key.
        organization_id: Target organization.
        email: Lower-cased invitee email.
        role: Role granted on acceptance.
        token: Opaque acceptance token.
        invited_by_user_id: Inviting user.
        expires_at_utc: Expiry timestamp in UTC.
        accepted_at_utc: Optional acceptance timestamp.
        created_at_utc: Creation timestamp in UTC.
    """

    invitation_id: int
    organization_id: int
    email: str
    role: OrganizationRole
    token: str
    invited_by_user_id: int
    expires_at_utc: datetime
    accepted_at_utc: datetime | None
    created_at_utc: datetime

    def is_expired(self, now_utc: datetime | None = None) -> bool:
        """Return True when the invitation expiry has passed."""

        reference_time = now_utc or datetime.now(timezone.utc)
        return reference_time > self.expires_at_utc

    def is_accepted(self) -> bool:
        return self.accepted_at_utc is not None


@dataclass(frozen=True)
class OrganizationWithRole:
    """Organization paired with the requesting user's role."""

    organization: Organization
    role: OrganizationRole


@dataclass(frozen=True)
class StoredFile:
    """Metadata for one stored file.

    Attributes:
        file_id: Surrogate primary key.
        user_id: Owning user, or None for legacy files without an owner.
        file_name: Original file name.
        content_type: MIME type.
        file_size: Size in bytes.
        storage_type: Storage backend label.
        created_at_utc: Upload timestamp in UTC.
    """

    file_id: int
    user_id: int | None
    file_name: str
    content_type: str
    file_size: int
    storage_type: str
    created_at_utc: datetime
