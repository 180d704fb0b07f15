"""Pydantic request schemas for organization and preference API endpoints.

Schemas only check shape; slug, membership and preference rules live in the services.
"""

from pydantic import BaseModel, Field

from tenant_service.domain import OrganizationRole

NAME_MAX_LEN = 100
EMAIL_MAX_LEN = 254


class CreateOrganizationRequest(BaseModel):
    """Request schema for organization creation.

    Attributes:
        name: Display name.
        slug: Requested URL-safe slug.
    """

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)
    slug: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)


class UpdateOrganizationRequest(BaseModel):
    """Request schema for organization rename."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)


class InviteMemberRequest(BaseModel):
    """Request schema for member invitations.

    Attributes:
        email: Invitee email address.
        role: Role granted on acceptance.
    """

    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN, pattern=r"^[^@\s]+@[^@\s]+$")
    role: OrganizationRole = OrganizationRole.MEMBER


class UpdateMemberRoleRequest(BaseModel):
    """Request schema for member role changes."""

    role: OrganizationRole


class EmailNotificationsRequest(BaseModel):
    """Complete set of email opt-ins; replaces the stored set."""

    marketing: bool
    security: bool
    updates: bool
    weekly_digest: bool


class UpdatePreferencesRequest(BaseModel):
    """Request schema for partial preference updates.

    Omitted fields keep their stored value. Allowed values are checked by the
    preferences service.
    """

    theme: str | None = Field(default=None, max_length=20)
    timezone: str | None = Field(default=None, max_length=50)
    language: str | None = Field(default=None, max_length=10)
    date_format: str | None = Field(default=None, max_length=20)
    time_format: str | None = Field(default=None, max_length=10)
    email_notifications: EmailNotificationsRequest | None = None
