"""Organization, membership and invitation business rules.

Failures are signalled by raising `DomainSentinelError` with an
`OrganizationSentinel`; the API layer classifies them into HTTP responses.
"""

from __future__ import annotations

import json
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from tenant_service.cache import CacheError, CachePort
from tenant_service.db import (
    InvitationAlreadyAcceptedError,
    OrganizationMemberConflictError,
    OrganizationRepositoryPort,
    OrganizationSlugConflictError,
)
from tenant_service.domain import (
    MemberStatus,
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationPlan,
    OrganizationRole,
    OrganizationWithRole,
)
from tenant_service.errors import DomainError, DomainSentinelError, ErrorKind, OrganizationSentinel

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_MIN_LENGTH = 2
SLUG_MAX_LENGTH = 63
INVITATION_TOKEN_BYTES = 32


@dataclass(frozen=True)
class OrganizationServiceConfig:
    """Tunable organization service values.

    Attributes:
        invitation_ttl: Lifetime of a new invitation.
        cache_ttl_seconds: Lifetime of cached organization lookups.
    """

    invitation_ttl: timedelta = timedelta(days=7)
    cache_ttl_seconds: int = 300


def organization_normalize_slug(slug: str) -> str:
    """Lower-case, trim and validate an organization slug.

    Slugs follow DNS label rules: 2-63 characters of lower-case letters and
    digits, optionally separated by single hyphens.

    Args:
        slug: Raw slug input.

    Returns:
        str: Normalized slug.

    Raises:
        DomainSentinelError: INVALID_SLUG when the slug is malformed.
    """

    normalized_slug = slug.strip().lower()
    if not SLUG_PATTERN.match(normalized_slug):
        raise DomainSentinelError(OrganizationSentinel.INVALID_SLUG)
    if not SLUG_MIN_LENGTH <= len(normalized_slug) <= SLUG_MAX_LENGTH:
        raise DomainSentinelError(OrganizationSentinel.INVALID_SLUG)
    return normalized_slug


class OrganizationService:
    """Business logic for organizations, their members and invitations."""

    def __init__(
        self,
        repository: OrganizationRepositoryPort,
        cache: CachePort | None = None,
        config: OrganizationServiceConfig | None = None,
        now_utc: Callable[[], datetime] | None = None,
        token_factory: Callable[[], str] | None = None,
    ):
        """Initialize organization service.

        Args:
            repository: DB-layer organization repository.
            cache: Optional cache for organization lookups.
            config: Service configuration values.
            now_utc: Wall clock returning timezone-aware UTC datetimes.
            token_factory: Invitation token generator.

        Raises:
            ValueError: Raised when repository is None.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        self._repository = repository
        self._cache = cache
        self._config = config or OrganizationServiceConfig()
        self._now_utc = now_utc or (lambda: datetime.now(timezone.utc))
        self._token_factory = token_factory or (lambda: secrets.token_hex(INVITATION_TOKEN_BYTES))

    def create_organization(self, user_id: int, name: str, slug: str) -> Organization:
        """Create an organization on the free plan owned by the requesting user.

        Args:
            user_id: Creating user, stored as owner.
            name: Display name.
            slug: Requested slug.

        Returns:
            Organization: Created organization.

        Raises:
            DomainSentinelError: INVALID_SLUG or ORG_SLUG_TAKEN.
            DomainError: VALIDATION when the name is blank.
        """

        normalized_slug = organization_normalize_slug(slug)
        normalized_name = name.strip()
        if not normalized_name:
            raise DomainError(ErrorKind.VALIDATION, "organization name must not be blank")

        if self._repository.db_organization_count_by_slug(normalized_slug) > 0:
            raise DomainSentinelError(OrganizationSentinel.ORG_SLUG_TAKEN)

        try:
            organization = self._repository.db_organization_create_with_owner(
                name=normalized_name,
                slug=normalized_slug,
                plan=OrganizationPlan.FREE,
                owner_user_id=user_id,
                created_at_utc=self._now_utc(),
            )
        except OrganizationSlugConflictError as error:
            raise DomainSentinelError(OrganizationSentinel.ORG_SLUG_TAKEN) from error

        logger.info("Organization %s created by user %s", organization.slug, user_id)
        return organization

    def get_organization(self, slug: str) -> Organization:
        """Return one organization by slug, read through the cache when configured.

        Raises:
            DomainSentinelError: ORG_NOT_FOUND.
        """

        cache_key = _organization_slug_cache_key(slug)
        cached_organization = self._cache_read_organization(cache_key)
        if cached_organization is not None:
            return cached_organization

        organization = self._repository.db_organization_get_by_slug(slug)
        if organization is None:
            raise DomainSentinelError(OrganizationSentinel.ORG_NOT_FOUND)
        self._cache_write_organization(cache_key, organization)
        return organization

    def get_organization_by_id(self, organization_id: int) -> Organization:
        """Return one organization by id.

        Raises:
            DomainSentinelError: ORG_NOT_FOUND.
        """

        organization = self._repository.db_organization_get_by_id(organization_id)
        if organization is None:
            raise DomainSentinelError(OrganizationSentinel.ORG_NOT_FOUND)
        return organization

    def get_user_organizations_with_roles(self, user_id: int) -> list[OrganizationWithRole]:
        return self._repository.db_member_list_organizations_with_roles(user_id)

    def get_user_membership(self, organization_id: int, user_id: int) -> OrganizationMember:
        """Return the membership of a user.

        Raises:
            DomainSentinelError: NOT_MEMBER.
        """

        member = self._repository.db_member_get(organization_id, user_id)
        if member is None:
            raise DomainSentinelError(OrganizationSentinel.NOT_MEMBER)
        return member

    def require_role(
        self,
        organization_id: int,
        user_id: int,
        minimum_role: OrganizationRole,
    ) -> OrganizationMember:
        """Return the user's membership when it holds at least `minimum_role`.

        Raises:
            DomainSentinelError: NOT_MEMBER or INSUFFICIENT_ROLE.
        """

        member = self.get_user_membership(organization_id, user_id)
        if not member.role.is_higher_or_equal_to(minimum_role):
            raise DomainSentinelError(OrganizationSentinel.INSUFFICIENT_ROLE)
        return member

    def update_organization(self, organization: Organization, name: str) -> Organization:
        """Rename an organization and invalidate its cached lookups.

        Raises:
            DomainError: VALIDATION when the name is blank.
        """

        normalized_name = name.strip()
        if not normalized_name:
            raise DomainError(ErrorKind.VALIDATION, "organization name must not be blank")

        updated_at = self._now_utc()
        self._repository.db_organization_update_name(organization.organization_id, normalized_name, updated_at)
        self._cache_invalidate_organization(organization)
        return Organization(
            organization_id=organization.organization_id,
            name=normalized_name,
            slug=organization.slug,
            plan=organization.plan,
            created_by_user_id=organization.created_by_user_id,
            created_at_utc=organization.created_at_utc,
            updated_at_utc=updated_at,
        )

    def delete_organization(self, organization: Organization) -> None:
        """Delete an organization with its invitations and memberships."""

        self._repository.db_organization_delete(organization.organization_id)
        self._cache_invalidate_organization(organization)
        logger.info("Organization %s deleted", organization.slug)

    def get_members(self, organization_id: int) -> list[OrganizationMember]:
        return self._repository.db_member_list(organization_id)

    def update_member_role(
        self,
        organization_id: int,
        user_id: int,
        actor_user_id: int,
        new_role: OrganizationRole,
    ) -> OrganizationMember:
        """Change a member's role, keeping at least one owner.

        Raises:
            DomainSentinelError: CANNOT_CHANGE_OWN_ROLE, NOT_MEMBER or MUST_HAVE_OWNER.
        """

        if user_id == actor_user_id:
            raise DomainSentinelError(OrganizationSentinel.CANNOT_CHANGE_OWN_ROLE)

        member = self.get_user_membership(organization_id, user_id)
        if member.role is OrganizationRole.OWNER and new_role is not OrganizationRole.OWNER:
            owner_count = self._repository.db_member_count_by_role(organization_id, OrganizationRole.OWNER)
            if owner_count <= 1:
                raise DomainSentinelError(OrganizationSentinel.MUST_HAVE_OWNER)

        self._repository.db_member_update_role(member.member_id, new_role)
        return OrganizationMember(
            member_id=member.member_id,
            organization_id=member.organization_id,
            user_id=member.user_id,
            role=new_role,
            status=member.status,
            invited_by_user_id=member.invited_by_user_id,
            accepted_at_utc=member.accepted_at_utc,
            created_at_utc=member.created_at_utc,
        )

    def remove_member(self, organization_id: int, user_id: int) -> None:
        """Remove a member; the last owner cannot be removed.

        Raises:
            DomainSentinelError: NOT_MEMBER or CANNOT_REMOVE_OWNER.
        """

        member = self.get_user_membership(organization_id, user_id)
        if member.role is OrganizationRole.OWNER:
            owner_count = self._repository.db_member_count_by_role(organization_id, OrganizationRole.OWNER)
            if owner_count <= 1:
                raise DomainSentinelError(OrganizationSentinel.CANNOT_REMOVE_OWNER)

        self._repository.db_member_delete(member.member_id)

    def create_invitation(
        self,
        organization_id: int,
        inviter_user_id: int,
        email: str,
        role: OrganizationRole,
    ) -> OrganizationInvitation:
        """Invite an email address to join an organization.

        Args:
            organization_id: Target organization.
            inviter_user_id: Inviting user.
            email: Invitee email; stored lower-cased.
            role: Role granted on acceptance.

        Returns:
            OrganizationInvitation: Created invitation.

        Raises:
            DomainSentinelError: ORG_NOT_FOUND, SEAT_LIMIT_EXCEEDED, ALREADY_MEMBER
                or INVITATION_EMAIL_TAKEN.
            DomainError: VALIDATION when the email is blank.
        """

        normalized_email = email.strip().lower()
        if not normalized_email:
            raise DomainError(ErrorKind.VALIDATION, "email must not be blank")

        if not self.can_add_member(organization_id):
            raise DomainSentinelError(OrganizationSentinel.SEAT_LIMIT_EXCEEDED)

        existing_user_id = self._repository.db_user_get_id_by_email(normalized_email)
        if existing_user_id is not None and self._repository.db_member_get(organization_id, existing_user_id):
            raise DomainSentinelError(OrganizationSentinel.ALREADY_MEMBER)

        now_utc = self._now_utc()
        pending_count = self._repository.db_invitation_count_pending(organization_id, now_utc, email=normalized_email)
        if pending_count > 0:
            raise DomainSentinelError(OrganizationSentinel.INVITATION_EMAIL_TAKEN)

        return self._repository.db_invitation_create(
            organization_id=organization_id,
            email=normalized_email,
            role=role,
            token=self._token_factory(),
            invited_by_user_id=inviter_user_id,
            expires_at_utc=now_utc + self._config.invitation_ttl,
            created_at_utc=now_utc,
        )

    def get_invitation_by_token(self, token: str) -> OrganizationInvitation:
        """Return one invitation by token.

        Raises:
            DomainSentinelError: INVITATION_NOT_FOUND.
        """

        invitation = self._repository.db_invitation_get_by_token(token)
        if invitation is None:
            raise DomainSentinelError(OrganizationSentinel.INVITATION_NOT_FOUND)
        return invitation

    def accept_invitation(self, token: str, user_id: int) -> OrganizationMember:
        """Accept an invitation and add the user to the organization.

        Args:
            token: Invitation token.
            user_id: Accepting user; their email must match the invitation.

        Returns:
            OrganizationMember: Created membership.

        Raises:
            DomainSentinelError: INVITATION_NOT_FOUND, INVITATION_EXPIRED,
                INVITATION_ACCEPTED or ALREADY_MEMBER.
            DomainError: FORBIDDEN when the user email does not match, NOT_FOUND
                when the user does not exist.
        """

        invitation = self.get_invitation_by_token(token)
        now_utc = self._now_utc()
        if invitation.is_expired(now_utc):
            raise DomainSentinelError(OrganizationSentinel.INVITATION_EXPIRED)
        if invitation.is_accepted():
            raise DomainSentinelError(OrganizationSentinel.INVITATION_ACCEPTED)

        user_email = self._repository.db_user_get_email(user_id)
        if user_email is None:
            raise DomainError(ErrorKind.NOT_FOUND, "user not found")
        if user_email.strip().lower() != invitation.email:
            raise DomainError(ErrorKind.FORBIDDEN, "email does not match invitation")

        if self._repository.db_member_get(invitation.organization_id, user_id) is not None:
            raise DomainSentinelError(OrganizationSentinel.ALREADY_MEMBER)

        try:
            member = self._repository.db_invitation_accept(invitation, user_id, now_utc)
        except InvitationAlreadyAcceptedError as error:
            raise DomainSentinelError(OrganizationSentinel.INVITATION_ACCEPTED) from error
        except OrganizationMemberConflictError as error:
            raise DomainSentinelError(OrganizationSentinel.ALREADY_MEMBER) from error
        logger.info("User %s joined organization %s via invitation", user_id, invitation.organization_id)
        return member

    def get_pending_invitations(self, organization_id: int) -> list[OrganizationInvitation]:
        return self._repository.db_invitation_list_pending(organization_id, self._now_utc())

    def cancel_invitation(self, invitation_id: int, organization_id: int) -> None:
        """Delete a pending invitation of one organization.

        Raises:
            DomainSentinelError: INVITATION_NOT_FOUND when nothing was deleted.
        """

        if self._repository.db_invitation_delete(invitation_id, organization_id) == 0:
            raise DomainSentinelError(OrganizationSentinel.INVITATION_NOT_FOUND)

    def cleanup_expired_invitations(self) -> int:
        deleted_count = self._repository.db_invitation_delete_expired(self._now_utc())
        if deleted_count:
            logger.info("Deleted %d expired invitations", deleted_count)
        return deleted_count

    def get_member_count(self, organization_id: int) -> int:
        return self._repository.db_member_count_by_status(organization_id, MemberStatus.ACTIVE)

    def can_add_member(self, organization_id: int) -> bool:
        """Report whether the organization has a free seat.

        Active members and pending invitations both occupy seats. A seat
        limit of zero means unlimited.

        Raises:
            DomainSentinelError: ORG_NOT_FOUND.
        """

        organization = self.get_organization_by_id(organization_id)
        seat_limit = organization.seat_limit
        if seat_limit == 0:
            return True

        member_count = self.get_member_count(organization_id)
        pending_count = self._repository.db_invitation_count_pending(organization_id, self._now_utc())
        return member_count + pending_count < seat_limit

    def _cache_read_organization(self, cache_key: str) -> Organization | None:
        if self._cache is None or not self._cache.cache_is_available():
            return None
        try:
            cached_value = self._cache.cache_get(cache_key)
        except CacheError as error:
            logger.warning("Organization cache read failed: %s", error)
            return None
        if cached_value is None:
            return None
        return _organization_from_cache_payload(cached_value)

    def _cache_write_organization(self, cache_key: str, organization: Organization) -> None:
        if self._cache is None or not self._cache.cache_is_available():
            return
        try:
            self._cache.cache_set(cache_key, _organization_to_cache_payload(organization), self._config.cache_ttl_seconds)
        except CacheError as error:
            logger.warning("Organization cache write failed: %s", error)

    def _cache_invalidate_organization(self, organization: Organization) -> None:
        if self._cache is None or not self._cache.cache_is_available():
            return
        try:
            self._cache.cache_delete(_organization_slug_cache_key(organization.slug))
        except CacheError as error:
            logger.warning("Organization cache invalidation failed: %s", error)


def _organization_slug_cache_key(slug: str) -> str:
    return f"org:slug:{slug}"


def _organization_to_cache_payload(organization: Organization) -> bytes:
    return json.dumps(
        {
            "organization_id": organization.organization_id,
            "name": organization.name,
            "slug": organization.slug,
            "plan": organization.plan.value,
            "created_by_user_id": organization.created_by_user_id,
            "created_at_utc": organization.created_at_utc.isoformat(),
            "updated_at_utc": organization.updated_at_utc.isoformat(),
        }
    ).encode("utf-8")


def _organization_from_cache_payload(payload: bytes) -> Organization:
    values = json.loads(payload.decode("utf-8"))
    return Organization(
        organization_id=int(values["organization_id"]),
        name=values["name"],
        slug=values["slug"],
        plan=OrganizationPlan(values["plan"]),
        created_by_user_id=int(values["created_by_user_id"]),
        created_at_utc=datetime.fromisoformat(values["created_at_utc"]),
        updated_at_utc=datetime.fromisoformat(values["updated_at_utc"]),
    )
