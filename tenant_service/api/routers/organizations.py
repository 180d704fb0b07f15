"""Organization API router composition for tenants, members and invitations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from tenant_service.domain import (
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationRole,
)
from tenant_service.errors import DomainError, ErrorKind
from tenant_service.services import OrganizationService

from ..identity import RequestIdentity, api_request_identity
from ..schemas import (
    CreateOrganizationRequest,
    InviteMemberRequest,
    UpdateMemberRoleRequest,
    UpdateOrganizationRequest,
)


def api_create_organization_router(organization_service: OrganizationService) -> APIRouter:
    """Create organization router.

    Args:
        organization_service: Organization business service.

    Returns:
        APIRouter: Router exposing `/organizations` and `/invitations` endpoints.

    Raises:
        ValueError: Raised when organization_service is invalid.
    """

    if organization_service is None:
        raise ValueError("organization_service must not be None")

    router = APIRouter(tags=["organizations"])

    def api_load_organization(
        slug: str,
        identity: RequestIdentity,
        minimum_role: OrganizationRole = OrganizationRole.MEMBER,
    ) -> tuple[Organization, OrganizationMember]:
        organization = organization_service.get_organization(slug)
        membership = organization_service.require_role(organization.organization_id, identity.user_id, minimum_role)
        return organization, membership

    @router.get("/organizations")
    def api_organization_list(identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        organizations = organization_service.get_user_organizations_with_roles(identity.user_id)
        payload = {
            "items": [
                api_serialize_organization(entry.organization, role=entry.role) for entry in organizations
            ],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/organizations")
    def api_organization_create(
        request_body: CreateOrganizationRequest,
        identity: RequestIdentity = Depends(api_request_identity),
    ) -> JSONResponse:
        """Create an organization owned by the caller.

        Returns:
            JSONResponse: Created organization with the owner role, 201.

        Raises:
            DomainSentinelError: INVALID_SLUG or ORG_SLUG_TAKEN.
        """

        organization = organization_service.create_organization(
            user_id=identity.user_id,
            name=request_body.name,
            slug=request_body.slug,
        )
        payload = api_serialize_organization(organization, role=OrganizationRole.OWNER)
        return JSONResponse(content=payload, status_code=status.HTTP_201_CREATED)

    @router.get("/organizations/{slug}")
    def api_organization_detail(slug: str, identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        organization, membership = api_load_organization(slug, identity)
        payload = api_serialize_organization(organization, role=membership.role)
        payload["member_count"] = organization_service.get_member_count(organization.organization_id)
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.put("/organizations/{slug}")
    def api_organization_update(
        slug: str,
        request_body: UpdateOrganizationRequest,
        identity: RequestIdentity = Depends(api_request_identity),
    ) -> JSONResponse:
        organization, membership = api_load_organization(slug, identity, OrganizationRole.ADMIN)
        updated_organization = organization_service.update_organization(organization, request_body.name)
        payload = api_serialize_organization(updated_organization, role=membership.role)
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.delete("/organizations/{slug}")
    def api_organization_delete(slug: str, identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        organization, _ = api_load_organization(slug, identity, OrganizationRole.OWNER)
        organization_service.delete_organization(organization)
        return JSONResponse(content={"message": "organization deleted"}, status_code=status.HTTP_200_OK)

    @router.post("/organizations/{slug}/leave")
    def api_organization_leave(slug: str, identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        """Remove the caller from an organization.

        Raises:
            DomainError: BAD_REQUEST when the caller is an owner.
        """

        organization, membership = api_load_organization(slug, identity)
        if membership.role is OrganizationRole.OWNER:
            raise DomainError(ErrorKind.BAD_REQUEST, "owners cannot leave; transfer ownership first")
        organization_service.remove_member(organization.organization_id, identity.user_id)
        return JSONResponse(content={"message": "left organization"}, status_code=status.HTTP_200_OK)

    @router.get("/organizations/{slug}/members")
    def api_member_list(slug: str, identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        organization, _ = api_load_organization(slug, identity, OrganizationRole.ADMIN)
        members = organization_service.get_members(organization.organization_id)
        payload = {"items": [api_serialize_member(member) for member in members]}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/organizations/{slug}/members/invite")
    def api_member_invite(
        slug: str,
        request_body: InviteMemberRequest,
        identity: RequestIdentity = Depends(api_request_identity),
    ) -> JSONResponse:
        """Invite an email address into the organization.

        Returns:
            JSONResponse: Created invitation, 201.

        Raises:
            DomainError: BAD_REQUEST when inviting as owner.
            DomainSentinelError: SEAT_LIMIT_EXCEEDED, ALREADY_MEMBER or
                INVITATION_EMAIL_TAKEN.
        """

        organization, _ = api_load_organization(slug, identity, OrganizationRole.ADMIN)
        if request_body.role is OrganizationRole.OWNER:
            raise DomainError(ErrorKind.BAD_REQUEST, "cannot invite as owner; use role transfer instead")
        invitation = organization_service.create_invitation(
            organization_id=organization.organization_id,
            inviter_user_id=identity.user_id,
            email=request_body.email,
            role=request_body.role,
        )
        return JSONResponse(content=api_serialize_invitation(invitation), status_code=status.HTTP_201_CREATED)

    @router.put("/organizations/{slug}/members/{user_id}/role")
    def api_member_update_role(
        slug: str,
        user_id: int,
        request_body: UpdateMemberRoleRequest,
        identity: RequestIdentity = Depends(api_request_identity),
    ) -> JSONResponse:
        """Change one member's role.

        Raises:
            DomainError: FORBIDDEN when a non-owner promotes to owner.
        """

        organization, membership = api_load_organization(slug, identity, OrganizationRole.ADMIN)
        if request_body.role is OrganizationRole.OWNER and membership.role is not OrganizationRole.OWNER:
            raise DomainError(ErrorKind.FORBIDDEN, "only owners can promote to owner")
        updated_member = organization_service.update_member_role(
            organization_id=organization.organization_id,
            user_id=user_id,
            actor_user_id=identity.user_id,
            new_role=request_body.role,
        )
        return JSONResponse(content=api_serialize_member(updated_member), status_code=status.HTTP_200_OK)

    @router.delete("/organizations/{slug}/members/{user_id}")
    def api_member_remove(
        slug: str,
        user_id: int,
        identity: RequestIdentity = Depends(api_request_identity),
    ) -> JSONResponse:
        organization, _ = api_load_organization(slug, identity, OrganizationRole.ADMIN)
        organization_service.remove_member(organization.organization_id, user_id)
        return JSONResponse(content={"message": "member removed"}, status_code=status.HTTP_200_OK)

    @router.get("/organizations/{slug}/invitations")
    def api_invitation_list(slug: str, identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        organization, _ = api_load_organization(slug, identity, OrganizationRole.ADMIN)
        invitations = organization_service.get_pending_invitations(organization.organization_id)
        payload = {"items": [api_serialize_invitation(invitation) for invitation in invitations]}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.delete("/organizations/{slug}/invitations/{invitation_id}")
    def api_invitation_cancel(
        slug: str,
        invitation_id: int,
        identity: RequestIdentity = Depends(api_request_identity),
    ) -> JSONResponse:
        organization, _ = api_load_organization(slug, identity, OrganizationRole.ADMIN)
        organization_service.cancel_invitation(invitation_id, organization.organization_id)
        return JSONResponse(content={"message": "invitation cancelled"}, status_code=status.HTTP_200_OK)

    @router.post("/invitations/{token}/accept")
    def api_invitation_accept(token: str, identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        """Accept an invitation as the caller.

        Returns:
            JSONResponse: Created membership with its organization.

        Raises:
            DomainSentinelError: INVITATION_NOT_FOUND, INVITATION_EXPIRED,
                INVITATION_ACCEPTED or ALREADY_MEMBER.
            DomainError: FORBIDDEN when the caller email does not match.
        """

        member = organization_service.accept_invitation(token, identity.user_id)
        organization = organization_service.get_organization_by_id(member.organization_id)
        payload = {
            "organization": api_serialize_organization(organization, role=member.role),
            "member": api_serialize_member(member),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


def api_serialize_organization(organization: Organization, role: OrganizationRole | None = None) -> dict[str, object]:
    """Serialize an organization to a JSON response payload.

    Args:
        organization: Organization to serialize.
        role: Optional caller role inside the organization.

    Returns:
        dict[str, object]: JSON-serializable organization payload.
    """

    payload: dict[str, object] = {
        "id": organization.organization_id,
        "name": organization.name,
        "slug": organization.slug,
        "plan": organization.plan.value,
        "seat_limit": organization.seat_limit,
        "created_at_utc": organization.created_at_utc.isoformat(),
        "updated_at_utc": organization.updated_at_utc.isoformat(),
    }
    if role is not None:
        payload["role"] = role.value
    return payload


def api_serialize_member(member: OrganizationMember) -> dict[str, object]:
    return {
        "id": member.member_id,
        "user_id": member.user_id,
        "role": member.role.value,
        "status": member.status.value,
        "accepted_at_utc": member.accepted_at_utc.isoformat() if member.accepted_at_utc else None,
        "created_at_utc": member.created_at_utc.isoformat(),
    }


def api_serialize_invitation(invitation: OrganizationInvitation) -> dict[str, object]:
    """Serialize an invitation; the token is included so callers can deliver it."""

    return {
        "id": invitation.invitation_id,
        "email": invitation.email,
        "role": invitation.role.value,
        "token": invitation.token,
        "invited_by_user_id": invitation.invited_by_user_id,
        "expires_at_utc": invitation.expires_at_utc.isoformat(),
        "created_at_utc": invitation.created_at_utc.isoformat(),
    }
