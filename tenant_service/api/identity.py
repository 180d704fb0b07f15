"""Caller identity resolved from headers set by the authentication proxy."""

from dataclasses import dataclass

from fastapi import Header

from tenant_service.errors import DomainError, ErrorKind

USER_ID_HEADER = "X-User-ID"
USER_ROLE_HEADER = "X-User-Role"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class RequestIdentity:
    """Authenticated caller.

    Attributes:
        user_id: Authenticated user id.
        is_admin: Whether the caller holds the platform admin role.
    """

    user_id: int
    is_admin: bool = False


def api_request_identity(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    x_user_role: str | None = Header(default=None, alias=USER_ROLE_HEADER),
) -> RequestIdentity:
    """Resolve the caller from identity headers.

    Args:
        x_user_id: Authenticated user id header value.
        x_user_role: Optional platform role header value.

    Returns:
        RequestIdentity: Resolved caller.

    Raises:
        DomainError: UNAUTHORIZED when the user id header is missing or malformed.
    """

    normalized_user_id = (x_user_id or "").strip()
    if not (normalized_user_id.isascii() and normalized_user_id.isdigit()):
        raise DomainError(ErrorKind.UNAUTHORIZED, "authentication required")
    is_admin = (x_user_role or "").strip().lower() == ADMIN_ROLE
    return RequestIdentity(user_id=int(normalized_user_id), is_admin=is_admin)


def api_require_admin(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    x_user_role: str | None = Header(default=None, alias=USER_ROLE_HEADER),
) -> RequestIdentity:
    """Resolve the caller and require the platform admin role.

    Raises:
        DomainError: UNAUTHORIZED without identity, FORBIDDEN for non-admins.
    """

    identity = api_request_identity(x_user_id=x_user_id, x_user_role=x_user_role)
    if not identity.is_admin:
        raise DomainError(ErrorKind.FORBIDDEN, "admin role required")
    return identity
