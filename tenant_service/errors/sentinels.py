"""Sentinel error values and the exceptions that carry them.

Each sentinel is an enum member: a unique, immutable value compared by
identity. Its value is the fixed human-readable message. The enums are plain
`Enum` subclasses (no `str` mixin) so a sentinel never compares equal to its
message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Union


class OrganizationSentinel(Enum):
    """Organization-domain failure conditions."""

    ORG_NOT_FOUND = "organization not found"
    ORG_SLUG_TAKEN = "organization slug is already taken"
    INVALID_SLUG = "invalid slug format"
    NOT_MEMBER = "user is not a member of this organization"
    INSUFFICIENT_ROLE = "insufficient role permissions"
    CANNOT_REMOVE_OWNER = "cannot remove the organization owner"
    INVITATION_NOT_FOUND = "invitation not found"
    INVITATION_EXPIRED = "invitation has expired"
    INVITATION_ACCEPTED = "invitation has already been accepted"
    ALREADY_MEMBER = "user is already a member"
    CANNOT_CHANGE_OWN_ROLE = "cannot change your own role"
    MUST_HAVE_OWNER = "organization must have at least one owner"
    INVITATION_EMAIL_TAKEN = "an invitation for this email already exists"
    SEAT_LIMIT_EXCEEDED = "organization has reached its seat limit"

    @property
    def message(self) -> str:
        """Return the fixed human-readable message."""

        return self.value


class FileSentinel(Enum):
    """File-domain failure conditions."""

    ACCESS_DENIED = "access denied"

    @property
    def message(self) -> str:
        """Return the fixed human-readable message."""

        return self.value


SentinelError = Union[OrganizationSentinel, FileSentinel]

SENTINEL_FAMILIES: tuple[type[Enum], ...] = (OrganizationSentinel, FileSentinel)


class ErrorCode(str, Enum):
    """Machine-readable error codes written into API error responses."""

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"


class ErrorKind(str, Enum):
    """Coarse categories for ad-hoc domain errors that have no sentinel."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation"
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"


class DomainSentinelError(Exception):
    """Exception raised by services to signal one sentinel failure condition.

    Attributes:
        sentinel: Sentinel identifying the failure condition.
        detail: Optional context appended to the rendered message.
    """

    def __init__(self, sentinel: SentinelError, detail: str | None = None):
        if not isinstance(sentinel, SENTINEL_FAMILIES):
            raise TypeError(f"unsupported sentinel value: {sentinel!r}")
        self.sentinel = sentinel
        self.detail = detail
        super().__init__(self.rendered_message())

    def rendered_message(self) -> str:
        """Return the sentinel message with optional detail appended.

        Returns:
            str: `"<message>"` or `"<message>: <detail>"`.
        """

        if self.detail:
            return f"{self.sentinel.value}: {self.detail}"
        return self.sentinel.value


class DomainError(Exception):
    """Domain failure classified by kind rather than by a registered sentinel.

    Attributes:
        kind: Error category used for HTTP mapping.
        message: User-facing message.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def errors_find_sentinel(error: BaseException | None) -> SentinelError | None:
    """Return the first sentinel found along an exception cause chain.

    Args:
        error: Raised exception, possibly wrapping a sentinel error.

    Returns:
        SentinelError | None: Sentinel carried by the chain, if any.
    """

    visited: set[int] = set()
    current = error
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        if isinstance(current, DomainSentinelError):
            return current.sentinel
        current = current.__cause__ or current.__context__
    return None


def errors_is(error: BaseException | None, sentinel: SentinelError) -> bool:
    """Report whether an exception chain carries the given sentinel.

    Args:
        error: Raised exception to inspect.
        sentinel: Sentinel to look for.

    Returns:
        bool: True when the chain carries exactly this sentinel.
    """

    return errors_find_sentinel(error) is sentinel
