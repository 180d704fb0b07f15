"""Sentinel error classification into HTTP status codes and API error codes.

Registrations happen on a builder during single-threaded startup. `build()`
freezes the entries into an immutable registry that request handlers share
without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Iterable, Mapping

from .sentinels import (
    SENTINEL_FAMILIES,
    DomainError,
    ErrorCode,
    ErrorKind,
    FileSentinel,
    OrganizationSentinel,
    SentinelError,
    errors_find_sentinel,
)


@dataclass(frozen=True)
class ErrorClassification:
    """Externally visible classification for one error.

    Attributes:
        http_status: HTTP status code written to the response.
        error_code: Machine-readable error code.
        found: False when the default classification was used.
    """

    http_status: int
    error_code: ErrorCode
    found: bool = True


ERROR_CLASSIFICATION_DEFAULT: Final[ErrorClassification] = ErrorClassification(
    http_status=500,
    error_code=ErrorCode.INTERNAL_ERROR,
    found=False,
)

DEFAULT_SENTINEL_CLASSIFICATIONS: Final[tuple[tuple[SentinelError, int, ErrorCode], ...]] = (
    (OrganizationSentinel.ORG_NOT_FOUND, 404, ErrorCode.NOT_FOUND),
    (OrganizationSentinel.ORG_SLUG_TAKEN, 409, ErrorCode.CONFLICT),
    (OrganizationSentinel.INVALID_SLUG, 400, ErrorCode.VALIDATION),
    (OrganizationSentinel.NOT_MEMBER, 403, ErrorCode.FORBIDDEN),
    (OrganizationSentinel.INSUFFICIENT_ROLE, 403, ErrorCode.FORBIDDEN),
    (OrganizationSentinel.CANNOT_REMOVE_OWNER, 400, ErrorCode.BAD_REQUEST),
    (OrganizationSentinel.INVITATION_NOT_FOUND, 404, ErrorCode.NOT_FOUND),
    (OrganizationSentinel.INVITATION_EXPIRED, 400, ErrorCode.BAD_REQUEST),
    (OrganizationSentinel.INVITATION_ACCEPTED, 409, ErrorCode.CONFLICT),
    (OrganizationSentinel.ALREADY_MEMBER, 409, ErrorCode.CONFLICT),
    (OrganizationSentinel.CANNOT_CHANGE_OWN_ROLE, 400, ErrorCode.BAD_REQUEST),
    (OrganizationSentinel.MUST_HAVE_OWNER, 400, ErrorCode.BAD_REQUEST),
    (OrganizationSentinel.INVITATION_EMAIL_TAKEN, 409, ErrorCode.CONFLICT),
    (OrganizationSentinel.SEAT_LIMIT_EXCEEDED, 403, ErrorCode.FORBIDDEN),
    (FileSentinel.ACCESS_DENIED, 403, ErrorCode.FORBIDDEN),
)

ERROR_KIND_CLASSIFICATIONS: Final[Mapping[ErrorKind, ErrorClassification]] = MappingProxyType(
    {
        ErrorKind.NOT_FOUND: ErrorClassification(404, ErrorCode.NOT_FOUND),
        ErrorKind.CONFLICT: ErrorClassification(409, ErrorCode.CONFLICT),
        ErrorKind.FORBIDDEN: ErrorClassification(403, ErrorCode.FORBIDDEN),
        ErrorKind.UNAUTHORIZED: ErrorClassification(401, ErrorCode.UNAUTHORIZED),
        ErrorKind.VALIDATION: ErrorClassification(400, ErrorCode.VALIDATION),
        ErrorKind.BAD_REQUEST: ErrorClassification(400, ErrorCode.BAD_REQUEST),
        ErrorKind.RATE_LIMITED: ErrorClassification(429, ErrorCode.RATE_LIMITED),
    }
)


class ErrorClassificationRegistry:
    """Read-only sentinel classification table.

    Instances are immutable after construction and safe to share across
    request-handling threads.
    """

    def __init__(self, entries: Mapping[SentinelError, ErrorClassification]):
        """Freeze classification entries.

        Args:
            entries: Mapping keyed by sentinel identity.

        Raises:
            TypeError: Raised when a key is not a sentinel enum member.
        """

        for sentinel in entries:
            if not isinstance(sentinel, SENTINEL_FAMILIES):
                raise TypeError(f"unsupported sentinel value: {sentinel!r}")
        self._entries: Mapping[SentinelError, ErrorClassification] = MappingProxyType(dict(entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, sentinel: object) -> bool:
        return sentinel in self._entries

    @property
    def entries(self) -> Mapping[SentinelError, ErrorClassification]:
        """Return the read-only classification mapping."""

        return self._entries

    def classify(self, sentinel: SentinelError) -> ErrorClassification:
        """Return the registered classification for one sentinel.

        Args:
            sentinel: Sentinel to classify.

        Returns:
            ErrorClassification: Registered entry, or the 500 default with
            `found=False` when the sentinel is unregistered.
        """

        return self._entries.get(sentinel, ERROR_CLASSIFICATION_DEFAULT)

    def classify_error(self, error: BaseException) -> ErrorClassification:
        """Classify a raised exception for API error responses.

        Kind-based `DomainError` instances map through the fixed kind table.
        Sentinel-carrying exceptions (directly or through their cause chain)
        map through the registered entries. Everything else gets the default.

        Args:
            error: Raised exception.

        Returns:
            ErrorClassification: Classification to write to the response.
        """

        if isinstance(error, DomainError):
            kind_classification = ERROR_KIND_CLASSIFICATIONS.get(error.kind)
            if kind_classification is not None:
                return kind_classification

        sentinel = errors_find_sentinel(error)
        if sentinel is None:
            return ERROR_CLASSIFICATION_DEFAULT
        return self.classify(sentinel)


class ErrorClassificationRegistryBuilder:
    """Mutable registration phase for the classification registry.

    Not safe for concurrent use; intended for process startup only.
    """

    def __init__(self) -> None:
        self._entries: dict[SentinelError, ErrorClassification] = {}

    def register_sentinel_error(
        self,
        sentinel: SentinelError,
        http_status: int,
        error_code: ErrorCode,
    ) -> ErrorClassificationRegistryBuilder:
        """Insert or overwrite the classification for one sentinel.

        Registering the same sentinel twice keeps the last registration.

        Args:
            sentinel: Sentinel to classify.
            http_status: HTTP status code for responses.
            error_code: Machine-readable error code for responses.

        Returns:
            ErrorClassificationRegistryBuilder: This builder, for chaining.

        Raises:
            TypeError: Raised when sentinel is not a sentinel enum member.
            ValueError: Raised when http_status is not a valid HTTP status.
        """

        if not isinstance(sentinel, SENTINEL_FAMILIES):
            raise TypeError(f"unsupported sentinel value: {sentinel!r}")
        if not 100 <= int(http_status) <= 599:
            raise ValueError(f"http_status must be between 100 and 599, got {http_status}")
        self._entries[sentinel] = ErrorClassification(
            http_status=int(http_status),
            error_code=ErrorCode(error_code),
        )
        return self

    def register_many(
        self,
        entries: Iterable[tuple[SentinelError, int, ErrorCode]],
    ) -> ErrorClassificationRegistryBuilder:
        """Register several (sentinel, status, code) entries in order."""

        for sentinel, http_status, error_code in entries:
            self.register_sentinel_error(sentinel, http_status, error_code)
        return self

    def build(self) -> ErrorClassificationRegistry:
        """Freeze current registrations into an immutable registry.

        Returns:
            ErrorClassificationRegistry: Snapshot of registered entries.
        """

        return ErrorClassificationRegistry(self._entries)


def errors_build_default_registry() -> ErrorClassificationRegistry:
    """Build the registry holding every known sentinel classification.

    Returns:
        ErrorClassificationRegistry: Immutable registry for the API layer.
    """

    return ErrorClassificationRegistryBuilder().register_many(DEFAULT_SENTINEL_CLASSIFICATIONS).build()
