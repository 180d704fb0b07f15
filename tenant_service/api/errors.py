"""Centralized error handlers mapping domain errors to HTTP responses.

Every error body has the shape
`{"error": <code>, "message": <text>, "code": <status>, "request_id": <id>}`.
Unclassified errors never expose internal details.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tenant_service.errors import (
    DomainError,
    DomainSentinelError,
    ErrorClassificationRegistry,
    ErrorCode,
    errors_find_sentinel,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
INTERNAL_ERROR_MESSAGE = "an internal error occurred"


def api_error_response(request: Request, status_code: int, error_code: str, message: str) -> JSONResponse:
    """Build a consistent JSON error response.

    Args:
        request: Current request, used for the request id header.
        status_code: HTTP status code.
        error_code: Wire error code.
        message: Client-safe message.

    Returns:
        JSONResponse: Error response.
    """

    body = {
        "error": error_code,
        "message": message,
        "code": status_code,
        "request_id": request.headers.get(REQUEST_ID_HEADER, ""),
    }
    return JSONResponse(status_code=status_code, content=body)


def api_register_error_handlers(application: FastAPI, registry: ErrorClassificationRegistry) -> None:
    """Register domain error handlers on the FastAPI application.

    Args:
        application: FastAPI application instance.
        registry: Immutable sentinel classification registry.

    Raises:
        ValueError: Raised when registry is None.
    """

    if registry is None:
        raise ValueError("registry must not be None")

    @application.exception_handler(DomainSentinelError)
    async def api_handle_sentinel_error(request: Request, exc: DomainSentinelError) -> JSONResponse:
        classification = registry.classify_error(exc)
        if not classification.found or classification.http_status >= 500:
            _api_log_unclassified(request, exc)
            return api_error_response(
                request, classification.http_status, classification.error_code.value, INTERNAL_ERROR_MESSAGE
            )
        logger.info("Request failed with %s: %s", classification.error_code.value, exc.rendered_message())
        return api_error_response(
            request, classification.http_status, classification.error_code.value, exc.rendered_message()
        )

    @application.exception_handler(DomainError)
    async def api_handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        classification = registry.classify_error(exc)
        if classification.http_status >= 500:
            _api_log_unclassified(request, exc)
            return api_error_response(
                request, classification.http_status, classification.error_code.value, INTERNAL_ERROR_MESSAGE
            )
        return api_error_response(request, classification.http_status, classification.error_code.value, exc.message)

    @application.exception_handler(RequestValidationError)
    async def api_handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first_error = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first_error.get("loc", ()))
        message = f"{location}: {first_error.get('msg', 'invalid request')}" if location else "invalid request"
        return api_error_response(request, 400, ErrorCode.VALIDATION.value, message)

    @application.exception_handler(Exception)
    async def api_handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors, honoring sentinels wrapped in the cause chain."""

        sentinel = errors_find_sentinel(exc)
        classification = registry.classify_error(exc)
        if sentinel is not None and classification.found and classification.http_status < 500:
            logger.info("Request failed with wrapped %s: %s", classification.error_code.value, exc)
            return api_error_response(
                request, classification.http_status, classification.error_code.value, sentinel.value
            )
        _api_log_unclassified(request, exc)
        return api_error_response(request, 500, ErrorCode.INTERNAL_ERROR.value, INTERNAL_ERROR_MESSAGE)


def _api_log_unclassified(request: Request, error: Exception) -> None:
    logger.error(
        "Unhandled error request_id=%s method=%s path=%s: %s",
        request.headers.get(REQUEST_ID_HEADER, ""),
        request.method,
        request.url.path,
        error,
        exc_info=error,
    )
