"""Tests for centralized API error handlers and the error body contract."""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from tenant_service.api.errors import INTERNAL_ERROR_MESSAGE, api_register_error_handlers
from tenant_service.errors import (
    DomainError,
    DomainSentinelError,
    ErrorClassificationRegistryBuilder,
    ErrorKind,
    FileSentinel,
    OrganizationSentinel,
    errors_build_default_registry,
)


class _EchoRequest(BaseModel):
    count: int


def _build_application(registry=None) -> FastAPI:
    """Create an application whose routes raise known errors.

    Args:
        registry: Optional classification registry; defaults to the full table.

    Returns:
        FastAPI: Application with error handlers registered.
    """

    application = FastAPI()
    api_register_error_handlers(application, registry if registry is not None else errors_build_default_registry())

    @application.get("/organizations/missing")
    def raise_not_found() -> None:
        raise DomainSentinelError(OrganizationSentinel.ORG_NOT_FOUND)

    @application.get("/organizations/taken")
    def raise_conflict() -> None:
        raise DomainSentinelError(OrganizationSentinel.ORG_SLUG_TAKEN)

    @application.get("/files/denied")
    def raise_access_denied() -> None:
        raise DomainSentinelError(FileSentinel.ACCESS_DENIED, "you do not own this file")

    @application.get("/wrapped")
    def raise_wrapped() -> None:
        try:
            raise DomainSentinelError(OrganizationSentinel.SEAT_LIMIT_EXCEEDED)
        except DomainSentinelError as error:
            raise RuntimeError("invite failed") from error

    @application.get("/kind")
    def raise_domain_error() -> None:
        raise DomainError(ErrorKind.RATE_LIMITED, "slow down")

    @application.get("/boom")
    def raise_unexpected() -> None:
        raise RuntimeError("connection string postgresql://secret@db")

    @application.post("/echo")
    def echo(request_body: _EchoRequest) -> dict[str, int]:
        return {"count": request_body.count}

    return application


@pytest.mark.parametrize(
    ("path", "status_code", "error_code", "message"),
    [
        ("/organizations/missing", 404, "NOT_FOUND", "organization not found"),
        ("/organizations/taken", 409, "CONFLICT", "organization slug is already taken"),
        ("/files/denied", 403, "FORBIDDEN", "access denied: you do not own this file"),
        ("/kind", 429, "RATE_LIMITED", "slow down"),
    ],
)
def test_api_errors_classified_errors_render_standard_body(path, status_code, error_code, message) -> None:
    client = TestClient(_build_application())

    response = client.get(path, headers={"X-Request-ID": "req-1"})

    assert response.status_code == status_code
    assert response.json() == {
        "error": error_code,
        "message": message,
        "code": status_code,
        "request_id": "req-1",
    }


def test_api_errors_request_id_defaults_to_empty_string() -> None:
    response = TestClient(_build_application()).get("/organizations/missing")

    assert response.json()["request_id"] == ""


def test_api_errors_validation_failure_maps_to_400() -> None:
    response = TestClient(_build_application()).post("/echo", json={"count": "many"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["error"] == "VALIDATION_ERROR"
    assert payload["code"] == 400
    assert payload["message"].startswith("body.count")


def test_api_errors_unregistered_sentinel_is_internal_and_logged(caplog) -> None:
    """Hide the sentinel message and log at error when no classification exists.

    Raises:
        AssertionError: Raised when unregistered sentinels leak details.
    """

    registry = ErrorClassificationRegistryBuilder().build()
    client = TestClient(_build_application(registry))

    with caplog.at_level(logging.ERROR, logger="tenant_service.api.errors"):
        response = client.get("/organizations/missing", headers={"X-Request-ID": "req-2"})

    assert response.status_code == 500
    assert response.json()["error"] == "INTERNAL_ERROR"
    assert response.json()["message"] == INTERNAL_ERROR_MESSAGE
    assert any("req-2" in record.getMessage() for record in caplog.records)


def test_api_errors_unhandled_exception_hides_details(caplog) -> None:
    """Return the generic 500 body for exceptions outside the domain.

    Raises:
        AssertionError: Raised when internal details reach the client.
    """

    client = TestClient(_build_application(), raise_server_exceptions=False)

    with caplog.at_level(logging.ERROR, logger="tenant_service.api.errors"):
        response = client.get("/boom", headers={"X-Request-ID": "req-3"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "INTERNAL_ERROR",
        "message": INTERNAL_ERROR_MESSAGE,
        "code": 500,
        "request_id": "req-3",
    }
    assert "secret" not in response.text
    assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_api_errors_sentinel_in_cause_chain_keeps_its_classification() -> None:
    response = TestClient(_build_application(), raise_server_exceptions=False).get("/wrapped")

    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"
    assert response.json()["message"] == "organization has reached its seat limit"


def test_api_errors_register_requires_registry() -> None:
    with pytest.raises(ValueError):
        api_register_error_handlers(FastAPI(), None)
