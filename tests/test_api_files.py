"""Tests for stored file metadata API routes."""

from datetime import datetime, timezone

from fastapi.testclient import TestClient
from support_organizations import InMemoryOrganizationRepository
from support_preferences import InMemoryUserPreferencesRepository

from tenant_service.api.application import create_api_application
from tenant_service.config import AppSettings
from tenant_service.domain import StoredFile
from tenant_service.errors import errors_build_default_registry
from tenant_service.services import FileAccessService, OrganizationService, SystemHealthService, UserPreferencesService


class _DatabaseHealthStub:
    def db_connection_label(self) -> str:
        return "postgresql://test"

    def db_ping(self) -> None:
        return None


class _FileRepositoryStub:
    """File repository stub recording pagination calls."""

    def __init__(self) -> None:
        created_at_utc = datetime(2026, 10, 18, tzinfo=timezone.utc)
        self._files = {
            1: StoredFile(1, 7, "report.pdf", "application/pdf", 2048, "local", created_at_utc),
            2: StoredFile(2, None, "shared.txt", "text/plain", 12, "s3", created_at_utc),
        }
        self.list_calls: list[tuple[int, int]] = []

    def db_file_get_by_id(self, file_id: int) -> StoredFile | None:
        return self._files.get(file_id)

    def db_file_list(self, limit: int, offset: int) -> list[StoredFile]:
        self.list_calls.append((limit, offset))
        return list(self._files.values())[offset : offset + limit]


def _build_client(settings: AppSettings | None = None) -> tuple[TestClient, _FileRepositoryStub]:
    """Create API test client with a fixed file repository.

    Returns:
        tuple[TestClient, _FileRepositoryStub]: Client and the file repository stub.
    """

    repository = _FileRepositoryStub()
    application = create_api_application(
        settings=settings or AppSettings(_env_file=None),
        health_service=SystemHealthService(database_health=_DatabaseHealthStub()),
        error_registry=errors_build_default_registry(),
        organization_service=OrganizationService(repository=InMemoryOrganizationRepository()),
        file_service=FileAccessService(repository=repository),
        preferences_service=UserPreferencesService(repository=InMemoryUserPreferencesRepository()),
    )
    return TestClient(application), repository


def test_api_files_detail_returns_file_to_owner() -> None:
    client, _ = _build_client()

    response = client.get("/files/1", headers={"X-User-ID": "7"})

    assert response.status_code == 200
    assert response.json()["file_name"] == "report.pdf"
    assert response.json()["user_id"] == 7


def test_api_files_detail_denies_other_users_but_not_admins() -> None:
    """Return 403 with the detailed message for non-owners; admins pass.

    Raises:
        AssertionError: Raised when ownership mapping diverges.
    """

    client, _ = _build_client()

    denied = client.get("/files/1", headers={"X-User-ID": "8"})
    admin = client.get("/files/1", headers={"X-User-ID": "8", "X-User-Role": "admin"})
    ownerless = client.get("/files/2", headers={"X-User-ID": "8"})

    assert denied.status_code == 403
    assert denied.json()["error"] == "FORBIDDEN"
    assert denied.json()["message"] == "access denied: you do not own this file"
    assert admin.status_code == 200
    assert ownerless.status_code == 200


def test_api_files_detail_missing_file_is_not_found() -> None:
    client, _ = _build_client()

    response = client.get("/files/99", headers={"X-User-ID": "7"})

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_api_files_list_is_admin_only_and_caps_limit() -> None:
    client, repository = _build_client(AppSettings(_env_file=None, api_default_limit=10, api_max_limit=20))

    forbidden = client.get("/files", headers={"X-User-ID": "7"})
    response = client.get("/files", params={"limit": 500}, headers={"X-User-ID": "1", "X-User-Role": "admin"})

    assert forbidden.status_code == 403
    assert response.status_code == 200
    assert response.json()["page"] == {"limit": 500, "applied_limit": 20, "offset": 0, "returned": 2}
    assert repository.list_calls == [(20, 0)]


def test_api_files_list_rejects_invalid_pagination() -> None:
    client, _ = _build_client()

    response = client.get("/files", params={"offset": -1}, headers={"X-User-ID": "1", "X-User-Role": "admin"})

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
