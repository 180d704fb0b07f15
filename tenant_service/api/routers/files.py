"""File metadata API router composition."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from tenant_service.config import AppSettings
from tenant_service.domain import StoredFile
from tenant_service.services import FileAccessService

from ..identity import RequestIdentity, api_request_identity, api_require_admin


def api_create_file_router(settings: AppSettings, file_service: FileAccessService) -> APIRouter:
    """Create stored file metadata router.

    Args:
        settings: Runtime settings used for pagination defaults.
        file_service: Ownership-checked file access service.

    Returns:
        APIRouter: Router exposing `/files` endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if file_service is None:
        raise ValueError("file_service must not be None")

    router = APIRouter(prefix="/files", tags=["files"])

    @router.get("")
    def api_file_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
        _identity: RequestIdentity = Depends(api_require_admin),
    ) -> JSONResponse:
        """Return one page of file metadata for administrators.

        Args:
            limit: Max rows to return; capped at the configured maximum.
            offset: Rows to skip.

        Returns:
            JSONResponse: File list payload with page metadata.
        """

        applied_limit = min(limit, settings.api_max_limit)
        stored_files = file_service.list_files(limit=applied_limit, offset=offset)
        payload = {
            "items": [api_serialize_stored_file(stored_file) for stored_file in stored_files],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(stored_files),
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/{file_id}")
    def api_file_detail(file_id: int, identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        """Return one file's metadata when the caller may read it.

        Raises:
            DomainError: NOT_FOUND when the file is missing.
            DomainSentinelError: ACCESS_DENIED when another user owns the file.
        """

        stored_file = file_service.get_file_for_user(file_id, identity.user_id, is_admin=identity.is_admin)
        return JSONResponse(content=api_serialize_stored_file(stored_file), status_code=status.HTTP_200_OK)

    return router


def api_serialize_stored_file(stored_file: StoredFile) -> dict[str, object]:
    return {
        "id": stored_file.file_id,
        "user_id": stored_file.user_id,
        "file_name": stored_file.file_name,
        "content_type": stored_file.content_type,
        "file_size": stored_file.file_size,
        "storage_type": stored_file.storage_type,
        "created_at_utc": stored_file.created_at_utc.isoformat(),
    }
