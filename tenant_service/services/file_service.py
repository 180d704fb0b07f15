"""Ownership-checked access to stored file metadata."""

from __future__ import annotations

from tenant_service.db import FileRepositoryPort
from tenant_service.domain import StoredFile
from tenant_service.errors import DomainError, DomainSentinelError, ErrorKind, FileSentinel


class FileAccessService:
    """Read stored file metadata on behalf of a user."""

    def __init__(self, repository: FileRepositoryPort):
        if repository is None:
            raise ValueError("repository must not be None")
        self._repository = repository

    def get_file_for_user(self, file_id: int, user_id: int, is_admin: bool = False) -> StoredFile:
        """Return file metadata if the user may read it.

        Admins read every file. Files without an owner are readable by anyone.

        Args:
            file_id: File identifier.
            user_id: Requesting user.
            is_admin: Whether the requesting user is an administrator.

        Returns:
            StoredFile: File metadata.

        Raises:
            DomainError: NOT_FOUND when the file does not exist.
            DomainSentinelError: ACCESS_DENIED when another user owns the file.
        """

        stored_file = self._repository.db_file_get_by_id(file_id)
        if stored_file is None:
            raise DomainError(ErrorKind.NOT_FOUND, "file not found")
        if is_admin or stored_file.user_id is None:
            return stored_file
        if stored_file.user_id != user_id:
            raise DomainSentinelError(FileSentinel.ACCESS_DENIED, "you do not own this file")
        return stored_file

    def list_files(self, limit: int, offset: int) -> list[StoredFile]:
        return self._repository.db_file_list(limit=limit, offset=offset)
