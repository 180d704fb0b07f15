"""Database service for stored file metadata reads."""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from tenant_service.domain import StoredFile

from .interfaces import FileRepositoryPort

_FILE_COLUMNS = "file_id, user_id, file_name, content_type, file_size, storage_type, created_at_utc"


class SQLAlchemyFileRepository(FileRepositoryPort):
    """SQLAlchemy-backed stored file metadata repository."""

    def __init__(self, engine: Engine):
        """Initialize file metadata repository.

        Args:
            engine: SQLAlchemy engine used for reads.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_file_get_by_id(self, file_id: int) -> StoredFile | None:
        """Return one file metadata row.

        Args:
            file_id: File identifier.

        Returns:
            StoredFile | None: File metadata, or None when missing.

        Raises:
            RuntimeError: Raised when the query fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(f"SELECT {_FILE_COLUMNS} FROM stored_file WHERE file_id = :file_id"),
                    {"file_id": file_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to load stored file") from error
        return _db_map_stored_file(row) if row is not None else None

    def db_file_list(self, limit: int, offset: int) -> list[StoredFile]:
        """Return one page of file metadata ordered newest first.

        Args:
            limit: Maximum rows.
            offset: Rows to skip.

        Returns:
            list[StoredFile]: File metadata page.

        Raises:
            ValueError: Raised when pagination values are invalid.
            RuntimeError: Raised when the query fails.
        """

        if limit < 1:
            raise ValueError("limit must be positive")
        if offset < 0:
            raise ValueError("offset must not be negative")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        f"SELECT {_FILE_COLUMNS} FROM stored_file "
                        "ORDER BY created_at_utc DESC, file_id DESC "
                        "LIMIT :limit OFFSET :offset"
                    ),
                    {"limit": limit, "offset": offset},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list stored files") from error
        return [_db_map_stored_file(row) for row in rows]


def _db_map_stored_file(row: Mapping[str, Any]) -> StoredFile:
    user_id = row["user_id"]
    return StoredFile(
        file_id=int(row["file_id"]),
        user_id=int(user_id) if user_id is not None else None,
        file_name=str(row["file_name"]),
        content_type=str(row["content_type"]),
        file_size=int(row["file_size"]),
        storage_type=str(row["storage_type"]),
        created_at_utc=row["created_at_utc"],
    )
