"""Database health service implementations for connectivity checks and metrics."""

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import DatabaseHealthPort, DatabasePoolStatistics, FileStorageUsage


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Database health service backed by SQLAlchemy engine connectivity checks."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL for diagnostics.

        Returns:
            str: Rendered engine URL string with password hidden.
        """

        return self._engine.url.render_as_string(hide_password=True)

    def db_ping(self) -> None:
        """Verify database connectivity using a deterministic lightweight query.

        Raises:
            ConnectionError: Raised when connection acquisition or the query fails.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as error:
            raise ConnectionError(f"database connectivity check failed: {error}") from error

    def db_pool_statistics(self) -> DatabasePoolStatistics:
        """Read pool counters from the engine connection pool.

        Pools without queue semantics (for example SQLite static pools) report zeros.

        Returns:
            DatabasePoolStatistics: Current pool counters.
        """

        pool = self._engine.pool
        checked_in = _db_pool_counter(pool, "checkedin")
        checked_out = _db_pool_counter(pool, "checkedout")
        overflow = max(_db_pool_counter(pool, "overflow"), 0)
        configured_size = _db_pool_counter(pool, "size")
        max_overflow = getattr(pool, "_max_overflow", 0)
        max_open = configured_size + max_overflow if configured_size and max_overflow >= 0 else 0
        return DatabasePoolStatistics(
            open_connections=checked_in + checked_out,
            in_use=checked_out,
            idle=checked_in,
            max_open=max_open,
            overflow=overflow,
            pool_class=type(pool).__name__,
        )

    def db_execute_probe_query(self) -> int:
        """Run `SELECT 1` and return its scalar.

        Returns:
            int: Scalar query result.

        Raises:
            ConnectionError: Raised when the query cannot be executed.
        """

        try:
            with self._engine.connect() as connection:
                return int(connection.execute(text("SELECT 1")).scalar_one())
        except SQLAlchemyError as error:
            raise ConnectionError(f"database probe query failed: {error}") from error

    def db_file_storage_usage(self) -> FileStorageUsage:
        """Count stored file rows and sum their sizes.

        Returns:
            FileStorageUsage: Aggregate stored file volume.

        Raises:
            ConnectionError: Raised when the aggregate query fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(
                        "SELECT COUNT(*) AS file_count, COALESCE(SUM(file_size), 0) AS total_bytes "
                        "FROM stored_file"
                    )
                ).mappings().one()
        except SQLAlchemyError as error:
            raise ConnectionError(f"file storage usage query failed: {error}") from error

        return FileStorageUsage(file_count=int(row["file_count"]), total_bytes=int(row["total_bytes"]))


def _db_pool_counter(pool: object, method_name: str) -> int:
    counter = getattr(pool, method_name, None)
    if not callable(counter):
        return 0
    return int(counter())
