"""Database service for per-user preference rows."""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import Engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tenant_service.domain import (
    EmailNotificationSettings,
    ThemePreference,
    TimeFormatPreference,
    UserPreferences,
)

from .interfaces import UserPreferencesRepositoryPort

_PREFERENCE_COLUMNS = (
    "user_id, theme, timezone, language, date_format, time_format, "
    "email_marketing, email_security, email_updates, email_weekly_digest, "
    "created_at_utc, updated_at_utc"
)


class PreferencesUserNotFoundError(RuntimeError):
    """Raised when preferences are written for a user that does not exist."""


class SQLAlchemyUserPreferencesRepository(UserPreferencesRepositoryPort):
    """SQLAlchemy-backed user preferences repository.

    One row per user keyed by `user_id`; email opt-ins are stored as flat
    boolean columns.
    """

    def __init__(self, engine: Engine):
        """Initialize user preferences repository.

        Args:
            engine: SQLAlchemy engine used for reads and writes.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_preferences_get(self, user_id: int) -> UserPreferences | None:
        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(f"SELECT {_PREFERENCE_COLUMNS} FROM user_preferences WHERE user_id = :user_id"),
                    {"user_id": user_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to load user preferences") from error
        return _db_map_preferences(row) if row is not None else None

    def db_preferences_create_if_missing(self, preferences: UserPreferences) -> UserPreferences:
        """Insert default preferences, keeping a row created concurrently.

        Args:
            preferences: Preferences to store when the user has none.

        Returns:
            UserPreferences: The row stored after the insert attempt.

        Raises:
            PreferencesUserNotFoundError: Raised when the user row does not exist.
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        f"INSERT INTO user_preferences ({_PREFERENCE_COLUMNS}) VALUES ("
                        ":user_id, :theme, :timezone, :language, :date_format, :time_format, "
                        ":email_marketing, :email_security, :email_updates, :email_weekly_digest, "
                        ":created_at_utc, :updated_at_utc"
                        ") ON CONFLICT (user_id) DO NOTHING"
                    ),
                    _db_preferences_parameters(preferences),
                )
                row = connection.execute(
                    text(f"SELECT {_PREFERENCE_COLUMNS} FROM user_preferences WHERE user_id = :user_id"),
                    {"user_id": preferences.user_id},
                ).mappings().one()
        except IntegrityError as error:
            raise PreferencesUserNotFoundError(f"user {preferences.user_id} does not exist") from error
        except SQLAlchemyError as error:
            raise RuntimeError("failed to create user preferences") from error
        return _db_map_preferences(row)

    def db_preferences_update(self, preferences: UserPreferences) -> UserPreferences:
        """Overwrite every mutable preference column of one user.

        Args:
            preferences: Complete preferences to store.

        Returns:
            UserPreferences: Stored row.

        Raises:
            RuntimeError: Raised when the row is missing or persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                row = connection.execute(
                    text(
                        "UPDATE user_preferences SET "
                        "theme = :theme, timezone = :timezone, language = :language, "
                        "date_format = :date_format, time_format = :time_format, "
                        "email_marketing = :email_marketing, email_security = :email_security, "
                        "email_updates = :email_updates, email_weekly_digest = :email_weekly_digest, "
                        "updated_at_utc = :updated_at_utc "
                        f"WHERE user_id = :user_id RETURNING {_PREFERENCE_COLUMNS}"
                    ),
                    _db_preferences_parameters(preferences),
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to update user preferences") from error
        if row is None:
            raise RuntimeError(f"user preferences for user {preferences.user_id} are missing")
        return _db_map_preferences(row)

    def db_preferences_delete(self, user_id: int) -> int:
        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    text("DELETE FROM user_preferences WHERE user_id = :user_id"),
                    {"user_id": user_id},
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to delete user preferences") from error
        return int(result.rowcount or 0)


def _db_preferences_parameters(preferences: UserPreferences) -> dict[str, Any]:
    notifications = preferences.email_notifications
    return {
        "user_id": preferences.user_id,
        "theme": preferences.theme.value,
        "timezone": preferences.timezone,
        "language": preferences.language,
        "date_format": preferences.date_format,
        "time_format": preferences.time_format.value,
        "email_marketing": notifications.marketing,
        "email_security": notifications.security,
        "email_updates": notifications.updates,
        "email_weekly_digest": notifications.weekly_digest,
        "created_at_utc": preferences.created_at_utc,
        "updated_at_utc": preferences.updated_at_utc,
    }


def _db_map_preferences(row: Mapping[str, Any]) -> UserPreferences:
    return UserPreferences(
        user_id=int(row["user_id"]),
        theme=ThemePreference(row["theme"]),
        timezone=str(row["timezone"]),
        language=str(row["language"]),
        date_format=str(row["date_format"]),
        time_format=TimeFormatPreference(row["time_format"]),
        email_notifications=EmailNotificationSettings(
            marketing=bool(row["email_marketing"]),
            security=bool(row["email_security"]),
            updates=bool(row["email_updates"]),
            weekly_digest=bool(row["email_weekly_digest"]),
        ),
        created_at_utc=row["created_at_utc"],
        updated_at_utc=row["updated_at_utc"],
    )
