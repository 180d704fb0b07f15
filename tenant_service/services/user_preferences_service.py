"""User preference storage with defaults on first read and validated partial updates."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

from tenant_service.db import PreferencesUserNotFoundError, UserPreferencesRepositoryPort
from tenant_service.domain import (
    SUPPORTED_DATE_FORMATS,
    SUPPORTED_LANGUAGES,
    ThemePreference,
    TimeFormatPreference,
    UserPreferences,
    UserPreferencesUpdate,
    domain_default_preferences,
)
from tenant_service.errors import DomainError, ErrorKind

logger = logging.getLogger(__name__)

TIMEZONE_MAX_LENGTH = 50
TIMEZONE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_+\-]*(?:/[A-Za-z0-9_+\-]+)*$")


def preferences_parse_theme(value: str) -> ThemePreference:
    """Parse a theme name.

    Raises:
        DomainError: VALIDATION when the theme is unknown.
    """

    try:
        return ThemePreference(value.strip().lower())
    except ValueError as error:
        allowed = ", ".join(theme.value for theme in ThemePreference)
        raise DomainError(ErrorKind.VALIDATION, f"invalid theme: must be one of {allowed}") from error


def preferences_parse_time_format(value: str) -> TimeFormatPreference:
    """Parse a clock format.

    Raises:
        DomainError: VALIDATION when the format is not `12h` or `24h`.
    """

    try:
        return TimeFormatPreference(value.strip().lower())
    except ValueError as error:
        raise DomainError(ErrorKind.VALIDATION, "invalid time format: must be '12h' or '24h'") from error


def preferences_normalize_language(value: str) -> str:
    """Return a supported lowercase language code.

    Raises:
        DomainError: VALIDATION when the language is not supported.
    """

    language = value.strip().lower()
    if language not in SUPPORTED_LANGUAGES:
        raise DomainError(ErrorKind.VALIDATION, "invalid language: must be a supported language code")
    return language


def preferences_normalize_date_format(value: str) -> str:
    date_format = value.strip().upper()
    if date_format not in SUPPORTED_DATE_FORMATS:
        raise DomainError(
            ErrorKind.VALIDATION,
            f"invalid date format: must be one of {', '.join(SUPPORTED_DATE_FORMATS)}",
        )
    return date_format


def preferences_normalize_timezone(value: str) -> str:
    """Check the shape of an IANA timezone name such as `Europe/Berlin`.

    Raises:
        DomainError: VALIDATION when the name is empty, too long or malformed.
    """

    timezone_name = value.strip()
    if len(timezone_name) > TIMEZONE_MAX_LENGTH or not TIMEZONE_PATTERN.match(timezone_name):
        raise DomainError(ErrorKind.VALIDATION, "invalid timezone: must be an IANA timezone name")
    return timezone_name


class UserPreferencesService:
    """Read and change one user's stored preferences."""

    def __init__(
        self,
        repository: UserPreferencesRepositoryPort,
        now_utc: Callable[[], datetime] | None = None,
    ):
        """Initialize preferences service.

        Args:
            repository: DB-layer preferences repository.
            now_utc: Wall clock returning timezone-aware UTC datetimes.

        Raises:
            ValueError: Raised when repository is None.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        self._repository = repository
        self._now_utc = now_utc or (lambda: datetime.now(timezone.utc))

    def get_preferences(self, user_id: int) -> UserPreferences:
        """Return a user's preferences, storing defaults on first access.

        Args:
            user_id: Requesting user.

        Returns:
            UserPreferences: Stored preferences.

        Raises:
            DomainError: NOT_FOUND when the user does not exist.
        """

        preferences = self._repository.db_preferences_get(user_id)
        if preferences is not None:
            return preferences

        try:
            preferences = self._repository.db_preferences_create_if_missing(
                domain_default_preferences(user_id, self._now_utc())
            )
        except PreferencesUserNotFoundError as error:
            raise DomainError(ErrorKind.NOT_FOUND, "user not found") from error
        logger.info("Stored default preferences for user %s", user_id)
        return preferences

    def update_preferences(self, user_id: int, update: UserPreferencesUpdate) -> UserPreferences:
        """Validate and apply a partial preference change.

        Every given field is validated before anything is written, so an
        invalid value leaves the stored row untouched.

        Args:
            user_id: Requesting user.
            update: Fields to change; None fields keep their value.

        Returns:
            UserPreferences: Stored preferences after the change.

        Raises:
            DomainError: VALIDATION for invalid values, NOT_FOUND for unknown users.
        """

        changes: dict[str, Any] = {}
        if update.theme is not None:
            changes["theme"] = preferences_parse_theme(update.theme)
        if update.timezone is not None:
            changes["timezone"] = preferences_normalize_timezone(update.timezone)
        if update.language is not None:
            changes["language"] = preferences_normalize_language(update.language)
        if update.date_format is not None:
            changes["date_format"] = preferences_normalize_date_format(update.date_format)
        if update.time_format is not None:
            changes["time_format"] = preferences_parse_time_format(update.time_format)
        if update.email_notifications is not None:
            changes["email_notifications"] = update.email_notifications

        current = self.get_preferences(user_id)
        if not changes:
            return current

        updated = self._repository.db_preferences_update(
            replace(current, **changes, updated_at_utc=self._now_utc())
        )
        logger.info("Updated preferences %s for user %s", ", ".join(sorted(changes)), user_id)
        return updated

    def reset_preferences(self, user_id: int) -> None:
        """Drop stored preferences; the next read recreates the defaults."""

        if self._repository.db_preferences_delete(user_id):
            logger.info("Reset preferences for user %s", user_id)
