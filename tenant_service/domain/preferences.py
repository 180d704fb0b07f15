"""Per-user display and notification preferences."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Final


class ThemePreference(str, Enum):
    """User interface color theme."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class TimeFormatPreference(str, Enum):
    """Clock rendering preference."""

    TWELVE_HOUR = "12h"
    TWENTY_FOUR_HOUR = "24h"


SUPPORTED_LANGUAGES: Final[dict[str, str]] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
}

SUPPORTED_DATE_FORMATS: Final[tuple[str, ...]] = (
    "MM/DD/YYYY",
    "DD/MM/YYYY",
    "YYYY-MM-DD",
    "DD.MM.YYYY",
    "YYYY/MM/DD",
)

DEFAULT_TIMEZONE: Final[str] = "UTC"
DEFAULT_LANGUAGE: Final[str] = "en"
DEFAULT_DATE_FORMAT: Final[str] = "MM/DD/YYYY"


@dataclass(frozen=True)
class EmailNotificationSettings:
    """Which email categories a user wants to receive.

    Attributes:
        marketing: Product announcements and offers.
        security: Sign-in and account security notices.
        updates: Service and feature updates.
        weekly_digest: Weekly activity summary.
    """

    marketing: bool = False
    security: bool = True
    updates: bool = True
    weekly_digest: bool = False


@dataclass(frozen=True)
class UserPreferences:
    """Stored preferences of one user.

    Attributes:
        user_id: Owning user; one row per user.
        theme: Color theme.
        timezone: IANA timezone name used for rendering timestamps.
        language: Supported language code.
        date_format: One of the supported date format patterns.
        time_format: 12 or 24 hour clock.
        email_notifications: Email category opt-ins.
        created_at_utc: Row creation timestamp in UTC.
        updated_at_utc: Last update timestamp in UTC.
    """

    user_id: int
    theme: ThemePreference
    timezone: str
    language: str
    date_format: str
    time_format: TimeFormatPreference
    email_notifications: EmailNotificationSettings
    created_at_utc: datetime
    updated_at_utc: datetime


@dataclass(frozen=True)
class UserPreferencesUpdate:
    """Partial preference change; None leaves a field unchanged.

    Values are raw user input and are validated by the preferences service.
    """

    theme: str | None = None
    timezone: str | None = None
    language: str | None = None
    date_format: str | None = None
    time_format: str | None = None
    email_notifications: EmailNotificationSettings | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.theme,
                self.timezone,
                self.language,
                self.date_format,
                self.time_format,
                self.email_notifications,
            )
        )


def domain_default_preferences(user_id: int, now_utc: datetime) -> UserPreferences:
    """Return the preferences a user starts with before changing anything."""

    return UserPreferences(
        user_id=user_id,
        theme=ThemePreference.SYSTEM,
        timezone=DEFAULT_TIMEZONE,
        language=DEFAULT_LANGUAGE,
        date_format=DEFAULT_DATE_FORMAT,
        time_format=TimeFormatPreference.TWELVE_HOUR,
        email_notifications=EmailNotificationSettings(),
        created_at_utc=now_utc,
        updated_at_utc=now_utc,
    )
