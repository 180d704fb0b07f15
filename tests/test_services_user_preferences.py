"""Tests for user preference defaults, validation and partial updates."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from support_preferences import InMemoryUserPreferencesRepository

from tenant_service.domain import (
    EmailNotificationSettings,
    ThemePreference,
    TimeFormatPreference,
    UserPreferencesUpdate,
)
from tenant_service.errors import DomainError, ErrorKind
from tenant_service.services import UserPreferencesService

_CREATED_AT = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class _Clock:
    def __init__(self) -> None:
        self.now = _CREATED_AT

    def __call__(self) -> datetime:
        return self.now


def _build_service(
    repository: InMemoryUserPreferencesRepository | None = None,
    clock: _Clock | None = None,
) -> UserPreferencesService:
    return UserPreferencesService(
        repository=repository or InMemoryUserPreferencesRepository(),
        now_utc=clock or _Clock(),
    )


def test_services_preferences_first_read_stores_defaults_once() -> None:
    """Create default preferences on first read and reuse them afterwards.

    Raises:
        AssertionError: Raised when default values or creation count diverge.
    """

    repository = InMemoryUserPreferencesRepository()
    service = _build_service(repository)

    first = service.get_preferences(7)
    second = service.get_preferences(7)

    assert first == second
    assert repository.create_calls == 1
    assert first.theme is ThemePreference.SYSTEM
    assert first.timezone == "UTC"
    assert first.language == "en"
    assert first.date_format == "MM/DD/YYYY"
    assert first.time_format is TimeFormatPreference.TWELVE_HOUR
    assert first.email_notifications == EmailNotificationSettings(
        marketing=False, security=True, updates=True, weekly_digest=False
    )
    assert first.created_at_utc == first.updated_at_utc == _CREATED_AT


def test_services_preferences_unknown_user_is_not_found() -> None:
    service = _build_service(InMemoryUserPreferencesRepository(known_user_ids={1}))

    with pytest.raises(DomainError) as raised:
        service.get_preferences(99)

    assert raised.value.kind is ErrorKind.NOT_FOUND


def test_services_preferences_partial_update_keeps_untouched_fields() -> None:
    """Apply only given fields, normalizing case and stamping the update time.

    Raises:
        AssertionError: Raised when merge semantics diverge.
    """

    clock = _Clock()
    service = _build_service(clock=clock)
    service.get_preferences(7)
    clock.now = _CREATED_AT + timedelta(hours=1)

    updated = service.update_preferences(
        7,
        UserPreferencesUpdate(theme=" Dark ", language="DE", date_format="yyyy-mm-dd", time_format="24h"),
    )

    assert updated.theme is ThemePreference.DARK
    assert updated.language == "de"
    assert updated.date_format == "YYYY-MM-DD"
    assert updated.time_format is TimeFormatPreference.TWENTY_FOUR_HOUR
    assert updated.timezone == "UTC"
    assert updated.email_notifications == EmailNotificationSettings()
    assert updated.created_at_utc == _CREATED_AT
    assert updated.updated_at_utc == clock.now
    assert service.get_preferences(7) == updated


def test_services_preferences_update_creates_defaults_before_merging() -> None:
    repository = InMemoryUserPreferencesRepository()
    service = _build_service(repository)

    updated = service.update_preferences(
        3,
        UserPreferencesUpdate(
            timezone="America/New_York",
            email_notifications=EmailNotificationSettings(marketing=True, security=True, updates=False),
        ),
    )

    assert repository.create_calls == 1
    assert updated.timezone == "America/New_York"
    assert updated.email_notifications.marketing is True
    assert updated.email_notifications.updates is False
    assert updated.theme is ThemePreference.SYSTEM


@pytest.mark.parametrize(
    ("update", "message_prefix"),
    [
        (UserPreferencesUpdate(theme="sepia"), "invalid theme"),
        (UserPreferencesUpdate(time_format="13h"), "invalid time format"),
        (UserPreferencesUpdate(language="xx"), "invalid language"),
        (UserPreferencesUpdate(date_format="DD-MM-YY"), "invalid date format"),
        (UserPreferencesUpdate(timezone=""), "invalid timezone"),
        (UserPreferencesUpdate(timezone="Europe/Berlin; DROP"), "invalid timezone"),
        (UserPreferencesUpdate(timezone="A" * 51), "invalid timezone"),
    ],
)
def test_services_preferences_rejects_invalid_values(update: UserPreferencesUpdate, message_prefix: str) -> None:
    repository = InMemoryUserPreferencesRepository()
    service = _build_service(repository)

    with pytest.raises(DomainError) as raised:
        service.update_preferences(7, update)

    assert raised.value.kind is ErrorKind.VALIDATION
    assert str(raised.value).startswith(message_prefix)
    assert repository.update_calls == 0


def test_services_preferences_invalid_field_blocks_valid_ones() -> None:
    repository = InMemoryUserPreferencesRepository()
    service = _build_service(repository)
    before = service.get_preferences(7)

    with pytest.raises(DomainError):
        service.update_preferences(7, UserPreferencesUpdate(theme="dark", language="klingon"))

    assert service.get_preferences(7) == before


def test_services_preferences_empty_update_does_not_write() -> None:
    repository = InMemoryUserPreferencesRepository()
    service = _build_service(repository)

    preferences = service.update_preferences(7, UserPreferencesUpdate())

    assert preferences.theme is ThemePreference.SYSTEM
    assert repository.update_calls == 0


def test_services_preferences_reset_restores_defaults_on_next_read() -> None:
    repository = InMemoryUserPreferencesRepository()
    service = _build_service(repository)
    service.update_preferences(7, UserPreferencesUpdate(theme="light"))

    service.reset_preferences(7)
    service.reset_preferences(7)

    assert 7 not in repository.rows
    assert service.get_preferences(7).theme is ThemePreference.SYSTEM
