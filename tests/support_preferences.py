"""In-memory user preferences repository shared by service and API tests."""

from __future__ import annotations

from tenant_service.db import PreferencesUserNotFoundError
from tenant_service.domain import UserPreferences


class InMemoryUserPreferencesRepository:
    """Preferences repository stub keyed by user id."""

    def __init__(self, known_user_ids: set[int] | None = None) -> None:
        """Initialize an empty table.

        Args:
            known_user_ids: Users that exist; None accepts every user.
        """

        self.rows: dict[int, UserPreferences] = {}
        self.known_user_ids = known_user_ids
        self.create_calls = 0
        self.update_calls = 0

    def db_preferences_get(self, user_id: int) -> UserPreferences | None:
        return self.rows.get(user_id)

    def db_preferences_create_if_missing(self, preferences: UserPreferences) -> UserPreferences:
        """Insert unless present, mirroring ON CONFLICT DO NOTHING.

        Raises:
            PreferencesUserNotFoundError: Raised for users outside `known_user_ids`.
        """

        self.create_calls += 1
        if self.known_user_ids is not None and preferences.user_id not in self.known_user_ids:
            raise PreferencesUserNotFoundError(f"user {preferences.user_id} does not exist")
        return self.rows.setdefault(preferences.user_id, preferences)

    def db_preferences_update(self, preferences: UserPreferences) -> UserPreferences:
        self.update_calls += 1
        if preferences.user_id not in self.rows:
            raise RuntimeError(f"user preferences for user {preferences.user_id} are missing")
        self.rows[preferences.user_id] = preferences
        return preferences

    def db_preferences_delete(self, user_id: int) -> int:
        return 1 if self.rows.pop(user_id, None) is not None else 0
