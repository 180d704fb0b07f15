"""User preferences API router composition."""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from tenant_service.domain import EmailNotificationSettings, UserPreferences, UserPreferencesUpdate
from tenant_service.services import UserPreferencesService

from ..identity import RequestIdentity, api_request_identity
from ..schemas import UpdatePreferencesRequest


def api_create_preferences_router(preferences_service: UserPreferencesService) -> APIRouter:
    """Create router for the caller's own preferences.

    Args:
        preferences_service: User preferences business service.

    Returns:
        APIRouter: Router exposing `/users/me/preferences`.

    Raises:
        ValueError: Raised when preferences_service is invalid.
    """

    if preferences_service is None:
        raise ValueError("preferences_service must not be None")

    router = APIRouter(prefix="/users/me", tags=["preferences"])

    @router.get("/preferences")
    def api_preferences_get(identity: RequestIdentity = Depends(api_request_identity)) -> JSONResponse:
        preferences = preferences_service.get_preferences(identity.user_id)
        return JSONResponse(content=api_serialize_preferences(preferences), status_code=status.HTTP_200_OK)

    @router.put("/preferences")
    def api_preferences_update(
        request_body: UpdatePreferencesRequest,
        identity: RequestIdentity = Depends(api_request_identity),
    ) -> JSONResponse:
        """Apply a partial preference update for the caller.

        Returns:
            JSONResponse: Stored preferences after the update.

        Raises:
            DomainError: VALIDATION when a value is not allowed.
        """

        notifications = request_body.email_notifications
        update = UserPreferencesUpdate(
            theme=request_body.theme,
            timezone=request_body.timezone,
            language=request_body.language,
            date_format=request_body.date_format,
            time_format=request_body.time_format,
            email_notifications=(
                EmailNotificationSettings(**notifications.model_dump()) if notifications is not None else None
            ),
        )
        preferences = preferences_service.update_preferences(identity.user_id, update)
        return JSONResponse(content=api_serialize_preferences(preferences), status_code=status.HTTP_200_OK)

    @router.delete("/preferences", status_code=status.HTTP_204_NO_CONTENT)
    def api_preferences_reset(identity: RequestIdentity = Depends(api_request_identity)) -> Response:
        preferences_service.reset_preferences(identity.user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


def api_serialize_preferences(preferences: UserPreferences) -> dict[str, object]:
    notifications = preferences.email_notifications
    return {
        "theme": preferences.theme.value,
        "timezone": preferences.timezone,
        "language": preferences.language,
        "date_format": preferences.date_format,
        "time_format": preferences.time_format.value,
        "email_notifications": {
            "marketing": notifications.marketing,
            "security": notifications.security,
            "updates": notifications.updates,
            "weekly_digest": notifications.weekly_digest,
        },
        "updated_at_utc": preferences.updated_at_utc.isoformat(),
    }
