"""
Settings page endpoints.

Display preferences only: company branding, units, notifications and
theme. They are stored next to the session cookie but never sent to
the vendor.
"""

import logging
from typing import Optional

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from ...core.preferences import AppTheme, Units
from ..dependencies import AuthenticatedUser, UserPreferencesDep

logger = logging.getLogger(__name__)

router = APIRouter()


class PreferencesResponse(BaseModel):
    """Current display preferences."""
    selected_company: str = Field(description="Company whose branding is shown")
    selected_units: Units = Field(description="Measurement units")
    notifications_enabled: bool = Field(description="Whether reminders are wanted")
    app_theme: AppTheme = Field(description="Light or dark theme")
    show_company_logo: bool = Field(description="Whether the branded logo should be shown")


class PreferencesUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""
    selected_company: Optional[str] = Field(None, max_length=100)
    selected_units: Optional[Units] = None
    notifications_enabled: Optional[bool] = None
    app_theme: Optional[AppTheme] = None


def _response(preferences) -> PreferencesResponse:
    snapshot = preferences.snapshot()
    return PreferencesResponse(
        selected_company=snapshot.selected_company,
        selected_units=Units(snapshot.selected_units),
        notifications_enabled=snapshot.notifications_enabled,
        app_theme=AppTheme(snapshot.app_theme),
        show_company_logo=snapshot.show_company_logo,
    )


@router.get(
    "",
    response_model=PreferencesResponse,
    status_code=status.HTTP_200_OK,
    summary="Get display preferences",
)
async def get_preferences(
    api_key: AuthenticatedUser = None,
    preferences: UserPreferencesDep = None,
) -> PreferencesResponse:
    return _response(preferences)


@router.put(
    "",
    response_model=PreferencesResponse,
    status_code=status.HTTP_200_OK,
    summary="Update display preferences",
)
async def update_preferences(
    update: PreferencesUpdate,
    api_key: AuthenticatedUser = None,
    preferences: UserPreferencesDep = None,
) -> PreferencesResponse:
    if update.selected_company is not None:
        preferences.selected_company = update.selected_company
    if update.selected_units is not None:
        preferences.selected_units = update.selected_units
    if update.notifications_enabled is not None:
        preferences.notifications_enabled = update.notifications_enabled
    if update.app_theme is not None:
        preferences.app_theme = update.app_theme

    logger.info(
        "Preferences updated",
        extra={"fields": sorted(update.model_dump(exclude_none=True))}
    )
    return _response(preferences)


@router.post(
    "/theme/toggle",
    response_model=PreferencesResponse,
    status_code=status.HTTP_200_OK,
    summary="Switch between light and dark theme",
)
async def toggle_theme(
    api_key: AuthenticatedUser = None,
    preferences: UserPreferencesDep = None,
) -> PreferencesResponse:
    preferences.toggle_theme()
    return _response(preferences)
