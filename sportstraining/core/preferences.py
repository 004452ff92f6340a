"""
Display preferences chosen on the settings page.

These sit next to the session cookie in the same key/value store but
have nothing to do with the vendor: they only change how the front end
presents things (which logo to show, which units, light or dark theme).
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from .sessions.store import PreferenceStore

logger = logging.getLogger(__name__)

SELECTED_COMPANY_KEY = "SelectedCompany"
SELECTED_UNITS_KEY = "SelectedUnits"
NOTIFICATIONS_KEY = "NotificationsEnabled"
APP_THEME_KEY = "AppTheme"

# Companies with their own branding on the programme and training pages
BRANDED_COMPANIES = {"ETPA"}


class AppTheme(Enum):
    LIGHT = "Light"
    DARK = "Dark"


class Units(Enum):
    METRIC = "Metric"
    IMPERIAL = "Imperial"


@dataclass
class PreferenceSnapshot:
    """All display preferences at once, for the settings page."""
    selected_company: str
    selected_units: str
    notifications_enabled: bool
    app_theme: str
    show_company_logo: bool

    def to_dict(self) -> dict:
        return asdict(self)


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on", "y"}


class UserPreferences:
    """Typed accessors over the raw preference store."""

    def __init__(self, store: PreferenceStore) -> None:
        self._store = store

    @property
    def selected_company(self) -> str:
        return self._store.get(SELECTED_COMPANY_KEY) or "Normal"

    @selected_company.setter
    def selected_company(self, company: str) -> None:
        self._store.set(SELECTED_COMPANY_KEY, company.strip() or "Normal")

    @property
    def show_company_logo(self) -> bool:
        return self.selected_company in BRANDED_COMPANIES

    @property
    def selected_units(self) -> Units:
        raw = self._store.get(SELECTED_UNITS_KEY)
        try:
            return Units(raw) if raw else Units.METRIC
        except ValueError:
            logger.warning("Unknown units preference", extra={"value": raw})
            return Units.METRIC

    @selected_units.setter
    def selected_units(self, units: Units) -> None:
        self._store.set(SELECTED_UNITS_KEY, units.value)

    @property
    def notifications_enabled(self) -> bool:
        return _parse_bool(self._store.get(NOTIFICATIONS_KEY), default=True)

    @notifications_enabled.setter
    def notifications_enabled(self, enabled: bool) -> None:
        self._store.set(NOTIFICATIONS_KEY, "true" if enabled else "false")

    @property
    def app_theme(self) -> AppTheme:
        raw = self._store.get(APP_THEME_KEY)
        return AppTheme.DARK if raw == AppTheme.DARK.value else AppTheme.LIGHT

    @app_theme.setter
    def app_theme(self, theme: AppTheme) -> None:
        self._store.set(APP_THEME_KEY, theme.value)

    def toggle_theme(self) -> AppTheme:
        """Flip between light and dark and remember the choice."""
        theme = AppTheme.LIGHT if self.app_theme is AppTheme.DARK else AppTheme.DARK
        self.app_theme = theme
        return theme

    def snapshot(self) -> PreferenceSnapshot:
        return PreferenceSnapshot(
            selected_company=self.selected_company,
            selected_units=self.selected_units.value,
            notifications_enabled=self.notifications_enabled,
            app_theme=self.app_theme.value,
            show_company_logo=self.show_company_logo,
        )
