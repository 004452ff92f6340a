"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests with fakes
- Configuration is centralized

The preference store, session store and vendor client are shared for
the whole process: there is exactly one current session cookie, and
every request must see the same one.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.preferences import UserPreferences
from ..core.sessions.service import AuthService, ProgramService
from ..core.sessions.store import PreferenceStore, SessionStore
from ..infrastructure.preferences.store import create_preference_store
from ..infrastructure.visualcoaching.client import (
    VisualCoachingClient,
    VisualCoachingConfig,
)

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Process-wide instances, created on first use
_preference_store: Optional[PreferenceStore] = None
_session_store: Optional[SessionStore] = None
_visualcoaching_client: Optional[VisualCoachingClient] = None


def reset_dependencies() -> None:
    """
    Drop the shared instances.

    Used on shutdown and by tests that need a fresh session.
    """
    global _preference_store, _session_store, _visualcoaching_client

    if _visualcoaching_client is not None:
        _visualcoaching_client.close()

    _preference_store = None
    _session_store = None
    _visualcoaching_client = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    This authenticates the front end to us, not the user to the
    vendor: the vendor session lives in the session store.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8] if api_key else ""}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Storage Dependencies
# ---------------------------------------------------------------------------

def get_preference_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> PreferenceStore:
    """
    Provide the key/value store behind the cookie and preferences.

    Returns either the JSON file store or an in-memory store
    based on settings.
    """
    global _preference_store

    if _preference_store is None:
        _preference_store = create_preference_store(
            path=settings.preferences_path,
            mock_mode=settings.preferences_mock_mode,
        )
    return _preference_store


def get_session_store(
    preferences: Annotated[PreferenceStore, Depends(get_preference_store)],
) -> SessionStore:
    """Provide the single session store for this process."""
    global _session_store

    if _session_store is None:
        _session_store = SessionStore(preferences)
        logger.info("Created session store")
    return _session_store


def get_user_preferences(
    preferences: Annotated[PreferenceStore, Depends(get_preference_store)],
) -> UserPreferences:
    return UserPreferences(preferences)


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_visualcoaching_client(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> VisualCoachingClient:
    """
    Provide the vendor client.

    One client is reused across requests so its connection pool is too.
    """
    global _visualcoaching_client

    if _visualcoaching_client is None:
        config = VisualCoachingConfig(
            base_url=settings.vc_base_url,
            user_agent=settings.vc_user_agent,
            timeout_seconds=settings.vc_timeout_seconds,
        )
        _visualcoaching_client = VisualCoachingClient(config, store)
        logger.info("Created Visual Coaching client", extra={"base_url": config.base_url})
    return _visualcoaching_client


def get_auth_service(
    client: Annotated[VisualCoachingClient, Depends(get_visualcoaching_client)],
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> AuthService:
    return AuthService(client, store)


def get_program_service(
    client: Annotated[VisualCoachingClient, Depends(get_visualcoaching_client)],
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> ProgramService:
    return ProgramService(client, store)


def require_vendor_session(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> str:
    """
    The current vendor cookie, or 401 so the front end shows the login page.
    """
    cookie = store.get()
    if not cookie:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please login.",
        )
    return cookie


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
UserPreferencesDep = Annotated[UserPreferences, Depends(get_user_preferences)]
VisualCoachingClientDep = Annotated[VisualCoachingClient, Depends(get_visualcoaching_client)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
ProgramServiceDep = Annotated[ProgramService, Depends(get_program_service)]
VendorSessionDep = Annotated[str, Depends(require_vendor_session)]
