"""
Session store: the single source of truth for the authentication cookie.

The vendor issues one opaque cookie at login. Every authenticated call
reads it, and a rejected call (or an explicit logout) clears it. The
store caches the value in memory and mirrors it into a persistent
key/value store so a restarted process stays logged in.

There is no locking. Writes only happen on login and on expiry, both
triggered by a single user, so last-write-wins is sufficient.
"""

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

COOKIE_KEY = "VCP_Cookie"


class PreferenceStore(Protocol):
    """
    Interface for persistent key/value storage.

    Using a Protocol here means the session store doesn't care whether
    values live in a JSON file, in memory, or in a test double.
    """

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the stored value, or default when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Delete key. Removing an absent key is not an error."""
        ...


class SessionStore:
    """
    Holder of the current session cookie.

    One instance is shared by the client and the auth use case, which
    keeps the "at most one current cookie" rule without module globals.
    """

    def __init__(self, preferences: PreferenceStore, key: str = COOKIE_KEY) -> None:
        self._preferences = preferences
        self._key = key
        self._cookie: Optional[str] = None
        self._loaded = False

    def save(self, cookie: str) -> None:
        """Store the cookie in memory and on disk, overwriting any prior value."""
        self._cookie = cookie
        self._loaded = True
        self._preferences.set(self._key, cookie)
        logger.debug("Session cookie saved", extra={"cookie_prefix": cookie[:6]})

    def get(self) -> Optional[str]:
        """Return the cached cookie, loading it from storage on first use."""
        if not self._loaded:
            self._cookie = self._preferences.get(self._key)
            self._loaded = True
        return self._cookie

    def is_logged_in(self) -> bool:
        return bool(self.get())

    def clear(self) -> None:
        """Forget the cookie everywhere. Safe to call when already cleared."""
        self._cookie = None
        self._loaded = True
        self._preferences.remove(self._key)
        logger.debug("Session cookie cleared")
