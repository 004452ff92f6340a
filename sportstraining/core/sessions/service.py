"""
Use cases behind the app's screens.

The login page, the programme list and the training page each need a
small piece of orchestration on top of the remote client: saving or
clearing the session, deduplicating and normalizing briefs, forcing
the first sub-item before loading HTML. That orchestration lives here,
framework-agnostic, so the API layer only translates results to HTTP.
"""

import logging
from datetime import date
from typing import Optional, Protocol, Union

from .models import ProgramSession, SessionBrief, SessionDetail
from .results import ClientResult, ResultStatus, SessionExpiredError
from .store import SessionStore
from .urls import dedupe_briefs, force_first_index, normalize_session_url

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class SessionClient(Protocol):
    """
    Interface for the remote training-program service.

    The services don't know about httpx or the vendor's URL scheme.
    Tests can hand in a fake that returns canned ClientResults.
    """

    def login(self, email: str, password: str) -> ClientResult[Optional[str]]:
        ...

    def list_sessions(
        self,
        day: Union[date, str],
        cookie: Optional[str] = None,
    ) -> ClientResult[list[SessionBrief]]:
        ...

    def get_session_detail(
        self,
        session_url: str,
        cookie: Optional[str] = None,
    ) -> ClientResult[Optional[SessionDetail]]:
        ...

    def get_raw_html(
        self,
        session_url: str,
        cookie: Optional[str] = None,
    ) -> ClientResult[str]:
        ...

    def reset_session(self) -> None:
        ...


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class AuthService:
    """
    Owns the session lifecycle: login creates it, logout ends it.

    Expiry is the one other way a session ends, and that happens
    inside the client when the vendor answers 401.
    """

    def __init__(self, client: SessionClient, store: SessionStore) -> None:
        self._client = client
        self._store = store

    def login(self, email: str, password: str) -> ClientResult[Optional[str]]:
        """Log in and make the returned cookie the current session."""
        if not email or not password:
            logger.info("Login attempted without credentials")
            return ClientResult.failure(ResultStatus.UNAUTHORIZED, None)

        result = self._client.login(email, password)
        if result.ok and result.value:
            self._store.save(result.value)
            logger.info("User logged in")
        else:
            logger.info("Login failed", extra={"status": result.status.value})
        return result

    def logout(self) -> None:
        self._store.clear()
        self._client.reset_session()
        logger.info("User logged out")

    def is_logged_in(self) -> bool:
        return self._store.is_logged_in()


# ---------------------------------------------------------------------------
# Programme
# ---------------------------------------------------------------------------

def to_program_session(brief: SessionBrief) -> ProgramSession:
    """Turn a brief into a list entry with a canonical URL."""
    return ProgramSession(
        title=brief.title,
        url=normalize_session_url(brief.url, brief.week, brief.day, brief.date_start),
        client_name=brief.client_name,
        week=brief.week,
        day=brief.day,
        anchor_date=brief.date_start,
    )


class ProgramService:
    """
    What the programme list and training page ask for.

    Expiry surfaces as SessionExpiredError so callers can send the user
    back to login. Every other failure degrades to an empty result.
    """

    def __init__(self, client: SessionClient, store: SessionStore) -> None:
        self._client = client
        self._store = store

    def _require_login(self) -> None:
        if not self._store.is_logged_in():
            raise SessionExpiredError("Please login to view your program.")

    def todays_programs(self, day: Optional[date] = None) -> list[ProgramSession]:
        """
        The user's sessions for a day (today by default).

        Sub-sessions of the same programme collapse into one entry,
        and every URL is normalized to open the first sub-item.
        """
        self._require_login()
        day = day or date.today()

        briefs = self._client.list_sessions(day).raise_for_unauthorized()
        unique = dedupe_briefs(briefs)

        logger.info(
            "Loaded programme",
            extra={
                "date": day.isoformat(),
                "brief_count": len(briefs),
                "unique_count": len(unique),
            }
        )
        return [to_program_session(brief) for brief in unique]

    def session_detail(self, session_url: str) -> Optional[SessionDetail]:
        """Detail for one session, or None if it can't be found."""
        self._require_login()
        return self._client.get_session_detail(session_url).raise_for_unauthorized()

    def training_html(self, session_url: str) -> str:
        """
        The vendor's own page for a session, always at its first sub-item.

        An empty page after which the store is empty means the session
        expired; an empty page with the session intact is just empty.
        """
        self._require_login()
        if not session_url:
            return ""

        url = force_first_index(session_url)
        result = self._client.get_raw_html(url)

        if result.unauthorized or (not result.value and not self._store.is_logged_in()):
            raise SessionExpiredError("Your session has expired. Please log in again.")
        return result.value
