"""
Visual Coaching API client.

This module provides a thin wrapper around the vendor's HTTP endpoints that:
1. Implements our SessionClient protocol
2. Attaches the session cookie and user agent to every call
3. Detects session expiry (401, or a redirect to the login page)
4. Translates vendor payloads into domain models

Nothing here raises for an ordinary failure. Every operation returns a
ClientResult whose status says what happened and whose value is the
empty result the caller should show. Expiry also clears the session
store, so the rest of the app sees the user as logged out.

Redirects are never followed: a 302 to /Account/Logon is how the vendor
says "session expired" on most pages, and following it would turn that
into a 200 login form.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Union
from urllib.parse import urlsplit, urlunsplit

import httpx
from pydantic import ValidationError

from ...core.sessions.models import SessionBrief, SessionDetail, UserInfo, build_program_key
from ...core.sessions.results import ClientResult, ResultStatus, SessionExpiredError
from ...core.sessions.store import SessionStore
from ...core.sessions.urls import parse_session_key
from .schemas import (
    SessionDetailSchema,
    UserInfoSchema,
    parse_login_cookie,
    parse_session_list,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://cloud.visualcoaching2.com"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SportsTrainingApp/1.0)"
COOKIE_NAME = ".VCPCOOKIES"

LOGIN_PATH = "/api/2/Account/Logon"
PROGRAM_PATH = "/Application/Program/"
SUMMARY_PATH = "/api/2/Program/Summary2"
USER_INFO_PATH = "/Application/Client/GetUserInfo"
DIARY_FORM_PATH = "/api/2/Form/GetForm"
DIARY_SUBMIT_PATH = "/api/2/Form/SubmitForm"
DIARY_TEMPLATE_PATH = "/api/2/Form/GetTemplate"

_LOGIN_REDIRECT_STATUSES = {302, 303, 307}
_LOGIN_PAGE_MARKERS = ("account/logon", 'name="user"', 'name="password"')


@dataclass
class VisualCoachingConfig:
    """
    Configuration for the Visual Coaching client.

    timeout_seconds of None keeps httpx's default timeout.
    """
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.base_url = self.base_url.rstrip("/")


def format_day(day: Union[date, str]) -> str:
    """Render a date the way the vendor expects it (yyyy-MM-dd)."""
    if isinstance(day, date):
        return day.strftime("%Y-%m-%d")
    return str(day)


def is_redirect_to_login(response: httpx.Response) -> bool:
    if response.status_code not in _LOGIN_REDIRECT_STATUSES:
        return False
    return "/account/logon" in response.headers.get("location", "").lower()


def looks_like_login_page(html: str) -> bool:
    """True when a 200 response is really the vendor's login form."""
    if not html or not html.strip():
        return False
    lowered = html.lower()
    return any(marker in lowered for marker in _LOGIN_PAGE_MARKERS)


def vendor_relative_url(url: str, base_url: str) -> Optional[str]:
    """
    The path and query of a URL on the vendor's host, or None.

    Relative URLs must start with a single "/". Absolute URLs are only
    accepted when scheme and host match base_url. Anything else would
    carry the session cookie to another host.
    """
    if not url or not url.strip():
        return None

    parts = urlsplit(url.strip())
    if parts.scheme or parts.netloc:
        base = urlsplit(base_url)
        same_origin = (
            parts.scheme.lower() == base.scheme.lower()
            and parts.netloc.lower() == base.netloc.lower()
        )
        if not same_origin:
            return None
    elif not parts.path.startswith("/"):
        return None

    return urlunsplit(("", "", parts.path or "/", parts.query, ""))


class VisualCoachingClient:
    """
    Implementation of SessionClient against the Visual Coaching service.

    The client reads the cookie from the session store unless one is
    passed explicitly, and clears the store when the vendor rejects it.
    It never saves cookies itself: that belongs to the login use case.
    """

    def __init__(
        self,
        config: VisualCoachingConfig,
        store: SessionStore,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._store = store

        options: dict[str, Any] = {
            "base_url": config.base_url,
            "follow_redirects": False,
            "headers": {"User-Agent": config.user_agent},
        }
        if config.timeout_seconds is not None:
            options["timeout"] = config.timeout_seconds
        if transport is not None:
            options["transport"] = transport

        self._http = httpx.Client(**options)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "VisualCoachingClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # Plumbing
    # -----------------------------------------------------------------------

    def _cookie_header(self, cookie: Optional[str]) -> dict[str, str]:
        value = cookie if cookie is not None else (self._store.get() or "")
        if not value:
            return {}
        return {"Cookie": f"{COOKIE_NAME}={value}"}

    def reset_session(self) -> None:
        """Forget cookies the vendor set on this client (logout, expiry)."""
        self._http.cookies.clear()

    def _expire(self, operation: str) -> None:
        logger.warning("Session expired", extra={"operation": operation})
        self._store.clear()
        self.reset_session()

    def _send(
        self,
        operation: str,
        method: str,
        url: str,
        cookie: Optional[str],
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send an authenticated request.

        Raises SessionExpiredError (after clearing the store) when the
        vendor rejects the session, httpx.HTTPError on transport faults.
        The status of any other response is left for the caller.
        """
        headers = self._cookie_header(cookie)
        logger.debug("Calling Visual Coaching", extra={"operation": operation, "url": url})

        response = self._http.request(method, url, headers=headers, **kwargs)

        if response.status_code == 401 or is_redirect_to_login(response):
            self._expire(operation)
            raise SessionExpiredError()
        return response

    def _get_text(
        self,
        operation: str,
        url: str,
        cookie: Optional[str],
        params: Optional[dict[str, Any]] = None,
    ) -> ClientResult[Optional[str]]:
        """GET an endpoint whose body callers want verbatim."""
        try:
            response = self._send(operation, "GET", url, cookie, params=params)
            response.raise_for_status()
        except SessionExpiredError:
            return ClientResult.failure(ResultStatus.UNAUTHORIZED, None)
        except httpx.HTTPError as e:
            logger.error(f"{operation} failed", extra={"error": str(e)})
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, None)

        logger.debug(f"{operation} succeeded", extra={"length": len(response.text)})
        return ClientResult.success(response.text)

    # -----------------------------------------------------------------------
    # Sessions
    # -----------------------------------------------------------------------

    def login(self, email: str, password: str) -> ClientResult[Optional[str]]:
        """
        Exchange credentials for a session cookie.

        The vendor puts the cookie in the JSON body on newer accounts and
        only in Set-Cookie on older ones, so both are checked.
        """
        try:
            response = self._http.post(
                LOGIN_PATH,
                data={"user": email, "password": password},
            )
        except httpx.HTTPError as e:
            logger.error("Login request failed", extra={"error": str(e)})
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, None)

        if not response.is_success:
            logger.info("Login rejected", extra={"status": response.status_code})
            if response.status_code in (401, 403) or is_redirect_to_login(response):
                return ClientResult.failure(ResultStatus.UNAUTHORIZED, None)
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, None)

        cookie = parse_login_cookie(response.text)
        if cookie:
            logger.info("Login cookie found in response body")
            return ClientResult.success(cookie)

        for header in response.headers.get_list("set-cookie"):
            if not header.startswith(COOKIE_NAME):
                continue
            value = header.split(";", 1)[0].partition("=")[2]
            if value:
                logger.info("Login cookie found in Set-Cookie header")
                return ClientResult.success(value)

        logger.warning("No cookie found in login response")
        return ClientResult.failure(ResultStatus.MALFORMED, None)

    def list_sessions(
        self,
        day: Union[date, str],
        cookie: Optional[str] = None,
    ) -> ClientResult[list[SessionBrief]]:
        """Sessions scheduled for one day, in the vendor's order."""
        params = {
            "date": format_day(day),
            "current": "true",
            "version": "2",
            "today": "true",
            "format": "Tablet",
            "json": "true",
            "requireSortFilters": "true",
            "client": "",
        }

        try:
            response = self._send("list_sessions", "GET", PROGRAM_PATH, cookie, params=params)
            response.raise_for_status()
        except SessionExpiredError:
            return ClientResult.failure(ResultStatus.UNAUTHORIZED, [])
        except httpx.HTTPError as e:
            logger.error("Listing sessions failed", extra={"date": params["date"], "error": str(e)})
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, [])

        briefs = parse_session_list(response.text)
        if briefs is None:
            logger.warning(
                "Unrecognised session list shape",
                extra={"date": params["date"], "body_start": response.text[:200]}
            )
            return ClientResult.failure(ResultStatus.MALFORMED, [])

        logger.debug("Listed sessions", extra={"date": params["date"], "count": len(briefs)})
        return ClientResult.success(briefs)

    def get_session_detail(
        self,
        session_url: str,
        cookie: Optional[str] = None,
    ) -> ClientResult[Optional[SessionDetail]]:
        """
        Detail for the session a list URL points at.

        The URL's id and week/day/session/i become the Summary2 key.
        A URL that doesn't carry all of them never reaches the network.
        Only the numeric id and the key leave this method, so the request
        always goes to the vendor's Summary2 path whatever host the URL names.
        """
        key = parse_session_key(session_url)
        if key is None:
            logger.info("Session URL has no usable key", extra={"url": session_url})
            return ClientResult.failure(ResultStatus.NOT_FOUND, None)

        url = f"{SUMMARY_PATH}/{key.session_id}?key={key.composite}"

        try:
            response = self._send("get_session_detail", "GET", url, cookie)
            response.raise_for_status()
        except SessionExpiredError:
            return ClientResult.failure(ResultStatus.UNAUTHORIZED, None)
        except httpx.HTTPError as e:
            logger.error("Fetching session detail failed", extra={"url": url, "error": str(e)})
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, None)

        try:
            detail = SessionDetailSchema.model_validate_json(response.text)
        except ValidationError as e:
            logger.warning("Unrecognised session detail", extra={"url": url, "error": str(e)})
            return ClientResult.failure(ResultStatus.MALFORMED, None)

        return ClientResult.success(detail.to_domain())

    def get_raw_html(
        self,
        session_url: str,
        cookie: Optional[str] = None,
    ) -> ClientResult[str]:
        """
        The vendor's own HTML page for a session.

        Expiry yields an empty string with an UNAUTHORIZED status. A
        200 that turns out to be the login form counts as expiry too.
        A URL off the vendor's host is NOT_FOUND and never requested.
        """
        url = vendor_relative_url(session_url, self._config.base_url)
        if url is None:
            logger.warning("Refusing session URL outside the vendor", extra={"url": session_url})
            return ClientResult.failure(ResultStatus.NOT_FOUND, "")

        try:
            response = self._send("get_raw_html", "GET", url, cookie)
        except SessionExpiredError:
            return ClientResult.failure(ResultStatus.UNAUTHORIZED, "")
        except httpx.HTTPError as e:
            logger.error("Fetching session HTML failed", extra={"url": session_url, "error": str(e)})
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, "")

        if not response.is_success:
            logger.error(
                "Fetching session HTML failed",
                extra={"url": session_url, "status": response.status_code}
            )
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, "")

        content = response.text
        if looks_like_login_page(content):
            self._expire("get_raw_html")
            return ClientResult.failure(ResultStatus.UNAUTHORIZED, "")

        logger.debug("Fetched session HTML", extra={"url": session_url, "start": content[:200]})
        return ClientResult.success(content)

    # -----------------------------------------------------------------------
    # Diary
    # -----------------------------------------------------------------------

    def get_user_info(
        self,
        email: str,
        cookie: Optional[str] = None,
    ) -> ClientResult[Optional[UserInfo]]:
        """Account details, including diary ids, for an email address."""
        result = self._get_text("get_user_info", USER_INFO_PATH, cookie, params={"email": email})
        if not result.ok:
            return ClientResult.failure(result.status, None)

        if not result.value or not result.value.strip():
            logger.info("No user info returned", extra={"email": email})
            return ClientResult.failure(ResultStatus.NOT_FOUND, None)

        try:
            info = UserInfoSchema.model_validate_json(result.value)
        except ValidationError as e:
            logger.warning("Unrecognised user info", extra={"error": str(e)})
            return ClientResult.failure(ResultStatus.MALFORMED, None)

        return ClientResult.success(info.to_domain())

    def get_diary_data(
        self,
        diary_id: int,
        day: Union[date, str],
        user_id: int,
        program_key: str,
        cookie: Optional[str] = None,
    ) -> ClientResult[Optional[str]]:
        """Raw diary JSON for one user, day and programme position."""
        params = {
            "date": format_day(day),
            "userId": user_id,
            "programKey": program_key,
            "matchTemplateId": "false",
            "createNew": "false",
        }
        return self._get_text("get_diary_data", f"{DIARY_FORM_PATH}/{diary_id}", cookie, params=params)

    def get_diary_data_by_email(
        self,
        email: str,
        day: Union[date, str],
        program_id: int,
        week: int,
        day_number: int,
        diary_type: str = "performance",
        session: int = 0,
        index: int = 0,
        cookie: Optional[str] = None,
    ) -> ClientResult[Optional[str]]:
        """
        Diary data looked up by email instead of ids.

        Resolves the user and the requested diary (performance unless
        "wellness" is asked for) before fetching.
        """
        user = self.get_user_info(email, cookie)
        if not user.ok or user.value is None:
            return ClientResult.failure(user.status, None)

        diary_id = user.value.diary_id_for(diary_type)
        if diary_id <= 0:
            logger.info("User has no diary of this type", extra={"diary_type": diary_type})
            return ClientResult.failure(ResultStatus.NOT_FOUND, None)

        program_key = build_program_key(program_id, week, day_number, session, index)
        return self.get_diary_data(diary_id, day, user.value.user_id, program_key, cookie)

    def submit_diary_data(
        self,
        diary_id: int,
        user_id: int,
        day: Union[date, str],
        program_key: str,
        fields: dict[str, Any],
        cookie: Optional[str] = None,
    ) -> ClientResult[bool]:
        """Submit a filled-in diary. The value is True iff the vendor accepted it."""
        payload: dict[str, Any] = {
            "date": format_day(day),
            "userId": user_id,
            "programKey": program_key,
            "diaryId": diary_id,
        }
        payload.update(fields)

        try:
            response = self._send("submit_diary_data", "POST", DIARY_SUBMIT_PATH, cookie, json=payload)
        except SessionExpiredError:
            return ClientResult.failure(ResultStatus.UNAUTHORIZED, False)
        except httpx.HTTPError as e:
            logger.error("Submitting diary failed", extra={"error": str(e)})
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, False)

        if not response.is_success:
            logger.error("Diary submission rejected", extra={"status": response.status_code})
            return ClientResult.failure(ResultStatus.TRANSPORT_FAULT, False)

        return ClientResult.success(True)

    def get_diary_template(
        self,
        diary_id: int,
        cookie: Optional[str] = None,
    ) -> ClientResult[Optional[str]]:
        """Raw template JSON describing a diary's form."""
        return self._get_text("get_diary_template", f"{DIARY_TEMPLATE_PATH}/{diary_id}", cookie)

    def get_raw_api(
        self,
        url: str,
        cookie: Optional[str] = None,
    ) -> ClientResult[str]:
        """
        GET any vendor URL (absolute or relative) with the session attached.

        Absolute URLs on another host are NOT_FOUND and never requested.
        """
        relative = vendor_relative_url(url, self._config.base_url)
        if relative is None:
            logger.warning("Refusing URL outside the vendor", extra={"url": url})
            return ClientResult.failure(ResultStatus.NOT_FOUND, "")

        result = self._get_text("get_raw_api", relative, cookie)
        return ClientResult(result.status, result.value or "")


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_visualcoaching_client(
    store: SessionStore,
    base_url: Optional[str] = None,
    user_agent: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> VisualCoachingClient:
    """
    Factory function to create a configured client.

    Unset arguments fall back to the vendor's production defaults.
    """
    config = VisualCoachingConfig(
        base_url=base_url or DEFAULT_BASE_URL,
        user_agent=user_agent or DEFAULT_USER_AGENT,
        timeout_seconds=timeout_seconds,
    )
    return VisualCoachingClient(config, store, transport=transport)
