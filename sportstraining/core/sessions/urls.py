"""
Session URL normalization.

The vendor addresses a session with a relative URL such as
/Application/Program/Session/1474814?week=3&day=1&session=2&i=1
and is inconsistent about which query parameters it includes and in
what order. Everything here is a pure string transformation that keeps
our view of week/day/session/index consistent before a URL is shown,
deduplicated, or turned into an API key.

Query values are kept exactly as received (no decoding or re-encoding),
so a URL that passes through untouched parameters round-trips byte for byte.
"""

import re
import sys
from datetime import datetime
from typing import Iterable, Optional
from urllib.parse import urlsplit

import pendulum

from .models import SessionBrief, SessionKey

# Keys emitted first, in this order. Anything else follows alphabetically.
PREFERRED_KEY_ORDER = ("week", "day", "session", "i", "format", "version", "ad")

DEFAULT_FORMAT = "Tablet"
DEFAULT_VERSION = "2"

_SESSION_PATH = re.compile(r"/Session/(\d+)/?$", re.IGNORECASE)
_HAS_YEAR = re.compile(r"(?<!\d)\d{4}(?!\d)|(?<!\d)\d{8}(?!\d)")


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def split_url(url: str) -> tuple[str, str]:
    """Split a URL into (everything before '?', query without '?')."""
    base, _, query = url.partition("?")
    return base, query


def parse_query(query: str) -> dict[str, str]:
    """
    Parse a query string into a key -> value mapping.

    The last occurrence of a duplicate key wins. Keys are compared
    case-insensitively, so "Week=1&week=2" yields {"week": "2"} under
    whichever spelling appeared last. Parts without a key are skipped.
    """
    params: dict[str, str] = {}
    for part in query.lstrip("?").split("&"):
        part = part.strip()
        if not part:
            continue

        key, sep, value = part.partition("=")
        key = key.strip()
        if not sep or not key:
            continue

        for existing in [k for k in params if k.lower() == key.lower()]:
            del params[existing]
        params[key] = value.strip()

    return params


def _lookup(params: dict[str, str], name: str) -> Optional[str]:
    """Case-insensitive read from a parsed query."""
    for key, value in params.items():
        if key.lower() == name:
            return value
    return None


def _pop(params: dict[str, str], name: str) -> Optional[str]:
    """Remove every spelling of name, returning the surviving value."""
    value = _lookup(params, name)
    for key in [k for k in params if k.lower() == name]:
        del params[key]
    return value


def build_query(params: dict[str, str]) -> str:
    """
    Render params in the preferred key order.

    Order has no meaning to the vendor; a stable order just makes
    URLs comparable in logs.
    """
    preferred = [k for k in PREFERRED_KEY_ORDER if k in params]
    remaining = sorted(
        (k for k in params if k not in PREFERRED_KEY_ORDER),
        key=str.lower,
    )
    return "&".join(f"{k}={params[k]}" for k in preferred + remaining)


# ---------------------------------------------------------------------------
# Anchor date
# ---------------------------------------------------------------------------

def normalize_anchor_date(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a brief's start date to YYYY-MM-DD.

    Exact ISO dates pass straight through. Anything else that carries a
    year goes through pendulum's lenient parser (which accepts timestamps
    and most locale formats); only results with a calendar date count.
    Otherwise the raw string is returned unchanged.
    """
    if raw is None:
        return None

    text = raw.strip()
    if not text:
        return None

    try:
        return datetime.strptime(text, "%Y-%m-%d").strftime("%Y-%m-%d")
    except ValueError:
        pass

    # "12:00", "Thursday" or "now" would otherwise be filled in from today
    if not _HAS_YEAR.search(text):
        return raw

    try:
        parsed = pendulum.parse(text, strict=False, exact=True)
    except (ValueError, TypeError, OverflowError):
        return raw

    if isinstance(parsed, pendulum.Date):
        return parsed.to_date_string()
    return raw


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize_session_url(
    raw_url: str,
    week: Optional[int] = None,
    day: Optional[int] = None,
    date_start: Optional[str] = None,
) -> str:
    """
    Rewrite a session URL into its canonical form.

    - session and i are forced to 0: the app always opens a session
      at its first sub-item, whatever entry the list pointed at
    - format and version default to Tablet and 2
    - week and day are taken from the brief when known
    - ad (anchor date) is the brief's start date as YYYY-MM-DD
    """
    base, query = split_url(raw_url)
    params = parse_query(query)

    fmt = _pop(params, "format") or DEFAULT_FORMAT
    version = _pop(params, "version") or DEFAULT_VERSION
    existing_week = _pop(params, "week")
    existing_day = _pop(params, "day")
    existing_ad = _pop(params, "ad")
    _pop(params, "session")
    _pop(params, "i")

    canonical: dict[str, str] = {}

    week_value = str(week) if week is not None else existing_week
    if week_value is not None:
        canonical["week"] = week_value

    day_value = str(day) if day is not None else existing_day
    if day_value is not None:
        canonical["day"] = day_value

    canonical["session"] = "0"
    canonical["i"] = "0"
    canonical["format"] = fmt
    canonical["version"] = version

    anchor = normalize_anchor_date(date_start)
    if anchor is None:
        anchor = existing_ad
    if anchor is not None:
        canonical["ad"] = anchor

    canonical.update(params)
    return f"{base}?{build_query(canonical)}"


def force_first_index(raw_url: str) -> str:
    """
    Point a URL at its first sub-item without reordering anything.

    The training page's lighter variant of normalize_session_url: i is
    forced to 0 (appended when missing), format and version are appended
    only when absent, and every other parameter stays where it was.
    """
    if not raw_url or not raw_url.strip():
        return raw_url

    base, sep, query = raw_url.partition("?")
    if not sep:
        return raw_url + "?i=0"

    parts = [p.strip() for p in query.split("&") if p.strip()]

    found_index = False
    for position, part in enumerate(parts):
        if part.lower().startswith("i="):
            parts[position] = "i=0"
            found_index = True
    if not found_index:
        parts.append("i=0")

    if not any(p.lower().startswith("format=") for p in parts):
        parts.append(f"format={DEFAULT_FORMAT}")
    if not any(p.lower().startswith("version=") for p in parts):
        parts.append(f"version={DEFAULT_VERSION}")

    return base + "?" + "&".join(parts)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def session_index(url: str) -> int:
    """
    The session query value as an int, for tie-breaking.

    Absent or unparsable values sort last (sys.maxsize).
    """
    value = _lookup(parse_query(split_url(url)[1]), "session")
    if value is None:
        return sys.maxsize
    try:
        return int(value)
    except ValueError:
        return sys.maxsize


def parse_session_key(session_url: str) -> Optional[SessionKey]:
    """
    Extract the session id and position from a session URL.

    Expects /Session/{id} at the end of the path and week, day, session
    and i somewhere in the query (any order, any case). Returns None
    if any piece is missing.
    """
    if not session_url:
        return None

    parts = urlsplit(session_url.strip())
    match = _SESSION_PATH.search(parts.path)
    if not match:
        return None

    params = parse_query(parts.query)
    week = _lookup(params, "week")
    day = _lookup(params, "day")
    session = _lookup(params, "session")
    index = _lookup(params, "i")
    if not all((week, day, session, index)):
        return None

    return SessionKey(
        session_id=match.group(1),
        week=week,
        day=day,
        session=session,
        index=index,
    )


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------

def _dedupe_key(brief: SessionBrief) -> tuple[str, str]:
    return (
        (brief.client_name or "").strip().lower(),
        (brief.title or "").strip().lower(),
    )


def dedupe_briefs(briefs: Iterable[SessionBrief]) -> list[SessionBrief]:
    """
    Keep one brief per person and programme name.

    The vendor lists every sub-session of a programme separately; the
    survivor is the one with the lowest session index (the first
    occurrence wins a tie). Groups keep the order in which they were
    first seen.
    """
    winners: dict[tuple[str, str], SessionBrief] = {}
    for brief in briefs:
        key = _dedupe_key(brief)
        current = winners.get(key)
        if current is None or session_index(brief.url) < session_index(current.url):
            winners[key] = brief
    return list(winners.values())
