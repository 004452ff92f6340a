"""
Domain models for training sessions.

These models represent what the app knows about a user's programme.
They have no dependencies on HTTP or JSON: the infrastructure layer
translates vendor payloads into these types at the edge.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class SessionBrief:
    """
    Summary of one scheduled workout entry, as returned by the list endpoint.

    The url is relative to the vendor's base URL and carries the
    week/day/session/index position in its query string.
    """
    title: str = ""
    url: str = ""
    client_name: Optional[str] = None
    client_group: Optional[str] = None
    week: int = 0
    day: int = 0
    date_start: Optional[str] = None
    date_end: Optional[str] = None


@dataclass
class SessionDetail:
    """Full content of one session."""
    title: str = ""
    html_summary: str = ""
    session_name: str = ""
    description: str = ""

    @property
    def body(self) -> str:
        """The richest body available: HTML summary, falling back to description."""
        return self.html_summary or self.description


@dataclass
class ProgramSession:
    """
    A session ready for the programme list.

    Produced from a SessionBrief after deduplication; url is normalized
    so the training page always opens the first sub-item.
    """
    title: str
    url: str
    client_name: Optional[str] = None
    week: int = 0
    day: int = 0
    anchor_date: Optional[str] = None


@dataclass(frozen=True)
class SessionKey:
    """
    Position of a session inside a programme.

    Frozen because keys are values: two keys with the same
    coordinates address the same session.
    """
    session_id: str
    week: str
    day: str
    session: str
    index: str

    @property
    def composite(self) -> str:
        """The vendor's "{week}:{day}:{session}:{i}" key."""
        return f"{self.week}:{self.day}:{self.session}:{self.index}"


@dataclass
class UserInfo:
    """Vendor account information, including the user's diary ids."""
    display_name: str = ""
    user_id: int = 0
    performance_diary_id: int = 0
    wellness_diary_id: int = 0

    def diary_id_for(self, diary_type: str) -> int:
        """Wellness diary when asked for it, performance diary otherwise."""
        if diary_type.lower() == "wellness":
            return self.wellness_diary_id
        return self.performance_diary_id


@dataclass
class DiaryEntry:
    """A filled-in diary: the date plus every other field as-is."""
    date: Optional[str] = None
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class DiaryField:
    """One input on a diary form."""
    name: str = ""
    label: str = ""
    type: str = "text"  # text, number, dropdown, rating, ...
    options: list[str] = field(default_factory=list)
    required: bool = False
    value: Any = None
    placeholder: str = ""
    min_value: Optional[int] = None
    max_value: Optional[int] = None


@dataclass
class DiaryForm:
    """A diary template: what the user is asked to fill in."""
    diary_id: int = 0
    title: str = "Diary"
    type: str = "unknown"  # performance, wellness
    fields: list[DiaryField] = field(default_factory=list)
    date: str = ""
    user_id: int = 0
    program_key: str = ""


def build_program_key(
    program_id: int,
    week: int,
    day: int,
    session: int = 0,
    index: int = 0,
) -> str:
    """
    Build the six-part programme key used by the diary endpoints.

    Each coordinate is zero-padded to three digits and a trailing
    ":000" segment is always present.
    """
    return f"{program_id}:{week:03d}:{day:03d}:{session:03d}:{index:03d}:000"
