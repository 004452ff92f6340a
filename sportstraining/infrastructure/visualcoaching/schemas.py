"""
Wire schemas for Visual Coaching responses.

Every field we read from the vendor is declared here, with the vendor's
PascalCase names as aliases. Fields the vendor leaves out (it often
does) fall back to None or an empty default instead of failing the
whole response. Each schema knows how to become a domain model, so
nothing outside this package sees the vendor's naming.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ...core.sessions.models import (
    DiaryField,
    DiaryForm,
    SessionBrief,
    SessionDetail,
    UserInfo,
)


class VendorModel(BaseModel):
    """Base for vendor payloads: tolerant of extra fields and either naming."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LoginResponse(VendorModel):
    user_id: Optional[str] = Field(default=None, alias="UserId")
    name: Optional[str] = Field(default=None, alias="Name")
    cookie: Optional[str] = Field(default=None, alias="Cookie")


class SessionBriefSchema(VendorModel):
    url: Optional[str] = Field(default=None, alias="Url")
    session_title: Optional[str] = Field(default=None, alias="SessionTitle")
    client_name: Optional[str] = Field(default=None, alias="ClientName")
    client_group: Optional[str] = Field(default=None, alias="ClientGroup")
    week: Optional[int] = Field(default=None, alias="Week")
    day: Optional[int] = Field(default=None, alias="Day")
    date_start: Optional[str] = Field(default=None, alias="DateStart")
    date_end: Optional[str] = Field(default=None, alias="DateEnd")

    def to_domain(self) -> SessionBrief:
        return SessionBrief(
            title=self.session_title or "",
            url=self.url or "",
            client_name=self.client_name,
            client_group=self.client_group,
            week=self.week or 0,
            day=self.day or 0,
            date_start=self.date_start,
            date_end=self.date_end,
        )


class SessionListEnvelope(VendorModel):
    sessions: Optional[list[SessionBriefSchema]] = None


class SessionDetailSchema(VendorModel):
    session_title: Optional[str] = Field(default=None, alias="SessionTitle")
    html_summary: Optional[str] = Field(default=None, alias="HtmlSummary")
    session_name: Optional[str] = Field(default=None, alias="SessionName")
    description: Optional[str] = Field(default=None, alias="Description")

    def to_domain(self) -> SessionDetail:
        return SessionDetail(
            title=self.session_title or "",
            html_summary=self.html_summary or "",
            session_name=self.session_name or "",
            description=self.description or "",
        )


class UserInfoSchema(VendorModel):
    display_name: Optional[str] = Field(default=None, alias="DisplayName")
    user_id: Optional[int] = Field(default=None, alias="UserId")
    performance_diary_id: Optional[int] = Field(default=None, alias="PerformanceDiaryId")
    wellness_diary_id: Optional[int] = Field(default=None, alias="WellnessDiaryId")

    def to_domain(self) -> UserInfo:
        return UserInfo(
            display_name=self.display_name or "",
            user_id=self.user_id or 0,
            performance_diary_id=self.performance_diary_id or 0,
            wellness_diary_id=self.wellness_diary_id or 0,
        )


def _lenient_int(value: Any) -> Optional[int]:
    """Numbers and numeric strings become ints; anything else is dropped."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class DiaryFieldSchema(VendorModel):
    """
    One input on a diary template.

    Coaches build these forms by hand, so labels and names may arrive
    as numbers and flags as "true"/"false" strings.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    name: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = None
    options: Optional[list[Optional[str]]] = None
    required: Optional[bool] = None
    placeholder: Optional[str] = None
    min_value: Optional[int] = Field(default=None, alias="minValue")
    max_value: Optional[int] = Field(default=None, alias="maxValue")

    @field_validator("min_value", "max_value", mode="before")
    @classmethod
    def _bounds(cls, value: Any) -> Optional[int]:
        return _lenient_int(value)

    @field_validator("options", mode="before")
    @classmethod
    def _options(cls, value: Any) -> Optional[list[Any]]:
        return value if isinstance(value, list) else None

    def to_domain(self) -> DiaryField:
        return DiaryField(
            name=self.name or "",
            label=self.label or "",
            type=self.type or "text",
            options=[o if o is not None else "" for o in self.options or []],
            required=bool(self.required),
            placeholder=self.placeholder or "",
            min_value=self.min_value,
            max_value=self.max_value,
        )


class DiaryTemplateSchema(VendorModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    diary_id: Optional[int] = Field(default=None, alias="diaryId")
    title: Optional[str] = None
    type: Optional[str] = None
    form_fields: list[DiaryFieldSchema] = Field(default_factory=list, alias="fields")

    @field_validator("diary_id", mode="before")
    @classmethod
    def _diary_id(cls, value: Any) -> Optional[int]:
        return _lenient_int(value)

    @field_validator("form_fields", mode="before")
    @classmethod
    def _fields(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    def to_domain(self) -> DiaryForm:
        return DiaryForm(
            diary_id=self.diary_id or 0,
            title=self.title or "Diary",
            type=self.type or "unknown",
            fields=[f.to_domain() for f in self.form_fields],
        )


_BRIEF_LIST = TypeAdapter(list[SessionBriefSchema])


def parse_session_list(body: str) -> Optional[list[SessionBrief]]:
    """
    Parse a session list in either of the vendor's two shapes.

    A bare JSON array is tried first; if that fails, an object with a
    "sessions" array. Returns None when neither shape fits.
    """
    try:
        return [item.to_domain() for item in _BRIEF_LIST.validate_json(body)]
    except ValidationError:
        pass

    try:
        envelope = SessionListEnvelope.model_validate_json(body)
    except ValidationError:
        return None

    if envelope.sessions is None:
        return None
    return [item.to_domain() for item in envelope.sessions]


def parse_login_cookie(body: str) -> Optional[str]:
    """The Cookie field of a login response, or None if absent/unparsable."""
    try:
        payload = json.loads(body)
    except ValueError:
        return None

    if not isinstance(payload, dict):
        return None

    try:
        response = LoginResponse.model_validate(payload)
    except ValidationError:
        return None
    return response.cookie or None
