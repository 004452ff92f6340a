"""
Training diary endpoints.

Coaches attach performance and wellness diaries to a programme. These
routes read a diary's template, read what the user entered for a given
programme day, and submit new entries.
"""

import logging
from datetime import date
from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from ...core.sessions.models import build_program_key
from ...core.sessions.results import ClientResult, ResultStatus, SessionExpiredError
from ...infrastructure.visualcoaching.diary import parse_diary_entry, parse_diary_template
from ..dependencies import AuthenticatedUser, VendorSessionDep, VisualCoachingClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class DiaryFieldItem(BaseModel):
    name: str
    label: str = ""
    type: str = "text"
    options: list[str] = []
    required: bool = False
    placeholder: str = ""
    min_value: Optional[int] = None
    max_value: Optional[int] = None


class DiaryTemplateResponse(BaseModel):
    """The form a diary asks the user to fill in."""
    diary_id: int
    title: str
    type: str
    fields: list[DiaryFieldItem]


class DiaryEntryResponse(BaseModel):
    """What the user entered in a diary for one programme day."""
    date: Optional[str] = None
    fields: dict[str, Any] = Field(default_factory=dict)


class DiarySubmitRequest(BaseModel):
    """A filled-in diary for one programme day."""
    diary_id: int = Field(gt=0)
    user_id: int = Field(gt=0)
    date: date
    program_id: int = Field(gt=0)
    week: int = Field(ge=0)
    day: int = Field(ge=0)
    session: int = Field(0, ge=0)
    index: int = Field(0, ge=0)
    fields: dict[str, Any] = Field(default_factory=dict)


class DiarySubmitResponse(BaseModel):
    accepted: bool
    program_key: str


def _raise_for_failure(result: ClientResult, not_found: str) -> None:
    """Map a failed client result to the matching HTTP error."""
    if result.status is ResultStatus.UNAUTHORIZED:
        raise SessionExpiredError()
    if result.status is ResultStatus.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Visual Coaching did not return a usable response.",
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/templates/{diary_id}",
    response_model=DiaryTemplateResponse,
    summary="Get a diary's form",
)
def get_template(
    diary_id: int,
    api_key: AuthenticatedUser = None,
    cookie: VendorSessionDep = None,
    client: VisualCoachingClientDep = None,
) -> DiaryTemplateResponse:
    result = client.get_diary_template(diary_id, cookie)
    if not result.ok:
        _raise_for_failure(result, "Diary template not found")

    form = parse_diary_template(result.value)
    if form is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Unreadable diary template")

    return DiaryTemplateResponse(
        diary_id=form.diary_id or diary_id,
        title=form.title,
        type=form.type,
        fields=[
            DiaryFieldItem(
                name=f.name,
                label=f.label,
                type=f.type,
                options=f.options,
                required=f.required,
                placeholder=f.placeholder,
                min_value=f.min_value,
                max_value=f.max_value,
            )
            for f in form.fields
        ],
    )


@router.get(
    "/entries",
    response_model=DiaryEntryResponse,
    summary="Get a diary entry for a programme day",
)
def get_entry(
    email: str = Query(..., min_length=3),
    day: date = Query(..., alias="date"),
    program_id: int = Query(..., gt=0),
    week: int = Query(..., ge=0),
    day_number: int = Query(..., ge=0),
    diary_type: Literal["performance", "wellness"] = Query("performance"),
    session: int = Query(0, ge=0),
    index: int = Query(0, ge=0),
    api_key: AuthenticatedUser = None,
    cookie: VendorSessionDep = None,
    client: VisualCoachingClientDep = None,
) -> DiaryEntryResponse:
    """
    Look up the user's diary by email and return the entry.

    The performance diary is used unless the wellness one is asked for.
    """
    result = client.get_diary_data_by_email(
        email,
        day,
        program_id,
        week,
        day_number,
        diary_type=diary_type,
        session=session,
        index=index,
        cookie=cookie,
    )
    if not result.ok:
        _raise_for_failure(result, "Diary not found")

    entry = parse_diary_entry(result.value)
    if entry is None:
        return DiaryEntryResponse()
    return DiaryEntryResponse(date=entry.date, fields=entry.fields)


@router.post(
    "/entries",
    response_model=DiarySubmitResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit a diary entry",
)
def submit_entry(
    request: DiarySubmitRequest,
    api_key: AuthenticatedUser = None,
    cookie: VendorSessionDep = None,
    client: VisualCoachingClientDep = None,
) -> DiarySubmitResponse:
    program_key = build_program_key(
        request.program_id, request.week, request.day, request.session, request.index
    )
    result = client.submit_diary_data(
        request.diary_id,
        request.user_id,
        request.date,
        program_key,
        request.fields,
        cookie=cookie,
    )
    if result.unauthorized:
        raise SessionExpiredError()

    logger.info(
        "Diary submitted",
        extra={"diary_id": request.diary_id, "accepted": result.value}
    )
    return DiarySubmitResponse(accepted=result.value, program_key=program_key)
