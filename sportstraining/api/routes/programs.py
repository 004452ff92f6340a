"""
Training programme endpoints.

Backs the three screens that show vendor content:
- the day's programme list
- a session's summary
- the training page, which embeds the vendor's own HTML

An expired session surfaces as SessionExpiredError and is turned into
a 401 by the application's exception handler.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from ..dependencies import AuthenticatedUser, ProgramServiceDep, UserPreferencesDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class ProgramItem(BaseModel):
    """One entry on the programme list."""
    title: str = Field(description="Session title")
    url: str = Field(description="Normalized session URL, opens the first sub-item")
    client_name: Optional[str] = Field(None, description="Athlete the session is for")
    week: int = Field(0, description="Programme week")
    day: int = Field(0, description="Day within the week")
    anchor_date: Optional[str] = Field(None, description="Session start date as sent by the vendor")


class ProgramListResponse(BaseModel):
    """The programme for one day."""
    date: str = Field(description="Day the programme is for (YYYY-MM-DD)")
    sessions: list[ProgramItem] = Field(description="Deduplicated sessions")
    show_company_logo: bool = Field(description="Whether the branded logo should be shown")


class SessionDetailResponse(BaseModel):
    """Summary of one session."""
    title: str = Field(description="Session title")
    session_name: str = Field("", description="Vendor's name for the session")
    html_summary: str = Field("", description="HTML summary of the session")
    description: str = Field("", description="Plain-text description")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ProgramListResponse,
    status_code=status.HTTP_200_OK,
    summary="List the day's sessions",
    responses={401: {"description": "Not logged in or session expired"}},
)
def list_programs(
    day: Optional[date] = Query(None, alias="date", description="Day to list, defaults to today"),
    api_key: AuthenticatedUser = None,
    programs: ProgramServiceDep = None,
    preferences: UserPreferencesDep = None,
) -> ProgramListResponse:
    """
    The user's programme for a day.

    Sub-sessions of the same programme are collapsed into a single
    entry, and vendor failures other than expiry give an empty list.
    """
    day = day or date.today()
    sessions = programs.todays_programs(day)

    return ProgramListResponse(
        date=day.isoformat(),
        sessions=[
            ProgramItem(
                title=s.title,
                url=s.url,
                client_name=s.client_name,
                week=s.week,
                day=s.day,
                anchor_date=s.anchor_date,
            )
            for s in sessions
        ],
        show_company_logo=preferences.show_company_logo,
    )


@router.get(
    "/detail",
    response_model=SessionDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a session's summary",
    responses={
        401: {"description": "Not logged in or session expired"},
        404: {"description": "URL doesn't identify a session, or the vendor has no summary"},
    },
)
def get_session_detail(
    url: str = Query(..., min_length=1, description="Session URL from the programme list"),
    api_key: AuthenticatedUser = None,
    programs: ProgramServiceDep = None,
) -> SessionDetailResponse:
    detail = programs.session_detail(url)
    if detail is None:
        logger.info("No session detail available", extra={"url": url})
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session detail not available",
        )

    return SessionDetailResponse(
        title=detail.title,
        session_name=detail.session_name,
        html_summary=detail.html_summary,
        description=detail.description,
    )


@router.get(
    "/html",
    response_class=HTMLResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a session's training page",
    responses={401: {"description": "Not logged in or session expired"}},
)
def get_training_html(
    url: str = Query(..., min_length=1, description="Session URL from the programme list"),
    api_key: AuthenticatedUser = None,
    programs: ProgramServiceDep = None,
) -> HTMLResponse:
    """
    The vendor's HTML for a session, for the front end to embed.

    The page always opens at the session's first sub-item.
    """
    return HTMLResponse(content=programs.training_html(url))
