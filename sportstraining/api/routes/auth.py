"""
Vendor login endpoints.

The front end never sees the Visual Coaching cookie: it sends the
user's credentials here once, and from then on the server holds the
session. A 401 from any other route means "show the login page".
"""

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ...core.sessions.results import ResultStatus
from ..dependencies import AuthenticatedUser, AuthServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    """Credentials for the Visual Coaching account."""
    email: str = Field(description="Account email address", min_length=1)
    password: str = Field(description="Account password", min_length=1)


class AuthStatusResponse(BaseModel):
    """Whether a vendor session is currently held."""
    logged_in: bool = Field(description="True when a session cookie is stored")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/login",
    response_model=AuthStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in to Visual Coaching",
    responses={
        401: {"description": "Credentials rejected"},
        502: {"description": "Visual Coaching unreachable or returned no session"},
    },
)
def login(
    request: LoginRequest,
    api_key: AuthenticatedUser = None,
    auth: AuthServiceDep = None,
) -> AuthStatusResponse:
    """
    Log in with the user's credentials and keep the session.

    Wrong credentials are a 401. Anything else that stops us getting a
    cookie (vendor down, unexpected response) is a 502, so the front end
    can tell "try again" apart from "check your password".
    """
    result = auth.login(request.email, request.password)

    if result.ok:
        return AuthStatusResponse(logged_in=True)

    if result.status is ResultStatus.UNAUTHORIZED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Login failed. Please try again later.",
    )


@router.post(
    "/logout",
    response_model=AuthStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Log out",
)
async def logout(
    api_key: AuthenticatedUser = None,
    auth: AuthServiceDep = None,
) -> AuthStatusResponse:
    """Forget the vendor session. Safe to call when already logged out."""
    auth.logout()
    return AuthStatusResponse(logged_in=False)


@router.get(
    "/status",
    response_model=AuthStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Check login state",
)
async def auth_status(
    api_key: AuthenticatedUser = None,
    auth: AuthServiceDep = None,
) -> AuthStatusResponse:
    return AuthStatusResponse(logged_in=auth.is_logged_in())
