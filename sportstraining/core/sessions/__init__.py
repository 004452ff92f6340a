"""
Training session logic.

Contains the session store, URL normalization, result types and the
use cases that sit between the API and the remote client.
"""

from .models import (
    DiaryEntry,
    DiaryField,
    DiaryForm,
    ProgramSession,
    SessionBrief,
    SessionDetail,
    SessionKey,
    UserInfo,
    build_program_key,
)
from .results import ClientResult, ResultStatus, SessionExpiredError, VisualCoachingError
from .service import AuthService, ProgramService, SessionClient
from .store import PreferenceStore, SessionStore

__all__ = [
    "DiaryEntry",
    "DiaryField",
    "DiaryForm",
    "ProgramSession",
    "SessionBrief",
    "SessionDetail",
    "SessionKey",
    "UserInfo",
    "build_program_key",
    "ClientResult",
    "ResultStatus",
    "SessionExpiredError",
    "VisualCoachingError",
    "AuthService",
    "ProgramService",
    "SessionClient",
    "PreferenceStore",
    "SessionStore",
]
