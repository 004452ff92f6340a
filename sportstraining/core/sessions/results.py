"""
Result type returned by every remote call.

The vendor service fails in a handful of distinct ways and callers need
to react differently to each: an expired session means "go back to the
login page", while a malformed payload or a dropped connection means
"show an empty state". ClientResult carries that classification next to
the value, so the client never has to decide UI behaviour itself.

The value is always usable: on failure it holds the empty value the
operation promises (an empty list, an empty string, or None).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class VisualCoachingError(Exception):
    """Base class for errors raised by the Visual Coaching integration."""
    pass


class SessionExpiredError(VisualCoachingError):
    """Raised when the vendor rejects the session cookie."""

    def __init__(self, message: str = "Session expired, please login again.") -> None:
        super().__init__(message)


class ResultStatus(Enum):
    """How a remote call ended."""
    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"        # 401 or redirect to the login page
    MALFORMED = "malformed"              # response arrived but didn't parse
    TRANSPORT_FAULT = "transport_fault"  # network error or unexpected status
    NOT_FOUND = "not_found"              # nothing to fetch (e.g. unparsable URL)


@dataclass(frozen=True)
class ClientResult(Generic[T]):
    """Outcome of one remote call plus the value the caller should use."""
    status: ResultStatus
    value: T

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    @property
    def unauthorized(self) -> bool:
        return self.status is ResultStatus.UNAUTHORIZED

    def raise_for_unauthorized(self) -> T:
        """
        Return the value, or raise SessionExpiredError if the session expired.

        This is the bridge for callers that prefer the exception style:
        only expiry propagates, every other failure degrades to the value.
        """
        if self.unauthorized:
            raise SessionExpiredError()
        return self.value

    @classmethod
    def success(cls, value: T) -> "ClientResult[T]":
        return cls(ResultStatus.SUCCESS, value)

    @classmethod
    def failure(cls, status: ResultStatus, value: T) -> "ClientResult[T]":
        return cls(status, value)
