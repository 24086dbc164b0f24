"""
Error taxonomy shared by the client core.

Every operation boundary catches ``TimesheetError`` and turns it into status
text; authorization denials are not errors (the capability is simply absent).
"""

from __future__ import annotations

from typing import Optional


class TimesheetError(Exception):
    """Base exception for faults surfaced to the user as status text."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AuthSessionFault(TimesheetError):
    """The identity lookup itself failed (network or service fault)."""

    kind = "auth_session"


class ProfileMissing(TimesheetError):
    """Authenticated, but no profile row exists for the identity."""

    kind = "profile_missing"


class QueryFault(TimesheetError):
    """A record fetch or write returned an error from the store."""

    kind = "query"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationFault(TimesheetError):
    """A local precondition failed before any network call."""

    kind = "validation"
