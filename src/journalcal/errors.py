from __future__ import annotations


class CalendarError(Exception):
    """Base class for calendar fetch failures."""


class CalendarFetchError(CalendarError):
    """A calendar source or the iCal proxy answered with a non-success response."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthExpiredError(CalendarError):
    """The Google access token was rejected; the stored token has been cleared."""

    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "TOKEN_EXPIRED") -> None:
        super().__init__(message)
