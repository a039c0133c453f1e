"""Error types raised by the worklog summary engine."""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Closed set of failures the Jira client reports."""

    BAD_REQUEST = "bad_request"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCESS_DENIED = "access_denied"
    OTHER = "other"


class WorklogSummaryError(Exception):
    """Base class for user-facing errors of the tool."""


class JiraApiError(WorklogSummaryError):
    """A failed call to the Jira REST API.

    Attributes:
        kind: One of ErrorKind; callers branch on it instead of on subclasses.
        status_code: HTTP status of the response, or None for transport errors.
    """

    def __init__(self, kind: ErrorKind, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_auth_failure(self) -> bool:
        return self.kind in (ErrorKind.INVALID_CREDENTIALS, ErrorKind.ACCESS_DENIED)


class InvalidPeriodError(WorklogSummaryError):
    def __init__(self, text: str):
        super().__init__(
            f"Invalid time period '{text}'. Use a quarter (2020 Q3), "
            f"a month (2020-06, June 2020) or a day (2020-06-17)."
        )
        self.text = text


class UnsupportedFilterError(WorklogSummaryError):
    def __init__(self, name: str):
        super().__init__(f"Unsupported predefined filter '{name}'.")
        self.name = name


class UnknownUserError(WorklogSummaryError):
    def __init__(self, token: str):
        super().__init__(f"No Jira user matches '{token}'.")
        self.token = token
