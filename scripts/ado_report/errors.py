"""Error taxonomy for the report job."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    AUTH_ERROR = "auth_error"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    CLIENT_ERROR = "client_error"

    @property
    def is_transient(self) -> bool:
        return self in (
            ErrorKind.RATE_LIMITED,
            ErrorKind.SERVER_ERROR,
            ErrorKind.NETWORK_ERROR,
        )


def classify_status(status: Optional[int]) -> Optional[ErrorKind]:
    """Map an HTTP status (None = no response at all) to an error kind.

    Returns None for 2xx.
    """
    if status is None:
        return ErrorKind.NETWORK_ERROR
    if 200 <= status < 300:
        return None
    if status in (401, 403):
        return ErrorKind.AUTH_ERROR
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if 500 <= status < 600:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.CLIENT_ERROR


class ReportError(Exception):
    """Base class for all report job failures."""


class ConfigError(ReportError, ValueError):
    """Invalid or missing configuration."""


class RequestFailed(ReportError):
    """A logical request gave up, either on a fatal error or after exhausting retries."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        url: str,
        status: Optional[int] = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.url = url
        self.status = status
        self.attempts = attempts

    @property
    def is_transient(self) -> bool:
        return self.kind.is_transient


class PaginationError(ReportError):
    """The backend kept handing out continuation tokens without making progress."""


class PartialEnumerationError(ReportError):
    """A single project's teams call or a single team's members call failed.

    Recorded by the enumerator and reported in the run summary; never raised
    out of it.
    """

    def __init__(self, scope: str, project_name: str, cause: RequestFailed,
                 team_name: Optional[str] = None) -> None:
        where = project_name if team_name is None else f"{project_name}/{team_name}"
        super().__init__(f"Failed to list {scope} for {where}: {cause}")
        self.scope = scope
        self.project_name = project_name
        self.team_name = team_name
        self.cause = cause
