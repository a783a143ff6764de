"""Retrying HTTP client for Azure DevOps REST calls.

Every attempt produces a FetchResult. The retry loop looks at the result's
error kind to decide whether to back off and try again; the only exception
raised is the final RequestFailed once the loop gives up.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict

from scripts.ado_report.auth import build_auth_headers
from scripts.ado_report.errors import ErrorKind, RequestFailed, classify_status

logger = logging.getLogger("ado_report.http")

MIN_RETRIES = 1
MAX_RETRIES = 10


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    url: str
    status: Optional[int] = None
    kind: Optional[ErrorKind] = None
    payload: Any = None
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    error: Optional[str] = None
    attempts: int = 1

    @property
    def is_transient(self) -> bool:
        return self.kind is not None and self.kind.is_transient

    def raise_for_failure(self) -> None:
        """Escalate a failed result into RequestFailed."""
        if self.ok:
            return
        kind = self.kind or ErrorKind.CLIENT_ERROR
        status = self.status if self.status is not None else "no response"
        raise RequestFailed(
            f"GET {self.url} failed ({kind.value}, status={status}) "
            f"after {self.attempts} attempt(s): {self.error}",
            kind=kind,
            url=self.url,
            status=self.status,
            attempts=self.attempts,
        )


def _error_text(resp: requests.Response) -> str:
    text = (resp.text or "").strip()
    return text[:500] if text else (resp.reason or "")


class RetryingRequestClient:
    """GET JSON with bounded exponential backoff on transient failures."""

    def __init__(
        self,
        token: str,
        max_retries: int = 3,
        base_delay: float = 1.0,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not MIN_RETRIES <= max_retries <= MAX_RETRIES:
            raise ValueError(
                f"max_retries must be between {MIN_RETRIES} and {MAX_RETRIES}, got {max_retries}"
            )
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._timeout = timeout
        self._sleep = sleep
        self._session = session or requests.Session()
        self._session.headers.update(build_auth_headers(token))

    def __enter__(self) -> "RetryingRequestClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Drop the credential from the session and release connections."""
        self._session.headers.pop("Authorization", None)
        self._session.close()

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after the given (1-based) failed attempt."""
        return self.base_delay * (2 ** (attempt - 1))

    def fetch(self, url: str, params: Optional[dict] = None) -> Any:
        """Return the decoded JSON body, or raise RequestFailed."""
        result = self.fetch_result(url, params)
        result.raise_for_failure()
        return result.payload

    def fetch_result(self, url: str, params: Optional[dict] = None) -> FetchResult:
        """Run the retry loop and return the last attempt's result."""
        attempt = 0
        while True:
            attempt += 1
            result = replace(self._attempt(url, params), attempts=attempt)
            extra = {
                "attempt": attempt,
                "status": result.status,
                "url": url,
            }

            if result.ok:
                logger.info(
                    "GET %s -> %s (attempt %d/%d)",
                    url, result.status, attempt, self.max_retries,
                    extra={**extra, "outcome": "success"},
                )
                if attempt > 1:
                    logger.info(
                        "Request recovered after %d attempts: %s",
                        attempt, url,
                        extra={**extra, "outcome": "recovered"},
                    )
                return result

            final = not result.is_transient or attempt >= self.max_retries
            if not result.is_transient:
                outcome = "fatal"
            elif final:
                outcome = "exhausted"
            else:
                outcome = "retry"
            logger.warning(
                "GET %s failed: %s status=%s (attempt %d/%d, %s): %s",
                url, result.kind.value if result.kind else "unknown", result.status,
                attempt, self.max_retries, outcome, result.error,
                extra={**extra, "outcome": outcome},
            )
            if final:
                return result

            delay = self.backoff_delay(attempt)
            logger.info("Backing off %.1fs before retrying %s", delay, url)
            self._sleep(delay)

    def _attempt(self, url: str, params: Optional[dict]) -> FetchResult:
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            return FetchResult(
                ok=False, url=url, kind=ErrorKind.NETWORK_ERROR, error=str(exc)
            )

        headers = CaseInsensitiveDict(resp.headers or {})
        kind = classify_status(resp.status_code)
        if kind is not None:
            return FetchResult(
                ok=False,
                url=url,
                status=resp.status_code,
                kind=kind,
                headers=headers,
                error=_error_text(resp),
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            return FetchResult(
                ok=False,
                url=url,
                status=resp.status_code,
                kind=ErrorKind.CLIENT_ERROR,
                headers=headers,
                error=f"Response body is not valid JSON: {exc}",
            )
        return FetchResult(
            ok=True, url=url, status=resp.status_code, payload=payload, headers=headers
        )
