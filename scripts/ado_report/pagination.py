"""Continuation-token pagination over a RetryingRequestClient."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from scripts.ado_report.errors import PaginationError
from scripts.ado_report.http_client import FetchResult, RetryingRequestClient

logger = logging.getLogger("ado_report.pagination")

T = TypeVar("T")

TOKEN_PARAM = "continuationToken"
TOKEN_HEADER = "x-ms-continuationtoken"


def _identity(item: Any) -> Any:
    return item


class PagedCollectionFetcher(Generic[T]):
    """Follow continuation tokens until the backend says there is nothing left.

    Stops at the first page that carries no token, or at the first page with no
    items at all. The result is the concatenation of page payloads in fetch
    order.
    """

    def __init__(
        self,
        client: RetryingRequestClient,
        items_key: str = "value",
        decode: Optional[Callable[[dict], Optional[T]]] = None,
        max_pages: int = 10_000,
    ) -> None:
        self._client = client
        self._items_key = items_key
        self._decode = decode or _identity
        self._max_pages = max_pages

    def fetch_all(self, base_url: str, params: Optional[dict] = None) -> list[T]:
        results: list[T] = []
        seen_tokens: set[str] = set()
        token: Optional[str] = None
        page = 0

        while True:
            page += 1
            if page > self._max_pages:
                raise PaginationError(
                    f"Gave up on {base_url} after {self._max_pages} pages"
                )

            page_params = dict(params or {})
            if token:
                page_params[TOKEN_PARAM] = token
            result = self._client.fetch_result(base_url, page_params)
            result.raise_for_failure()

            items = self._items(result)
            if not items:
                logger.info("Empty page %d from %s, stopping", page, base_url)
                break

            results.extend(self._decode_items(items, base_url))

            token = self._next_token(result)
            logger.info(
                "Fetched page %d from %s (%d items, %d total)",
                page, base_url, len(items), len(results),
                extra={"records": len(results)},
            )
            if not token:
                break
            if token in seen_tokens:
                raise PaginationError(
                    f"Continuation token repeated on page {page} of {base_url}"
                )
            seen_tokens.add(token)

        return results

    def _items(self, result: FetchResult) -> list[Any]:
        payload = result.payload
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            items = payload.get(self._items_key)
            if isinstance(items, list):
                return items
        return []

    def _decode_items(self, items: list[Any], base_url: str) -> list[T]:
        decoded: list[T] = []
        for item in items:
            record = self._decode(item) if isinstance(item, dict) else None
            if record is None:
                logger.warning("Dropping undecodable item from %s: %r", base_url, item)
                continue
            decoded.append(record)
        return decoded

    @staticmethod
    def _next_token(result: FetchResult) -> Optional[str]:
        token = None
        if isinstance(result.payload, dict):
            token = result.payload.get(TOKEN_PARAM)
        if not token:
            token = result.headers.get(TOKEN_HEADER)
        return token or None
