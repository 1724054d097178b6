"""Google Custom Search (CSE) gateway.

Issues paged queries to the CSE JSON API and returns raw title/link/snippet
items. The API caps each call at 10 results and only serves results up to
position 100, so larger requests are split into sequential pages using the
``start`` cursor.

Configuration (environment):
- GOOGLE_API_KEY: API key for the Custom Search JSON API
- GOOGLE_CSE_ID: Programmable search engine id (GOOGLE_SEARCH_ENGINE_ID is
  accepted as an alias)
- GOOGLE_CSE_TIMEOUT: Request timeout in seconds (default 15)
"""

from __future__ import annotations

import logging
import os
from typing import Any, AsyncIterator

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.exceptions import ConfigurationError, ProviderError
from app.models import RawSearchResult

logger = logging.getLogger(__name__)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"

API_KEY_ENV = "GOOGLE_API_KEY"
CSE_ID_ENV = "GOOGLE_CSE_ID"
CSE_ID_ALIAS_ENV = "GOOGLE_SEARCH_ENGINE_ID"

# Provider limits
MAX_RESULTS_PER_PAGE = 10
MAX_START_INDEX = 91
MAX_RESULTS_PER_QUERY = 50

# Default page ceiling for a single search (3 pages / 30 raw items)
DEFAULT_MAX_PAGES = 3

DEFAULT_TIMEOUT_SECONDS = 15.0


def _timeout_from_env() -> float:
    raw = os.getenv("GOOGLE_CSE_TIMEOUT", "")
    try:
        return float(raw) if raw else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        logger.warning(f"Invalid GOOGLE_CSE_TIMEOUT '{raw}', using {DEFAULT_TIMEOUT_SECONDS}s")
        return DEFAULT_TIMEOUT_SECONDS


class GoogleSearchService:
    """Thin async client for the Google Custom Search JSON API.

    Credentials are read from the environment unless passed explicitly.
    Missing credentials raise ConfigurationError before any request is made.
    """

    def __init__(
        self,
        api_key: str | None = None,
        cse_id: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.getenv(API_KEY_ENV, "")
        self.cse_id = (
            cse_id
            if cse_id is not None
            else os.getenv(CSE_ID_ENV) or os.getenv(CSE_ID_ALIAS_ENV, "")
        )
        self.timeout = timeout if timeout is not None else _timeout_from_env()
        self._http_client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return not self.missing_credentials()

    def missing_credentials(self) -> list[str]:
        """Names of the required environment variables that are unset."""
        missing = []
        if not self.api_key:
            missing.append(API_KEY_ENV)
        if not self.cse_id:
            missing.append(CSE_ID_ENV)
        return missing

    def ensure_configured(self) -> None:
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(missing)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch_page(
        self,
        query: str,
        start: int = 1,
        num: int = MAX_RESULTS_PER_PAGE,
    ) -> list[RawSearchResult]:
        """Fetch one page of results.

        Args:
            query: Full provider query string.
            start: 1-based index of the first result (the page cursor).
            num: Results wanted; capped to the provider maximum of 10.

        Returns:
            Raw results in provider order; empty when the page has no items.

        Raises:
            ConfigurationError: If credentials are missing.
            ProviderError: On a non-success status, timeout or transport error.
        """
        self.ensure_configured()

        params: dict[str, Any] = {
            "key": self.api_key,
            "cx": self.cse_id,
            "q": query,
            "num": max(1, min(num, MAX_RESULTS_PER_PAGE)),
        }
        if start > 1:
            params["start"] = start

        client = await self._get_client()
        try:
            response = await client.get(GOOGLE_CSE_URL, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"Google CSE timed out after {self.timeout}s (start={start})")
            raise ProviderError(504, f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.warning(f"Google CSE request error (start={start}): {e}")
            raise ProviderError(502, f"Request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Google CSE error: {response.status_code} {response.text[:200]}")
            raise ProviderError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(response.status_code, f"Invalid JSON response: {e}") from e

        items: list[RawSearchResult] = []
        for raw in data.get("items") or []:
            try:
                items.append(RawSearchResult.model_validate(raw))
            except PydanticValidationError:
                logger.debug(f"Skipping malformed Google CSE item: {raw!r}")
        return items

    async def iter_pages(
        self,
        query: str,
        count: int,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> AsyncIterator[list[RawSearchResult]]:
        """Yield pages sequentially until ``count`` raw items were requested.

        Stops early on a short page (provider exhausted), at ``max_pages``, or
        when the provider's start ceiling is reached.
        """
        target = min(count, max_pages * MAX_RESULTS_PER_PAGE)
        fetched = 0
        start = 1
        pages = 0

        while fetched < target and pages < max_pages and start <= MAX_START_INDEX:
            num = min(MAX_RESULTS_PER_PAGE, target - fetched)
            page = await self.fetch_page(query, start=start, num=num)
            pages += 1
            fetched += len(page)
            yield page

            if len(page) < num:
                break
            start += len(page)

    async def search(
        self,
        query: str,
        count: int,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> list[RawSearchResult]:
        """Collect up to ``count`` raw results across pages.

        Args:
            query: Full provider query string.
            count: Number of results wanted (1-50).
            max_pages: Page ceiling for this search.

        Returns:
            Raw results in provider order.
        """
        count = max(1, min(count, MAX_RESULTS_PER_QUERY))
        results: list[RawSearchResult] = []
        async for page in self.iter_pages(query, count, max_pages=max_pages):
            results.extend(page)

        logger.info(f"Google CSE returned {len(results)} items for {count} requested")
        return results


# Singleton
_google_search_service: GoogleSearchService | None = None


def get_google_search_service() -> GoogleSearchService:
    """Get the singleton GoogleSearchService instance."""
    global _google_search_service
    if _google_search_service is None:
        _google_search_service = GoogleSearchService()
    return _google_search_service


def reset_google_search_service() -> None:
    """Drop the singleton so the next access re-reads the environment."""
    global _google_search_service
    _google_search_service = None
