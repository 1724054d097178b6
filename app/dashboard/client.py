"""HTTP client the dashboard uses to call the search API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.models import SearchMeta, to_camel

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"

SCOPE_ENDPOINTS: dict[str, str] = {
    "news": "/api/search/news",
    "companies": "/api/search/companies",
    "people": "/api/search/people",
}

SCOPE_LABELS: dict[str, str] = {
    "news": "News",
    "companies": "Company",
    "people": "People",
}


class SearchRequestError(Exception):
    """A dashboard search request failed."""


class DashboardClient:
    """Async client for the search endpoints.

    Args:
        base_url: Root URL of the API.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (e.g. ASGITransport in tests).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def search(
        self,
        scope: str,
        query: str,
        limit: int = 25,
        **params: Any,
    ) -> tuple[list[dict[str, Any]], SearchMeta | None]:
        """POST a search for one scope.

        Extra keyword arguments (regions, keywords, company_hint, headers)
        are sent with camelCase keys; None values are omitted.

        Returns:
            Tuple of (rows, meta).

        Raises:
            SearchRequestError: On transport failure, a non-success status or
                a response body that is not a search result.
        """
        if scope not in SCOPE_ENDPOINTS:
            raise ValueError(f"Unknown scope: {scope}")
        label = SCOPE_LABELS[scope]

        body: dict[str, Any] = {"query": query, "limit": limit}
        body.update({to_camel(key): value for key, value in params.items() if value is not None})

        client = await self._get_client()
        try:
            response = await client.post(SCOPE_ENDPOINTS[scope], json=body)
        except httpx.HTTPError as e:
            raise SearchRequestError(f"{label} search failed: {e}") from e

        if not response.is_success:
            message = f"{label} search failed ({response.status_code})."
            try:
                payload = response.json()
            except ValueError:
                payload = None
            error = payload.get("error") if isinstance(payload, dict) else None
            if error:
                message = f"{message} {error}"
            logger.warning(message)
            raise SearchRequestError(message)

        try:
            data = response.json()
        except ValueError as e:
            raise SearchRequestError(f"{label} search failed: response is not JSON.") from e
        if not isinstance(data, dict):
            raise SearchRequestError(f"{label} search failed: unexpected response body.")

        rows = data.get("rows") if isinstance(data.get("rows"), list) else []
        try:
            meta = SearchMeta.model_validate(data["meta"]) if data.get("meta") else None
        except PydanticValidationError as e:
            raise SearchRequestError(f"{label} search failed: invalid response meta.") from e
        return rows, meta
