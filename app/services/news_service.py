"""News search backed by Google CSE with a deterministic fallback.

Provider failures never surface to the caller: missing credentials or a
provider error are logged and the result set is filled with generated
fallback items instead.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlsplit

from app.exceptions import SearchError
from app.models import DEFAULT_NEWS_SCORE, NewsItem, NewsRow, RawSearchResult
from app.services.extraction import (
    extract_published_date,
    guess_company_from_title,
    normalize_url,
    stable_id,
)
from app.services.google_search_service import GoogleSearchService
from app.services.news_fallback import generate_fallback_news

logger = logging.getLogger(__name__)

NEWS_QUERY_TERMS = os.getenv("NEWS_QUERY_TERMS", "news fintech device financing telco bnpl")

# The provider serves results up to position 100
NEWS_MAX_PAGES = 10

NEWS_HEADERS: list[str] = ["Title", "Source", "Date", "Match", "Significance", "Relevance", "Summary"]

# Headers every news row carries regardless of the configured list
REQUIRED_NEWS_HEADERS: list[str] = [
    "Title", "Source", "Date", "Match", "Significance", "Relevance", "Summary", "URL",
]

SOURCE_GOOGLE = "Google"
SOURCE_FALLBACK = "Fallback"


def build_news_query(query: str) -> str:
    return f"{query} {NEWS_QUERY_TERMS}".strip()


def news_item_from_result(result: RawSearchResult, position: int, now: datetime | None = None) -> NewsItem | None:
    """Convert a provider result to a news item.

    Results without a title or link are dropped. Results without a usable
    publication date are backdated by their position so that ordering by
    date keeps provider order.
    """
    if not result.title or not result.link:
        return None

    now = now or datetime.now(timezone.utc)
    date = extract_published_date(result) or (now - timedelta(days=position)).date().isoformat()
    return NewsItem(
        title=result.title,
        url=result.link,
        source=result.display_link or _safe_domain(result.link) or "News",
        date=date,
        summary=result.snippet or "",
        company=guess_company_from_title(result.title),
    )


def _safe_domain(url: str) -> str:
    try:
        host = urlsplit(url).hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def build_news_row(item: NewsItem, headers: list[str] | None = None) -> dict[str, Any]:
    """Lay out a news item as a row keyed by display header.

    Required headers are always present. Other configured headers are filled
    from the matching item field (case-insensitive) or left empty.
    """
    values: dict[str, Any] = {
        "title": item.title,
        "source": item.source,
        "date": item.date,
        "match": "Neutral",
        "significance": DEFAULT_NEWS_SCORE,
        "relevance": DEFAULT_NEWS_SCORE,
        "summary": item.summary,
        "description": item.summary,
        "url": item.url,
        "company": item.company,
    }

    row: dict[str, Any] = {"id": stable_id(normalize_url(item.url))}
    for header in REQUIRED_NEWS_HEADERS:
        row[header] = values[header.lower()]
    present = {key.lower() for key in row}
    for header in headers or NEWS_HEADERS:
        if header.strip().lower() not in present:
            row[header] = values.get(header.strip().lower(), "")

    return NewsRow.model_validate(row).to_flat()


class NewsService:
    """Fetches news items from the provider and tops them up with fallbacks."""

    def __init__(self, gateway: GoogleSearchService) -> None:
        self.gateway = gateway

    async def fetch_google_news(self, query: str, count: int) -> list[NewsItem]:
        """Fetch up to ``count`` news items from Google CSE.

        Raises:
            ConfigurationError: If credentials are missing.
            ProviderError: If the provider call fails.
        """
        self.gateway.ensure_configured()

        items: list[NewsItem] = []
        position = 0
        now = datetime.now(timezone.utc)
        async for page in self.gateway.iter_pages(build_news_query(query), count, max_pages=NEWS_MAX_PAGES):
            for result in page:
                position += 1
                item = news_item_from_result(result, position, now=now)
                if item is not None:
                    items.append(item)
        return items

    async def search_news(self, query: str, count: int) -> tuple[list[NewsItem], str]:
        """Search news, filling any shortfall with generated items.

        Provider items come first and win over fallback items with the same
        URL.

        Returns:
            The merged items and a source label for the search meta.
        """
        target = max(1, count)
        items: list[NewsItem] = []
        seen_urls: set[str] = set()

        try:
            provider_items = await self.fetch_google_news(query, target)
        except SearchError as e:
            logger.warning(f"Google CSE news search failed; using fallback. {e.message}")
            provider_items = []

        for item in provider_items:
            if not item.url or item.url in seen_urls:
                continue
            seen_urls.add(item.url)
            items.append(item)

        real_count = len(items)
        if real_count < target:
            for item in generate_fallback_news(query, target - real_count, offset=real_count):
                if not item.url or item.url in seen_urls:
                    continue
                seen_urls.add(item.url)
                items.append(item)

        items = items[:target]
        if real_count == 0:
            source = SOURCE_FALLBACK
        elif len(items) > real_count:
            source = f"{SOURCE_GOOGLE}+{SOURCE_FALLBACK}"
        else:
            source = SOURCE_GOOGLE

        logger.info(f"News search returned {len(items)} items ({real_count} from provider)")
        return items, source
