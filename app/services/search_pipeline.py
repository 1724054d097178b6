"""Aggregation and dedup pipeline for the three search scopes.

For companies and people the pipeline pages through Google CSE until it has
``limit`` unique rows, the provider runs dry, or the page ceiling is hit.
Rows are keyed by the stable id of their normalized URL; the first
occurrence wins and provider order is kept. News is delegated to the
NewsService, which tops up short result sets with fallback items.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel

from app.exceptions import ValidationError
from app.models import SCOPES, CompanyRow, PeopleRow, RawSearchResult, SearchMeta
from app.services.extraction import (
    extract_domain,
    extract_employee_count,
    extract_founded_year,
    extract_funding,
    extract_industry,
    extract_location,
    extract_published_date,
    guess_company_name,
    match_keywords,
    normalize_url,
    parse_person_title,
    stable_id,
)
from app.services.google_search_service import (
    DEFAULT_MAX_PAGES,
    MAX_RESULTS_PER_PAGE,
    GoogleSearchService,
    get_google_search_service,
)
from app.services.news_service import NewsService, build_news_row

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MIN_LIMIT = 1
MAX_LIMIT = 50
DEFAULT_LIMIT = 25

PROVIDER_LABEL = "Google"

COMPANY_QUERY_SUFFIX = "company official site"
PEOPLE_SITE_FILTER = (
    "(site:linkedin.com/in OR site:linkedin.com/pub OR "
    "site:crunchbase.com/person OR site:about.me)"
)
LOGO_URL_TEMPLATE = "https://logo.clearbit.com/{domain}"


@dataclass
class SearchFilters:
    """Optional scope-specific request parameters."""

    regions: list[str] | None = None
    keywords: list[str] | None = None
    company_hint: str | None = None
    headers: list[str] | None = None


def validate_search_request(query: Any, limit: Any) -> tuple[str, int]:
    """Check query and limit before any network call.

    Returns:
        The stripped query and the limit.

    Raises:
        ValidationError: Listing every violated field.
    """
    errors: dict[str, str] = {}

    if not isinstance(query, str) or len(query.strip()) < MIN_QUERY_LENGTH:
        errors["query"] = f"must be at least {MIN_QUERY_LENGTH} characters"
    if isinstance(limit, bool) or not isinstance(limit, int):
        errors["limit"] = "must be an integer"
    elif not MIN_LIMIT <= limit <= MAX_LIMIT:
        errors["limit"] = f"must be between {MIN_LIMIT} and {MAX_LIMIT}"

    if errors:
        raise ValidationError(errors)
    return query.strip(), limit


def _clean_terms(terms: list[str] | None) -> list[str]:
    return [term.strip() for term in terms or [] if term and term.strip()]


def build_company_query(query: str, regions: list[str] | None = None, keywords: list[str] | None = None) -> str:
    """Provider query for the companies scope.

    Example: 'fintech lending ("Kenya" OR "Nigeria") company official site'
    """
    parts = [query, *_clean_terms(keywords)]
    regions = _clean_terms(regions)
    if regions:
        parts.append("(" + " OR ".join(f'"{region}"' for region in regions) + ")")
    parts.append(COMPANY_QUERY_SUFFIX)
    return " ".join(parts)


def build_people_query(query: str, company_hint: str | None = None) -> str:
    parts = [query]
    if company_hint and company_hint.strip():
        parts.append(f'"{company_hint.strip()}"')
    parts.append(PEOPLE_SITE_FILTER)
    return " ".join(parts)


def build_company_row(
    result: RawSearchResult,
    query: str = "",
    keywords: list[str] | None = None,
) -> CompanyRow | None:
    """Normalize a provider result into a company row; None without a link."""
    website = normalize_url(result.link or "")
    if not website:
        return None

    title = result.title or ""
    snippet = result.snippet or ""
    domain = extract_domain(result)
    industry = extract_industry(snippet, query)
    location = extract_location(snippet)
    tags = match_keywords(f"{title} {snippet}", keywords)

    return CompanyRow(
        id=stable_id(website),
        company_name=guess_company_name(title, result.display_link),
        website=website,
        description=snippet,
        source=PROVIDER_LABEL,
        date=extract_published_date(result),
        employees=extract_employee_count(snippet),
        funding=extract_funding(snippet),
        location=location,
        industry=industry,
        founded=extract_founded_year(snippet),
        segment=industry,
        region_focus=location,
        tags=", ".join(tags) or None,
        logo=LOGO_URL_TEMPLATE.format(domain=domain) if domain else None,
    )


def build_person_row(result: RawSearchResult) -> PeopleRow | None:
    """Normalize a profile-style result into a people row; None without a link."""
    profile_url = normalize_url(result.link or "")
    if not profile_url:
        return None

    person = parse_person_title(result.title)
    return PeopleRow(
        id=stable_id(profile_url),
        person_name=person["person_name"],
        role=person["role"],
        company=person["company"],
        profile_url=profile_url,
        source=PROVIDER_LABEL,
        date=extract_published_date(result),
    )


class SearchPipeline:
    """Runs a scope search end to end and returns flat rows plus meta."""

    def __init__(
        self,
        gateway: GoogleSearchService | None = None,
        news_service: NewsService | None = None,
    ) -> None:
        self.gateway = gateway or get_google_search_service()
        self.news_service = news_service or NewsService(self.gateway)

    async def run_search(
        self,
        scope: str,
        query: str,
        limit: int = DEFAULT_LIMIT,
        filters: SearchFilters | None = None,
    ) -> tuple[list[dict[str, Any]], SearchMeta]:
        """Run a search for one scope.

        Args:
            scope: One of "news", "companies", "people".
            query: Free-text query (at least 2 characters).
            limit: Maximum number of rows (1-50).
            filters: Optional scope-specific parameters.

        Returns:
            Tuple of (rows, meta). Rows are camelCase dicts for companies and
            people and header-keyed dicts for news.

        Raises:
            ValidationError: If the scope, query or limit is invalid.
            ConfigurationError: If credentials are missing (companies/people).
            ProviderError: If the provider fails (companies/people).
        """
        if scope not in SCOPES:
            raise ValidationError({"scope": f"must be one of {', '.join(SCOPES)}"})
        query, limit = validate_search_request(query, limit)
        filters = filters or SearchFilters()

        if scope == "news":
            items, source = await self.news_service.search_news(query, limit)
            rows = [build_news_row(item, filters.headers) for item in items]
            return rows, SearchMeta(source=source, requested=limit, returned=len(rows))

        if scope == "companies":
            provider_query = build_company_query(query, filters.regions, filters.keywords)
            models = await self._collect_rows(
                provider_query,
                limit,
                lambda result: build_company_row(result, query, filters.keywords),
            )
        else:
            provider_query = build_people_query(query, filters.company_hint)
            models = await self._collect_rows(provider_query, limit, build_person_row)

        rows = [model.model_dump(by_alias=True, exclude_none=True) for model in models]
        logger.info(f"{scope} search returned {len(rows)} of {limit} requested rows")
        return rows, SearchMeta(source=PROVIDER_LABEL, requested=limit, returned=len(rows))

    async def _collect_rows(
        self,
        provider_query: str,
        limit: int,
        build_row: Callable[[RawSearchResult], BaseModel | None],
    ) -> list[BaseModel]:
        """Page through the provider, deduplicating rows by id."""
        self.gateway.ensure_configured()

        rows: dict[str, BaseModel] = {}
        start = 1
        for _ in range(DEFAULT_MAX_PAGES):
            num = min(MAX_RESULTS_PER_PAGE, limit - len(rows))
            page = await self.gateway.fetch_page(provider_query, start=start, num=num)

            for result in page:
                row = build_row(result)
                if row is None or row.id in rows:
                    continue
                rows[row.id] = row

            if len(rows) >= limit or len(page) < num:
                break
            start += len(page)

        return list(rows.values())[:limit]


# Singleton
_search_pipeline: SearchPipeline | None = None


def get_search_pipeline() -> SearchPipeline:
    """Get the singleton SearchPipeline instance."""
    global _search_pipeline
    if _search_pipeline is None:
        _search_pipeline = SearchPipeline()
    return _search_pipeline


def reset_search_pipeline() -> None:
    """Drop the singleton so the next access re-reads the environment."""
    global _search_pipeline
    _search_pipeline = None
