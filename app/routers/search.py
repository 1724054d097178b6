"""Search router for the lead research API.

Provides one endpoint per scope (companies, people, news). Errors raised by
the pipeline are rendered as ``{ok: false, error}`` by the exception
handlers registered in app.main.
"""

import logging

from fastapi import APIRouter, status

from app.models import (
    CompanySearchRequest,
    ErrorResponse,
    NewsSearchRequest,
    PeopleSearchRequest,
    SearchResponse,
)
from app.services import SearchFilters, get_google_search_service, get_search_pipeline

logger = logging.getLogger(__name__)


def _sanitize_for_log(value: str, max_length: int = 100) -> str:
    """Sanitize a string for safe logging to prevent log injection."""
    # Remove newlines, carriage returns, and other control characters
    sanitized = "".join(c if c.isprintable() and c not in "\n\r\t" else " " for c in value)
    # Truncate to max length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized


router = APIRouter()

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Invalid request"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "model": ErrorResponse,
        "description": "Missing configuration or provider failure",
    },
}


@router.post(
    "/search/companies",
    response_model=SearchResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
    summary="Search companies",
    description="Search Google CSE for company sites and normalize them into company rows.",
)
async def search_companies(request: CompanySearchRequest) -> SearchResponse:
    """Search companies.

    Args:
        request: Query, limit and optional region/keyword filters.

    Returns:
        SearchResponse with company rows and meta.
    """
    logger.info("Company search: %s", _sanitize_for_log(request.query))
    rows, meta = await get_search_pipeline().run_search(
        "companies",
        request.query,
        request.limit,
        SearchFilters(regions=request.regions, keywords=request.keywords),
    )
    return SearchResponse(rows=rows, meta=meta)


@router.post(
    "/search/people",
    response_model=SearchResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
    summary="Search people",
    description="Search profile sites for people and parse name, role and company.",
)
async def search_people(request: PeopleSearchRequest) -> SearchResponse:
    """Search people, optionally narrowed to a company."""
    logger.info("People search: %s", _sanitize_for_log(request.query))
    rows, meta = await get_search_pipeline().run_search(
        "people",
        request.query,
        request.limit,
        SearchFilters(company_hint=request.company_hint),
    )
    return SearchResponse(rows=rows, meta=meta)


@router.post(
    "/search/news",
    response_model=SearchResponse,
    status_code=status.HTTP_200_OK,
    responses={status.HTTP_400_BAD_REQUEST: ERROR_RESPONSES[status.HTTP_400_BAD_REQUEST]},
    summary="Search news",
    description="Search news via Google CSE, topped up with deterministic fallback items.",
)
async def search_news(request: NewsSearchRequest) -> SearchResponse:
    """Search news.

    Never fails on provider or configuration problems; short result sets
    are filled with fallback rows.
    """
    logger.info("News search: %s", _sanitize_for_log(request.query))
    rows, meta = await get_search_pipeline().run_search(
        "news",
        request.query,
        request.limit,
        SearchFilters(headers=request.headers),
    )
    return SearchResponse(rows=rows, meta=meta)


@router.get(
    "/search/status",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Get search service status",
    description="Check whether the Google CSE credentials are configured.",
)
async def get_search_status() -> dict:
    """Get the current status of the search service."""
    gateway = get_google_search_service()

    return {
        "configured": gateway.is_configured,
        "missing": gateway.missing_credentials(),
        "source": "google" if gateway.is_configured else "fallback",
    }
