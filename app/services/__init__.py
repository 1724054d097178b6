"""Services package for the lead research API."""

from app.services.google_search_service import (
    GoogleSearchService,
    get_google_search_service,
    reset_google_search_service,
)
from app.services.news_service import NewsService
from app.services.search_pipeline import (
    SearchFilters,
    SearchPipeline,
    get_search_pipeline,
    reset_search_pipeline,
)

__all__ = [
    "GoogleSearchService",
    "get_google_search_service",
    "reset_google_search_service",
    "NewsService",
    "SearchFilters",
    "SearchPipeline",
    "get_search_pipeline",
    "reset_search_pipeline",
]
