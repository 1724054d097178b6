"""Pytest fixtures for Lead Research Dashboard tests.

This module provides shared fixtures for testing the FastAPI application,
including the test client, a clean search environment and sample provider
items.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services import reset_google_search_service, reset_search_pipeline

SEARCH_ENV_VARS = (
    "GOOGLE_API_KEY",
    "GOOGLE_CSE_ID",
    "GOOGLE_SEARCH_ENGINE_ID",
    "GOOGLE_CSE_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_search_env(monkeypatch):
    """Run every test without search credentials and with fresh singletons."""
    for name in SEARCH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_google_search_service()
    reset_search_pipeline()
    yield
    reset_google_search_service()
    reset_search_pipeline()


@pytest.fixture
def client():
    """Create a test client for the FastAPI application.

    Returns:
        TestClient: A test client instance for making requests to the API.
    """
    return TestClient(app)


@pytest.fixture
def sample_company_item():
    """A company-style Google CSE item.

    Returns:
        dict: Raw item as found in the provider's ``items`` list.
    """
    return {
        "title": "Acme Lending | Device financing for telcos",
        "link": "https://www.Acme.io#home",
        "displayLink": "www.acme.io",
        "snippet": (
            "Acme is a FinTech company based in Austin, TX. Founded in 2015, "
            "Acme raised $12 million and has 51-200 employees."
        ),
        "pagemap": {"metatags": [{"article:published_time": "2024-03-05T10:00:00Z"}]},
    }


@pytest.fixture
def sample_person_item():
    """A profile-style Google CSE item.

    Returns:
        dict: Raw item as found in the provider's ``items`` list.
    """
    return {
        "title": "Jane Doe - Senior Engineer - Acme Corp | LinkedIn",
        "link": "https://www.linkedin.com/in/janedoe",
        "displayLink": "www.linkedin.com",
        "snippet": "Senior Engineer at Acme Corp. Experience building lending platforms.",
    }

