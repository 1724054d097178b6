"""Routers package for API endpoints.

This package contains the FastAPI routers for the Lead Research Dashboard.
"""

from app.routers import search

__all__ = ["search"]
