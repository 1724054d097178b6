"""Column descriptors for the results grid, one set per scope.

The same descriptors drive CSV export, so the exported columns always match
what the grid displays, in display order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from app.services.news_service import NEWS_HEADERS


@dataclass(frozen=True)
class ColumnDef:
    """A grid column: the row field it shows and its header.

    Columns without a field derive their value from the whole row.
    """

    field: str | None
    header_name: str
    value_getter: Callable[[dict[str, Any]], Any] | None = None

    def value(self, row: dict[str, Any]) -> Any:
        if self.value_getter is not None:
            return self.value_getter(row)
        return row.get(self.field) if self.field else None


def people_summary(row: dict[str, Any]) -> str:
    role = row.get("role") or ""
    company = row.get("company") or ""
    if role and company:
        return f"{role} at {company}"
    return role or company or "No summary"


COMPANY_COLUMNS: list[ColumnDef] = [
    ColumnDef("companyName", "Company"),
    ColumnDef("source", "Source"),
    ColumnDef("date", "Date"),
    ColumnDef("matchStatus", "Match"),
    ColumnDef("significance", "Significance"),
    ColumnDef("relevance", "Relevance"),
    ColumnDef("description", "Summary"),
]

PEOPLE_COLUMNS: list[ColumnDef] = [
    ColumnDef("personName", "Person"),
    ColumnDef("source", "Source"),
    ColumnDef("date", "Date"),
    ColumnDef("matchStatus", "Match"),
    ColumnDef("significance", "Significance"),
    ColumnDef("relevance", "Relevance"),
    ColumnDef(None, "Summary", value_getter=people_summary),
]


def build_news_columns(headers: list[str] | None = None) -> list[ColumnDef]:
    """News columns follow the configured header list, one column per header."""
    return [ColumnDef(header, header) for header in headers or NEWS_HEADERS]


def columns_for_scope(scope: str, news_headers: list[str] | None = None) -> list[ColumnDef]:
    if scope == "news":
        return build_news_columns(news_headers)
    if scope == "companies":
        return COMPANY_COLUMNS
    if scope == "people":
        return PEOPLE_COLUMNS
    raise ValueError(f"Unknown scope: {scope}")
