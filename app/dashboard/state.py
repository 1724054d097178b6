"""Dashboard state: per-scope results, filters, selection and export.

Each scope keeps its own rows, loading flag, error and selection. Searches
are tagged with a per-scope sequence number and only the most recently
submitted search for a scope may update it; older responses are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

from app.dashboard.client import DashboardClient, SearchRequestError
from app.dashboard.columns import ColumnDef, columns_for_scope
from app.dashboard.export import rows_to_csv, write_csv
from app.models import MATCH_STATUSES, SCOPES, MatchFilter, Scope, SearchMeta
from app.services.extraction import normalize_url, stable_id

logger = logging.getLogger(__name__)

SCORE_MAX: dict[Scope, float] = {"news": 5, "companies": 100, "people": 100}

EMPTY_QUERY_MESSAGE = "Please enter a search query."


def to_number(value: Any) -> float:
    """Coerce a score to a float; anything non-numeric counts as 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def resolve_row_id(scope: Scope, row: dict[str, Any]) -> str:
    """Return the grid id of a row.

    Rows from the API always carry an id; rows built elsewhere fall back to
    their URL, then their title or name.
    """
    if row.get("id"):
        return str(row["id"])
    url = row.get("URL") if scope == "news" else row.get("website") or row.get("profileUrl")
    if url:
        return stable_id(normalize_url(str(url)))
    label = row.get("Title") or row.get("companyName") or row.get("personName")
    if label:
        return str(label)
    raise KeyError("Row has no id")


@dataclass
class ScopeState:
    rows: list[dict[str, Any]] = field(default_factory=list)
    meta: SearchMeta | None = None
    loading: bool = False
    error: str | None = None
    selected: str | None = None


@dataclass
class ResultFilter:
    """Client-side row filter shared by all scopes.

    Thresholds are inclusive lower bounds on the row scores.
    """

    match_status: MatchFilter = "All"
    significance_min: float = 0
    relevance_min: float = 0

    def matches(self, scope: Scope, row: dict[str, Any]) -> bool:
        if scope == "news":
            match = row.get("Match", row.get("matchStatus"))
            significance = row.get("Significance", row.get("significance"))
            relevance = row.get("Relevance", row.get("relevance"))
        else:
            match = row.get("matchStatus")
            significance = row.get("significance")
            relevance = row.get("relevance")

        if match not in MATCH_STATUSES:
            match = "Neutral"
        if self.match_status != "All" and match != self.match_status:
            return False
        if to_number(significance) < self.significance_min:
            return False
        return to_number(relevance) >= self.relevance_min


class DashboardState:
    """State behind the three-scope results dashboard.

    Args:
        client: Client used to run searches.
        news_headers: Display headers for news rows and columns.
        active_scope: Scope shown initially.
    """

    def __init__(
        self,
        client: DashboardClient,
        news_headers: list[str] | None = None,
        active_scope: Scope = "news",
    ) -> None:
        if active_scope not in SCOPES:
            raise ValueError(f"Unknown scope: {active_scope}")
        self.client = client
        self.news_headers = news_headers
        self.active_scope: Scope = active_scope
        self.filter = ResultFilter()
        self.scopes: dict[Scope, ScopeState] = {scope: ScopeState() for scope in SCOPES}
        self._request_seq: dict[Scope, int] = {scope: 0 for scope in SCOPES}

    @property
    def active(self) -> ScopeState:
        return self.scopes[self.active_scope]

    def set_active_scope(self, scope: Scope) -> None:
        """Switch scope, clamping thresholds into the new scope's score range."""
        if scope not in SCOPES:
            raise ValueError(f"Unknown scope: {scope}")
        self.active_scope = scope
        score_max = SCORE_MAX[scope]
        self.filter.significance_min = min(self.filter.significance_min, score_max)
        self.filter.relevance_min = min(self.filter.relevance_min, score_max)

    def set_filter(
        self,
        match_status: MatchFilter | None = None,
        significance_min: float | None = None,
        relevance_min: float | None = None,
    ) -> None:
        score_max = SCORE_MAX[self.active_scope]
        if match_status is not None:
            if match_status != "All" and match_status not in MATCH_STATUSES:
                raise ValueError(f"Unknown match status: {match_status}")
            self.filter.match_status = match_status
        if significance_min is not None:
            self.filter.significance_min = max(0, min(significance_min, score_max))
        if relevance_min is not None:
            self.filter.relevance_min = max(0, min(relevance_min, score_max))

    def filtered_rows(self, scope: Scope | None = None) -> list[dict[str, Any]]:
        scope = scope or self.active_scope
        return [row for row in self.scopes[scope].rows if self.filter.matches(scope, row)]

    def active_rows(self) -> list[dict[str, Any]]:
        return self.filtered_rows(self.active_scope)

    def result_counts(self) -> dict[Scope, int]:
        """Row count per scope after the shared filter, for the scope tabs."""
        return {scope: len(self.filtered_rows(scope)) for scope in self.scopes}

    def columns(self, scope: Scope | None = None) -> list[ColumnDef]:
        return columns_for_scope(scope or self.active_scope, self.news_headers)

    async def run_search(self, query: str, limit: int = 25, **params: Any) -> bool:
        """Run a search for the active scope.

        Returns:
            True if this search's response was applied to the state.
        """
        scope = self.active_scope
        state = self.scopes[scope]

        if not query or not query.strip():
            state.error = EMPTY_QUERY_MESSAGE
            return False

        self._request_seq[scope] += 1
        seq = self._request_seq[scope]
        state.selected = None
        state.loading = True
        state.error = None

        if scope == "news" and self.news_headers and "headers" not in params:
            params["headers"] = self.news_headers

        try:
            rows, meta = await self.client.search(scope, query.strip(), limit, **params)
        except SearchRequestError as e:
            if seq != self._request_seq[scope]:
                logger.info(f"Discarding stale {scope} search failure")
                return False
            state.error = str(e)
            return False
        finally:
            if seq == self._request_seq[scope]:
                state.loading = False

        if seq != self._request_seq[scope]:
            logger.info(f"Discarding stale {scope} search response")
            return False

        state.rows = rows
        state.meta = meta
        state.error = None
        return True

    def select_row(self, row_or_id: dict[str, Any] | str, scope: Scope | None = None) -> dict[str, Any]:
        """Select a row within a scope.

        Raises:
            KeyError: If no row in the scope has that id.
        """
        scope = scope or self.active_scope
        state = self.scopes[scope]
        row_id = resolve_row_id(scope, row_or_id) if isinstance(row_or_id, dict) else row_or_id
        for row in state.rows:
            if resolve_row_id(scope, row) == row_id:
                state.selected = row_id
                return row
        raise KeyError(row_id)

    def selected_row(self, scope: Scope | None = None) -> dict[str, Any] | None:
        scope = scope or self.active_scope
        state = self.scopes[scope]
        if state.selected is None:
            return None
        for row in state.rows:
            if resolve_row_id(scope, row) == state.selected:
                return row
        return None

    def export_csv(self, destination: str | Path | TextIO | None = None) -> str:
        """Export the active scope's filtered rows with the displayed columns."""
        rows = self.active_rows()
        columns = self.columns()
        if destination is None:
            return rows_to_csv(rows, columns)
        return write_csv(rows, columns, destination)
