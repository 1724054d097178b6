"""Tests for the dashboard layer.

Tests cover:
- Client-side filtering and threshold clamping on scope switch
- Scope-local selection
- Search lifecycle (errors keep rows, stale responses are dropped)
- CSV export using the displayed columns
- The HTTP client against the real application and against malformed responses
"""

import asyncio
import io

import httpx
import pytest

from app.dashboard import (
    DashboardClient,
    DashboardState,
    ResultFilter,
    SearchRequestError,
    columns_for_scope,
    resolve_row_id,
    rows_to_csv,
)
from app.dashboard.columns import people_summary
from app.main import app
from app.models import SearchMeta


def company_row(row_id, significance=50, relevance=50, match="Neutral"):
    return {
        "id": row_id,
        "companyName": f"Company {row_id}",
        "website": f"https://{row_id}.example/",
        "source": "Google",
        "matchStatus": match,
        "significance": significance,
        "relevance": relevance,
        "description": f"About {row_id}",
    }


def news_row(row_id, significance=2.5, match="Neutral"):
    return {
        "id": row_id,
        "Title": f"Headline {row_id}",
        "Source": "News Example",
        "Date": "2024-05-20",
        "Match": match,
        "Significance": significance,
        "Relevance": 2.5,
        "Summary": "",
        "URL": f"https://news.example/{row_id}",
    }


class FakeClient:
    """Records searches and replays canned results."""

    def __init__(self, results=None):
        self.results = list(results or [])
        self.calls = []

    async def search(self, scope, query, limit=25, **params):
        self.calls.append({"scope": scope, "query": query, "limit": limit, **params})
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class GatedClient:
    """Holds the first search until released so a second one can overtake it."""

    def __init__(self):
        self.gate = asyncio.Event()
        self.count = 0

    async def search(self, scope, query, limit=25, **params):
        self.count += 1
        if self.count == 1:
            await self.gate.wait()
            return [company_row("old")], SearchMeta(source="Google", requested=limit, returned=1)
        return [company_row("new")], SearchMeta(source="Google", requested=limit, returned=1)


def canned_client(response):
    """DashboardClient whose every request gets the given response."""
    return DashboardClient(
        base_url="http://testserver",
        transport=httpx.MockTransport(lambda request: response),
    )


class TestResultFilter:
    """Test client-side filtering."""

    def test_significance_threshold(self):
        state = DashboardState(FakeClient(), active_scope="companies")
        state.scopes["companies"].rows = [company_row("a", 10), company_row("b", 60), company_row("c", 90)]

        state.set_filter(significance_min=50)

        assert [row["id"] for row in state.active_rows()] == ["b", "c"]
        assert state.result_counts()["companies"] == 2

    def test_result_counts_follow_shared_filter(self):
        state = DashboardState(FakeClient(), active_scope="companies")
        state.scopes["companies"].rows = [
            company_row("a", match="Match"),
            company_row("b", match="No Match"),
            company_row("c", match="Match"),
        ]
        state.scopes["news"].rows = [news_row("n1", match="Match"), news_row("n2")]

        assert state.result_counts() == {"news": 2, "companies": 3, "people": 0}

        state.set_filter(match_status="Match")

        assert state.result_counts() == {"news": 1, "companies": 2, "people": 0}

    def test_match_filter_treats_unknown_as_neutral(self):
        rows = [news_row("a", match="Match"), news_row("b"), news_row("c", match="weird")]
        result_filter = ResultFilter(match_status="Neutral")

        assert [row["id"] for row in rows if result_filter.matches("news", row)] == ["b", "c"]

    def test_non_numeric_scores_count_as_zero(self):
        row = company_row("a", significance="n/a")

        assert ResultFilter().matches("companies", row)
        assert not ResultFilter(significance_min=1).matches("companies", row)

    def test_news_reads_header_keys(self):
        assert ResultFilter(significance_min=4).matches("news", news_row("a", significance=4.5))
        assert not ResultFilter(significance_min=4).matches("news", news_row("b", significance=3))

    def test_thresholds_clamped_on_scope_switch(self):
        state = DashboardState(FakeClient(), active_scope="companies")
        state.set_filter(significance_min=80, relevance_min=3)

        state.set_active_scope("news")
        assert state.filter.significance_min == 5
        assert state.filter.relevance_min == 3

        state.set_active_scope("companies")
        assert state.filter.significance_min == 5

    def test_set_filter_clamps_to_scope_range(self):
        state = DashboardState(FakeClient())
        state.set_filter(significance_min=50)
        assert state.filter.significance_min == 5

    def test_unknown_match_status_rejected(self):
        with pytest.raises(ValueError):
            DashboardState(FakeClient()).set_filter(match_status="Maybe")


class TestSelection:
    """Test row selection."""

    def test_selection_is_scope_local(self):
        state = DashboardState(FakeClient(), active_scope="companies")
        state.scopes["companies"].rows = [company_row("a"), company_row("b")]
        state.scopes["news"].rows = [news_row("n1")]

        state.select_row("b")
        state.set_active_scope("news")

        assert state.selected_row() is None
        assert state.selected_row("companies")["id"] == "b"

    def test_select_by_row(self):
        state = DashboardState(FakeClient())
        row = news_row("n1")
        state.scopes["news"].rows = [row]

        assert state.select_row(row) is row
        assert state.active.selected == "n1"

    def test_unknown_id_raises(self):
        state = DashboardState(FakeClient())
        with pytest.raises(KeyError):
            state.select_row("missing")

    def test_resolve_row_id_falls_back_to_url(self):
        row = {"URL": "https://news.example/a#top"}
        assert resolve_row_id("news", row) == resolve_row_id("news", {"URL": "https://news.example/a"})


class TestRunSearch:
    """Test the search lifecycle."""

    @pytest.mark.asyncio
    async def test_success_replaces_rows(self):
        meta = SearchMeta(source="Google", requested=10, returned=1)
        client = FakeClient([([company_row("a")], meta)])
        state = DashboardState(client, active_scope="companies")

        assert await state.run_search("fintech", 10, regions=["Kenya"]) is True

        assert state.active.rows == [company_row("a")]
        assert state.active.meta == meta
        assert state.active.loading is False
        assert state.active.error is None
        assert client.calls[0]["regions"] == ["Kenya"]

    @pytest.mark.asyncio
    async def test_empty_query(self):
        client = FakeClient()
        state = DashboardState(client)

        assert await state.run_search("   ") is False
        assert state.active.error == "Please enter a search query."
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_rows(self):
        meta = SearchMeta(source="Google", requested=10, returned=1)
        client = FakeClient([
            ([company_row("a")], meta),
            SearchRequestError("Company search failed (500). Missing GOOGLE_API_KEY."),
        ])
        state = DashboardState(client, active_scope="companies")

        await state.run_search("fintech")
        await state.run_search("lending")

        assert [row["id"] for row in state.active.rows] == ["a"]
        assert state.active.error.startswith("Company search failed (500)")
        assert state.active.loading is False

    @pytest.mark.asyncio
    async def test_non_json_response_clears_loading(self):
        client = canned_client(
            httpx.Response(200, text="<html>proxy</html>", headers={"Content-Type": "text/html"})
        )
        state = DashboardState(client, active_scope="companies")
        state.scopes["companies"].rows = [company_row("a")]

        assert await state.run_search("fintech") is False
        await client.close()

        assert state.active.loading is False
        assert state.active.error.startswith("Company search failed")
        assert [row["id"] for row in state.active.rows] == ["a"]

    @pytest.mark.asyncio
    async def test_unexpected_error_clears_loading(self):
        state = DashboardState(FakeClient([RuntimeError("boom")]), active_scope="people")

        with pytest.raises(RuntimeError):
            await state.run_search("cto")

        assert state.active.loading is False

    @pytest.mark.asyncio
    async def test_new_search_clears_selection(self):
        meta = SearchMeta(source="Google", requested=10, returned=1)
        client = FakeClient([([company_row("a")], meta), ([company_row("a")], meta)])
        state = DashboardState(client, active_scope="companies")

        await state.run_search("fintech")
        state.select_row("a")
        await state.run_search("fintech")

        assert state.active.selected is None

    @pytest.mark.asyncio
    async def test_stale_response_discarded(self):
        client = GatedClient()
        state = DashboardState(client, active_scope="companies")

        first = asyncio.create_task(state.run_search("first query"))
        await asyncio.sleep(0)
        assert await state.run_search("second query") is True

        client.gate.set()
        assert await first is False
        assert [row["id"] for row in state.active.rows] == ["new"]

    @pytest.mark.asyncio
    async def test_news_headers_sent(self):
        meta = SearchMeta(source="Fallback", requested=5, returned=0)
        client = FakeClient([([], meta)])
        state = DashboardState(client, news_headers=["Title", "Company"])

        await state.run_search("bnpl", 5)

        assert client.calls[0]["headers"] == ["Title", "Company"]


class TestExport:
    """Test CSV export."""

    def test_header_row_matches_columns(self):
        state = DashboardState(FakeClient(), active_scope="companies")
        state.scopes["companies"].rows = [company_row("a"), company_row("b")]

        text = state.export_csv()
        lines = text.splitlines()

        assert lines[0] == ",".join(column.header_name for column in state.columns())
        assert lines[0] == "Company,Source,Date,Match,Significance,Relevance,Summary"
        assert len(lines) == 3

    def test_export_uses_filtered_rows(self):
        state = DashboardState(FakeClient(), active_scope="companies")
        state.scopes["companies"].rows = [company_row("a", 10), company_row("b", 90)]
        state.set_filter(significance_min=50)

        lines = state.export_csv().splitlines()

        assert len(lines) == 2
        assert lines[1].startswith("Company b,")

    def test_news_columns_follow_headers(self):
        state = DashboardState(FakeClient(), news_headers=["Title", "URL"])
        state.scopes["news"].rows = [news_row("n1")]
        buffer = io.StringIO()

        state.export_csv(buffer)

        assert buffer.getvalue().splitlines() == ["Title,URL", "Headline n1,https://news.example/n1"]

    def test_export_to_file(self, tmp_path):
        state = DashboardState(FakeClient())
        state.scopes["news"].rows = [news_row("n1")]
        path = tmp_path / "news.csv"

        text = state.export_csv(path)

        assert path.read_bytes().decode("utf-8") == text

    def test_people_summary_column(self):
        columns = columns_for_scope("people")
        row = {"personName": "Jane Doe", "role": "CTO", "company": "Acme", "matchStatus": "Neutral"}

        csv_text = rows_to_csv([row], columns)

        assert csv_text.splitlines()[0] == "Person,Source,Date,Match,Significance,Relevance,Summary"
        assert csv_text.splitlines()[1].endswith("CTO at Acme")
        assert people_summary({}) == "No summary"
        assert people_summary({"company": "Acme"}) == "Acme"

    def test_unknown_scope_columns(self):
        with pytest.raises(ValueError):
            columns_for_scope("jobs")


class TestDashboardClient:
    """Test the HTTP client against the application."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = DashboardClient(
            base_url="http://testserver",
            transport=httpx.ASGITransport(app=app),
        )

    @pytest.mark.asyncio
    async def test_news_search(self):
        rows, meta = await self.client.search("news", "ai copilots", 3)
        await self.client.close()

        assert len(rows) == 3
        assert meta.source == "Fallback"
        assert meta.returned == 3

    @pytest.mark.asyncio
    async def test_company_search_error(self):
        with pytest.raises(SearchRequestError) as exc_info:
            await self.client.search("companies", "fintech", 10, regions=["Kenya"])
        await self.client.close()

        assert str(exc_info.value).startswith("Company search failed (500).")
        assert "GOOGLE_API_KEY" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_validation_error(self):
        with pytest.raises(SearchRequestError) as exc_info:
            await self.client.search("people", "x")
        await self.client.close()

        assert str(exc_info.value).startswith("People search failed (400).")

    @pytest.mark.asyncio
    async def test_unknown_scope(self):
        with pytest.raises(ValueError):
            await self.client.search("jobs", "fintech")


class TestDashboardClientResponses:
    """Test how the HTTP client handles response bodies that are not search results."""

    @pytest.mark.asyncio
    async def test_html_body(self):
        client = canned_client(
            httpx.Response(200, text="<html>proxy</html>", headers={"Content-Type": "text/html"})
        )
        with pytest.raises(SearchRequestError) as exc_info:
            await client.search("companies", "fintech")
        await client.close()

        assert str(exc_info.value) == "Company search failed: response is not JSON."

    @pytest.mark.asyncio
    async def test_json_list_body(self):
        client = canned_client(httpx.Response(200, json=[{"id": "a"}]))
        with pytest.raises(SearchRequestError) as exc_info:
            await client.search("news", "fintech")
        await client.close()

        assert str(exc_info.value).startswith("News search failed")

    @pytest.mark.asyncio
    async def test_malformed_meta(self):
        client = canned_client(httpx.Response(200, json={"ok": True, "rows": [], "meta": {"source": "x"}}))
        with pytest.raises(SearchRequestError) as exc_info:
            await client.search("people", "cto")
        await client.close()

        assert str(exc_info.value) == "People search failed: invalid response meta."

    @pytest.mark.asyncio
    async def test_error_status_with_html_body(self):
        client = canned_client(httpx.Response(502, text="<html>Bad Gateway</html>"))
        with pytest.raises(SearchRequestError) as exc_info:
            await client.search("companies", "fintech")
        await client.close()

        assert str(exc_info.value) == "Company search failed (502)."

    @pytest.mark.asyncio
    async def test_missing_rows_and_meta(self):
        client = canned_client(httpx.Response(200, json={"ok": True}))
        rows, meta = await client.search("companies", "fintech")
        await client.close()

        assert rows == []
        assert meta is None
