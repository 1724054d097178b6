"""Pydantic models for the lead research dashboard.

Rows are flat so the grid can render them directly. All models serialize
with camelCase aliases to match what the dashboard expects.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(word.capitalize() for word in components[1:])


MatchStatus = Literal["Match", "No Match", "Neutral"]
MatchFilter = Literal["All", "Match", "No Match", "Neutral"]
Scope = Literal["news", "companies", "people"]

MATCH_STATUSES: tuple[str, ...] = ("Match", "No Match", "Neutral")
SCOPES: tuple[str, ...] = ("news", "companies", "people")

# Placeholder scores until real scoring exists
DEFAULT_SCORE = 50
DEFAULT_NEWS_SCORE = 2.5


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )


class RawSearchResult(CamelModel):
    """Single item as returned by the search provider.

    Only exists for the duration of one extraction call.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    link: Optional[str] = None
    snippet: Optional[str] = None
    display_link: Optional[str] = None
    pagemap: Optional[dict[str, Any]] = None


class CompanyRow(CamelModel):
    """Company result row.

    Attributes:
        id: Stable id derived from the normalized website URL.
        company_name: Best-effort company name.
        website: Normalized absolute URL, fragment stripped.
        description: Provider snippet.
        source: Provider label.
        match_status: Tri-state match label, always Neutral for now.
        significance: 0-100 placeholder score.
        relevance: 0-100 placeholder score.
    """

    id: str
    company_name: str
    website: str
    description: str = ""
    source: str = "Google"
    result_type: Literal["company"] = "company"
    match_status: MatchStatus = "Neutral"
    significance: float = Field(default=DEFAULT_SCORE, ge=0, le=100)
    relevance: float = Field(default=DEFAULT_SCORE, ge=0, le=100)
    region_focus: Optional[str] = None
    segment: Optional[str] = None
    tags: Optional[str] = None
    date: Optional[str] = None
    employees: Optional[str] = None
    funding: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    founded: Optional[str] = None
    logo: Optional[str] = None


class PeopleRow(CamelModel):
    """Person result row parsed from a profile-style search title."""

    id: str
    person_name: str
    role: str = ""
    company: str = ""
    profile_url: str
    source: str = "Google"
    result_type: Literal["person"] = "person"
    match_status: MatchStatus = "Neutral"
    significance: float = Field(default=DEFAULT_SCORE, ge=0, le=100)
    relevance: float = Field(default=DEFAULT_SCORE, ge=0, le=100)
    tags: Optional[str] = None
    date: Optional[str] = None


class NewsItem(BaseModel):
    """Normalized news record before it is laid out as a row."""

    title: str
    url: str
    source: str
    date: str
    summary: str = ""
    company: str = ""


class NewsRow(BaseModel):
    """News row keyed by display header.

    The required headers are typed fields; any other configured header is
    kept in the extension area and must hold a string or number.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    title: str = Field(alias="Title")
    source: str = Field(alias="Source")
    date: str = Field(alias="Date")
    match: MatchStatus = Field(default="Neutral", alias="Match")
    significance: float = Field(default=DEFAULT_NEWS_SCORE, ge=0, le=5, alias="Significance")
    relevance: float = Field(default=DEFAULT_NEWS_SCORE, ge=0, le=5, alias="Relevance")
    summary: str = Field(default="", alias="Summary")
    url: str = Field(alias="URL")

    @model_validator(mode="after")
    def check_extension_fields(self) -> "NewsRow":
        for key, value in (self.model_extra or {}).items():
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                raise ValueError(f"News field '{key}' must be a string or number")
        return self

    def to_flat(self) -> dict[str, Any]:
        """Dump with header keys, extension fields included."""
        return self.model_dump(by_alias=True)


class SearchMeta(CamelModel):
    """Diagnostic information about a search."""

    source: str
    requested: int
    returned: int


class SearchRequest(CamelModel):
    """Common search request body."""

    query: str = Field(..., min_length=2, description="Free-text search query (min 2 chars)")
    limit: int = Field(default=25, ge=1, le=50, description="Number of rows to return (1-50)")


class CompanySearchRequest(SearchRequest):
    regions: Optional[list[str]] = None
    keywords: Optional[list[str]] = None


class PeopleSearchRequest(SearchRequest):
    company_hint: Optional[str] = None


class NewsSearchRequest(SearchRequest):
    headers: Optional[list[str]] = Field(
        default=None, description="Display headers for the news rows"
    )


class SearchResponse(CamelModel):
    """Successful search response."""

    ok: Literal[True] = True
    rows: list[dict[str, Any]]
    meta: SearchMeta


class ErrorResponse(CamelModel):
    """Error envelope rendered at the request boundary."""

    ok: Literal[False] = False
    error: str
    details: Optional[dict[str, Any]] = None
