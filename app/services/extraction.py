"""Heuristic extractors for search-engine results.

Each extractor is a total function over a raw title/snippet/link: when
nothing matches it returns None (or the documented default) instead of
raising. Pattern lists are tried in order and the first match wins, so
more specific patterns come first.
"""

from __future__ import annotations

import base64
import hashlib
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable
from urllib.parse import urlsplit, urlunsplit

from app.models import RawSearchResult

STABLE_ID_LENGTH = 24

MIN_FOUNDED_YEAR = 1900

EMPLOYEE_COUNT_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(\d+[-–]\d+)\s*employees?", re.IGNORECASE),
    re.compile(r"(\d+)\+?\s*employees?", re.IGNORECASE),
    re.compile(r"team\s*size:?\s*(\d+[-–]\d+)", re.IGNORECASE),
]

FUNDING_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"raised\s*\$?(\d[\d.]*[mbk]?)\s*(million|billion)?", re.IGNORECASE),
    re.compile(r"funding:\s*\$?(\d[\d.]*[mbk]?)", re.IGNORECASE),
    re.compile(r"\$?(\d[\d.]*[mbk]?)\s*in\s*funding", re.IGNORECASE),
]

LOCATION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"based\s*in\s*([^,.]+(?:,\s*[A-Z]{2})?)", re.IGNORECASE),
    re.compile(r"location:?\s*([^,.]+(?:,\s*[A-Z]{2})?)", re.IGNORECASE),
    re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*,\s*[A-Z]{2})"),
]

FOUNDED_YEAR_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"founded\s*in\s*(\d{4})", re.IGNORECASE),
    re.compile(r"established\s*(\d{4})", re.IGNORECASE),
    re.compile(r"since\s*(\d{4})", re.IGNORECASE),
]

INDUSTRIES: list[str] = [
    "AI",
    "Machine Learning",
    "SaaS",
    "FinTech",
    "HealthTech",
    "EdTech",
    "E-commerce",
    "Cybersecurity",
    "Blockchain",
    "IoT",
    "Robotics",
]

# Metatag keys that may carry a publication date, most specific first
PUBLISHED_DATE_KEYS: list[str] = [
    "article:published_time",
    "og:updated_time",
    "og:published_time",
    "date",
    "pubdate",
]

NEWS_TITLE_SEPARATORS: list[str] = [" - ", " | ", ": "]
MAX_NEWS_COMPANY_LENGTH = 40

_SITE_SUFFIX = re.compile(r"\s*\|[^|]*$")
_COMPANY_SEPARATORS = re.compile(r"[|—]")


def normalize_url(url: str) -> str:
    """Canonicalize an absolute URL for display and dedup.

    The fragment is dropped and the query string kept. Scheme and host are
    lower-cased and an empty path becomes "/". Anything that does not parse
    as an absolute URL is returned unchanged.

    Args:
        url: Raw link from the provider.

    Returns:
        The normalized URL, or the input when it cannot be parsed.
    """
    if not url:
        return url
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url

    netloc = parts.netloc if "@" in parts.netloc else parts.netloc.lower()
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), netloc, path, parts.query, ""))


def stable_id(url: str) -> str:
    """Short deterministic row key for a normalized URL."""
    digest = hashlib.sha256(url.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")[:STABLE_ID_LENGTH]


def guess_company_name(title: str | None, display_link: str | None = None) -> str:
    """Best-effort company name for a company-scope result.

    Prefers the site label ("www.acme.io" -> "Acme"), then the title up to
    the first "|" or "—", then "Unknown".
    """
    if display_link:
        base = re.sub(r"^www\.", "", display_link.strip(), flags=re.IGNORECASE).split(".")[0]
        if base:
            return base[0].upper() + base[1:]

    head = _COMPANY_SEPARATORS.split(title or "", maxsplit=1)[0].strip()
    return head or "Unknown"


def guess_company_from_title(title: str | None) -> str:
    """Company guess for a news headline: its leading segment or first words."""
    title = title or ""
    for separator in NEWS_TITLE_SEPARATORS:
        head = title.split(separator)[0]
        if head and len(head) <= MAX_NEWS_COMPANY_LENGTH:
            return head.strip()
    return " ".join(title.split(" ")[:3]).strip()


def parse_person_title(title: str | None) -> dict[str, str]:
    """Split a profile-style title into name, role and company.

    "Jane Doe - Senior Engineer - Acme Corp | LinkedIn" yields
    {"person_name": "Jane Doe", "role": "Senior Engineer", "company": "Acme Corp"}.
    Missing positions are empty strings; an empty name becomes "Unknown".
    """
    cleaned = _SITE_SUFFIX.sub("", title or "").strip()
    parts = [part.strip() for part in cleaned.split(" - ")]
    parts += [""] * (3 - len(parts))
    return {
        "person_name": parts[0] or "Unknown",
        "role": parts[1],
        "company": parts[2],
    }


def _first_match(patterns: Iterable[re.Pattern[str]], text: str | None) -> re.Match[str] | None:
    if not text:
        return None
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def extract_employee_count(snippet: str | None) -> str | None:
    match = _first_match(EMPLOYEE_COUNT_PATTERNS, snippet)
    return match.group(1) if match else None


def extract_funding(snippet: str | None) -> str | None:
    """Extract a funding amount such as "$12M" from a snippet.

    A trailing magnitude letter is upper-cased; a spelled-out "million" or
    "billion" contributes its initial when the amount has no letter.
    """
    match = _first_match(FUNDING_PATTERNS, snippet)
    if not match:
        return None

    amount = match.group(1)
    if amount[-1].isalpha():
        return f"${amount[:-1]}{amount[-1].upper()}"

    magnitude = match.group(2) if match.re.groups >= 2 else None
    return f"${amount}{magnitude[0].upper() if magnitude else ''}"


def extract_location(snippet: str | None) -> str | None:
    match = _first_match(LOCATION_PATTERNS, snippet)
    return match.group(1).strip() if match else None


def extract_founded_year(snippet: str | None, current_year: int | None = None) -> str | None:
    """Extract a founding year within [1900, current year].

    Out-of-range candidates are treated as noise and the next pattern is
    tried.
    """
    if not snippet:
        return None
    current_year = current_year or datetime.now().year

    for pattern in FOUNDED_YEAR_PATTERNS:
        match = pattern.search(snippet)
        if match and MIN_FOUNDED_YEAR <= int(match.group(1)) <= current_year:
            return match.group(1)
    return None


def extract_industry(snippet: str | None, query: str | None = None) -> str | None:
    """Return the first known industry named in the query or snippet."""
    haystacks = [text for text in (query, snippet) if text]
    for industry in INDUSTRIES:
        pattern = re.compile(rf"(?<!\w){re.escape(industry)}(?!\w)", re.IGNORECASE)
        if any(pattern.search(text) for text in haystacks):
            return industry
    return None


def extract_domain(result: RawSearchResult) -> str | None:
    """Company domain for a result.

    LinkedIn company pages and Crunchbase organizations map their slug to
    "<slug>.com"; otherwise the display link without "www." is used.
    """
    link = result.link or ""
    for marker in ("linkedin.com/company/", "crunchbase.com/organization/"):
        if marker in link:
            slug = link.split(marker, 1)[1].split("/")[0].split("?")[0]
            return f"{slug}.com" if slug else None

    if result.display_link:
        return re.sub(r"^www\.", "", result.display_link)
    return None


def _parse_date(raw: str) -> datetime | None:
    try:
        return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None


def extract_published_date(result: RawSearchResult) -> str | None:
    """ISO date from the first parseable publication metatag, if any."""
    pagemap: dict[str, Any] = result.pagemap or {}
    metatags = pagemap.get("metatags")
    meta = metatags[0] if isinstance(metatags, list) and metatags and isinstance(metatags[0], dict) else {}

    for key in PUBLISHED_DATE_KEYS:
        raw = meta.get(key)
        if isinstance(raw, str) and raw.strip():
            parsed = _parse_date(raw)
            if parsed is None:
                continue
            if parsed.tzinfo is not None:
                try:
                    parsed = parsed.astimezone(timezone.utc)
                except (OverflowError, ValueError):
                    continue
            return parsed.date().isoformat()
    return None


def match_keywords(text: str | None, keywords: Iterable[str] | None) -> list[str]:
    """Keywords that occur in the text, case-insensitively, in input order."""
    if not text or not keywords:
        return []
    text_lower = text.lower()
    return [kw for kw in keywords if kw and kw.strip() and kw.strip().lower() in text_lower]
