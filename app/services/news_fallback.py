"""Deterministic filler news for when the search provider comes up short.

The seed is a 32-bit string hash of the query and the sequence comes from a
linear congruential generator (multiplier 1664525, increment 1013904223,
modulus 2**32), so a given (query, count, offset) always produces the same
rows for the same day. Tests rely on this to build fixtures without network
access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.models import NewsItem

LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2**32

MAX_DAYS_BACK = 90
MAX_SLUG_LENGTH = 80


@dataclass(frozen=True)
class NewsSource:
    name: str
    domain: str


SOURCE_POOL: list[NewsSource] = [
    NewsSource("TechCrunch", "techcrunch.com"),
    NewsSource("Reuters", "reuters.com"),
    NewsSource("Bloomberg", "bloomberg.com"),
    NewsSource("The Verge", "theverge.com"),
    NewsSource("Finextra", "finextra.com"),
    NewsSource("Fintech News", "fintechnews.com"),
    NewsSource("PYMNTS", "pymnts.com"),
    NewsSource("Telecoms", "telecoms.com"),
    NewsSource("Mobile World Live", "mobileworldlive.com"),
    NewsSource("Sifted", "sifted.eu"),
    NewsSource("Tech.eu", "tech.eu"),
    NewsSource("CoinDesk", "coindesk.com"),
]

COMPANY_POOL: list[str] = [
    "Klarna", "Affirm", "Afterpay", "Zip", "Tabby", "Tamara", "Sunbit",
    "Upstart", "Revolut", "Monzo", "Chime", "Nubank", "Fawry", "Vodafone",
    "Orange", "T-Mobile", "Verizon", "AT&T", "MTN", "Safaricom", "Nokia",
    "Ericsson", "Samsung", "Apple", "Xiaomi", "Oppo", "Vivo",
]

TOPIC_POOL: list[str] = [
    "device financing",
    "BNPL expansion",
    "telco billing",
    "device lock policy",
    "SIM swap protection",
    "merchant partnerships",
    "consumer credit limits",
    "regulatory approval",
    "cross-border payments",
    "network upgrade",
    "fraud prevention",
    "embedded finance",
    "trade-in program",
    "5G rollout",
]

ACTION_POOL: list[str] = [
    "announces",
    "launches",
    "secures",
    "expands",
    "partners with",
    "rolls out",
    "introduces",
    "finalizes",
    "pilots",
    "accelerates",
]

REGION_POOL: list[str] = [
    "in the US",
    "across Europe",
    "in the GCC",
    "in Southeast Asia",
    "in LATAM",
    "in Africa",
    "in the UK",
    "in India",
    "in MENA",
]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def hash_query(query: str) -> int:
    """Non-negative 32-bit hash of a string.

    Iterates UTF-16 code units and computes ``h = h * 31 + unit`` folded into
    the signed 32-bit range at each step; the absolute value is returned.
    """
    data = query.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(_to_int32(h << 5) - h + unit)
    return abs(h)


class SeededRandom:
    """Linear congruential generator yielding floats in [0, 1)."""

    def __init__(self, seed: int) -> None:
        self.state = seed

    def __call__(self) -> float:
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.state / LCG_MODULUS

    def choice(self, pool: list):
        return pool[int(self() * len(pool))]


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH]


def generate_fallback_news(
    query: str,
    count: int,
    offset: int = 0,
    now: datetime | None = None,
) -> list[NewsItem]:
    """Synthesize ``count`` plausible news items for a query.

    Args:
        query: Search query; seeds the generator.
        count: Number of items to produce.
        offset: Shifts both the seed and the slug index, so fallback rows
            appended after ``offset`` real rows get distinct URLs.
        now: Reference time for the backdated dates (defaults to UTC now).

    Returns:
        Items dated 0-89 days before ``now``.
    """
    random = SeededRandom(hash_query(query) + offset)
    now = now or datetime.now(timezone.utc)

    items: list[NewsItem] = []
    for index in range(max(0, count)):
        company = random.choice(COMPANY_POOL)
        topic = random.choice(TOPIC_POOL)
        action = random.choice(ACTION_POOL)
        region = random.choice(REGION_POOL)
        source = random.choice(SOURCE_POOL)
        days_back = int(random() * MAX_DAYS_BACK)

        slug = slugify(f"{company}-{topic}-{action}-{index + offset}")
        items.append(
            NewsItem(
                title=f"{company} {action} {topic} {region}",
                url=f"https://{source.domain}/news/{slug}",
                source=source.name,
                date=(now - timedelta(days=days_back)).date().isoformat(),
                summary=(
                    f"{company} {action} a {topic} initiative {region}, highlighting "
                    "momentum in device financing and telco-backed credit programs."
                ),
                company=company,
            )
        )
    return items
