"""Source registry and URL-to-agency resolution."""
from __future__ import annotations

import keywords as keyword_source
from shodhsahayak.domain.models import UNKNOWN_AGENCY, Source

AGENCY_CODES: tuple[str, ...] = tuple(keyword_source.AGENCY_CODES)


def is_aggregator_url(url: str) -> bool:
    return any(fragment in url for fragment in keyword_source.AGGREGATOR_DOMAINS)


def resolve_agency(url: str) -> str | None:
    """
    Map a source URL to its agency code.

    Returns ``None`` for aggregator sites (attribution must come from page content)
    and ``UNKNOWN_AGENCY`` when no known domain fragment matches.
    """
    if not isinstance(url, str):
        return UNKNOWN_AGENCY
    if is_aggregator_url(url):
        return None
    for fragment, code in keyword_source.AGENCY_DOMAINS:
        if fragment in url:
            return code
    return UNKNOWN_AGENCY


def agency_for_code(text: str) -> str | None:
    """Return the canonical code when ``text`` is exactly a known code, ignoring case."""
    candidate = text.strip().upper()
    return candidate if candidate in AGENCY_CODES else None


def build_sources(urls: list[str] | None = None) -> list[Source]:
    return [
        Source(url=url, agency=resolve_agency(url), aggregator=is_aggregator_url(url))
        for url in (urls if urls is not None else keyword_source.SOURCE_URLS)
    ]


DEFAULT_SOURCES: tuple[Source, ...] = tuple(build_sources())
