"""Per-record agency attribution for pages that carry more than one agency's calls."""
from __future__ import annotations

import re

from shodhsahayak.domain.agencies import AGENCY_CODES, resolve_agency
from shodhsahayak.domain.models import MULTIPLE_AGENCIES, UNKNOWN_AGENCY

_CODES = "|".join(re.escape(code) for code in AGENCY_CODES)

# Structured signals, strongest first.
LABEL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\|\s*\**\s*({_CODES})\s*\**\s*\|", re.IGNORECASE),
    re.compile(rf"\b(?:funding\s+)?agency\s*\**\s*:\s*\**\s*({_CODES})\b", re.IGNORECASE),
    re.compile(rf"\b(?:department|dept\.?)[^:\n]{{0,60}}:\s*\**\s*({_CODES})\b", re.IGNORECASE),
)
TITLE_CODE_RE = re.compile(rf"\b({_CODES})\b")
URL_RE = re.compile(r"https?://[^\s<>\"'()\[\]]+")


def _agency_from_urls(content: str) -> str | None:
    for match in URL_RE.finditer(content):
        code = resolve_agency(match.group(0))
        if code and code != UNKNOWN_AGENCY:
            return code
    return None


def attribute_agency(
    content: str | None,
    title: str | None,
    source_url: str,
    aggregator: bool | None = None,
) -> str:
    """
    Work out which agency a record belongs to.

    Single-agency sources answer from the source URL alone. Aggregator pages are searched
    for an explicit table cell or label, then a code token in the title, then an agency
    domain among the page's URLs, before settling on ``MULTIPLE_AGENCIES``.
    """
    resolved = resolve_agency(source_url)
    if aggregator is None:
        aggregator = resolved is None
    if not aggregator:
        return resolved or UNKNOWN_AGENCY

    content = content or ""
    for pattern in LABEL_PATTERNS:
        match = pattern.search(content)
        if match:
            return match.group(1).upper()

    if title:
        match = TITLE_CODE_RE.search(title)
        if match:
            return match.group(1)

    return _agency_from_urls(content) or MULTIPLE_AGENCIES
