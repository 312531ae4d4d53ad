"""
Free-text deadline parsing.

``normalize_date`` turns one date expression into an ISO date, the rolling-deadline
sentinel, or the original text. ``extract_dates`` scans a block of page text for date
expressions and reduces them to a ``(start, end)`` pair.
"""
from __future__ import annotations

import re
from datetime import date, datetime

import keywords as keyword_source
from shodhsahayak.core.config import MIN_DEADLINE_YEAR
from shodhsahayak.domain.models import ROLLING_DEADLINE

# Tried in order; the first layout producing an acceptable date wins.
DATE_LAYOUTS: tuple[str, ...] = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%m/%d/%Y",
    "%Y-%m-%d",
    "%d %b %Y",
    "%d %B %Y",
    "%d %b, %Y",
    "%d %B, %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d/%m/%y",
    "%d-%m-%y",
    "%B %Y",
    "%b %Y",
)

ROLLING_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(term) for term in keyword_source.ROLLING_TERMS) + r")\b",
    re.IGNORECASE,
)
THROUGHOUT_YEAR_RE = re.compile(r"throughout\s+the\s+year", re.IGNORECASE)
ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_ORDINAL_RE = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.IGNORECASE)
_MONTH_DOT_RE = re.compile(r"\b([A-Za-z]{3,9})\.")
_SEPT_RE = re.compile(r"\bSept\b", re.IGNORECASE)

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)
_NUMERIC_DATE = r"\d{4}-\d{1,2}-\d{1,2}|\d{1,2}[/-]\d{1,2}[/-](?:\d{4}|\d{2})"
_NAMED_DATE = (
    rf"\d{{1,2}}(?:st|nd|rd|th)?\s+{_MONTH}\.?,?\s+\d{{4}}"
    rf"|{_MONTH}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}"
)
_MONTH_YEAR = rf"{_MONTH}\.?,?\s+\d{{4}}"

BARE_DATE_RE = re.compile(rf"\b(?:{_NUMERIC_DATE}|{_NAMED_DATE})\b", re.IGNORECASE)
DEADLINE_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(term).replace(r"\ ", r"\s+") for term in keyword_source.DEADLINE_TERMS) + r")\w*"
    r"(?:\s+(?:date|is|on|by|of|for|till|until|before|extended\s+to))*"
    rf"\s*[:\-–]?\s*\b({_NUMERIC_DATE}|{_NAMED_DATE}|{_MONTH_YEAR})\b",
    re.IGNORECASE,
)


def _clean(text: str) -> str:
    cleaned = _ORDINAL_RE.sub(r"\1", text)
    cleaned = _MONTH_DOT_RE.sub(r"\1", cleaned)
    return _SEPT_RE.sub("Sep", cleaned)


def normalize_date(value: object) -> str | None:
    """
    Normalize a free-text date.

    Returns ``None`` for empty input, ``ROLLING_DEADLINE`` for continuous-call wording,
    an ISO ``yyyy-mm-dd`` string for the first layout giving a year >= MIN_DEADLINE_YEAR,
    and otherwise the whitespace-collapsed input unchanged.
    """
    if not value or not isinstance(value, str):
        return None
    text = " ".join(value.split())
    if not text:
        return None
    if ROLLING_RE.search(text):
        return ROLLING_DEADLINE

    candidate = _clean(text)
    for layout in DATE_LAYOUTS:
        try:
            parsed = datetime.strptime(candidate, layout)
        except ValueError:
            continue
        if parsed.year < MIN_DEADLINE_YEAR:
            continue
        return parsed.date().isoformat()
    return text


def is_iso_date(value: str | None) -> bool:
    return bool(value) and ISO_DATE_RE.fullmatch(value) is not None


def extract_dates(text: str) -> tuple[str | None, str | None]:
    """
    Reduce the date expressions in ``text`` to ``(start, end)``.

    Two or more distinct dates give (earliest, latest); a single date is the end date
    only; "throughout the year" yields a rolling end date with no start.
    """
    if not text:
        return None, None
    if THROUGHOUT_YEAR_RE.search(text):
        return None, ROLLING_DEADLINE

    tokens = [match.group(1) for match in DEADLINE_RE.finditer(text)]
    tokens.extend(match.group(0) for match in BARE_DATE_RE.finditer(text))

    found: set[date] = set()
    for token in tokens:
        normalized = normalize_date(token)
        if is_iso_date(normalized):
            found.add(date.fromisoformat(normalized))

    ordered = sorted(found)
    if len(ordered) >= 2:
        return ordered[0].isoformat(), ordered[-1].isoformat()
    if ordered:
        return None, ordered[0].isoformat()
    return None, None
