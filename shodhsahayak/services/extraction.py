"""
Proposal extraction from one page of fetched content.

Three independent strategies look at the same page:

* inline ``[title](url)`` references,
* lines that read like a call title, paired with the first usable URL nearby,
* pipe-delimited table rows.

Their output is merged by ``(title, link)``; the first strategy to produce a key keeps
it. Strategies are plain callables over a ``PageContext``, so new ones can be appended
without touching the merge.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cached_property

from pydantic import ValidationError as PydanticValidationError

from shodhsahayak.domain.agencies import agency_for_code, resolve_agency
from shodhsahayak.domain.models import NOT_SPECIFIED, ProposalKey, ProposalRecord
from shodhsahayak.services.attribution import attribute_agency
from shodhsahayak.services.dates import extract_dates
from shodhsahayak.services.filters import is_proposal_title, should_skip_link

logger = logging.getLogger(__name__)

LINES_BEFORE = 3
LINES_AFTER = 4
MIN_TABLE_COLUMNS = 5

INLINE_LINK_RE = re.compile(r"\[([^\[\]\n]+?)\]\((https?://[^\s)]+)\)")
URL_RE = re.compile(r"https?://[^\s<>\"']+")
_MARKDOWN_LINK_RE = re.compile(r"!?\[([^\[\]\n]*)\]\([^)\s]*\)")
_LEADING_MARKER_RE = re.compile(r"^\s*(?:[#>*+\-•|]+|\d{1,2}[.)])\s+")
_EMPHASIS_RE = re.compile(r"\*\*|__|`")


@dataclass(frozen=True)
class PageContext:
    """Everything a strategy may look at for one page."""

    content: str
    source_url: str
    aggregator: bool
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @cached_property
    def lines(self) -> list[str]:
        return self.content.splitlines()

    @cached_property
    def page_dates(self) -> tuple[str | None, str | None]:
        return extract_dates(self.content)


Strategy = Callable[[PageContext], Iterable[ProposalRecord]]


def clean_title(text: str) -> str:
    """Strip markdown decoration (links, bullets, emphasis, bare URLs) from a text span."""
    text = _MARKDOWN_LINK_RE.sub(r"\1", text)
    text = URL_RE.sub(" ", text)
    text = _EMPHASIS_RE.sub("", text)
    text = _LEADING_MARKER_RE.sub("", text)
    return " ".join(text.split()).strip(" |*-:")


def trim_url(url: str) -> str:
    """Drop punctuation a URL regex drags in from surrounding prose or markdown."""
    url = url.rstrip(".,;:!?*_")
    while url.endswith(")") and url.count("(") < url.count(")"):
        url = url[:-1].rstrip(".,;:!?*_")
    return url


def find_urls(text: str) -> list[str]:
    return [trim_url(match.group(0)) for match in URL_RE.finditer(text)]


def table_cells(line: str) -> list[str] | None:
    """Non-empty trimmed cells of a pipe-delimited row, or None if ``line`` is not one."""
    if line.count("|") < MIN_TABLE_COLUMNS - 1:
        return None
    raw_cells = line.strip().strip("|").split("|")
    if len(raw_cells) < MIN_TABLE_COLUMNS:
        return None
    return [cell.strip() for cell in raw_cells if cell.strip()]


def _record(
    ctx: PageContext,
    title: str,
    link: str,
    dates: tuple[str | None, str | None],
    agency: str,
) -> ProposalRecord | None:
    start, end = dates
    try:
        return ProposalRecord(
            title=title,
            agency=agency,
            start_date=start or NOT_SPECIFIED,
            end_date=end or NOT_SPECIFIED,
            link=link,
            extracted_at=ctx.extracted_at,
        )
    except PydanticValidationError:
        return None


def inline_reference_strategy(ctx: PageContext) -> Iterable[ProposalRecord]:
    """``[title](url)`` anywhere on the page; page-wide dates and agency context."""
    for match in INLINE_LINK_RE.finditer(ctx.content):
        title = clean_title(match.group(1))
        link = match.group(2).strip()
        if not is_proposal_title(title):
            continue
        # an explicit anchor with a call-like label may point into the agency's own site
        if should_skip_link(link, ctx.source_url, ctx.aggregator, allow_same_domain=True):
            continue
        agency = attribute_agency(ctx.content, title, ctx.source_url, ctx.aggregator)
        record = _record(ctx, title, link, ctx.page_dates, agency)
        if record:
            yield record


def text_block_strategy(ctx: PageContext) -> Iterable[ProposalRecord]:
    """A call-like line plus the first acceptable URL within a few lines of it."""
    lines = ctx.lines
    for index, line in enumerate(lines):
        # rows belong to table_row_strategy
        if table_cells(line) is not None:
            continue
        title = clean_title(line)
        if not is_proposal_title(title):
            continue

        window = "\n".join(lines[max(0, index - LINES_BEFORE): index + LINES_AFTER + 1])
        for link in find_urls(window):
            if should_skip_link(link, ctx.source_url, ctx.aggregator):
                continue
            agency = attribute_agency(window, title, ctx.source_url, ctx.aggregator)
            record = _record(ctx, title, link, extract_dates(window), agency)
            if record:
                yield record
            break


def table_row_strategy(ctx: PageContext) -> Iterable[ProposalRecord]:
    """Rows of markdown tables: title cell, link cell, dates and agency from the row."""
    for line in ctx.lines:
        cells = table_cells(line)
        if not cells:
            continue

        title = next((clean_title(cell) for cell in cells if is_proposal_title(clean_title(cell))), None)
        link = next((urls[0] for urls in map(find_urls, cells) if urls), None)
        if not title or not link:
            continue
        if should_skip_link(link, ctx.source_url, ctx.aggregator):
            continue

        agency = next((code for code in map(agency_for_code, cells) if code), None)
        if agency is None:
            agency = attribute_agency(line, title, ctx.source_url, ctx.aggregator)
        record = _record(ctx, title, link, extract_dates(" ".join(cells)), agency)
        if record:
            yield record


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    inline_reference_strategy,
    text_block_strategy,
    table_row_strategy,
)


def merge_records(*groups: Iterable[ProposalRecord]) -> list[ProposalRecord]:
    """Deduplicate by ``(title, link)`` keeping the first record seen for each key."""
    merged: dict[ProposalKey, ProposalRecord] = {}
    for group in groups:
        for record in group:
            merged.setdefault(record.key, record)
    return list(merged.values())


class ExtractionEngine:
    """Runs every strategy over one page and merges their records."""

    def __init__(self, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES) -> None:
        self.strategies = tuple(strategies)

    def extract(
        self,
        content: str | None,
        source_url: str,
        aggregator: bool | None = None,
    ) -> list[ProposalRecord]:
        if not content or not content.strip():
            return []
        if aggregator is None:
            aggregator = resolve_agency(source_url) is None

        ctx = PageContext(content=content, source_url=source_url, aggregator=aggregator)
        groups: list[list[ProposalRecord]] = []
        for strategy in self.strategies:
            found = list(strategy(ctx))
            logger.debug(
                "%s found %d candidate(s) on %s",
                getattr(strategy, "__name__", repr(strategy)),
                len(found),
                source_url,
            )
            groups.append(found)
        return merge_records(*groups)
