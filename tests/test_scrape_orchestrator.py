"""
Tests for ScrapeOrchestrator with a mocked fetch service and an in-memory store.
"""
from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, Mock

import pytest

from shodhsahayak.core.config import Settings
from shodhsahayak.core.exceptions import (
    ContentAbsentError,
    FetchAuthenticationError,
    FetchRejectedError,
    ScrapeInProgressError,
)
from shodhsahayak.core.resilience import store_policy
from shodhsahayak.domain.agencies import build_sources
from shodhsahayak.domain.models import NOT_SPECIFIED, ROLLING_DEADLINE, ProposalRecord
from shodhsahayak.services.scrape_logic import (
    ScrapeOrchestrator,
    chunked,
    compute_delta,
    end_date_sort_key,
    sort_by_deadline,
)
from shodhsahayak.storage.proposal_storage import ProposalStorage, create_store_engine

SERB_SOURCE = "https://serb.gov.in/page/show/63"
DST_SOURCE = "https://dst.gov.in/call-for-proposals"
AGGREGATOR_SOURCE = "https://vit.ac.in/research/call-for-proposals"
BLANK_SOURCE = "https://www.icssr.org/funding"

PAGES = {
    SERB_SOURCE: (
        "SERB invites proposals under the "
        "[SERB Core Research Grant Call 2025](https://serb.gov.in/crg/apply) scheme.\n"
        "Deadline: 31/12/2025\n"
    ),
    DST_SOURCE: (
        "## Call for Proposals under the Indo-German Programme 2025\n"
        "Closing date: 15/04/2025\n"
        "Apply online at https://onlinedst.gov.in/apply\n"
    ),
    AGGREGATOR_SOURCE: FetchRejectedError("Firecrawl rejected the URL", url=AGGREGATOR_SOURCE, status_code=400),
    BLANK_SOURCE: ContentAbsentError("No usable content", url=BLANK_SOURCE),
}


def _fetch_service(pages):
    async def fetch_content(url):
        outcome = pages[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    service = Mock()
    service.fetch_content = AsyncMock(side_effect=fetch_content)
    return service


@pytest.fixture
def storage():
    store = ProposalStorage(create_store_engine("sqlite://"), policy=store_policy(max_attempts=1, delay=0))
    store.create_schema()
    return store


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_orchestrator(storage, sleeps):
    """Build an orchestrator over the four test sources with recorded pauses."""

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    def factory(pages=PAGES, notifier=None):
        return ScrapeOrchestrator(
            fetch_service=_fetch_service(pages),
            storage=storage,
            settings=Settings(BATCH_SIZE=2, BATCH_DELAY_SECONDS=5, REQUEST_DELAY_SECONDS=0.5),
            notifier=notifier,
            sources=build_sources([SERB_SOURCE, DST_SOURCE, AGGREGATOR_SOURCE, BLANK_SOURCE]),
            sleep=fake_sleep,
        )

    return factory


@pytest.mark.asyncio
async def test_run_inserts_new_proposals_and_skips_failures(make_orchestrator, storage):
    orchestrator = make_orchestrator()

    summary = await orchestrator.run()

    assert summary.found == 2
    assert summary.new == 2
    assert summary.inserted == 2
    assert summary.failed_sources == [AGGREGATOR_SOURCE, BLANK_SOURCE]
    assert summary.finished_at is not None
    # ascending by end date
    assert [p.end_date for p in summary.proposals] == ["2025-04-15", "2025-12-31"]
    assert len(await storage.existing_keys()) == 2


@pytest.mark.asyncio
async def test_second_run_finds_no_delta(make_orchestrator):
    orchestrator = make_orchestrator()
    await orchestrator.run()

    summary = await orchestrator.run()

    assert summary.found == 2
    assert summary.new == 0
    assert summary.inserted == 0
    assert summary.proposals == []


@pytest.mark.asyncio
async def test_dry_run_writes_nothing(make_orchestrator, storage):
    notifier = Mock()
    notifier.notify = AsyncMock(return_value=True)
    orchestrator = make_orchestrator(notifier=notifier)

    summary = await orchestrator.run(dry_run=True)

    assert summary.dry_run is True
    assert summary.new == 2
    assert summary.inserted == 0
    assert await storage.existing_keys() == set()
    notifier.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_notifier_receives_delta(make_orchestrator):
    notifier = Mock()
    notifier.notify = AsyncMock(return_value=True)
    orchestrator = make_orchestrator(notifier=notifier)

    summary = await orchestrator.run()

    notifier.notify.assert_awaited_once_with(summary.proposals)


@pytest.mark.asyncio
async def test_pacing_between_requests_and_batches(make_orchestrator, sleeps):
    await make_orchestrator().collect()

    assert sleeps == [0.5, 5, 0.5]


@pytest.mark.asyncio
async def test_auth_failure_aborts_run(make_orchestrator, storage):
    pages = dict(PAGES)
    pages[DST_SOURCE] = FetchAuthenticationError("Firecrawl rejected the API key.", status_code=401)
    orchestrator = make_orchestrator(pages=pages)

    with pytest.raises(FetchAuthenticationError):
        await orchestrator.run()

    assert orchestrator.fetch_service.fetch_content.await_count == 2
    assert await storage.existing_keys() == set()
    assert orchestrator.is_running is False


@pytest.mark.asyncio
async def test_unexpected_error_skips_source(make_orchestrator):
    pages = dict(PAGES)
    pages[SERB_SOURCE] = RuntimeError("boom")

    records, skipped = await make_orchestrator(pages=pages).collect()

    assert [r.agency for r in records] == ["DST"]
    assert skipped == [SERB_SOURCE, AGGREGATOR_SOURCE, BLANK_SOURCE]


@pytest.mark.asyncio
async def test_concurrent_run_is_refused(make_orchestrator):
    orchestrator = make_orchestrator()

    async with orchestrator._lock:
        assert orchestrator.is_running is True
        with pytest.raises(ScrapeInProgressError):
            await orchestrator.run()


@pytest.mark.asyncio
async def test_run_in_background_logs_auth_failure(make_orchestrator, caplog):
    pages = {url: FetchAuthenticationError("bad key", status_code=401) for url in PAGES}
    orchestrator = make_orchestrator(pages=pages)

    await orchestrator.run_in_background()

    assert "could not authenticate" in caplog.text


def _record(title, end_date):
    return ProposalRecord(title=title, end_date=end_date, link=f"https://example.org/{len(title)}")


def test_sort_puts_dates_first_and_keeps_sentinel_order():
    records = [
        _record("Unspecified Grant Call", NOT_SPECIFIED),
        _record("Late Research Call", "2025-12-31"),
        _record("Rolling Fellowship", ROLLING_DEADLINE),
        _record("Early Research Call", "2025-03-01"),
    ]

    ordered = sort_by_deadline(records)

    assert [r.title for r in ordered] == [
        "Early Research Call",
        "Late Research Call",
        "Unspecified Grant Call",
        "Rolling Fellowship",
    ]


def test_sort_reads_partial_free_text_dates_against_a_fixed_year():
    records = [
        _record("Open Research Call", "2025-01-01"),
        _record("Partial Date Grant Call", "15 March"),
    ]

    ordered = sort_by_deadline(records)

    assert [r.title for r in ordered] == ["Partial Date Grant Call", "Open Research Call"]
    assert end_date_sort_key(records[1]) == (0, date(2024, 3, 15))


def test_compute_delta_excludes_existing_keys():
    known = _record("Known Research Call", "2025-03-01")
    fresh = _record("Fresh Research Call 2025", "2025-03-01")

    assert compute_delta([known, fresh], {known.key}) == [fresh]


def test_chunked():
    assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
