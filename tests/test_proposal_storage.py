"""
Tests for ProposalStorage on an in-memory SQLite database.
"""
from __future__ import annotations

import pytest

from shodhsahayak.core.exceptions import StorageError
from shodhsahayak.core.resilience import store_policy
from shodhsahayak.domain.models import ProposalRecord
from shodhsahayak.storage.proposal_storage import ProposalStorage, create_store_engine


@pytest.fixture
def storage():
    store = ProposalStorage(create_store_engine("sqlite://"), policy=store_policy(max_attempts=1, delay=0))
    store.create_schema()
    return store


@pytest.fixture
def records():
    return [
        ProposalRecord(
            title="SERB Core Research Grant Call 2025",
            agency="SERB",
            end_date="2025-12-31",
            link="https://serb.gov.in/crg/apply",
        ),
        ProposalRecord(
            title="Ramanujan Fellowship 2025",
            agency="SERB",
            end_date="2025-07-31",
            link="https://serbonline.in/ramanujan",
        ),
        ProposalRecord(
            title="Call for Proposals on Clean Energy Research",
            agency="DST",
            start_date="2025-01-01",
            end_date="2025-06-30",
            link="https://onlinedst.gov.in/clean-energy",
        ),
    ]


@pytest.mark.asyncio
async def test_insert_if_absent_is_noop_on_conflict(storage, records):
    assert await storage.insert_if_absent(records) == 3
    assert await storage.insert_if_absent(records) == 0

    keys = await storage.existing_keys()
    assert keys == {record.key for record in records}


@pytest.mark.asyncio
async def test_same_title_with_other_link_is_new(storage, records):
    await storage.insert_if_absent(records[:1])
    moved = records[0].model_copy(update={"link": "https://serbonline.in/crg"})

    assert await storage.insert_if_absent([moved]) == 1


@pytest.mark.asyncio
async def test_insert_nothing(storage):
    assert await storage.insert_if_absent([]) == 0


@pytest.mark.asyncio
async def test_stored_columns(storage, records):
    await storage.insert_if_absent(records[2:])

    rows, total = await storage.list_proposals(page=1, limit=10)

    assert total == 1
    row = rows[0]
    assert row.title == "Call for Proposals on Clean Energy Research"
    assert row.agency == "DST"
    assert row.from_date == "2025-01-01"
    assert row.deadline == "2025-06-30"
    assert row.link == "https://onlinedst.gov.in/clean-energy"
    assert row.created_at is not None


@pytest.mark.asyncio
async def test_list_proposals_paginates(storage, records):
    await storage.insert_if_absent(records)

    first_page, total = await storage.list_proposals(page=1, limit=2)
    second_page, _ = await storage.list_proposals(page=2, limit=2)

    assert total == 3
    assert len(first_page) == 2
    assert len(second_page) == 1
    # same insert batch, so ordered by deadline descending
    assert [row.deadline for row in first_page + second_page] == ["2025-12-31", "2025-07-31", "2025-06-30"]


@pytest.mark.asyncio
async def test_by_agency_is_case_insensitive(storage, records):
    await storage.insert_if_absent(records)

    rows = await storage.by_agency("serb")

    assert {row.title for row in rows} == {"SERB Core Research Grant Call 2025", "Ramanujan Fellowship 2025"}


@pytest.mark.asyncio
async def test_search_matches_title_or_agency(storage, records):
    await storage.insert_if_absent(records)

    assert [row.title for row in await storage.search("fellowship")] == ["Ramanujan Fellowship 2025"]
    assert [row.agency for row in await storage.search("dst")] == ["DST"]
    assert await storage.search("%") == []


@pytest.mark.asyncio
async def test_agency_counts_busiest_first(storage, records):
    await storage.insert_if_absent(records)

    counts = await storage.agency_counts()

    assert [(c.agency, c.proposal_count) for c in counts] == [("SERB", 2), ("DST", 1)]


@pytest.mark.asyncio
async def test_ping(storage):
    assert await storage.ping() is True


@pytest.mark.asyncio
async def test_unreachable_store_raises_storage_error():
    broken = ProposalStorage(
        create_store_engine("sqlite:////nonexistent-dir/for-tests/proposals.db"),
        policy=store_policy(max_attempts=2, delay=0),
    )

    assert await broken.ping() is False
    with pytest.raises(StorageError):
        await broken.existing_keys()
