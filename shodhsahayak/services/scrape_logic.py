from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from datetime import date, datetime, timezone
from typing import Any

from dateutil import parser as date_parser

from shodhsahayak.core.config import MIN_DEADLINE_YEAR, Settings
from shodhsahayak.core.exceptions import (
    ContentAbsentError,
    FetchAuthenticationError,
    FetchError,
    ScrapeInProgressError,
    StorageError,
)
from shodhsahayak.domain.agencies import DEFAULT_SOURCES
from shodhsahayak.domain.models import ProposalKey, ProposalRecord, ScrapeSummary, Source
from shodhsahayak.services.extraction import ExtractionEngine, merge_records
from shodhsahayak.services.firecrawl_svc import FirecrawlService
from shodhsahayak.services.notify_svc import NotificationService
from shodhsahayak.storage.proposal_storage import ProposalStorage

logger = logging.getLogger(__name__)

# Free-text dates missing a year or day are read against a fixed date, not today.
SORT_DEFAULT = datetime(MIN_DEADLINE_YEAR, 1, 1)


def chunked(items: Sequence[Source], size: int) -> list[Sequence[Source]]:
    return [items[start:start + size] for start in range(0, len(items), size)]


def end_date_sort_key(record: ProposalRecord) -> tuple[int, date]:
    """Parseable end dates first, ascending; sentinels and free text after them."""
    try:
        return (0, date.fromisoformat(record.end_date))
    except ValueError:
        pass
    try:
        return (0, date_parser.parse(record.end_date, default=SORT_DEFAULT).date())
    except (ValueError, TypeError, OverflowError):
        return (1, date.min)


def sort_by_deadline(records: Iterable[ProposalRecord]) -> list[ProposalRecord]:
    return sorted(records, key=end_date_sort_key)


def compute_delta(records: Iterable[ProposalRecord], existing_keys: set[ProposalKey]) -> list[ProposalRecord]:
    """Records whose ``(title, link)`` is not in the store yet."""
    return [record for record in records if record.key not in existing_keys]


class ScrapeOrchestrator:
    """
    Drives one scrape run over every configured source.

    Sources are fetched one at a time, in batches, with a short pause between requests
    and a longer one between batches. A failing source is logged and skipped; an
    authentication failure against the fetch service ends the run.
    """

    def __init__(
        self,
        fetch_service: FirecrawlService,
        storage: ProposalStorage,
        settings: Settings,
        engine: ExtractionEngine | None = None,
        notifier: NotificationService | None = None,
        sources: Sequence[Source] = DEFAULT_SOURCES,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.fetch_service = fetch_service
        self.storage = storage
        self.settings = settings
        self.engine = engine or ExtractionEngine()
        self.notifier = notifier
        self.sources = tuple(sources)
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def _scrape_source(self, source: Source) -> list[ProposalRecord]:
        content = await self.fetch_service.fetch_content(source.url)
        return self.engine.extract(content, source.url, source.aggregator)

    async def collect(self) -> tuple[list[ProposalRecord], list[str]]:
        """Fetch and extract every source; returns deduplicated, deadline-ordered records and skipped URLs."""
        found: list[ProposalRecord] = []
        skipped: list[str] = []
        batches = chunked(self.sources, self.settings.BATCH_SIZE)

        for batch_index, batch in enumerate(batches):
            for source_index, source in enumerate(batch):
                logger.info("Scraping %s...", source.url, extra={"source": source.url})
                try:
                    records = await self._scrape_source(source)
                except FetchAuthenticationError:
                    logger.error("Could not authenticate to fetch service; aborting run")
                    raise
                except ContentAbsentError as exc:
                    logger.warning("Skipped %s: %s", source.url, exc, extra={"source": source.url})
                    skipped.append(source.url)
                except FetchError as exc:
                    logger.warning("Skipped %s: %s", source.url, exc, extra={"source": source.url})
                    skipped.append(source.url)
                except Exception:
                    logger.exception("Extraction failed for %s", source.url, extra={"source": source.url})
                    skipped.append(source.url)
                else:
                    logger.info("Found %d proposal(s) on %s", len(records), source.url, extra={"source": source.url})
                    found.extend(records)

                if source_index < len(batch) - 1:
                    await self._sleep(self.settings.REQUEST_DELAY_SECONDS)

            if batch_index < len(batches) - 1:
                logger.info("Batch %d/%d done; pausing %.1fs", batch_index + 1, len(batches),
                            self.settings.BATCH_DELAY_SECONDS)
                await self._sleep(self.settings.BATCH_DELAY_SECONDS)

        return sort_by_deadline(merge_records(found)), skipped

    async def run(self, *, dry_run: bool = False) -> ScrapeSummary:
        """
        Full run: collect, diff against the store, insert the delta, notify.

        Raises FetchAuthenticationError or StorageError when the run cannot complete.
        """
        if self._lock.locked():
            raise ScrapeInProgressError("A scrape is already running.")

        async with self._lock:
            summary = ScrapeSummary(dry_run=dry_run)
            records, skipped = await self.collect()
            existing_keys = await self.storage.existing_keys()
            delta = compute_delta(records, existing_keys)

            if not dry_run:
                summary.inserted = await self.storage.insert_if_absent(delta)
                if delta and self.notifier:
                    await self.notifier.notify(delta)

            summary.found = len(records)
            summary.new = len(delta)
            summary.failed_sources = skipped
            summary.proposals = delta
            summary.finished_at = datetime.now(timezone.utc)

        logger.info(
            "Scrape finished: found=%d new=%d inserted=%d skipped=%d",
            summary.found, summary.new, summary.inserted, len(skipped),
        )
        return summary

    async def run_in_background(self) -> None:
        """Entry point for fire-and-forget runs; outcome only reaches the logs."""
        try:
            await self.run()
        except FetchAuthenticationError:
            logger.error("Manual scrape aborted: could not authenticate to fetch service")
        except StorageError as exc:
            logger.error("Manual scrape aborted: could not reach store (%s)", exc)
        except ScrapeInProgressError:
            logger.warning("Manual scrape skipped: another run is in progress")
