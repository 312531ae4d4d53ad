"""Run one scrape batch from the command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from shodhsahayak.core.config import get_settings
from shodhsahayak.core.exceptions import FetchAuthenticationError, StorageError
from shodhsahayak.core.logging import configure_logging
from shodhsahayak.domain.models import ScrapeSummary
from shodhsahayak.services.firecrawl_svc import FirecrawlService
from shodhsahayak.services.notify_svc import NotificationService
from shodhsahayak.services.scrape_logic import ScrapeOrchestrator
from shodhsahayak.storage.proposal_storage import get_proposal_storage

EXIT_OK = 0
EXIT_FETCH_AUTH = 2
EXIT_STORE = 3

logger = logging.getLogger("run_scrape")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="extract and diff, but do not insert or notify")
    parser.add_argument("--json", action="store_true", help="print the run summary as JSON")
    return parser


def render_summary(summary: ScrapeSummary) -> str:
    lines = [
        f"Found: {summary.found}  New: {summary.new}  Inserted: {summary.inserted}",
    ]
    if summary.failed_sources:
        lines.append("Skipped sources:")
        lines.extend(f"- {url}" for url in summary.failed_sources)
    for proposal in summary.proposals:
        lines.append(f"* [{proposal.agency}] {proposal.title} | {proposal.end_date} | {proposal.link}")
    return "\n".join(lines)


async def run(dry_run: bool) -> ScrapeSummary:
    settings = get_settings()
    storage = get_proposal_storage()
    await storage.initialize()
    orchestrator = ScrapeOrchestrator(
        fetch_service=FirecrawlService(settings),
        storage=storage,
        settings=settings,
        notifier=NotificationService(settings),
    )
    return await orchestrator.run(dry_run=dry_run)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().LOG_LEVEL)
    try:
        summary = asyncio.run(run(args.dry_run))
    except FetchAuthenticationError:
        logger.error("Could not authenticate to fetch service.")
        return EXIT_FETCH_AUTH
    except StorageError as exc:
        logger.error("Could not reach store: %s", exc)
        return EXIT_STORE

    if args.json:
        print(json.dumps(summary.to_payload(), indent=2))
    else:
        print(render_summary(summary))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
