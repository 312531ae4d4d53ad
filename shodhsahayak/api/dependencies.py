from __future__ import annotations

from functools import lru_cache

from shodhsahayak.core.config import Settings, get_settings
from shodhsahayak.services.extraction import ExtractionEngine
from shodhsahayak.services.firecrawl_svc import FirecrawlService
from shodhsahayak.services.notify_svc import NotificationService
from shodhsahayak.services.scrape_logic import ScrapeOrchestrator
from shodhsahayak.storage.proposal_storage import ProposalStorage, get_proposal_storage


def get_app_settings() -> Settings:
    return get_settings()


def get_storage() -> ProposalStorage:
    return get_proposal_storage()


@lru_cache(maxsize=1)
def get_fetch_service() -> FirecrawlService:
    return FirecrawlService(get_settings())


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    return NotificationService(get_settings())


@lru_cache(maxsize=1)
def get_scrape_orchestrator() -> ScrapeOrchestrator:
    return ScrapeOrchestrator(
        fetch_service=get_fetch_service(),
        storage=get_proposal_storage(),
        settings=get_settings(),
        engine=ExtractionEngine(),
        notifier=get_notification_service(),
    )
