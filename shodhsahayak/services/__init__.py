from shodhsahayak.services.extraction import ExtractionEngine
from shodhsahayak.services.firecrawl_svc import FirecrawlService
from shodhsahayak.services.notify_svc import NotificationService
from shodhsahayak.services.scrape_logic import ScrapeOrchestrator

__all__ = [
    "ExtractionEngine",
    "FirecrawlService",
    "NotificationService",
    "ScrapeOrchestrator",
]
