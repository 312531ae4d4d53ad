from __future__ import annotations

from datetime import datetime, timezone
from secrets import compare_digest

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, status

from shodhsahayak.api.dependencies import get_app_settings, get_scrape_orchestrator
from shodhsahayak.core.config import Settings
from shodhsahayak.services.scrape_logic import ScrapeOrchestrator

router = APIRouter(prefix="/api", tags=["scrape"])


def verify_scrape_secret(
    x_scrape_auth: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Require a shared secret header for manually triggered scrapes."""
    expected_secret = settings.SCRAPE_SECRET
    if not expected_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scrape secret is not configured.",
        )

    if not x_scrape_auth or not compare_digest(x_scrape_auth, expected_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized scrape invocation.",
        )


@router.post("/scrape", status_code=status.HTTP_202_ACCEPTED, dependencies=[Depends(verify_scrape_secret)])
async def trigger_scrape(
    background_tasks: BackgroundTasks,
    orchestrator: ScrapeOrchestrator = Depends(get_scrape_orchestrator),
) -> dict[str, object]:
    """Start a scrape in the background; results land in the store and the logs."""
    if orchestrator.is_running:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A scrape is already running.")

    background_tasks.add_task(orchestrator.run_in_background)
    return {
        "success": True,
        "message": "Scrape initiated, this may take a few minutes...",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
