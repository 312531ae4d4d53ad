from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from shodhsahayak.api.dependencies import get_app_settings, get_storage
from shodhsahayak.core.config import Settings
from shodhsahayak.storage.proposal_storage import ProposalStorage

router = APIRouter(tags=["system"])


@router.get("/health")
async def health(
    storage: ProposalStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, str]:
    """Liveness plus a database reachability check; always 200."""
    database = "Connected" if await storage.ping() else "Disconnected"
    return {
        "status": "UP",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "environment": settings.ENVIRONMENT,
    }
