from __future__ import annotations

import logging

import httpx

from shodhsahayak.core.config import Settings
from shodhsahayak.domain.models import ProposalRecord

logger = logging.getLogger(__name__)

NOTIFY_TIMEOUT_SECONDS = 10.0
MAX_LISTED = 10


def format_digest(proposals: list[ProposalRecord]) -> str:
    lines = [f"{len(proposals)} new funding call(s) found:"]
    for proposal in proposals[:MAX_LISTED]:
        lines.append(f"• [{proposal.agency}] {proposal.title} (deadline: {proposal.end_date}) {proposal.link}")
    if len(proposals) > MAX_LISTED:
        lines.append(f"…and {len(proposals) - MAX_LISTED} more")
    return "\n".join(lines)


class NotificationService:
    """Forwards newly found proposals to a webhook (Slack-compatible ``text`` field)."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.NOTIFY_WEBHOOK_URL)

    async def notify(self, proposals: list[ProposalRecord]) -> bool:
        """Post the delta; delivery problems are logged and reported as ``False``."""
        if not proposals or not self.enabled:
            return False
        payload = {
            "text": format_digest(proposals),
            "proposals": [proposal.to_payload() for proposal in proposals],
        }
        try:
            async with httpx.AsyncClient(timeout=NOTIFY_TIMEOUT_SECONDS) as client:
                response = await client.post(self.settings.NOTIFY_WEBHOOK_URL, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("Notification webhook returned %s", exc.response.status_code)
            return False
        except httpx.HTTPError as exc:
            logger.warning("Notification webhook failed: %s", exc)
            return False
        logger.info("Notified webhook about %d new proposal(s)", len(proposals))
        return True
