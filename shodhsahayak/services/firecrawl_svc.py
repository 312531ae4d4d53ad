from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from shodhsahayak.core.config import Settings
from shodhsahayak.core.exceptions import (
    ContentAbsentError,
    FetchAuthenticationError,
    FetchRejectedError,
    FetchTransientError,
)
from shodhsahayak.core.resilience import RetryPolicy, fetch_policy
from shodhsahayak.domain.models import FetchedPage

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = {401, 403}
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}
DROPPED_TAGS = ["script", "style", "nav", "footer", "header", "noscript", "form"]
BLOCK_TAGS = ["p", "div", "li", "ul", "ol", "section", "article", "table",
              "h1", "h2", "h3", "h4", "h5", "h6", "br", "dt", "dd"]


def html_to_markdown(html: str, base_url: str) -> str:
    """Render HTML as markdown-like text: ``[text](href)`` anchors, ``| a | b |`` rows, one block per line."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(DROPPED_TAGS):
        tag.decompose()

    for anchor in soup.find_all("a", href=True):
        text = " ".join(anchor.get_text(" ").split())
        href = urljoin(base_url, anchor["href"].strip())
        anchor.replace_with(f"[{text}]({href})" if text else href)

    for row in soup.find_all("tr"):
        cells = [" ".join(cell.get_text(" ").split()) for cell in row.find_all(["td", "th"])]
        row.replace_with("\n| " + " | ".join(cells) + " |\n")

    for block in soup.find_all(BLOCK_TAGS):
        block.insert_before("\n")
        block.insert_after("\n")

    lines = (" ".join(line.split()) for line in soup.get_text().splitlines())
    return "\n".join(line for line in lines if line)


def page_text(page: FetchedPage) -> str | None:
    """Markdown when the service rendered it, otherwise the HTML fallback."""
    if page.markdown and page.markdown.strip():
        return page.markdown
    if page.html and page.html.strip():
        text = html_to_markdown(page.html, page.url)
        return text or None
    return None


class FirecrawlService:
    """Firecrawl scrape API client: one URL in, rendered page content out."""

    SCRAPE_PATH = "/v1/scrape"

    def __init__(self, settings: Settings, policy: RetryPolicy | None = None) -> None:
        self.settings = settings
        self.policy = policy or fetch_policy(
            max_attempts=settings.FETCH_MAX_ATTEMPTS,
            delay=settings.FETCH_RETRY_DELAY_SECONDS,
        )

    @property
    def endpoint(self) -> str:
        return self.settings.FIRECRAWL_BASE_URL.rstrip("/") + self.SCRAPE_PATH

    def build_payload(self, url: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "url": url,
            "formats": list(self.settings.FETCH_FORMATS),
            "onlyMainContent": True,
            "timeout": int(self.settings.FETCH_TIMEOUT_SECONDS * 1000),
        }
        if self.settings.FETCH_WAIT_FOR_MS:
            payload["waitFor"] = self.settings.FETCH_WAIT_FOR_MS
        if self.settings.FETCH_SKIP_TLS_VERIFICATION:
            payload["skipTlsVerification"] = True
        return payload

    async def _scrape_once(self, url: str) -> FetchedPage:
        api_key = self.settings.FIRECRAWL_API_KEY
        if not api_key:
            raise FetchAuthenticationError("Firecrawl API key is not configured.", url=url)

        try:
            async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
                response = await client.post(
                    self.endpoint,
                    json=self.build_payload(url),
                    headers={"Authorization": f"Bearer {api_key}"},
                )
        except httpx.TimeoutException as exc:
            raise FetchTransientError(f"Timed out fetching {url}", url=url) from exc
        except httpx.HTTPError as exc:
            raise FetchTransientError(f"Fetch request failed for {url}: {exc}", url=url) from exc

        status = response.status_code
        if status in AUTH_STATUS_CODES:
            raise FetchAuthenticationError(
                "Firecrawl rejected the API key.", url=url, status_code=status
            )
        if status in RETRYABLE_STATUS_CODES or status >= 500:
            raise FetchTransientError(
                f"Firecrawl returned {status} for {url}", url=url, status_code=status
            )
        if status >= 400:
            raise FetchRejectedError(
                f"Firecrawl rejected {url} ({status}): {self._error_text(response)}",
                url=url,
                status_code=status,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise FetchTransientError(f"Firecrawl returned invalid JSON for {url}", url=url) from exc

        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            raise FetchRejectedError(f"Scrape failed for {url}: {error or 'unknown error'}", url=url)

        data = body.get("data") or {}
        return FetchedPage(
            url=url,
            markdown=data.get("markdown") or body.get("markdown"),
            html=data.get("html") or data.get("rawHtml"),
            metadata=data.get("metadata") or {},
        )

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            return str(body.get("error") or body.get("message") or body)
        return str(body)

    async def scrape(self, url: str) -> FetchedPage:
        """Scrape ``url`` under the retry policy; only transient failures are retried."""
        return await self.policy.call(self._scrape_once, url)

    async def fetch_content(self, url: str) -> str:
        """Page text for extraction, or ContentAbsentError when the envelope carries none."""
        page = await self.scrape(url)
        text = page_text(page)
        if not text:
            raise ContentAbsentError(f"No usable content returned for {url}", url=url)
        return text
