"""Cheap accept/reject heuristics for candidate links and titles."""
from __future__ import annotations

import re
from urllib.parse import urlparse

import keywords as keyword_source
from shodhsahayak.domain.agencies import is_aggregator_url

MIN_TITLE_LENGTH = 10

SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
TITLE_KEYWORD_RE = re.compile(
    "|".join(re.escape(term) for term in keyword_source.TITLE_KEYWORDS),
    re.IGNORECASE,
)

_BLOCKED_EXTENSIONS = tuple(keyword_source.LINK_BLOCKED_EXTENSIONS)


def is_proposal_title(text: object) -> bool:
    """Permissive: at least ten characters and one funding-call keyword."""
    if not isinstance(text, str):
        return False
    text = text.strip()
    return len(text) >= MIN_TITLE_LENGTH and TITLE_KEYWORD_RE.search(text) is not None


def registrable_domain(host: str) -> str:
    """``www.serb.gov.in`` -> ``serb.gov.in``; ``news.example.com`` -> ``example.com``."""
    labels = host.lower().rstrip(".").split(".")
    if labels and labels[0] == "www":
        labels = labels[1:]
    if len(labels) >= 3 and ".".join(labels[-2:]) in keyword_source.MULTI_PART_SUFFIXES:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def _hostname(url: object) -> str | None:
    if not isinstance(url, str):
        return None
    try:
        return urlparse(url.strip()).hostname
    except ValueError:
        return None


def _is_blocked_domain(host: str) -> bool:
    return any(
        host == domain or host.endswith("." + domain)
        for domain in keyword_source.LINK_BLOCKED_DOMAINS
    )


def should_skip_link(
    url: object,
    source_url: str,
    aggregator: bool | None = None,
    *,
    allow_same_domain: bool = False,
) -> bool:
    """
    Decide whether a URL found on ``source_url`` cannot be a proposal link.

    Links back into the source's own registrable domain are skipped unless the source
    is an aggregator or the caller passes ``allow_same_domain``.
    """
    if not isinstance(url, str):
        return True
    url = url.strip()
    if not SCHEME_RE.match(url) or "..." in url:
        return True
    if "](" in url or "![" in url:
        return True
    lowered = url.lower()
    if any(scheme in lowered for scheme in keyword_source.LINK_BLOCKED_SCHEMES):
        return True

    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return True
    if not host:
        return True

    if aggregator is None:
        aggregator = isinstance(source_url, str) and is_aggregator_url(source_url)
    if not aggregator and not allow_same_domain:
        source_host = _hostname(source_url)
        if source_host and registrable_domain(host) == registrable_domain(source_host):
            return True

    path = parsed.path.lower()
    if any(fragment in path for fragment in keyword_source.LINK_BLOCKED_PATHS):
        return True
    if path.endswith(_BLOCKED_EXTENSIONS):
        return True
    if _is_blocked_domain(host):
        return True
    # bare in-page anchor
    if parsed.fragment and parsed.path in ("", "/") and not parsed.query:
        return True
    return False
