"""
Tests for Settings validation.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from shodhsahayak.core.config import FETCH_TIMEOUT_MARGIN_SECONDS, Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.BATCH_SIZE == 5
    assert settings.FETCH_FORMATS == ["markdown"]
    assert settings.FETCH_MAX_ATTEMPTS == 3


def test_blank_secrets_become_none():
    settings = Settings(FIRECRAWL_API_KEY="  ", SCRAPE_SECRET="", NOTIFY_WEBHOOK_URL=" ")

    assert settings.FIRECRAWL_API_KEY is None
    assert settings.SCRAPE_SECRET is None
    assert settings.NOTIFY_WEBHOOK_URL is None


@pytest.mark.parametrize("field", ["BATCH_SIZE", "FETCH_MAX_ATTEMPTS", "STORE_MAX_ATTEMPTS"])
def test_counts_must_be_positive(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_delays_cannot_be_negative():
    with pytest.raises(ValidationError):
        Settings(BATCH_DELAY_SECONDS=-1)


def test_http_timeout_covers_render_wait():
    settings = Settings(FETCH_TIMEOUT_SECONDS=15, FETCH_WAIT_FOR_MS=2000)

    assert settings.http_timeout_seconds == 15 + 2 + FETCH_TIMEOUT_MARGIN_SECONDS
