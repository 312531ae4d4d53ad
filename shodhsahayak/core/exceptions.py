"""Custom exceptions for Shodh Sahayak."""

from __future__ import annotations


class ShodhSahayakError(Exception):
    """Base exception for all Shodh Sahayak errors."""
    pass


class FetchError(ShodhSahayakError):
    """Base exception for content-fetch failures."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class FetchTransientError(FetchError):
    """Timeout, network failure or a 5xx/429-style response; worth retrying."""
    pass


class FetchRejectedError(FetchError):
    """Definitive rejection of one URL by the fetch service; never retried."""
    pass


class FetchAuthenticationError(FetchError):
    """The fetch service refused our credentials. Aborts the whole run."""
    pass


class ContentAbsentError(FetchError):
    """Success envelope without any usable page text."""
    pass


class StorageError(ShodhSahayakError):
    """Raised when the proposal store is unreachable or a write fails."""
    pass


class ValidationError(ShodhSahayakError):
    """Raised when input validation fails."""
    pass


class ScrapeInProgressError(ShodhSahayakError):
    """Raised when a scrape is triggered while another one is running."""
    pass
