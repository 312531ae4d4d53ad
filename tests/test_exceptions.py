"""
Tests for custom exception hierarchy in shodhsahayak.core.exceptions.
"""
from __future__ import annotations

import pytest

from shodhsahayak.core.exceptions import (
    ContentAbsentError,
    FetchAuthenticationError,
    FetchError,
    FetchRejectedError,
    FetchTransientError,
    ScrapeInProgressError,
    ShodhSahayakError,
    StorageError,
    ValidationError,
)


class TestExceptionHierarchy:
    """Verify inheritance relationships in the exception hierarchy."""

    def test_all_exceptions_inherit_from_base_error(self):
        for exc_cls in (
            FetchError, FetchTransientError, FetchRejectedError, FetchAuthenticationError,
            ContentAbsentError, StorageError, ValidationError, ScrapeInProgressError,
        ):
            assert issubclass(exc_cls, ShodhSahayakError)

    def test_fetch_errors_inherit_from_fetch_error(self):
        for exc_cls in (FetchTransientError, FetchRejectedError, FetchAuthenticationError, ContentAbsentError):
            assert issubclass(exc_cls, FetchError)

    def test_storage_error_is_not_a_fetch_error(self):
        assert not issubclass(StorageError, FetchError)


class TestFetchError:
    def test_with_url_and_status_code(self):
        err = FetchAuthenticationError("rejected", url="https://dst.gov.in/", status_code=401)
        assert str(err) == "rejected"
        assert err.url == "https://dst.gov.in/"
        assert err.status_code == 401

    def test_defaults(self):
        err = FetchTransientError("timed out")
        assert err.url is None
        assert err.status_code is None

    def test_catchable_as_base(self):
        with pytest.raises(ShodhSahayakError):
            raise ContentAbsentError("empty page", url="https://tdb.gov.in/")
