from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from shodhsahayak.core.exceptions import FetchTransientError

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def is_transient_fetch_error(exc: BaseException) -> bool:
    return isinstance(exc, FetchTransientError)


def is_transient_store_error(exc: BaseException) -> bool:
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry: how many attempts, how long to wait, which errors qualify."""

    max_attempts: int = 3
    delay: float = 1.0
    exponential: bool = False
    max_delay: float = 30.0
    retryable: Callable[[BaseException], bool] = is_transient_fetch_error

    def _wait(self):
        if self.exponential:
            return wait_exponential(multiplier=self.delay, min=self.delay, max=self.max_delay)
        return wait_fixed(self.delay)

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait(),
            retry=retry_if_exception(self.retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def call(self, func: Callable[P, Awaitable[R]], *args: P.args, **kwargs: P.kwargs) -> R:
        return await self.retrying()(func, *args, **kwargs)


def fetch_policy(max_attempts: int = 3, delay: float = 2.0) -> RetryPolicy:
    return RetryPolicy(max_attempts=max_attempts, delay=delay, retryable=is_transient_fetch_error)


def store_policy(max_attempts: int = 3, delay: float = 1.0) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=max_attempts,
        delay=delay,
        exponential=True,
        retryable=is_transient_store_error,
    )
