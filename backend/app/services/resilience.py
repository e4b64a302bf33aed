# resilience policies for calls to external services
# tenacity retries with exponential backoff + jitter, one policy per service family

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from botocore.exceptions import ConnectionClosedError, EndpointConnectionError
from google.api_core import exceptions as google_exceptions
from pymongo.errors import AutoReconnect
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# transient google api errors (rate limiting, overload, timeouts)
GOOGLE_TRANSIENT_ERRORS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.DeadlineExceeded,
)


@dataclass(frozen=True)
class RetryPolicy:
    name: str
    base_delay: float
    retry_on: tuple[type[BaseException], ...]


DATABASE = RetryPolicy("Database", 1.0, (AutoReconnect,))
LLM = RetryPolicy("Gemini", 2.0, GOOGLE_TRANSIENT_ERRORS)
COGNITIVE = RetryPolicy("Cognitive Services", 1.0, GOOGLE_TRANSIENT_ERRORS)
BLOB_STORAGE = RetryPolicy("Blob Storage", 0.5, (EndpointConnectionError, ConnectionClosedError))


def _log_retry(policy: RetryPolicy):
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"{policy.name} operation failed. Attempt {retry_state.attempt_number} of "
            f"{settings.RETRY_MAX_ATTEMPTS + 1}. Delaying {delay * 1000:.0f}ms. Exception: {exc or 'Unknown error'}"
        )

    return before_sleep


def build_retrying(policy: RetryPolicy) -> AsyncRetrying:
    """build a tenacity retrier for the policy using current settings"""
    delay = policy.base_delay * settings.RETRY_BACKOFF_SCALE
    return AsyncRetrying(
        stop=stop_after_attempt(settings.RETRY_MAX_ATTEMPTS + 1),
        wait=wait_exponential_jitter(initial=delay, max=delay * 30 if delay else 0, jitter=delay),
        retry=retry_if_exception_type(policy.retry_on),
        before_sleep=_log_retry(policy),
        reraise=True,
    )


async def call_with_retry(policy: RetryPolicy, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
    """await fn(*args, **kwargs), retrying transient failures per the policy"""
    async for attempt in build_retrying(policy):
        with attempt:
            result = await fn(*args, **kwargs)
    return result


async def run_blocking(policy: RetryPolicy, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """run a synchronous sdk call in a worker thread under the policy"""
    return await call_with_retry(policy, asyncio.to_thread, fn, *args, **kwargs)
