"""
Retry with exponential backoff and jitter for outbound HTTP calls.

Rate limits (429), server errors (5xx) and network errors are retried. Once the
retries are used up the call resolves to a fallback value (an empty list by
default) instead of raising; pass fallback=RAISE to re-raise. Anything else
propagates on the first failure.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

RAISE = object()

RATE_LIMIT = "rate_limit"
SERVER_ERROR = "server_error"
NETWORK_ERROR = "network_error"


def classify_error(exc: BaseException) -> Optional[str]:
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        if code == 429:
            return RATE_LIMIT
        if 500 <= code < 600:
            return SERVER_ERROR
        return None
    if isinstance(exc, httpx.TransportError):
        return NETWORK_ERROR
    return None


def backoff_delay(attempt: int, initial_delay: float, kind: str, rand: Callable[[], float] = random.random) -> float:
    """2^attempt * base, plus 30-70% jitter. Rate limits start from a 4x base."""
    base = initial_delay * 4 if kind == RATE_LIMIT else initial_delay
    backoff = (2 ** attempt) * base
    return backoff + backoff * (0.3 + rand() * 0.4)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[Any]],
    max_retries: int = 3,
    initial_delay: float = 2.0,
    fallback: Any = list,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rand: Callable[[], float] = random.random,
):
    max_retries = max(max_retries, 1)
    for attempt in range(max_retries):
        try:
            return await fn()
        except Exception as e:
            kind = classify_error(e)
            if kind is None:
                raise

            if attempt < max_retries - 1:
                delay = backoff_delay(attempt, initial_delay, kind, rand)
                logger.info("Retry %d/%d in %dms (%s)", attempt + 1, max_retries, round(delay * 1000), kind)
                await sleep(delay)
                continue

            logger.warning("%s after %d retries", e, max_retries)
            if fallback is RAISE:
                raise
            return fallback() if callable(fallback) else fallback
