import asyncio
import random
from typing import Awaitable, Callable, Optional

import httpx

from utils.logger import get_logger

logger = get_logger("retry")

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    asyncio.TimeoutError,
)
RETRYABLE_STATUS_CODES: tuple[int, ...] = (429, 500, 502, 503, 504)


class RetryConfig:
    """Exponential backoff settings for outbound HTTP calls"""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
        jitter: bool = True,
    ):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter


def backoff_delay(attempt: int, config: RetryConfig) -> float:
    delay = min(config.base_delay * (2**attempt), config.max_delay)
    if config.jitter:
        delay *= 0.5 + random.random()
    return delay


def is_retryable(error: Exception) -> bool:
    if isinstance(error, RETRYABLE_EXCEPTIONS):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES
    return False


async def get_with_retry(
    client: httpx.AsyncClient,
    url: str,
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs,
) -> httpx.Response:
    """GET ``url`` raising for status, retrying transient failures.

    The last error is re-raised once attempts run out; non-retryable errors
    are raised immediately.
    """
    config = config or RetryConfig()

    for attempt in range(config.max_attempts):
        try:
            response = await client.get(url, **kwargs)
            response.raise_for_status()
            return response
        except Exception as e:
            if not is_retryable(e) or attempt >= config.max_attempts - 1:
                raise

            delay = backoff_delay(attempt, config)
            if isinstance(e, httpx.HTTPStatusError) and e.response.status_code == 429:
                retry_after = e.response.headers.get("Retry-After")
                if retry_after and retry_after.isdigit():
                    delay = max(delay, float(retry_after))

            logger.warning(
                "Retrying HTTP request",
                url=url,
                attempt=attempt + 1,
                max_attempts=config.max_attempts,
                delay=round(delay, 3),
                error=str(e),
            )
            await sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover
