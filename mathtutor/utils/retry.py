"""
Fixed-delay retry for persistence calls.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_fixed

logger = logging.getLogger(__name__)


def _log_retry(what: str, attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"⚠️ {what} attempt {retry_state.attempt_number}/{attempts} failed: {error}"
        )
    return before_sleep


async def retry_call(
    func: Callable[..., Any],
    *args,
    attempts: int = 3,
    delay: float = 1.0,
    what: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    **kwargs
) -> Tuple[Any, int]:
    """
    Call ``func`` up to ``attempts`` times with a fixed delay between tries.

    ``func`` may be sync or async. The last exception is re-raised once
    attempts are exhausted.

    Returns:
        Tuple of (result, attempt number that succeeded)
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay),
        reraise=True,
        before_sleep=_log_retry(what, attempts),
        sleep=sleep or asyncio.sleep
    )

    result = None
    attempt_number = 0
    async for attempt in retrying:
        with attempt:
            attempt_number = attempt.retry_state.attempt_number
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result

    return result, attempt_number
