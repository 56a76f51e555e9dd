# game_reviewer/utils/retry.py
"""
Provides a generic, asynchronous retry decorator for handling transient errors.

Used by the adapters that talk to the network or to SQLite, where a failed
call is often worth repeating after a short, growing delay.
"""
import asyncio
import functools
import random
from typing import Any, Callable, Coroutine, Tuple, Type

import structlog

from game_reviewer.utils import metrics

logger = structlog.get_logger(__name__)

# Default exception types that are considered "transient" and worth retrying.
DEFAULT_TRANSIENT_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)


def retry_with_backoff(
    attempts: int = 3,
    initial_backoff_s: float = 0.5,
    max_backoff_s: float = 5.0,
    jitter_factor: float = 0.2,
    exceptions_to_catch: Tuple[Type[Exception], ...] = DEFAULT_TRANSIENT_EXCEPTIONS,
    system: str = "unknown",
) -> Callable[[Callable[..., Coroutine]], Callable[..., Coroutine]]:
    """
    An async decorator to retry a function with exponential backoff and jitter.

    Args:
        attempts: The maximum number of tries, including the first one.
        initial_backoff_s: The delay before the first retry.
        max_backoff_s: Upper bound on any single delay.
        jitter_factor: Adds or subtracts up to this fraction of the delay at random.
        exceptions_to_catch: Exception classes that trigger a retry.
        system: A label for the Prometheus counter, naming what is being retried.

    Returns:
        A decorated asynchronous function. The last exception is re-raised
        once all attempts are used up.
    """
    def decorator(func: Callable[..., Coroutine]) -> Callable[..., Coroutine]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = initial_backoff_s
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions_to_catch as e:
                    metrics.TRANSIENT_ERRORS_TOTAL.labels(system=system).inc()

                    if attempt == attempts:
                        logger.warning(
                            "Function call failed after max attempts.",
                            function=func.__name__,
                            total_attempts=attempts,
                            error=str(e),
                        )
                        raise

                    jitter = random.uniform(-current_delay * jitter_factor, current_delay * jitter_factor)
                    wait_time = min(max_backoff_s, current_delay + jitter)

                    logger.debug(
                        "Caught transient error, retrying function.",
                        function=func.__name__,
                        attempt=attempt,
                        total_attempts=attempts,
                        wait_seconds=round(wait_time, 2),
                        error=str(e),
                    )

                    await asyncio.sleep(wait_time)
                    current_delay *= 2
        return wrapper
    return decorator
