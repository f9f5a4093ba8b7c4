import logging
import sqlite3
import time
from typing import Callable, Optional, Sequence, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Transient SQLite failures ("database is locked", "disk I/O error").
RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (sqlite3.OperationalError,)
RETRY_ATTEMPTS = 4  # first try plus one retry per delay
RETRY_DELAYS = (0.5, 1.0, 2.0)


def with_retry(
    fn: Callable[[], T],
    attempts: int = RETRY_ATTEMPTS,
    delays: Sequence[float] = RETRY_DELAYS,
    retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """Call fn, retrying on transient errors with a growing delay.

    The last error is re-raised once all attempts are used up; anything not
    listed in retry_on propagates immediately.
    """
    sleep = sleep or time.sleep
    for attempt in range(attempts):
        try:
            return fn()
        except retry_on as e:
            if attempt + 1 >= attempts:
                logger.error(f"Giving up after {attempts} attempts: {e}")
                raise
            delay = delays[min(attempt, len(delays) - 1)]
            logger.warning(f"Retry {attempt + 1}/{attempts - 1} after {type(e).__name__}: {e}, waiting {delay}s")
            sleep(delay)
    raise ValueError("attempts must be at least 1")
