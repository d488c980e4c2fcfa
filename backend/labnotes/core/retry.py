"""
Retry with exponential backoff for transient infrastructure failures.

Database accessors and object-storage calls go through call_with_retry: a
transient error (refused/reset connection, timeout, invalidated DB connection)
is retried after base_delay * 2**(attempt-1) seconds, capped at max_delay, until
max_attempts total attempts have been made. Anything else propagates at once.
"""
import errno
import time
from functools import wraps
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_TRANSIENT_ERRNOS = {errno.ECONNREFUSED, errno.ECONNRESET, errno.ETIMEDOUT}
_TRANSIENT_MARKERS = (
    "connection refused",
    "connection reset",
    "connection timed out",
    "could not connect",
    "server closed the connection",
    "connection is closed",
    "connection was closed",
    "lost connection",
    "timeout",
    "timed out",
    "econnrefused",
    "econnreset",
    "etimedout",
)


def is_transient_error(exc: BaseException) -> bool:
    """True when the failure looks like a dropped or unreachable connection."""
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True
    if isinstance(exc, OSError) and exc.errno in _TRANSIENT_ERRNOS:
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        if isinstance(exc, (OperationalError, InterfaceError)):
            message = str(exc.orig if exc.orig is not None else exc).lower()
            return any(marker in message for marker in _TRANSIENT_MARKERS)
    return False


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before the retry that follows failed attempt number `attempt` (1-based)."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def call_with_retry(
    fn: Callable[[], T],
    max_attempts: int = 3,
    base_delay: float = 0.2,
    max_delay: float = 5.0,
    retry_if: Callable[[BaseException], bool] = is_transient_error,
    before_retry: Optional[Callable[[BaseException, int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "operation",
) -> T:
    """
    Run fn, retrying transient failures.

    Args:
        fn: zero-argument callable to run
        max_attempts: total attempts including the first one (minimum 1)
        base_delay: delay after the first failure, doubled for each further one
        max_delay: upper bound for a single delay
        retry_if: predicate deciding whether an error is worth another attempt
        before_retry: hook called with (error, attempt) before sleeping, e.g. a rollback
        sleep: injectable sleep function

    Returns:
        Whatever fn returns.

    Raises:
        The last error once attempts are exhausted, or any non-retryable error immediately.
    """
    attempts = max(1, int(max_attempts))
    attempt = 1
    while True:
        try:
            return fn()
        except Exception as e:
            if not retry_if(e):
                raise
            if attempt >= attempts:
                logger.error(f"[Retry] {label}: all {attempts} attempts failed: {type(e).__name__}")
                raise
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                f"[Retry] {label}: attempt {attempt}/{attempts} failed ({type(e).__name__}). "
                f"Retrying in {delay:.2f}s..."
            )
            if before_retry is not None:
                before_retry(e, attempt)
            if delay > 0:
                sleep(delay)
            attempt += 1


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 0.2,
    max_delay: float = 5.0,
    retry_if: Callable[[BaseException], bool] = is_transient_error,
):
    """
    Decorator form of call_with_retry.

    Usage:
        @retry_with_backoff(max_attempts=3, base_delay=0.2)
        def put_object(...): ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            return call_with_retry(
                lambda: func(*args, **kwargs),
                max_attempts=max_attempts,
                base_delay=base_delay,
                max_delay=max_delay,
                retry_if=retry_if,
                label=func.__qualname__,
            )
        return wrapper
    return decorator
