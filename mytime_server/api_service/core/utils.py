import asyncio
import logging
import random
from functools import wraps

from sqlalchemy.exc import OperationalError

log = logging.getLogger(__name__)


def is_lock_error(exc: BaseException) -> bool:
    """True for transient write-lock failures (SQLite 'database is locked', Postgres 55P03)."""
    if not isinstance(exc, OperationalError):
        return False
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "55P03":
        return True
    return "locked" in str(orig if orig is not None else exc).lower()


def with_db_write_retry(max_retries: int = 5, initial_delay_seconds: float = 0.1, backoff_factor: float = 2.0):
    """
    A decorator to retry an async database write with exponential backoff and jitter
    if the database reports a write lock. The wrapped function must leave the session
    rolled back before raising.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            retries = 0
            delay = initial_delay_seconds
            while True:
                try:
                    return await func(*args, **kwargs)
                except OperationalError as e:
                    if not is_lock_error(e):
                        raise
                    retries += 1
                    if retries >= max_retries:
                        log.error(f"DB write lock error: Max retries ({max_retries}) reached for {func.__name__}. Aborting.")
                        raise

                    # Exponential backoff with jitter
                    jitter = random.uniform(0, delay * 0.25)
                    sleep_time = delay + jitter

                    log.warning(
                        f"DB write lock on {func.__name__}. Retrying in {sleep_time:.2f}s... "
                        f"(Attempt {retries}/{max_retries})"
                    )
                    await asyncio.sleep(sleep_time)
                    delay *= backoff_factor
        return wrapper
    return decorator
