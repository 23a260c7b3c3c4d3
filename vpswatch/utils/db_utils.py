"""Database utility functions."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Fragments of driver messages for conditions that clear up on their own
_TRANSIENT_ERRORS = [
    "database is locked",
    "connection refused",
    "connection reset",
    "connection closed",
    "server closed",
    "timeout",
    "too many clients",
]


def is_transient(error: Exception) -> bool:
    """True for lock contention and dropped connections."""
    if getattr(error, "connection_invalidated", False):
        return True
    return any(msg in str(error).lower() for msg in _TRANSIENT_ERRORS)


async def retry_on_lock(
    coro_func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 0.1,
    session: Optional[AsyncSession] = None,
) -> T:
    """Retry a database operation on transient errors with exponential backoff.

    Handles SQLite lock contention and PostgreSQL connection drops under load.

    A failed flush leaves the session needing a rollback, so when ``session``
    is given it is rolled back before the next attempt. The rollback discards
    pending changes; ``coro_func`` must then apply its whole unit of work
    again, not just commit.

    Args:
        coro_func: Async function to call (should be a callable that returns a coroutine)
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds (doubles with each retry)
        session: Session to roll back between attempts

    Returns:
        The result of the coroutine function

    Raises:
        OperationalError: If all retries fail or error is not transient
    """
    last_exception = None
    for attempt in range(max_retries):
        try:
            return await coro_func()
        except (OperationalError, InterfaceError) as e:
            if not is_transient(e):
                raise
            last_exception = e
            if session is not None:
                await session.rollback()
            delay = base_delay * (2 ** attempt)
            logger.warning(f"Database transient error, retrying in {delay}s (attempt {attempt + 1}/{max_retries})")
            await asyncio.sleep(delay)
    raise last_exception


async def commit_versioned(session: AsyncSession, entity, apply: Callable[[], None], **retry_kwargs) -> None:
    """Apply changes to a versioned entity and commit, retrying transient errors.

    The compare-and-swap is against the ``status_version`` read before the
    first attempt. After a rollback the entity is reloaded; if another
    writer moved the version on meanwhile, StaleDataError is raised just as
    the flush would have raised it.
    """
    expected_version = entity.status_version
    identity = sa_inspect(entity).identity
    attempts = 0

    async def write():
        nonlocal attempts
        attempts += 1
        if attempts > 1:
            await session.refresh(entity)
            if entity.status_version != expected_version:
                raise StaleDataError(f"{type(entity).__name__} {identity} changed while retrying")
        apply()
        await session.commit()

    await retry_on_lock(write, session=session, **retry_kwargs)
