"""Entity identifier and credential generation."""
import logging
import secrets
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Attempts before giving up on a unique-constraint conflict
MAX_ID_ATTEMPTS = 3


def new_entity_id() -> str:
    """128 random bits, hex encoded."""
    return secrets.token_hex(16)


def new_api_key() -> str:
    return secrets.token_urlsafe(32)


async def insert_with_unique_ids(session, build: Callable[[], T], max_attempts: int = MAX_ID_ATTEMPTS) -> T:
    """Add and commit the entity returned by ``build``, regenerating on conflict.

    ``build`` is called once per attempt and must draw fresh identifiers.
    Uniqueness itself is enforced by the schema; an IntegrityError on the
    final attempt is re-raised.
    """
    for attempt in range(1, max_attempts + 1):
        entity = build()
        session.add(entity)
        try:
            await session.commit()
            return entity
        except IntegrityError:
            await session.rollback()
            if attempt == max_attempts:
                raise
            logger.warning(f"Identifier conflict inserting {type(entity).__name__}, retrying ({attempt}/{max_attempts})")
