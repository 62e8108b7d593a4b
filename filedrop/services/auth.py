from __future__ import annotations

import logging
import secrets

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.errors import StorageError
from filedrop.models.api_key import ApiKey
from filedrop.services import repository
from filedrop.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

KEY_PREFIX = "pb_"


async def validate_api_key(db: AsyncSession, token: str) -> ApiKey | None:
    """Return the active key matching ``token`` and stamp its ``last_used``."""
    if not token:
        return None
    try:
        api_key = await repository.find_active_key(db, token)
        if api_key is None:
            return None
        now = utcnow()
        await repository.touch_key(db, api_key.id, now)
    except SQLAlchemyError as e:
        logger.exception("API key lookup failed")
        raise StorageError() from e
    api_key.last_used = now
    return api_key


def generate_api_key() -> str:
    return KEY_PREFIX + secrets.token_urlsafe(24).replace("-", "").replace("_", "")


async def create_api_key(db: AsyncSession, name: str) -> ApiKey:
    api_key = ApiKey(key=generate_api_key(), name=name, is_active=True)
    db.add(api_key)
    await db.commit()
    await db.refresh(api_key)
    logger.info("Created API key id=%s name=%s", api_key.id, name)
    return api_key
