from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.errors import GoneError, NotFoundError, StorageError
from filedrop.models.upload import DEFAULT_CONTENT_TYPE, Upload
from filedrop.services import repository
from filedrop.services.resolver import GroupMatch, SingleMatch, resolve_key
from filedrop.services.storage import ObjectStore, StoredObject
from filedrop.utils.disposition import content_disposition
from filedrop.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

SERVE_ERROR = "Error serving file"
MAX_CACHE_SECONDS = 31536000


@dataclass
class FileDownload:
    record: Upload
    body: StoredObject
    now: datetime

    @property
    def media_type(self) -> str:
        return self.record.content_type or DEFAULT_CONTENT_TYPE

    def headers(self) -> dict[str, str]:
        max_age = MAX_CACHE_SECONDS
        if self.record.expires_at is not None:
            left = int((self.record.expires_at - self.now).total_seconds())
            max_age = max(0, min(max_age, left))
        return {
            "Content-Length": str(self.record.size),
            "Content-Disposition": content_disposition(self.record.original_name, self.media_type),
            "Cache-Control": f"public, max-age={max_age}",
        }


@dataclass
class DirectoryListing:
    group_id: str
    members: Sequence[Upload]


Retrieval = Union[FileDownload, DirectoryListing]


async def retrieve(db: AsyncSession, store: ObjectStore, key: str, now: datetime | None = None) -> Retrieval:
    """Resolve ``key`` to a streamable file or a group listing.

    Listings are built from metadata only. Expired records answer 410 even
    when the sweeper has not removed them yet.
    """
    now = now or utcnow()
    try:
        match = await resolve_key(db, key)
    except SQLAlchemyError as e:
        logger.exception("Metadata lookup failed for key %s", key)
        raise StorageError(SERVE_ERROR) from e

    if isinstance(match, GroupMatch):
        if any(m.is_expired(now) for m in match.records):
            raise GoneError()
        return DirectoryListing(match.group_id, match.records)

    if not isinstance(match, SingleMatch):
        raise NotFoundError()

    record = match.record
    if record.is_expired(now):
        raise GoneError()

    try:
        body = await store.get(record.file_id)
    except StorageError as e:
        raise StorageError(SERVE_ERROR) from e
    if body is None:
        logger.warning("Metadata present but object missing for %s", record.file_id)
        raise NotFoundError("File not found in storage")

    try:
        await repository.record_access(db, record.file_id, now)
    except SQLAlchemyError as e:
        await body.close()
        logger.exception("Failed to record access for %s", record.file_id)
        raise StorageError(SERVE_ERROR) from e

    return FileDownload(record=record, body=body, now=now)
