from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.errors import NotFoundError, StorageError
from filedrop.services import repository
from filedrop.services.resolver import GroupMatch, SingleMatch, resolve_key
from filedrop.services.storage import ObjectStore

logger = logging.getLogger(__name__)

NOT_FOUND_OR_DENIED = "File not found or access denied"


@dataclass
class DeletionReport:
    """Outcome of a delete request.

    ``attempted``/``succeeded`` count blob deletions; ``failed`` holds
    ``(file_id, reason)`` for blobs that could not be removed.
    ``rows_deleted`` counts metadata rows removed.
    """

    key: str
    is_group: bool
    attempted: int = 0
    succeeded: int = 0
    failed: list[tuple[str, str]] = field(default_factory=list)
    rows_deleted: int = 0


async def delete_for_owner(db: AsyncSession, store: ObjectStore, key: str, owner_id: int) -> DeletionReport:
    """Delete a file, or every member of a group, owned by ``owner_id``.

    A key that does not exist and a key owned by someone else raise the same
    ``NotFoundError``.
    """
    try:
        match = await resolve_key(db, key, owner_id=owner_id)
    except SQLAlchemyError as e:
        logger.exception("Metadata lookup failed for delete of %s", key)
        raise StorageError("Delete failed") from e

    if isinstance(match, SingleMatch):
        return await _delete_single(db, store, match.record.file_id, owner_id)
    if isinstance(match, GroupMatch):
        return await _delete_group(db, store, match, owner_id)
    raise NotFoundError(NOT_FOUND_OR_DENIED)


async def _delete_single(db: AsyncSession, store: ObjectStore, file_id: str, owner_id: int) -> DeletionReport:
    report = DeletionReport(key=file_id, is_group=False, attempted=1)
    # Blob first: a crash in between leaves a row that retrieval reports as missing.
    try:
        await store.delete(file_id)
    except StorageError as e:
        raise StorageError("Delete failed") from e
    report.succeeded = 1

    try:
        report.rows_deleted = await repository.delete_by_file_id(db, file_id, owner_id=owner_id)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to delete metadata for %s", file_id)
        raise StorageError("Delete failed") from e

    logger.info("Deleted file %s owner=%s", file_id, owner_id)
    return report


async def _delete_group(db: AsyncSession, store: ObjectStore, match: GroupMatch, owner_id: int) -> DeletionReport:
    report = DeletionReport(key=match.group_id, is_group=True)
    for member in match.records:
        report.attempted += 1
        try:
            await store.delete(member.file_id)
        except StorageError as e:
            reason = str(e.__cause__ or e)
            report.failed.append((member.file_id, reason))
            logger.warning("Blob delete failed for group member %s: %s", member.file_id, reason)
            continue
        report.succeeded += 1

    try:
        report.rows_deleted = await repository.delete_group_rows(db, match.group_id, owner_id)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to delete metadata for group %s", match.group_id)
        raise StorageError("Delete failed") from e

    logger.info(
        "Deleted group %s owner=%s rows=%d blobs_ok=%d blobs_failed=%d",
        match.group_id, owner_id, report.rows_deleted, report.succeeded, len(report.failed),
    )
    return report
