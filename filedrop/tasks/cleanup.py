import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.config import settings
from filedrop.core.database import SessionLocal
from filedrop.core.errors import StorageError
from filedrop.monitoring.setup import report_cleanup
from filedrop.services import repository
from filedrop.services.storage import ObjectStore, get_object_store
from filedrop.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

CLEANED_FILES = 0
FAILED_FILE_DELETES = 0


@dataclass
class SweepReport:
    attempted: int = 0
    deleted: int = 0
    failed: int = 0


async def sweep_expired(
    db: AsyncSession,
    store: ObjectStore,
    now: datetime | None = None,
    batch_size: int = settings.CLEANUP_BATCH_SIZE,
) -> SweepReport:
    """Remove at most ``batch_size`` expired uploads from both stores.

    Each item is deleted blob first, then row, and committed on its own. A
    failing item is logged and skipped; it stays past-due and is picked up
    again by a later run.
    """
    now = now or utcnow()
    report = SweepReport()
    # Plain values: a rollback below expires the ORM instances.
    expired = [(u.file_id, u.original_name) for u in await repository.select_expired(db, now, batch_size)]

    for file_id, original_name in expired:
        report.attempted += 1
        try:
            await store.delete(file_id)
            await repository.delete_by_file_id(db, file_id)
            await db.commit()
        except (StorageError, SQLAlchemyError) as e:
            await db.rollback()
            report.failed += 1
            logger.error("Failed to delete expired file %s: %s", file_id, e.__cause__ or e)
            continue
        report.deleted += 1
        logger.info("Deleted expired file: %s (%s)", file_id, original_name)

    return report


async def run_cleanup_once(store: ObjectStore | None = None) -> SweepReport:
    global CLEANED_FILES, FAILED_FILE_DELETES
    started = datetime.now()
    async with SessionLocal() as db:
        report = await sweep_expired(db, store or get_object_store())

    CLEANED_FILES += report.deleted
    FAILED_FILE_DELETES += report.failed
    duration = (datetime.now() - started).total_seconds()
    report_cleanup(report.deleted, report.failed, duration)
    logger.info("cleanup_summary files_deleted=%s failed=%s duration=%.3fs total_files=%s total_failed=%s",
                report.deleted, report.failed, duration, CLEANED_FILES, FAILED_FILE_DELETES)
    return report


async def cleanup_expired_files():
    logger.info("Cleanup task started: interval=%s batch_size=%s",
                settings.CLEANUP_INTERVAL_SECONDS, settings.CLEANUP_BATCH_SIZE)

    while True:
        try:
            await run_cleanup_once()
            await asyncio.sleep(settings.CLEANUP_INTERVAL_SECONDS)
        except asyncio.CancelledError:
            logger.info("Cleanup task cancelled by shutdown")
            raise
        except Exception as e:
            logger.exception("Cleanup loop error: %s", e)
            await asyncio.sleep(min(60, settings.CLEANUP_INTERVAL_SECONDS))

async def start_cleanup_task():
    return await cleanup_expired_files()
