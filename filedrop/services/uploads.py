from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.errors import ClientInputError, StorageError
from filedrop.models.api_key import ApiKey
from filedrop.models.upload import Upload
from filedrop.services import repository
from filedrop.services.planner import IncomingFile, PlannedFile, UploadPlan, parse_expiration, plan_upload
from filedrop.services.storage import ObjectStore
from filedrop.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    plan: UploadPlan
    stored: list[PlannedFile] = field(default_factory=list)

    @property
    def group_id(self) -> str:
        return self.plan.group_id

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.stored)


async def store_upload(
    db: AsyncSession,
    store: ObjectStore,
    owner: ApiKey,
    files: list[IncomingFile],
    *,
    directory_flag: bool = False,
    expires_at_raw: str | None = None,
    max_file_size: int | None = None,
    max_expiration_days: int = 30,
    now: datetime | None = None,
) -> UploadResult:
    """Validate, plan and persist one upload call.

    Files are written one after another: blob first, then its row,
    committed per file. A failure part-way leaves the earlier files in
    place; there is no rollback.
    """
    if not files:
        raise ClientInputError("No file provided")
    now = now or utcnow()
    expires_at = parse_expiration(expires_at_raw, now, max_expiration_days)
    plan = plan_upload(
        files,
        directory_flag=directory_flag,
        expires_at=expires_at,
        max_file_size=max_file_size,
    )
    result = UploadResult(plan=plan)

    for planned in plan.files:
        try:
            written = await store.put(
                planned.file_id,
                planned.source.stream,
                planned.size,
                planned.content_type,
                metadata={"original-name": planned.original_name, "uploaded-by": owner.name},
            )
        except StorageError as e:
            logger.error(
                "Upload of group %s stopped at %s after %d of %d files",
                plan.group_id, planned.file_id, len(result.stored), len(plan.files),
            )
            raise StorageError("Upload failed") from e
        try:
            await repository.add_upload(
                db,
                Upload(
                    file_id=planned.file_id,
                    group_id=plan.group_id,
                    original_name=planned.original_name,
                    relative_path=planned.relative_path,
                    size=written,
                    content_type=planned.content_type,
                    api_key_id=owner.id,
                    uploaded_at=now,
                    expires_at=plan.expires_at,
                ),
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception(
                "Failed to record upload %s after %d of %d files",
                planned.file_id, len(result.stored), len(plan.files),
            )
            raise StorageError("Upload failed") from e
        result.stored.append(replace(planned, size=written))

    logger.info(
        "Stored group=%s files=%d bytes=%d directory=%s expires_at=%s owner=%s",
        plan.group_id, len(result.stored), result.total_size, plan.is_directory, plan.expires_at, owner.id,
    )
    return result
