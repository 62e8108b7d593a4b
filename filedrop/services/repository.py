"""Queries against the ``uploads`` and ``api_keys`` tables."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.models.api_key import ApiKey
from filedrop.models.upload import Upload


def _group_order():
    return func.coalesce(Upload.relative_path, Upload.original_name)


async def get_by_file_id(db: AsyncSession, file_id: str, owner_id: int | None = None) -> Upload | None:
    stmt = select(Upload).where(Upload.file_id == file_id)
    if owner_id is not None:
        stmt = stmt.where(Upload.api_key_id == owner_id)
    res = await db.execute(stmt)
    return res.scalars().first()


async def get_group(db: AsyncSession, group_id: str, owner_id: int | None = None) -> Sequence[Upload]:
    stmt = select(Upload).where(Upload.group_id == group_id)
    if owner_id is not None:
        stmt = stmt.where(Upload.api_key_id == owner_id)
    res = await db.execute(stmt.order_by(_group_order(), Upload.id))
    return res.scalars().all()


async def add_upload(db: AsyncSession, upload: Upload) -> Upload:
    db.add(upload)
    await db.flush()
    return upload


async def record_access(db: AsyncSession, file_id: str, now: datetime) -> None:
    """Bump the download counter in place so concurrent readers never lose an update."""
    await db.execute(
        update(Upload)
        .where(Upload.file_id == file_id)
        .values(access_count=Upload.access_count + 1, last_accessed_at=now)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def delete_by_file_id(db: AsyncSession, file_id: str, owner_id: int | None = None) -> int:
    stmt = delete(Upload).where(Upload.file_id == file_id)
    if owner_id is not None:
        stmt = stmt.where(Upload.api_key_id == owner_id)
    res = await db.execute(stmt.execution_options(synchronize_session=False))
    return res.rowcount or 0


async def delete_group_rows(db: AsyncSession, group_id: str, owner_id: int) -> int:
    res = await db.execute(
        delete(Upload)
        .where(Upload.group_id == group_id, Upload.api_key_id == owner_id)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount or 0


async def list_for_owner(db: AsyncSession, owner_id: int) -> Sequence[Upload]:
    res = await db.execute(
        select(Upload)
        .where(Upload.api_key_id == owner_id)
        .order_by(Upload.uploaded_at.desc(), Upload.id.desc())
    )
    return res.scalars().all()


async def select_expired(db: AsyncSession, now: datetime, limit: int) -> Sequence[Upload]:
    res = await db.execute(
        select(Upload)
        .where(Upload.expires_at.is_not(None), Upload.expires_at <= now)
        .order_by(Upload.expires_at, Upload.id)
        .limit(limit)
    )
    return res.scalars().all()


async def find_active_key(db: AsyncSession, key: str) -> ApiKey | None:
    res = await db.execute(
        select(ApiKey).where(ApiKey.key == key, ApiKey.is_active == True)  # noqa: E712
    )
    return res.scalars().first()


async def touch_key(db: AsyncSession, key_id: int, now: datetime) -> None:
    await db.execute(
        update(ApiKey)
        .where(ApiKey.id == key_id)
        .values(last_used=now)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
