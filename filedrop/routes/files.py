from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.config import settings
from filedrop.core.database import get_db
from filedrop.core.errors import ClientInputError, StorageError
from filedrop.dependencies.auth import require_api_key
from filedrop.models.api_key import ApiKey
from filedrop.monitoring.setup import report_upload
from filedrop.schemas.upload import (
    DeleteResponse,
    FileListItem,
    FileListResponse,
    UploadedFileInfo,
    UploadResponse,
)
from filedrop.services import repository
from filedrop.services.deletion import delete_for_owner
from filedrop.services.planner import IncomingFile
from filedrop.services.storage import ObjectStore, get_object_store
from filedrop.services.uploads import store_upload
from filedrop.utils.formatting import remaining_time
from filedrop.utils.timeutils import isoformat_z, utcnow
from filedrop.utils.urls import external_base_url, file_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Files"])

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _incoming(part: UploadFile) -> IncomingFile:
    size = part.size
    if size is None:
        part.file.seek(0, os.SEEK_END)
        size = part.file.tell()
        part.file.seek(0)
    return IncomingFile(name=part.filename, stream=part.file, size=size, content_type=part.content_type)


@router.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_files(
    request: Request,
    file: list[UploadFile] | None = File(None),
    expires_at: str | None = Form(None),
    directory_upload: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    api_key: ApiKey = Depends(require_api_key),
):
    base_url = external_base_url(request)
    incoming = [_incoming(part) for part in file or []]

    result = await store_upload(
        db,
        store,
        api_key,
        incoming,
        directory_flag=_flag(directory_upload),
        expires_at_raw=expires_at,
        max_file_size=settings.MAX_FILE_SIZE,
        max_expiration_days=settings.MAX_EXPIRATION_DAYS,
    )
    report_upload(len(result.stored), result.total_size)

    plan = result.plan
    resp = UploadResponse(
        url=file_url(base_url, plan.group_id),
        file_id=plan.group_id,
        size=result.total_size,
        expires_at=isoformat_z(plan.expires_at),
    )
    if plan.is_directory:
        resp.is_directory = True
        resp.files = [
            UploadedFileInfo(
                url=file_url(base_url, f.file_id),
                file_id=f.file_id,
                original_name=f.original_name,
                relative_path=f.relative_path,
                size=f.size,
                content_type=f.content_type,
            )
            for f in result.stored
        ]
    return resp


@router.delete("/f/{key:path}", response_model=DeleteResponse, response_model_exclude_none=True)
async def delete_file(
    key: str,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    api_key: ApiKey = Depends(require_api_key),
):
    if not key:
        raise ClientInputError("File ID required")
    report = await delete_for_owner(db, store, key, api_key.id)
    if not report.is_group:
        return DeleteResponse(message="File deleted successfully", file_id=report.key)
    return DeleteResponse(
        message="Directory deleted successfully",
        file_id=report.key,
        deleted_count=report.rows_deleted,
        failed_blobs=[file_id for file_id, _ in report.failed] or None,
    )


@router.get("/list", response_model=FileListResponse, response_model_exclude_none=True)
async def list_files(
    request: Request,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_api_key),
):
    base_url = external_base_url(request)
    try:
        rows = await repository.list_for_owner(db, api_key.id)
    except SQLAlchemyError as e:
        logger.exception("Listing uploads failed for key %s", api_key.id)
        raise StorageError("Internal server error") from e

    now = utcnow()
    files = []
    for r in rows:
        item = FileListItem(
            file_id=r.file_id,
            group_id=r.group_id,
            original_name=r.original_name,
            relative_path=r.relative_path,
            size=r.size,
            content_type=r.content_type,
            uploaded_at=isoformat_z(r.uploaded_at),
            last_accessed_at=isoformat_z(r.last_accessed_at),
            access_count=r.access_count or 0,
            url=file_url(base_url, r.file_id),
            is_directory_item=r.is_directory_item,
        )
        if r.expires_at is not None:
            item.expires_at = isoformat_z(r.expires_at)
            item.remaining_time = remaining_time(r.expires_at, now)
        files.append(item)
    return FileListResponse(files=files)
