from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.core.database import get_db
from filedrop.core.errors import ClientInputError
from filedrop.monitoring.setup import report_download
from filedrop.services.directory_html import render_directory_listing
from filedrop.services.retrieval import DirectoryListing, retrieve
from filedrop.services.storage import ObjectStore, get_object_store
from filedrop.utils.urls import external_base_url

router = APIRouter(tags=["Download"])


@router.get("/f/{key:path}")
async def serve_file(
    key: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    """Stream a stored file, or render the listing when ``key`` names a group."""
    if not key:
        raise ClientInputError("File ID required")
    result = await retrieve(db, store, key)

    if isinstance(result, DirectoryListing):
        report_download("listing")
        page = render_directory_listing(result.group_id, result.members, external_base_url(request))
        return HTMLResponse(page, headers={"Cache-Control": "no-store"})

    report_download("file")
    return StreamingResponse(
        result.body.iter_chunks(),
        media_type=result.media_type,
        headers=result.headers(),
    )
