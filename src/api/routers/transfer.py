"""Import and export endpoints."""
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.dependencies import (
    get_async_session,
    get_concurrent_queries,
    get_current_user_id,
    get_session_factory,
)
from schemas.transfer import ImportResponse
from services import transfer_service

router = APIRouter(tags=["transfer"])

EXPORT_FILENAME = "bookmarks-export.json"


@router.get("/export")
async def export_data(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    concurrent: bool = Depends(get_concurrent_queries),
) -> JSONResponse:
    """Download every bookmark, category and tag as a versioned JSON attachment."""
    envelope = await transfer_service.export_data(session_factory, concurrent=concurrent)
    return JSONResponse(
        content=envelope.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_data(
    payload: Any = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> ImportResponse:
    """
    Bulk-insert bookmarks from a list or an export envelope.

    Records without a title or url are skipped and counted in ``errors``; they
    never fail the request.
    """
    result = await transfer_service.import_bookmarks(db, user_id, payload)
    return ImportResponse(
        imported=result.imported,
        errors=result.errors,
        message=result.message,
    )
