"""Bookmark CRUD endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user_id, get_settings
from core.config import Settings
from schemas.bookmark import (
    BookmarkCreate,
    BookmarkItem,
    BookmarkListResponse,
    BookmarkUpdate,
    ClickResponse,
)
from schemas.common import CreatedResponse, ErrorResponse, SuccessResponse
from services import bookmark_query_service, bookmark_service
from services.bookmark_query_service import BookmarkQuery

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.get("", response_model=BookmarkListResponse)
async def list_bookmarks(
    page: str | None = Query(default=None, description="Page number, 1-based"),
    limit: str | None = Query(default=None, description="Page size"),
    category_id: str | None = Query(
        default=None, alias="categoryId", description="Category id, or 'all'",
    ),
    tag_id: str | None = Query(default=None, alias="tagId", description="Tag id"),
    search: str | None = Query(
        default=None, description="Matches title, description, url and category name",
    ),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkListResponse:
    """
    List bookmarks, newest first, with optional filters.

    Parameters arrive as raw strings: malformed numbers fall back to their defaults
    instead of failing the request.
    """
    query = BookmarkQuery.from_params(
        page=page,
        limit=limit,
        category_id=category_id,
        tag_id=tag_id,
        search=search,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )
    return await bookmark_query_service.list_bookmarks(db, query)


@router.post("", response_model=CreatedResponse)
async def create_bookmark(
    data: BookmarkCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> CreatedResponse:
    """Create a bookmark and attach the given tag ids."""
    bookmark_id = await bookmark_service.create_bookmark(db, user_id, data)
    return CreatedResponse(id=bookmark_id)


@router.get(
    "/{bookmark_id}",
    response_model=BookmarkItem,
    responses={404: {"model": ErrorResponse}},
)
async def get_bookmark(
    bookmark_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkItem:
    """Get a single bookmark by ID."""
    return await bookmark_query_service.get_bookmark_item(db, bookmark_id)


@router.put("/{bookmark_id}", response_model=SuccessResponse)
async def update_bookmark(
    bookmark_id: int,
    data: BookmarkUpdate,
    db: AsyncSession = Depends(get_async_session),
) -> SuccessResponse:
    """Replace a bookmark. All fields are written, not merged."""
    await bookmark_service.update_bookmark(db, bookmark_id, data)
    return SuccessResponse()


@router.delete("/{bookmark_id}", response_model=SuccessResponse)
async def delete_bookmark(
    bookmark_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> SuccessResponse:
    """Delete a bookmark and its tag associations."""
    await bookmark_service.delete_bookmark(db, bookmark_id)
    return SuccessResponse()


@router.post("/{bookmark_id}/click", response_model=ClickResponse)
async def record_click(
    bookmark_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> ClickResponse:
    """Count a visit to the bookmarked URL."""
    click_count = await bookmark_service.record_click(db, bookmark_id)
    return ClickResponse(click_count=click_count)
