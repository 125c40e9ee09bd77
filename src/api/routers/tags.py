"""Tag endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session
from schemas.common import CreatedResponse, SuccessResponse
from schemas.tag import TagCreate, TagListResponse, TagResponse
from services import tag_service

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=TagListResponse)
async def list_tags(
    db: AsyncSession = Depends(get_async_session),
) -> TagListResponse:
    """Get all tags, ordered by name."""
    tags = await tag_service.list_tags(db)
    return TagListResponse(tags=[TagResponse.model_validate(t) for t in tags])


@router.post("", response_model=CreatedResponse)
async def create_tag(
    data: TagCreate,
    db: AsyncSession = Depends(get_async_session),
) -> CreatedResponse:
    """Create a tag. Returns 409 if the name is taken."""
    tag = await tag_service.create_tag(db, data)
    return CreatedResponse(id=tag.id)


@router.delete("/{tag_id}", response_model=SuccessResponse)
async def delete_tag(
    tag_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> SuccessResponse:
    """Delete a tag and remove it from every bookmark."""
    await tag_service.delete_tag(db, tag_id)
    return SuccessResponse()
