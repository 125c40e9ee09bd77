"""Category endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session
from schemas.common import CreatedResponse, SuccessResponse
from schemas.category import CategoryCreate, CategoryListResponse, CategoryResponse
from services import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    db: AsyncSession = Depends(get_async_session),
) -> CategoryListResponse:
    """Get all categories, ordered by name."""
    categories = await category_service.list_categories(db)
    return CategoryListResponse(
        categories=[CategoryResponse.model_validate(c) for c in categories],
    )


@router.post("", response_model=CreatedResponse)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_async_session),
) -> CreatedResponse:
    """Create a category. Returns 409 if the name is taken."""
    category = await category_service.create_category(db, data.name)
    return CreatedResponse(id=category.id)


@router.delete("/{category_id}", response_model=SuccessResponse)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> SuccessResponse:
    """
    Delete a category.

    Bookmarks in the category are kept and become uncategorized.
    """
    await category_service.delete_category(db, category_id)
    return SuccessResponse()
