"""Service layer for category operations."""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category
from services.exceptions import ConflictError, NotFoundError, ValidationError
from services.utils import fits_sql_integer

logger = logging.getLogger(__name__)


async def list_categories(db: AsyncSession) -> list[Category]:
    """Get all categories ordered by name."""
    result = await db.execute(select(Category).order_by(Category.name, Category.id))
    return list(result.scalars().all())


async def create_category(db: AsyncSession, name: str) -> Category:
    """
    Create a category.

    Raises:
        ValidationError: If the name is blank.
        ConflictError: If a category with this name (case-insensitive) exists.
    """
    name = name.strip()
    if not name:
        raise ValidationError("Category name is required")

    existing = await db.scalar(
        select(Category.id).where(func.lower(Category.name) == name.lower()),
    )
    if existing is not None:
        raise ConflictError("category", name)

    category = Category(name=name)
    db.add(category)
    await db.flush()
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, category_id: int) -> None:
    """
    Delete a category.

    Bookmarks are not touched: their category_id is left dangling and they list
    as uncategorized.

    Raises:
        NotFoundError: If no category has this id.
    """
    category = await db.get(Category, category_id) if fits_sql_integer(category_id) else None
    if category is None:
        raise NotFoundError("category", category_id)
    await db.delete(category)
    await db.flush()
    logger.info("Deleted category %d", category_id)
