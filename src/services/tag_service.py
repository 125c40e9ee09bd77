"""Service layer for tag operations."""
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.tag import Tag, bookmark_tags
from schemas.tag import TagCreate
from services.exceptions import ConflictError, NotFoundError, ValidationError
from services.utils import fits_sql_integer

logger = logging.getLogger(__name__)


async def list_tags(db: AsyncSession) -> list[Tag]:
    """Get all tags ordered by name."""
    result = await db.execute(select(Tag).order_by(Tag.name, Tag.id))
    return list(result.scalars().all())


async def create_tag(db: AsyncSession, data: TagCreate) -> Tag:
    """
    Create a tag.

    Raises:
        ValidationError: If the name is blank.
        ConflictError: If a tag with this name (case-insensitive) exists.
    """
    if not data.name:
        raise ValidationError("Tag name is required")

    existing = await db.scalar(
        select(Tag.id).where(func.lower(Tag.name) == data.name.lower()),
    )
    if existing is not None:
        raise ConflictError("tag", data.name)

    tag = Tag(name=data.name, color=data.color)
    db.add(tag)
    await db.flush()
    await db.refresh(tag)
    return tag


async def delete_tag(db: AsyncSession, tag_id: int) -> None:
    """
    Delete a tag and detach it from every bookmark.

    Raises:
        NotFoundError: If no tag has this id.
    """
    tag = await db.get(Tag, tag_id) if fits_sql_integer(tag_id) else None
    if tag is None:
        raise NotFoundError("tag", tag_id)
    await db.execute(delete(bookmark_tags).where(bookmark_tags.c.tag_id == tag_id))
    await db.delete(tag)
    await db.flush()
    logger.info("Deleted tag %d", tag_id)
