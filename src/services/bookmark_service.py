"""Service layer for bookmark create, update and delete."""
import logging
from collections.abc import Iterable

from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.category import Category
from models.tag import Tag, bookmark_tags
from schemas.bookmark import BookmarkCreate, BookmarkUpdate, BookmarkWrite
from services.exceptions import NotFoundError, ValidationError
from services.utils import fits_sql_integer

logger = logging.getLogger(__name__)

# Dialects whose INSERT supports ON CONFLICT DO NOTHING
_CONFLICT_IGNORING_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _required_fields(data: BookmarkWrite) -> tuple[str, str]:
    """Return stripped (title, url), raising if either is missing or blank."""
    title = (data.title or "").strip()
    url = (data.url or "").strip()
    if not title or not url:
        raise ValidationError("Title and URL are required")
    return title, url


async def _check_category(db: AsyncSession, category_id: int | None) -> None:
    """Categories are referenced weakly, so existence is checked here at write time."""
    if category_id is None:
        return
    if not fits_sql_integer(category_id) or await db.get(Category, category_id) is None:
        raise ValidationError(f"Category {category_id} does not exist")


async def _existing_tag_ids(db: AsyncSession, tag_ids: Iterable[int]) -> list[int]:
    """Filter tag ids down to those that exist, keeping request order without duplicates."""
    requested = [tag_id for tag_id in dict.fromkeys(tag_ids) if fits_sql_integer(tag_id)]
    if not requested:
        return []
    result = await db.execute(select(Tag.id).where(Tag.id.in_(requested)))
    found = set(result.scalars().all())
    missing = [tag_id for tag_id in requested if tag_id not in found]
    if missing:
        logger.warning("Skipping unknown tag ids: %s", missing)
    return [tag_id for tag_id in requested if tag_id in found]


async def get_bookmark(db: AsyncSession, bookmark_id: int) -> Bookmark:
    """
    Get a bookmark row by id.

    Raises:
        NotFoundError: If no bookmark has this id.
    """
    bookmark = await db.get(Bookmark, bookmark_id) if fits_sql_integer(bookmark_id) else None
    if bookmark is None:
        raise NotFoundError("bookmark", bookmark_id)
    return bookmark


async def add_bookmark_tag(db: AsyncSession, bookmark_id: int, tag_id: int) -> bool:
    """
    Associate a tag with a bookmark.

    Idempotent: inserting a pair that already exists is a no-op.

    Returns:
        True if a new association row was written, False if it already existed.
    """
    values = {"bookmark_id": bookmark_id, "tag_id": tag_id}
    dialect = db.get_bind().dialect.name
    insert_fn = _CONFLICT_IGNORING_INSERTS.get(dialect)

    if insert_fn is None:
        already = await db.scalar(
            select(bookmark_tags.c.bookmark_id).where(
                bookmark_tags.c.bookmark_id == bookmark_id,
                bookmark_tags.c.tag_id == tag_id,
            ),
        )
        if already is not None:
            return False
        await db.execute(insert(bookmark_tags).values(**values))
        return True

    result = await db.execute(
        insert_fn(bookmark_tags)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["bookmark_id", "tag_id"]),
    )
    return result.rowcount == 1


async def _attach_tags(db: AsyncSession, bookmark_id: int, tag_ids: Iterable[int]) -> None:
    for tag_id in await _existing_tag_ids(db, tag_ids):
        await add_bookmark_tag(db, bookmark_id, tag_id)


async def create_bookmark(
    db: AsyncSession,
    user_id: str,
    data: BookmarkCreate,
) -> int:
    """
    Create a bookmark owned by ``user_id`` and attach the requested tags.

    Tag association is best-effort: unknown tag ids are skipped and logged.

    Returns:
        The id assigned to the new bookmark.

    Raises:
        ValidationError: If title or url is blank, or the category does not exist.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    title, url = _required_fields(data)
    await _check_category(db, data.category_id)

    bookmark = Bookmark(
        title=title,
        url=url,
        description=data.description or "",
        category_id=data.category_id,
        is_public=data.is_public,
        user_id=user_id,
    )
    db.add(bookmark)
    await db.flush()

    await _attach_tags(db, bookmark.id, data.tags)
    logger.info("Created bookmark %d (%d tags requested)", bookmark.id, len(data.tags))
    return bookmark.id


async def update_bookmark(
    db: AsyncSession,
    bookmark_id: int,
    data: BookmarkUpdate,
) -> Bookmark:
    """
    Replace every editable field of a bookmark.

    This is not a partial patch: omitted optional fields are reset (description to
    "", category to none, is_public to False). Tags are replaced only when
    ``data.tags`` is given.

    Raises:
        NotFoundError: If no bookmark has this id.
        ValidationError: If title or url is blank, or the category does not exist.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, bookmark_id)
    title, url = _required_fields(data)
    await _check_category(db, data.category_id)

    bookmark.title = title
    bookmark.url = url
    bookmark.description = data.description or ""
    bookmark.category_id = data.category_id
    bookmark.is_public = data.is_public
    await db.flush()

    if data.tags is not None:
        await db.execute(
            delete(bookmark_tags).where(bookmark_tags.c.bookmark_id == bookmark_id),
        )
        await _attach_tags(db, bookmark_id, data.tags)

    return bookmark


async def delete_bookmark(db: AsyncSession, bookmark_id: int) -> None:
    """
    Permanently delete a bookmark together with its tag associations.

    Association rows are removed explicitly rather than relying on the store's
    cascade, which SQLite only honors when foreign keys are switched on.

    Raises:
        NotFoundError: If no bookmark has this id.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, bookmark_id)
    await db.execute(
        delete(bookmark_tags).where(bookmark_tags.c.bookmark_id == bookmark_id),
    )
    await db.delete(bookmark)
    await db.flush()
    logger.info("Deleted bookmark %d", bookmark_id)


async def record_click(db: AsyncSession, bookmark_id: int) -> int:
    """
    Increment a bookmark's click counter in a single UPDATE.

    Returns:
        The new click count.

    Raises:
        NotFoundError: If no bookmark has this id.
    """
    if not fits_sql_integer(bookmark_id):
        raise NotFoundError("bookmark", bookmark_id)
    result = await db.execute(
        update(Bookmark)
        .where(Bookmark.id == bookmark_id)
        .values(click_count=Bookmark.click_count + 1),
    )
    if result.rowcount == 0:
        raise NotFoundError("bookmark", bookmark_id)
    return await db.scalar(select(Bookmark.click_count).where(Bookmark.id == bookmark_id))
