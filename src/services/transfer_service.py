"""Service layer for full export and best-effort bulk import."""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.bookmark import Bookmark
from models.category import Category
from models.tag import Tag, bookmark_tags
from schemas.bookmark import resolve_is_public
from schemas.category import CategoryResponse
from schemas.tag import TagResponse
from schemas.transfer import ExportedBookmark, ExportEnvelope
from services.exceptions import ValidationError
from services.utils import parse_positive_int

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Counts from a bulk import. Invalid or failed records are counted, never raised."""

    imported: int = 0
    errors: int = 0

    @property
    def message(self) -> str:
        """Human-readable summary."""
        return f"Successfully imported {self.imported} bookmarks with {self.errors} errors"


# =============================================================================
# Export
# =============================================================================


async def _fetch_bookmarks(db: AsyncSession) -> list[Bookmark]:
    result = await db.execute(
        select(Bookmark).order_by(Bookmark.created_at.desc(), Bookmark.id.desc()),
    )
    return list(result.scalars().all())


async def _fetch_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.id))
    return list(result.scalars().all())


async def _fetch_tags(db: AsyncSession) -> list[Tag]:
    result = await db.execute(select(Tag).order_by(Tag.id))
    return list(result.scalars().all())


async def _fetch_tag_ids_by_bookmark(db: AsyncSession) -> dict[int, list[int]]:
    result = await db.execute(
        select(bookmark_tags.c.bookmark_id, bookmark_tags.c.tag_id)
        .order_by(bookmark_tags.c.bookmark_id, bookmark_tags.c.tag_id),
    )
    tag_ids: dict[int, list[int]] = defaultdict(list)
    for bookmark_id, tag_id in result.all():
        tag_ids[bookmark_id].append(tag_id)
    return tag_ids


async def export_data(
    session_factory: async_sessionmaker,
    concurrent: bool = True,
) -> ExportEnvelope:
    """
    Build a complete, unfiltered snapshot of bookmarks, categories and tags.

    The reads are independent, so by default each runs in its own session and they
    are awaited together. ``concurrent=False`` runs them one after another, which
    allows a single shared session (used in tests).
    """
    async def _query(fn: Callable[..., Coroutine], *args: Any) -> Any:
        async with session_factory() as db:
            return await fn(db, *args)

    readers = (_fetch_bookmarks, _fetch_categories, _fetch_tags, _fetch_tag_ids_by_bookmark)
    if concurrent:
        results = await asyncio.gather(*(_query(fn) for fn in readers))
    else:
        results = [await _query(fn) for fn in readers]
    bookmarks, categories, tags, tag_ids = results

    exported = [
        ExportedBookmark.model_validate(b).model_copy(update={"tags": tag_ids.get(b.id, [])})
        for b in bookmarks
    ]
    logger.info(
        "Exported %d bookmarks, %d categories, %d tags",
        len(exported), len(categories), len(tags),
    )
    return ExportEnvelope(
        exported_at=datetime.now(UTC),
        bookmarks=exported,
        categories=[CategoryResponse.model_validate(c) for c in categories],
        tags=[TagResponse.model_validate(t) for t in tags],
    )


# =============================================================================
# Import
# =============================================================================


def extract_records(payload: Any) -> list[Any]:
    """
    Accept either a bare list of bookmark records or an envelope with a ``bookmarks`` list.

    Raises:
        ValidationError: If the payload has neither shape.
    """
    records = payload.get("bookmarks") if isinstance(payload, dict) else payload
    if not isinstance(records, list):
        raise ValidationError("Invalid data format")
    return records


def _bookmark_from_record(
    record: Any,
    user_id: str,
    category_ids: set[int],
) -> Bookmark:
    """
    Validate one import record and build the row to insert.

    A category reference that does not name an existing category is dropped
    rather than failing the record.

    Raises:
        ValidationError: If the record is not an object or lacks a title or url.
    """
    if not isinstance(record, dict):
        raise ValidationError("Record is not an object")

    title = record.get("title")
    url = record.get("url")
    if not isinstance(title, str) or not isinstance(url, str) or not title.strip() or not url.strip():
        raise ValidationError("Title and URL are required")

    description = record.get("description")
    category_id = parse_positive_int(
        record.get("category_id", record.get("categoryId")), None,
    )
    if category_id not in category_ids:
        category_id = None

    return Bookmark(
        title=title.strip(),
        url=url.strip(),
        description=description if isinstance(description, str) else "",
        category_id=category_id,
        is_public=resolve_is_public(record),
        user_id=user_id,
    )


async def import_bookmarks(
    db: AsyncSession,
    user_id: str,
    payload: Any,
) -> ImportResult:
    """
    Insert every valid bookmark record from an import payload.

    Best-effort and additive: existing bookmarks are never matched or merged, so
    importing the same payload twice creates duplicates. Each insert runs in its own
    savepoint, so one failing record rolls back only itself.

    Raises:
        ValidationError: If the payload is neither a list nor an envelope.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    records = extract_records(payload)
    category_ids = set((await db.execute(select(Category.id))).scalars().all())

    result = ImportResult()
    for index, record in enumerate(records):
        try:
            bookmark = _bookmark_from_record(record, user_id, category_ids)
            async with db.begin_nested():
                db.add(bookmark)
                await db.flush()
        except (ValidationError, SQLAlchemyError) as e:
            logger.warning("Failed to import bookmark record %d: %s", index, e)
            result.errors += 1
        else:
            result.imported += 1

    logger.info("Import finished: %s", result.message)
    return result
