"""
Bookmark listing: filter composition, pagination and tag aggregation.

Listing runs three statements against the same predicate set:

1. ``COUNT(DISTINCT bookmarks.id)`` for the pagination total.
2. The page itself (bookmarks LEFT JOIN categories, newest first, OFFSET/LIMIT).
3. The tags of the bookmarks on that page, folded into comma-joined columns.

Tag filtering uses an EXISTS subquery rather than a join, so a bookmark is never
multiplied by its tag rows and OFFSET/LIMIT always count bookmarks.
"""
import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, distinct, exists, false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.category import Category
from models.tag import Tag, bookmark_tags
from schemas.bookmark import BookmarkItem, BookmarkListResponse, Pagination
from services.exceptions import NotFoundError
from services.utils import (
    LIKE_ESCAPE_CHAR,
    escape_ilike,
    fits_sql_integer,
    parse_positive_int,
)

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
TAG_SEPARATOR = ","


@dataclass(frozen=True)
class BookmarkQuery:
    """Validated listing parameters. Absent filters are None."""

    page: int = 1
    limit: int = 20
    category_id: int | None = None
    tag_id: int | None = None
    search: str | None = None

    @property
    def offset(self) -> int:
        """Rows skipped before the requested page."""
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        page: Any = None,
        limit: Any = None,
        category_id: Any = None,
        tag_id: Any = None,
        search: str | None = None,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> "BookmarkQuery":
        """
        Build a query from raw request parameters.

        Malformed values fall back to defaults rather than raising:

        - page: missing, non-numeric, < 1 or an unrepresentable offset -> 1
        - limit: missing, non-numeric or < 1 -> default_limit; capped at max_limit
        - category_id: missing, "all" or non-numeric -> no category filter
        - tag_id: missing or non-numeric -> no tag filter
        - search: blank -> no search filter

        Ids too large for the store are kept; they simply match nothing.
        """
        page_number = parse_positive_int(page, 1)
        page_size = min(parse_positive_int(limit, default_limit), max_limit)
        if not fits_sql_integer((page_number - 1) * page_size):
            page_number = 1

        category = None
        if category_id is not None and str(category_id).strip().lower() != ALL_CATEGORIES:
            category = parse_positive_int(category_id, None)

        search_text = search.strip() if search else None

        return cls(
            page=page_number,
            limit=page_size,
            category_id=category,
            tag_id=parse_positive_int(tag_id, None),
            search=search_text or None,
        )


@dataclass(frozen=True)
class TagAggregate:
    """Positionally aligned, comma-joined tag columns for one bookmark."""

    tags: str | None = None
    tag_ids: str | None = None
    tag_colors: str | None = None

    @classmethod
    def from_tags(cls, tags: Sequence[tuple[int, str, str]]) -> "TagAggregate":
        """Fold ``(id, name, color)`` tuples, already in display order."""
        if not tags:
            return cls()
        return cls(
            tags=TAG_SEPARATOR.join(name for _, name, _ in tags),
            tag_ids=TAG_SEPARATOR.join(str(tag_id) for tag_id, _, _ in tags),
            tag_colors=TAG_SEPARATOR.join(color for _, _, color in tags),
        )


def build_filters(query: BookmarkQuery) -> list[ColumnElement[bool]]:
    """
    Translate the query's filters into WHERE clauses, combined with AND by the caller.

    Absent filters contribute nothing, so an unfiltered query returns every bookmark.
    The search clause references ``Category.name`` and therefore requires the
    category outer join built by ``_with_category``.
    """
    clauses: list[ColumnElement[bool]] = []

    for filter_id in (query.category_id, query.tag_id):
        # No stored row can carry an id outside the INTEGER range
        if filter_id is not None and not fits_sql_integer(filter_id):
            return [false()]

    if query.category_id is not None:
        clauses.append(Bookmark.category_id == query.category_id)

    if query.tag_id is not None:
        has_tag = (
            select(bookmark_tags.c.bookmark_id)
            .where(
                bookmark_tags.c.bookmark_id == Bookmark.id,
                bookmark_tags.c.tag_id == query.tag_id,
            )
        )
        clauses.append(exists(has_tag))

    if query.search:
        pattern = f"%{escape_ilike(query.search)}%"
        clauses.append(
            or_(
                Bookmark.title.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                Bookmark.description.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                Bookmark.url.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                Category.name.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
            ),
        )

    return clauses


def _with_category(stmt: Select) -> Select:
    """Left join categories so uncategorized and orphaned bookmarks are kept."""
    return stmt.outerjoin(Category, Category.id == Bookmark.category_id)


async def aggregate_tags(
    db: AsyncSession,
    bookmark_ids: Iterable[int],
) -> dict[int, TagAggregate]:
    """
    Collect every tag of the given bookmarks.

    Tags are ordered by name (then id) so the three joined columns stay aligned
    and stable between requests. Bookmarks without tags are absent from the result.
    """
    ids = list(bookmark_ids)
    if not ids:
        return {}

    result = await db.execute(
        select(bookmark_tags.c.bookmark_id, Tag.id, Tag.name, Tag.color)
        .join(Tag, Tag.id == bookmark_tags.c.tag_id)
        .where(bookmark_tags.c.bookmark_id.in_(ids))
        .order_by(bookmark_tags.c.bookmark_id, Tag.name, Tag.id),
    )

    grouped: dict[int, list[tuple[int, str, str]]] = defaultdict(list)
    for bookmark_id, tag_id, name, color in result.all():
        grouped[bookmark_id].append((tag_id, name, color))

    return {bookmark_id: TagAggregate.from_tags(tags) for bookmark_id, tags in grouped.items()}


def _to_item(
    bookmark: Bookmark,
    category_name: str | None,
    tags: TagAggregate | None,
) -> BookmarkItem:
    tags = tags or TagAggregate()
    return BookmarkItem(
        id=bookmark.id,
        title=bookmark.title,
        url=bookmark.url,
        description=bookmark.description,
        category_id=bookmark.category_id,
        category_name=category_name,
        is_public=bookmark.is_public,
        user_id=bookmark.user_id,
        created_at=bookmark.created_at,
        click_count=bookmark.click_count,
        tags=tags.tags,
        tag_ids=tags.tag_ids,
        tag_colors=tags.tag_colors,
    )


async def count_bookmarks(db: AsyncSession, query: BookmarkQuery) -> int:
    """Count distinct bookmarks matching the query's filters, ignoring pagination."""
    stmt = _with_category(
        select(func.count(distinct(Bookmark.id))).select_from(Bookmark),
    ).where(*build_filters(query))
    result = await db.execute(stmt)
    return result.scalar() or 0


async def list_bookmarks(db: AsyncSession, query: BookmarkQuery) -> BookmarkListResponse:
    """
    Return one page of bookmarks plus pagination metadata.

    Ordering is newest first, ties broken by id (descending). ``pages`` is
    ``ceil(total / limit)``, which is 0 for an empty result.
    """
    total = await count_bookmarks(db, query)

    page_stmt = (
        _with_category(select(Bookmark, Category.name.label("category_name")))
        .where(*build_filters(query))
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        .offset(query.offset)
        .limit(query.limit)
    )
    rows = (await db.execute(page_stmt)).all()

    tags_by_id = await aggregate_tags(db, (bookmark.id for bookmark, _ in rows))
    items = [
        _to_item(bookmark, category_name, tags_by_id.get(bookmark.id))
        for bookmark, category_name in rows
    ]

    logger.debug(
        "Listed %d of %d bookmarks (page=%d, limit=%d)",
        len(items), total, query.page, query.limit,
    )
    return BookmarkListResponse(
        bookmarks=items,
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            pages=math.ceil(total / query.limit),
        ),
    )


async def get_bookmark_item(db: AsyncSession, bookmark_id: int) -> BookmarkItem:
    """
    Get a single bookmark in listing shape.

    Raises:
        NotFoundError: If no bookmark has this id.
    """
    if not fits_sql_integer(bookmark_id):
        raise NotFoundError("bookmark", bookmark_id)
    stmt = _with_category(
        select(Bookmark, Category.name.label("category_name")),
    ).where(Bookmark.id == bookmark_id)
    row = (await db.execute(stmt)).first()
    if row is None:
        raise NotFoundError("bookmark", bookmark_id)

    bookmark, category_name = row
    tags_by_id = await aggregate_tags(db, [bookmark.id])
    return _to_item(bookmark, category_name, tags_by_id.get(bookmark.id))
