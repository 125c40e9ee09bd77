"""
Tests for the bookmark listing query.

Covers filter composition, pagination arithmetic, ordering and the positional
coupling of the aggregated tag columns.
"""
import math

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from services.bookmark_query_service import (
    BookmarkQuery,
    TagAggregate,
    count_bookmarks,
    get_bookmark_item,
    list_bookmarks,
)
from services.exceptions import NotFoundError
from tests.factories import add_bookmark, add_category, add_tag


# =============================================================================
# Parameter coercion
# =============================================================================


class TestBookmarkQueryFromParams:
    """Raw request parameters never raise; malformed values become defaults."""

    def test__from_params__defaults_when_missing(self) -> None:
        query = BookmarkQuery.from_params()
        assert query == BookmarkQuery(page=1, limit=20)
        assert query.offset == 0

    def test__from_params__parses_numeric_strings(self) -> None:
        query = BookmarkQuery.from_params(page="3", limit="10", category_id="4", tag_id="7")
        assert query.page == 3
        assert query.limit == 10
        assert query.category_id == 4
        assert query.tag_id == 7
        assert query.offset == 20

    @pytest.mark.parametrize("raw", ["abc", "", "0", "-2", "1.5"])
    def test__from_params__malformed_page_defaults_to_one(self, raw: str) -> None:
        assert BookmarkQuery.from_params(page=raw).page == 1

    @pytest.mark.parametrize("raw", ["abc", "", "0", "-5"])
    def test__from_params__malformed_limit_uses_default(self, raw: str) -> None:
        assert BookmarkQuery.from_params(limit=raw, default_limit=25).limit == 25

    def test__from_params__limit_capped_at_max(self) -> None:
        assert BookmarkQuery.from_params(limit="1000", max_limit=100).limit == 100

    @pytest.mark.parametrize("raw", ["all", "ALL", "", "abc", None])
    def test__from_params__category_sentinel_or_malformed_means_no_filter(
        self, raw: str | None,
    ) -> None:
        assert BookmarkQuery.from_params(category_id=raw).category_id is None

    def test__from_params__blank_search_is_no_filter(self) -> None:
        assert BookmarkQuery.from_params(search="   ").search is None
        assert BookmarkQuery.from_params(search="  rust ").search == "rust"

    def test__from_params__unrepresentable_offset_resets_page(self) -> None:
        query = BookmarkQuery.from_params(page="99999999999999999999", limit="20")
        assert query.page == 1
        assert query.offset == 0

    def test__from_params__huge_ids_kept_as_filters(self) -> None:
        query = BookmarkQuery.from_params(category_id=str(10**20), tag_id=str(10**20))
        assert query.category_id == 10**20
        assert query.tag_id == 10**20


def test__tag_aggregate__from_tags_keeps_positions() -> None:
    aggregate = TagAggregate.from_tags([(3, "alpha", "#111"), (1, "beta", "#222")])
    assert aggregate.tags == "alpha,beta"
    assert aggregate.tag_ids == "3,1"
    assert aggregate.tag_colors == "#111,#222"


def test__tag_aggregate__empty_is_none() -> None:
    assert TagAggregate.from_tags([]) == TagAggregate(None, None, None)


# =============================================================================
# Pagination
# =============================================================================


async def test__list_bookmarks__25_items_paginate_into_two_pages(
    db_session: AsyncSession,
) -> None:
    for i in range(25):
        await add_bookmark(db_session, title=f"Bookmark {i}", minutes=i)

    first = await list_bookmarks(db_session, BookmarkQuery(page=1, limit=20))
    second = await list_bookmarks(db_session, BookmarkQuery(page=2, limit=20))

    assert len(first.bookmarks) == 20
    assert len(second.bookmarks) == 5
    assert first.pagination.total == 25
    assert first.pagination.pages == 2
    assert second.pagination.pages == 2
    first_ids = {b.id for b in first.bookmarks}
    assert first_ids.isdisjoint({b.id for b in second.bookmarks})


@pytest.mark.parametrize("limit", [1, 3, 7, 10, 11])
async def test__list_bookmarks__page_size_and_page_count(
    db_session: AsyncSession,
    limit: int,
) -> None:
    for i in range(10):
        await add_bookmark(db_session, title=f"Bookmark {i}", minutes=i)

    total_seen = 0
    page = 1
    while True:
        result = await list_bookmarks(db_session, BookmarkQuery(page=page, limit=limit))
        assert len(result.bookmarks) <= limit
        assert result.pagination.pages == math.ceil(result.pagination.total / limit)
        if not result.bookmarks:
            break
        total_seen += len(result.bookmarks)
        page += 1

    assert total_seen == 10


async def test__list_bookmarks__empty_store_has_zero_pages(
    db_session: AsyncSession,
) -> None:
    result = await list_bookmarks(db_session, BookmarkQuery())
    assert result.bookmarks == []
    assert result.pagination.total == 0
    assert result.pagination.pages == 0


async def test__list_bookmarks__page_past_end_is_empty(db_session: AsyncSession) -> None:
    await add_bookmark(db_session)
    result = await list_bookmarks(db_session, BookmarkQuery(page=5, limit=20))
    assert result.bookmarks == []
    assert result.pagination.total == 1
    assert result.pagination.pages == 1


# =============================================================================
# Ordering
# =============================================================================


async def test__list_bookmarks__newest_first(db_session: AsyncSession) -> None:
    old = await add_bookmark(db_session, title="Old", minutes=0)
    new = await add_bookmark(db_session, title="New", minutes=10)
    middle = await add_bookmark(db_session, title="Middle", minutes=5)

    result = await list_bookmarks(db_session, BookmarkQuery())
    assert [b.id for b in result.bookmarks] == [new.id, middle.id, old.id]


async def test__list_bookmarks__equal_timestamps_ordered_by_id_desc(
    db_session: AsyncSession,
) -> None:
    first = await add_bookmark(db_session, title="First", minutes=1)
    second = await add_bookmark(db_session, title="Second", minutes=1)

    result = await list_bookmarks(db_session, BookmarkQuery())
    assert [b.id for b in result.bookmarks] == [second.id, first.id]


# =============================================================================
# Filters
# =============================================================================


async def test__list_bookmarks__category_filter(db_session: AsyncSession) -> None:
    work = await add_category(db_session, "Work")
    home = await add_category(db_session, "Home")
    await add_bookmark(db_session, title="A", category=work)
    await add_bookmark(db_session, title="B", category=home)
    await add_bookmark(db_session, title="C")

    result = await list_bookmarks(db_session, BookmarkQuery(category_id=work.id))

    assert [b.title for b in result.bookmarks] == ["A"]
    assert all(b.category_id == work.id for b in result.bookmarks)
    assert result.bookmarks[0].category_name == "Work"
    assert result.pagination.total == 1


async def test__list_bookmarks__uncategorized_and_orphaned_still_listed(
    db_session: AsyncSession,
) -> None:
    """Left join keeps bookmarks whose category is missing."""
    bookmark = await add_bookmark(db_session, title="Orphan")
    bookmark.category_id = 999
    await add_bookmark(db_session, title="Loose")
    await db_session.flush()

    result = await list_bookmarks(db_session, BookmarkQuery())
    assert {b.title for b in result.bookmarks} == {"Orphan", "Loose"}
    assert all(b.category_name is None for b in result.bookmarks)


async def test__list_bookmarks__tag_filter_does_not_duplicate_rows(
    db_session: AsyncSession,
) -> None:
    python = await add_tag(db_session, "python", "#3776ab")
    web = await add_tag(db_session, "web", "#e34c26")
    tagged = await add_bookmark(db_session, title="Tagged", tags=[python, web])
    await add_bookmark(db_session, title="Web only", tags=[web])
    await add_bookmark(db_session, title="Untagged")

    result = await list_bookmarks(db_session, BookmarkQuery(tag_id=python.id))

    assert [b.id for b in result.bookmarks] == [tagged.id]
    assert result.pagination.total == 1
    # Every tag is listed, not just the one filtered on
    assert result.bookmarks[0].tags == "python,web"
    assert result.bookmarks[0].tag_colors == "#3776ab,#e34c26"


async def test__list_bookmarks__tag_filter_never_returns_bookmark_without_tag(
    db_session: AsyncSession,
) -> None:
    tag = await add_tag(db_session, "news")
    other = await add_tag(db_session, "misc")
    for i in range(6):
        await add_bookmark(
            db_session, title=f"B{i}", tags=[tag] if i % 2 else [other], minutes=i,
        )

    result = await list_bookmarks(db_session, BookmarkQuery(tag_id=tag.id))

    assert len(result.bookmarks) == 3
    for item in result.bookmarks:
        assert str(tag.id) in item.tag_ids.split(",")


async def test__list_bookmarks__tag_filter_pagination_counts_bookmarks(
    db_session: AsyncSession,
) -> None:
    """Multi-tag bookmarks must not inflate the page or the total."""
    tags = [await add_tag(db_session, f"t{i}") for i in range(4)]
    for i in range(5):
        await add_bookmark(db_session, title=f"B{i}", tags=tags, minutes=i)

    result = await list_bookmarks(db_session, BookmarkQuery(tag_id=tags[0].id, limit=3))

    assert len(result.bookmarks) == 3
    assert result.pagination.total == 5
    assert result.pagination.pages == 2


async def test__list_bookmarks__search_is_case_insensitive_across_fields(
    db_session: AsyncSession,
) -> None:
    reading = await add_category(db_session, "Reading List")
    by_title = await add_bookmark(db_session, title="Learning RUST", minutes=1)
    by_description = await add_bookmark(
        db_session, title="Other", description="a rust tutorial", minutes=2,
    )
    by_url = await add_bookmark(
        db_session, title="Docs", url="https://doc.rust-lang.org/", minutes=3,
    )
    by_category = await add_bookmark(db_session, title="Novel", category=reading, minutes=4)
    await add_bookmark(db_session, title="Unrelated", minutes=5)

    rust = await list_bookmarks(db_session, BookmarkQuery(search="Rust"))
    assert {b.id for b in rust.bookmarks} == {by_title.id, by_description.id, by_url.id}
    assert rust.pagination.total == 3

    category = await list_bookmarks(db_session, BookmarkQuery(search="reading"))
    assert [b.id for b in category.bookmarks] == [by_category.id]


async def test__list_bookmarks__search_wildcards_match_literally(
    db_session: AsyncSession,
) -> None:
    percent = await add_bookmark(db_session, title="100% coverage")
    await add_bookmark(db_session, title="100 percent")

    result = await list_bookmarks(db_session, BookmarkQuery(search="100%"))
    assert [b.id for b in result.bookmarks] == [percent.id]

    underscore = await list_bookmarks(db_session, BookmarkQuery(search="_"))
    assert underscore.bookmarks == []


async def test__list_bookmarks__filters_combine_with_and(db_session: AsyncSession) -> None:
    work = await add_category(db_session, "Work")
    urgent = await add_tag(db_session, "urgent")
    match = await add_bookmark(db_session, title="Quarterly report", category=work, tags=[urgent])
    await add_bookmark(db_session, title="Quarterly report draft", category=work)
    await add_bookmark(db_session, title="Quarterly taxes", tags=[urgent])
    await add_bookmark(db_session, title="Weekly report", category=work, tags=[urgent])

    result = await list_bookmarks(
        db_session,
        BookmarkQuery(category_id=work.id, tag_id=urgent.id, search="quarterly"),
    )

    assert [b.id for b in result.bookmarks] == [match.id]
    assert result.pagination.total == 1


async def test__count_bookmarks__matches_listing_total(db_session: AsyncSession) -> None:
    tag = await add_tag(db_session, "x")
    for i in range(4):
        await add_bookmark(db_session, title=f"B{i}", tags=[tag] if i < 3 else [], minutes=i)

    query = BookmarkQuery(tag_id=tag.id, limit=2)
    assert await count_bookmarks(db_session, query) == 3
    assert (await list_bookmarks(db_session, query)).pagination.total == 3


# =============================================================================
# Tag aggregation
# =============================================================================


async def test__list_bookmarks__tag_names_and_colors_align(db_session: AsyncSession) -> None:
    zebra = await add_tag(db_session, "zebra", "#000000")
    apple = await add_tag(db_session, "apple", "#ff0000")
    mango = await add_tag(db_session, "mango", "#ffa500")
    await add_bookmark(db_session, tags=[zebra, apple, mango])

    item = (await list_bookmarks(db_session, BookmarkQuery())).bookmarks[0]

    names = item.tags.split(",")
    colors = item.tag_colors.split(",")
    ids = item.tag_ids.split(",")
    assert len(names) == len(colors) == len(ids) == 3
    assert names == ["apple", "mango", "zebra"]
    expected = {"apple": "#ff0000", "mango": "#ffa500", "zebra": "#000000"}
    assert dict(zip(names, colors)) == expected
    assert dict(zip(names, ids)) == {
        "apple": str(apple.id), "mango": str(mango.id), "zebra": str(zebra.id),
    }


async def test__list_bookmarks__untagged_bookmark_has_null_tag_columns(
    db_session: AsyncSession,
) -> None:
    await add_bookmark(db_session)
    item = (await list_bookmarks(db_session, BookmarkQuery())).bookmarks[0]
    assert item.tags is None
    assert item.tag_ids is None
    assert item.tag_colors is None


# =============================================================================
# Single bookmark
# =============================================================================


async def test__get_bookmark_item__returns_listing_shape(db_session: AsyncSession) -> None:
    category = await add_category(db_session, "Docs")
    tag = await add_tag(db_session, "ref", "#123456")
    bookmark = await add_bookmark(db_session, title="Manual", category=category, tags=[tag])

    item = await get_bookmark_item(db_session, bookmark.id)

    assert item.title == "Manual"
    assert item.category_name == "Docs"
    assert item.tags == "ref"
    assert item.tag_colors == "#123456"
    assert item.click_count == 0


async def test__get_bookmark_item__missing_raises_not_found(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await get_bookmark_item(db_session, 12345)


async def test__get_bookmark_item__out_of_range_id_raises_not_found(
    db_session: AsyncSession,
) -> None:
    with pytest.raises(NotFoundError):
        await get_bookmark_item(db_session, 2**63)


async def test__list_bookmarks__out_of_range_filter_ids_match_nothing(
    db_session: AsyncSession,
) -> None:
    await add_bookmark(db_session)

    by_tag = await list_bookmarks(db_session, BookmarkQuery(tag_id=2**63))
    by_category = await list_bookmarks(db_session, BookmarkQuery(category_id=2**63))

    assert by_tag.bookmarks == []
    assert by_tag.pagination.total == 0
    assert by_category.bookmarks == []
    assert await count_bookmarks(db_session, BookmarkQuery(tag_id=2**63)) == 0
