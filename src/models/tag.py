"""Tag model and the bookmark/tag junction table."""
from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, CreatedAtMixin

DEFAULT_TAG_COLOR = "#3498db"


# Junction table for many-to-many relationship between bookmarks and tags.
# The composite primary key makes each (bookmark, tag) pair unique.
bookmark_tags = Table(
    "bookmark_tags",
    Base.metadata,
    Column(
        "bookmark_id",
        Integer,
        ForeignKey("bookmarks.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    # Index for lookups by tag (composite PK already indexes bookmark_id first)
    Index("ix_bookmark_tags_tag_id", "tag_id"),
)


class Tag(Base, CreatedAtMixin):
    """Tag model - a named, colored label attached to bookmarks."""

    __tablename__ = "tags"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DEFAULT_TAG_COLOR,
    )
