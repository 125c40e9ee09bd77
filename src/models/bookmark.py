"""Bookmark model for storing bookmarks."""
from sqlalchemy import Boolean, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, CreatedAtMixin


class Bookmark(Base, CreatedAtMixin):
    """Bookmark model - stores URLs with metadata, a category and tags."""

    __tablename__ = "bookmarks"
    # AUTOINCREMENT keeps SQLite from reusing the ids of deleted rows
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Weak reference: no FK constraint, so deleting a category leaves the id
    # behind and the bookmark lists as uncategorized.
    category_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    click_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"),
    )
