"""Category model."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, CreatedAtMixin


class Category(Base, CreatedAtMixin):
    """Category model - a display label bookmarks may point at by id."""

    __tablename__ = "categories"
    # AUTOINCREMENT: bookmarks keep deleted category ids, which must never be reissued
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
