"""SQLAlchemy models."""
from models.base import Base, CreatedAtMixin
from models.tag import Tag, bookmark_tags  # Must be before bookmark due to FK targets
from models.bookmark import Bookmark
from models.category import Category

__all__ = [
    "Base",
    "Bookmark",
    "Category",
    "CreatedAtMixin",
    "Tag",
    "bookmark_tags",
]
