"""SQLAlchemy declarative base with common mixins."""
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Current wall-clock time in UTC."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class CreatedAtMixin:
    """
    Mixin that adds an immutable created_at column.

    The value is assigned client-side at insert so timestamps keep sub-second
    precision on databases whose CURRENT_TIMESTAMP only has second resolution.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
    )
