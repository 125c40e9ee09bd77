"""Shared utility functions for service layer."""

LIKE_ESCAPE_CHAR = "\\"

# Largest value a signed 64-bit INTEGER column (and SQLite) can bind
MAX_SQL_INTEGER = 2**63 - 1


def escape_ilike(value: str) -> str:
    r"""
    Escape special LIKE/ILIKE characters for safe use in patterns.

    LIKE/ILIKE treats these characters specially:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character (passed explicitly as ``escape=`` since SQLite
      has no default escape character)

    This function escapes them so they match literally.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_positive_int(value: object, default: int | None) -> int | None:
    """
    Coerce a raw query-string value to a positive integer.

    Missing, non-numeric, and non-positive values yield ``default`` instead of
    raising, so malformed parameters never fail a request.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    if number < 1:
        return default
    return number


def fits_sql_integer(value: int) -> bool:
    """Whether ``value`` can be bound as an INTEGER parameter without overflowing."""
    return -MAX_SQL_INTEGER - 1 <= value <= MAX_SQL_INTEGER
