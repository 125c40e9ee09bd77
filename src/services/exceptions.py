"""Shared exceptions for service layer operations."""


class ValidationError(Exception):
    """Raised when caller-supplied data is missing or malformed (user-correctable)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when an operation targets a resource that does not exist."""

    def __init__(self, entity: str, entity_id: int | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found")


class ConflictError(Exception):
    """Raised when a uniquely named resource already exists."""

    def __init__(self, entity: str, name: str) -> None:
        self.entity = entity
        self.name = name
        super().__init__(f"A {entity} named '{name}' already exists")


class UpstreamError(Exception):
    """
    Raised when a third-party service is unreachable or returns an unexpected shape.

    Never surfaced to API callers: the caller substitutes a static fallback.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
