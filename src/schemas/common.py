"""Response schemas shared across endpoints."""
from pydantic import BaseModel


class CreatedResponse(BaseModel):
    """Response for a successful create."""

    success: bool = True
    id: int


class SuccessResponse(BaseModel):
    """Response for a successful mutation without a payload."""

    success: bool = True


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
