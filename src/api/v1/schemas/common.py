"""Bodies shared by every inbox route."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """What the exception handlers write for any failed inbox request.

    For ``ACTION_FAILED`` the details carry the action family and target id.
    """

    error_code: str = Field(examples=["ACTION_FAILED", "FRIEND_REQUEST_NOT_FOUND"])
    message: str = Field(examples=["Failed to accept friend request. Please try again."])
    details: dict[str, Any] | list[dict[str, Any]] | None = None


class MessageResponse(BaseModel):
    """Acknowledges a request whose work continues in the background."""

    message: str
