"""Common schemas used across the API."""

from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Standard error response."""

    status: Literal["error"] = "error"
    message: str
    error: Optional[dict[str, Any]] = None


class ApiResponse(BaseModel, Generic[T]):
    """Global API response envelope."""

    status: Literal["success", "error"]
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[dict[str, Any]] = None


def success(data: Any = None, message: Optional[str] = None) -> dict:
    """성공 응답 envelope."""
    body: dict[str, Any] = {"status": "success", "data": data}
    if message:
        body["message"] = message
    return body
