"""Envelope shared by every playground HTTP response."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper.

    Attributes:
        success: False only for error envelopes.
        data: Payload of a successful call.
        message: Short human-readable summary, suitable for a status bar.
        error: Correlation id, error type and, outside production, details.
    """

    success: bool = True
    data: T | None = None
    message: str = "Operation completed successfully"
    error: dict[str, Any] | None = None


class ErrorResponse(ApiResponse[None]):
    success: bool = False
