# backend/portfolio_engine/schemas/errors.py
"""
Pydantic schemas for error responses.

Every non-2xx response from the API uses one of these shapes; the global
exception handlers in main.py build them from domain exceptions.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """
    Standard error response format.

    `error` is the exception class name, so clients can branch on
    "CategoryNotFoundError" vs "ValidationError" without parsing messages.
    """

    error: str = Field(
        ...,
        description="Error type/code (e.g., 'CategoryNotFoundError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context (field, resource, ...)"
    )
    correlation_id: str | None = Field(
        default=None,
        description="Request correlation id, for matching server logs"
    )


class ValidationErrorDetail(BaseModel):
    """Request validation failure (422), one entry per invalid field."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="List of validation errors"
    )
    correlation_id: str | None = None
