"""
Pydantic schemas for error responses.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    Examples:
        400: {"error": "parse_error", "message": "Failed to parse XML: ..."}
        404: {"error": "not_found", "message": "Anime with ID 7 not found"}
        409: {"error": "protected_tag", "message": "...", "details": {...}}
        413: {"error": "payload_too_large", "message": "maximum size exceeded"}
    """

    error: str = Field(
        ...,
        description="Error code string",
        examples=["validation_failed", "parse_error", "not_found", "protected_tag"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional additional error details",
    )
