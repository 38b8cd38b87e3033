"""
Custom exceptions for the anime list service.

AnimeListException subclasses are rendered as JSON error responses by the
API. PipelineError subclasses stay inside the import and enrichment pipeline,
where they are retried, counted or turned into a None result.
"""

from typing import Any


class AnimeListException(Exception):
    """Base exception for all API-facing errors."""

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.error = error
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary."""
        response = {
            "error": self.error,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


class ValidationException(AnimeListException):
    """400 - Malformed request (invalid JSON, missing parameters)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            error="validation_failed",
            message=message,
            status_code=400,
            details=details,
        )


class ParseError(AnimeListException):
    """400 - Import document is not a well-formed MAL export."""

    def __init__(self, message: str):
        super().__init__(
            error="parse_error",
            message=message,
            status_code=400,
        )


class AnimeNotFoundException(AnimeListException):
    """404 - Anime not found."""

    def __init__(self, anime_id: int):
        super().__init__(
            error="not_found",
            message=f"Anime with ID {anime_id} not found",
            status_code=404,
        )


class TagNotFoundException(AnimeListException):
    """404 - Tag not found."""

    def __init__(self, tag_id: int):
        super().__init__(
            error="not_found",
            message=f"Tag with ID {tag_id} not found",
            status_code=404,
        )


class ProtectedTagException(AnimeListException):
    """409 - Status/type/studio/genre tags cannot be deleted by the user."""

    def __init__(self, tag_name: str, category: str):
        super().__init__(
            error="protected_tag",
            message=f"Cannot delete {category} tag '{tag_name}'",
            status_code=409,
            details={"category": category},
        )


class TagConflictException(AnimeListException):
    """409 - Tag name already in use."""

    def __init__(self, tag_name: str):
        super().__init__(
            error="conflict",
            message=f"Tag '{tag_name}' already exists",
            status_code=409,
        )


class PayloadTooLargeException(AnimeListException):
    """413 - Upload size exceeds limit."""

    def __init__(self, max_size: int):
        max_size_mb = max_size / (1024 * 1024)
        super().__init__(
            error="payload_too_large",
            message=f"Maximum upload size exceeded ({max_size_mb:.0f}MB limit)",
            status_code=413,
        )


# ===================
# Pipeline errors
# ===================


class PipelineError(Exception):
    """Base class for errors handled inside the import/enrichment pipeline."""


class TransientStoreError(PipelineError):
    """Storage was busy or locked; the unit of work may succeed if retried."""


class EntryFailure(PipelineError):
    """One import entry could not be reconciled after retries."""

    def __init__(self, title: str | None, reason: str):
        self.title = title
        self.reason = reason
        super().__init__(f'Failed to import "{title or "Unknown"}": {reason}')


class EnrichmentUnavailable(PipelineError):
    """The metadata source has no usable data for a title."""


class RateLimited(EnrichmentUnavailable):
    """The metadata source answered HTTP 429."""


class MalformedResponse(EnrichmentUnavailable):
    """The metadata source answered with an unexpected body."""


class TransientFetchError(EnrichmentUnavailable):
    """Network failure or 5xx from the metadata source."""
