"""Core utilities and exceptions for the anime list service."""

from animelist.core.exceptions import (
    AnimeListException,
    AnimeNotFoundException,
    EnrichmentUnavailable,
    EntryFailure,
    MalformedResponse,
    ParseError,
    PayloadTooLargeException,
    PipelineError,
    ProtectedTagException,
    RateLimited,
    TagConflictException,
    TagNotFoundException,
    TransientFetchError,
    TransientStoreError,
    ValidationException,
)
from animelist.core.retry import RetryPolicy

__all__ = [
    "AnimeListException",
    "AnimeNotFoundException",
    "EnrichmentUnavailable",
    "EntryFailure",
    "MalformedResponse",
    "ParseError",
    "PayloadTooLargeException",
    "PipelineError",
    "ProtectedTagException",
    "RateLimited",
    "RetryPolicy",
    "TagConflictException",
    "TagNotFoundException",
    "TransientFetchError",
    "TransientStoreError",
    "ValidationException",
]
