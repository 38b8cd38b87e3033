"""
Pydantic schemas for request/response validation.
"""

from animelist.schemas.anime import AnimeListResponse, AnimeResponse, SetTagsRequest
from animelist.schemas.enrichment import EnrichmentResult, JikanAnime, PendingAnime, SweepResult
from animelist.schemas.error import ErrorResponse
from animelist.schemas.imports import ImportEntriesRequest, ImportEntry, ImportResult
from animelist.schemas.stats import StatsResponse
from animelist.schemas.tag import TagListResponse, TagResponse, TagUpdate

__all__ = [
    # Import schemas
    "ImportEntry",
    "ImportEntriesRequest",
    "ImportResult",
    # Enrichment schemas
    "JikanAnime",
    "EnrichmentResult",
    "PendingAnime",
    "SweepResult",
    # Library schemas
    "AnimeResponse",
    "AnimeListResponse",
    "SetTagsRequest",
    "TagResponse",
    "TagListResponse",
    "TagUpdate",
    "StatsResponse",
    # Error schemas
    "ErrorResponse",
]
