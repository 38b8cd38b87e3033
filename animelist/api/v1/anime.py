"""
Anime endpoints - browse, tag and delete titles.
"""

from fastapi import APIRouter, Query
from pydantic import ValidationError

from animelist.core.exceptions import ValidationException
from animelist.dependencies import Classifier, DbSession
from animelist.schemas.anime import (
    AnimeListResponse,
    AnimeResponse,
    AnimeSearchParams,
    AnimeSortField,
    SetTagsRequest,
    SortOrder,
)
from animelist.services.anime_service import AnimeService

router = APIRouter()


def _parse_int_list(value: str | None, field: str) -> list[int]:
    """Parse a comma-separated list of integers."""
    if not value:
        return []
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise ValidationException(
            f"{field} must be a comma-separated list of integers",
            details={field: value},
        )


@router.get("", response_model=AnimeListResponse)
async def list_anime(
    db: DbSession,
    search: str | None = Query(default=None, description="Substring of the title or English title"),
    scores: str | None = Query(default=None, description="Comma-separated exact scores"),
    minScore: int | None = Query(default=None, ge=0, le=10, description="Minimum score"),
    maxScore: int | None = Query(default=None, ge=0, le=10, description="Maximum score"),
    tags: str | None = Query(default=None, description="Comma-separated tag ids (all required)"),
    sortBy: AnimeSortField = Query(default=AnimeSortField.TITLE, description="Sort field"),
    sortOrder: SortOrder = Query(default=SortOrder.ASC, description="Sort direction"),
):
    """
    List titles with filters.

    Supports filtering by:
    - Search text (title or English title)
    - Exact scores and a score range
    - Tags (every listed tag id must be present)
    """
    try:
        params = AnimeSearchParams(
            search=search,
            scores=_parse_int_list(scores, "scores"),
            min_score=minScore,
            max_score=maxScore,
            tag_ids=_parse_int_list(tags, "tags"),
            sort_by=sortBy,
            sort_order=sortOrder,
        )
    except ValidationError as e:
        raise ValidationException("Invalid search parameters", details={"errors": e.errors()})

    service = AnimeService(db)
    animes, total = await service.search(params)
    return AnimeListResponse(
        items=[AnimeResponse.from_anime(anime) for anime in animes],
        total=total,
    )


@router.get("/{anime_id}", response_model=AnimeResponse)
async def get_anime(anime_id: int, db: DbSession):
    """Get one title with its tags."""
    service = AnimeService(db)
    anime = await service.get_by_id(anime_id)
    return AnimeResponse.from_anime(anime)


@router.put("/{anime_id}/tags", response_model=AnimeResponse)
async def set_anime_tags(
    anime_id: int,
    body: SetTagsRequest,
    db: DbSession,
    classifier: Classifier,
):
    """
    Replace the free-form tags of a title.

    Unknown names are created with a random custom color. Names of status,
    type, studio or genre tags are rejected.
    """
    service = AnimeService(db, classifier)
    anime = await service.set_tags(anime_id, body.tags)
    return AnimeResponse.from_anime(anime)


@router.delete("/{anime_id}", status_code=204)
async def delete_anime(anime_id: int, db: DbSession):
    """Delete a title and its tag links."""
    service = AnimeService(db)
    await service.delete(anime_id)
    return None
