"""
Pydantic schemas for Anime request/response validation.
"""

import enum
from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from animelist.models.anime import Anime
from animelist.schemas.tag import TagResponse


class AnimeSortField(str, enum.Enum):
    """Sortable columns, by their API name."""
    TITLE = "title"
    MY_SCORE = "myScore"
    EPISODES = "episodes"
    MY_WATCHED_EPISODES = "myWatchedEpisodes"
    TYPE = "type"
    YEAR = "year"
    MAL_ID = "malId"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class AnimeSearchParams(BaseModel):
    """Parsed query parameters of the anime list endpoint."""

    search: str | None = None
    scores: list[int] = Field(default_factory=list)
    min_score: int | None = Field(default=None, ge=0, le=10)
    max_score: int | None = Field(default=None, ge=0, le=10)
    tag_ids: list[int] = Field(default_factory=list)
    sort_by: AnimeSortField = AnimeSortField.TITLE
    sort_order: SortOrder = SortOrder.ASC


class AnimeResponse(BaseModel):
    """Response schema for a single title with its tags."""

    id: int
    mal_id: int = Field(alias="malId")
    title: str
    title_english: str | None = Field(default=None, alias="titleEnglish")
    title_japanese: str | None = Field(default=None, alias="titleJapanese")
    type: str | None = None
    episodes: int | None = None
    my_score: int = Field(alias="myScore")
    my_status: str | None = Field(default=None, alias="myStatus")
    my_watched_episodes: int = Field(alias="myWatchedEpisodes")
    my_start_date: date | None = Field(default=None, alias="myStartDate")
    my_finish_date: date | None = Field(default=None, alias="myFinishDate")
    my_rewatching: bool = Field(alias="myRewatching")
    my_rewatching_ep: int = Field(alias="myRewatchingEp")
    data_fetched: bool = Field(alias="dataFetched")
    image_url: str | None = Field(default=None, alias="imageUrl")
    synopsis: str | None = None
    trailer_url: str | None = Field(default=None, alias="trailerUrl")
    year: int | None = None
    tags: list[TagResponse] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_anime(cls, anime: Anime) -> "AnimeResponse":
        return cls(
            id=anime.id,
            mal_id=anime.mal_id,
            title=anime.title,
            title_english=anime.title_english,
            title_japanese=anime.title_japanese,
            type=anime.type,
            episodes=anime.episodes,
            my_score=anime.my_score,
            my_status=anime.my_status,
            my_watched_episodes=anime.my_watched_episodes,
            my_start_date=anime.my_start_date,
            my_finish_date=anime.my_finish_date,
            my_rewatching=anime.my_rewatching,
            my_rewatching_ep=anime.my_rewatching_ep,
            data_fetched=anime.data_fetched,
            image_url=anime.image_url,
            synopsis=anime.synopsis,
            trailer_url=anime.trailer_url,
            year=anime.year,
            tags=[TagResponse.from_tag(tag) for tag in anime.tags],
        )


class AnimeListResponse(BaseModel):
    """Response schema for anime listing."""

    items: list[AnimeResponse]
    total: int


class SetTagsRequest(BaseModel):
    """Replacement set of free-form tag names for one title."""

    tags: list[str] = Field(default_factory=list)
