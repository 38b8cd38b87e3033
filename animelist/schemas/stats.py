"""
Pydantic schemas for library statistics.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _StatsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TagStat(_StatsModel):
    """Usage of one tag across the library."""

    id: int
    name: str
    color: str
    count: int
    avg_score: float = 0.0


class StudioStat(_StatsModel):
    """Ranking entry for one studio."""

    id: int
    name: str
    count: int
    avg_score: float
    weighted_score: float


class StatsResponse(_StatsModel):
    total_anime: int = 0
    total_scored: int = 0
    avg_score: float = 0.0
    score_distribution: dict[int, int] = Field(default_factory=dict)
    most_common_score: int | None = None
    top_tags: list[TagStat] = Field(default_factory=list)
    highest_rated_tags: list[TagStat] = Field(default_factory=list)
    best_studios: list[StudioStat] = Field(default_factory=list)
    status_breakdown: dict[str, int] = Field(default_factory=dict)
    total_episodes: int = 0
    total_hours: int = 0
    total_days: float = 0.0
