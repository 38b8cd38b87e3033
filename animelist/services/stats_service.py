"""
Stats service - aggregate statistics over the whole library.

Scores of 0 mean "unscored" and are left out of every average. Tag rankings
consider free-form and genre tags; studios are ranked separately with a
Bayesian average that pulls studios with few scored titles toward the
library-wide average.
"""

from collections import Counter
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.models.anime import Anime
from animelist.models.associations import anime_tags
from animelist.models.tag import Tag
from animelist.schemas.stats import StatsResponse, StudioStat, TagStat
from animelist.services.tag_classifier import CANONICAL_STATUSES, resolve_color

TOP_N = 5
MIN_TAG_COUNT_FOR_RATING = 3
MIN_SCORED_FOR_STUDIO = 2
# Weight of the global average in the studio ranking
BAYESIAN_PRIOR_WEIGHT = 5
MINUTES_PER_EPISODE = 24


@dataclass
class _Tally:
    tag: Tag
    count: int = 0
    score_sum: int = 0
    scored: int = 0

    def add(self, score: int) -> None:
        self.count += 1
        if score > 0:
            self.score_sum += score
            self.scored += 1

    @property
    def avg_score(self) -> float:
        return self.score_sum / self.scored if self.scored else 0.0


class StatsService:
    """Computes library statistics."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def compute(self) -> StatsResponse:
        rows = (
            await self.db.execute(
                select(Anime.id, Anime.my_score, Anime.my_status, Anime.my_watched_episodes)
            )
        ).all()
        scores = {row.id: row.my_score for row in rows}
        scored = [score for score in scores.values() if score > 0]

        total_scored = len(scored)
        avg_score = sum(scored) / total_scored if total_scored else 0.0

        distribution = {score: 0 for score in range(1, 11)}
        for score in scored:
            if score in distribution:
                distribution[score] += 1

        status_breakdown = {status: 0 for status in CANONICAL_STATUSES}
        for row in rows:
            if row.my_status:
                status_breakdown[row.my_status] = status_breakdown.get(row.my_status, 0) + 1

        tag_tallies, studio_tallies = await self._tally_tags(scores)

        total_episodes = sum(row.my_watched_episodes or 0 for row in rows)
        total_hours = round(total_episodes * MINUTES_PER_EPISODE / 60)

        return StatsResponse(
            total_anime=len(rows),
            total_scored=total_scored,
            avg_score=round(avg_score, 2),
            score_distribution=distribution,
            most_common_score=most_common_score(scored),
            top_tags=self._top_tags(tag_tallies),
            highest_rated_tags=self._highest_rated_tags(tag_tallies),
            best_studios=self._best_studios(studio_tallies, avg_score),
            status_breakdown=status_breakdown,
            total_episodes=total_episodes,
            total_hours=total_hours,
            total_days=round(total_hours / 24, 1),
        )

    async def _tally_tags(self, scores: dict[int, int]) -> tuple[list[_Tally], list[_Tally]]:
        result = await self.db.execute(
            select(anime_tags.c.anime_id, Tag)
            .join(Tag, Tag.id == anime_tags.c.tag_id)
            .where(Tag.is_status.is_(False), Tag.is_type.is_(False))
        )
        tags: dict[int, _Tally] = {}
        studios: dict[int, _Tally] = {}
        for anime_id, tag in result.all():
            bucket = studios if tag.is_studio else tags
            tally = bucket.setdefault(tag.id, _Tally(tag))
            tally.add(scores.get(anime_id, 0))
        return list(tags.values()), list(studios.values())

    @staticmethod
    def _tag_stat(tally: _Tally) -> TagStat:
        return TagStat(
            id=tally.tag.id,
            name=tally.tag.name,
            color=resolve_color(tally.tag.color_key),
            count=tally.count,
            avg_score=round(tally.avg_score, 2),
        )

    def _top_tags(self, tallies: list[_Tally]) -> list[TagStat]:
        ranked = sorted(tallies, key=lambda t: (-t.count, t.tag.name))
        return [self._tag_stat(t) for t in ranked[:TOP_N]]

    def _highest_rated_tags(self, tallies: list[_Tally]) -> list[TagStat]:
        eligible = [t for t in tallies if t.count >= MIN_TAG_COUNT_FOR_RATING]
        ranked = sorted(eligible, key=lambda t: (-t.avg_score, t.tag.name))
        return [self._tag_stat(t) for t in ranked[:TOP_N]]

    @staticmethod
    def _best_studios(tallies: list[_Tally], global_avg: float) -> list[StudioStat]:
        stats = []
        for tally in tallies:
            if tally.scored < MIN_SCORED_FOR_STUDIO:
                continue
            weighted = bayesian_average(tally.scored, tally.avg_score, global_avg)
            stats.append(
                StudioStat(
                    id=tally.tag.id,
                    name=tally.tag.name,
                    count=tally.scored,
                    avg_score=round(tally.avg_score, 2),
                    weighted_score=round(weighted, 2),
                )
            )
        stats.sort(key=lambda s: (-s.weighted_score, s.name))
        return stats[:TOP_N]


def most_common_score(scored: list[int]) -> int | None:
    """Score with the highest count; ties go to the higher score."""
    if not scored:
        return None
    counts = Counter(scored)
    return max(counts, key=lambda score: (counts[score], score))


def bayesian_average(count: int, avg: float, global_avg: float, prior_weight: int = BAYESIAN_PRIOR_WEIGHT) -> float:
    """(n*avg + m*global) / (n + m)"""
    return (count * avg + prior_weight * global_avg) / (count + prior_weight)
