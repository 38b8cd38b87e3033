"""
Anime service - Business logic for browsing and curating the library.
Handles listing with filters, lookups, deletion and free-form tag edits.
"""

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.core.exceptions import AnimeNotFoundException, ValidationException
from animelist.models.anime import Anime
from animelist.models.associations import anime_tags
from animelist.models.tag import TagCategory
from animelist.repositories.anime_repository import AnimeRepository
from animelist.repositories.anime_tag_repository import AnimeTagRepository
from animelist.repositories.tag_repository import TagRepository
from animelist.schemas.anime import AnimeSearchParams, AnimeSortField, SortOrder
from animelist.services.tag_classifier import RESERVED_NAME_CATEGORIES, TagClassifier

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    AnimeSortField.TITLE: Anime.title,
    AnimeSortField.MY_SCORE: Anime.my_score,
    AnimeSortField.EPISODES: Anime.episodes,
    AnimeSortField.MY_WATCHED_EPISODES: Anime.my_watched_episodes,
    AnimeSortField.TYPE: Anime.type,
    AnimeSortField.YEAR: Anime.year,
    AnimeSortField.MAL_ID: Anime.mal_id,
}

# Status, type and genre names stay reserved even before such a tag exists
RESERVED_TAG_NAMES = frozenset(RESERVED_NAME_CATEGORIES)


def normalize_tag_names(names: Iterable[str]) -> list[str]:
    """Strip names, drop blanks and duplicates, keep first-seen order."""
    normalized: list[str] = []
    for name in names:
        stripped = name.strip()
        if stripped and stripped not in normalized:
            normalized.append(stripped)
    return normalized


class AnimeService:
    """Service class for anime operations."""

    def __init__(self, db: AsyncSession, classifier: TagClassifier | None = None):
        self.db = db
        self.classifier = classifier or TagClassifier()
        self.animes = AnimeRepository(db)
        self.tags = TagRepository(db, self.classifier)
        self.links = AnimeTagRepository(db)

    async def get_by_id(self, anime_id: int) -> Anime:
        """
        Get a title with its tags.

        Raises:
            AnimeNotFoundException: If the title does not exist
        """
        anime = await self.animes.get_by_id(anime_id)
        if anime is None:
            raise AnimeNotFoundException(anime_id)
        return anime

    async def search(self, params: AnimeSearchParams) -> tuple[Sequence[Anime], int]:
        """
        Filter and sort titles.

        Args:
            params: Search parameters

        Returns:
            Tuple of (list of titles, total count)
        """
        conditions = []

        if params.search:
            search_term = f"%{params.search}%"
            conditions.append(
                or_(
                    Anime.title.ilike(search_term),
                    Anime.title_english.ilike(search_term),
                )
            )

        if params.scores:
            conditions.append(Anime.my_score.in_(params.scores))
        if params.min_score is not None:
            conditions.append(Anime.my_score >= params.min_score)
        if params.max_score is not None:
            conditions.append(Anime.my_score <= params.max_score)

        # Every requested tag must be linked
        if params.tag_ids:
            tag_ids = set(params.tag_ids)
            tag_subquery = (
                select(anime_tags.c.anime_id)
                .where(anime_tags.c.tag_id.in_(tag_ids))
                .group_by(anime_tags.c.anime_id)
                .having(func.count(func.distinct(anime_tags.c.tag_id)) == len(tag_ids))
            )
            conditions.append(Anime.id.in_(tag_subquery))

        query = select(Anime)
        count_query = select(func.count(Anime.id))
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        count_result = await self.db.execute(count_query)
        total = count_result.scalar() or 0

        column = SORT_COLUMNS[params.sort_by]
        ordering = column.desc() if params.sort_order == SortOrder.DESC else column.asc()
        query = query.order_by(ordering.nulls_last(), Anime.id.asc())

        result = await self.db.execute(query)
        return result.scalars().all(), total

    async def delete(self, anime_id: int) -> None:
        """
        Delete a title and its tag links.

        Raises:
            AnimeNotFoundException: If the title does not exist
        """
        anime = await self.animes.get_by_id(anime_id, with_tags=False)
        if anime is None:
            raise AnimeNotFoundException(anime_id)
        await self.animes.delete(anime)
        logger.info(f"Deleted anime {anime_id} (MAL {anime.mal_id})")

    async def set_tags(self, anime_id: int, names: Iterable[str]) -> Anime:
        """
        Replace the free-form tags of a title.

        Links missing from `names` are removed, new ones are added, and
        unknown names are created as free-form tags with a custom color.
        Status, type, studio and genre links are untouched.

        Raises:
            AnimeNotFoundException: If the title does not exist
            ValidationException: If a name belongs to a managed tag
        """
        anime = await self.animes.get_by_id(anime_id, with_tags=False)
        if anime is None:
            raise AnimeNotFoundException(anime_id)

        # Validate every name before creating anything
        existing = {}
        for name in normalize_tag_names(names):
            if name in RESERVED_TAG_NAMES:
                raise ValidationException(
                    f"Tag '{name}' is managed automatically",
                    details={"tag": name},
                )
            tag = await self.tags.get_by_name(name)
            if tag is not None and not tag.is_custom:
                raise ValidationException(
                    f"Tag '{name}' is a {tag.category.value} tag and is managed automatically",
                    details={"tag": name, "category": tag.category.value},
                )
            existing[name] = tag

        wanted_ids: set[int] = set()
        for name, tag in existing.items():
            if tag is None:
                tag = await self.tags.get_or_create(name, TagCategory.CUSTOM)
            wanted_ids.add(tag.id)

        current_ids = await self.links.tag_ids(anime_id, TagCategory.CUSTOM)
        removed = await self.links.remove(anime_id, current_ids - wanted_ids)
        added = 0
        for tag_id in wanted_ids - current_ids:
            if await self.links.link(anime_id, tag_id):
                added += 1

        logger.debug(f"Set tags on anime {anime_id}: +{added} -{removed}")

        # Reload so the response carries the new tag set
        self.db.expire(anime)
        return await self.get_by_id(anime_id)
