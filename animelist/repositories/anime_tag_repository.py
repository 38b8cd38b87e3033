"""
Repository for Anime-Tag association operations.
"""

from collections.abc import Iterable

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.models.associations import anime_tags
from animelist.models.tag import Tag, TagCategory


def _category_condition(category: TagCategory):
    """SQL condition selecting tags of one category."""
    if category == TagCategory.CUSTOM:
        return and_(
            Tag.is_status.is_(False),
            Tag.is_type.is_(False),
            Tag.is_studio.is_(False),
            Tag.is_genre.is_(False),
        )
    return Tag.flag_column(category).is_(True)


class AnimeTagRepository:
    """Link and unlink tags on titles."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def tag_ids(self, anime_id: int, category: TagCategory | None = None) -> set[int]:
        """Ids of the tags linked to a title, optionally limited to one category."""
        query = (
            select(anime_tags.c.tag_id)
            .join(Tag, Tag.id == anime_tags.c.tag_id)
            .where(anime_tags.c.anime_id == anime_id)
        )
        if category is not None:
            query = query.where(_category_condition(category))
        result = await self.session.execute(query)
        return set(result.scalars().all())

    async def remove_category(self, anime_id: int, category: TagCategory) -> int:
        """Unlink every tag of one category from a title."""
        category_tags = select(Tag.id).where(_category_condition(category))
        result = await self.session.execute(
            delete(anime_tags).where(
                anime_tags.c.anime_id == anime_id,
                anime_tags.c.tag_id.in_(category_tags),
            )
        )
        return result.rowcount or 0

    async def remove(self, anime_id: int, tag_ids: Iterable[int]) -> int:
        tag_ids = list(tag_ids)
        if not tag_ids:
            return 0
        result = await self.session.execute(
            delete(anime_tags).where(
                anime_tags.c.anime_id == anime_id,
                anime_tags.c.tag_id.in_(tag_ids),
            )
        )
        return result.rowcount or 0

    async def link(self, anime_id: int, tag_id: int) -> bool:
        """
        Link a tag to a title if not already linked.

        Returns:
            True if a new link was inserted
        """
        existing = await self.session.execute(
            select(anime_tags.c.tag_id).where(
                anime_tags.c.anime_id == anime_id,
                anime_tags.c.tag_id == tag_id,
            )
        )
        if existing.first() is not None:
            return False
        await self.session.execute(insert(anime_tags).values(anime_id=anime_id, tag_id=tag_id))
        return True
