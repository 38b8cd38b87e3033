"""
Repository for Anime database operations.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import lazyload

from animelist.models.anime import Anime


class AnimeRepository:
    """Anime lookups and writes on one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, anime_id: int, *, with_tags: bool = True) -> Anime | None:
        query = select(Anime).where(Anime.id == anime_id)
        if not with_tags:
            query = query.options(lazyload(Anime.tags))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_mal_id(self, mal_id: int, *, with_tags: bool = False) -> Anime | None:
        """Look up a title by its natural key."""
        query = select(Anime).where(Anime.mal_id == mal_id)
        if not with_tags:
            query = query.options(lazyload(Anime.tags))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def upsert(self, mal_id: int, values: dict[str, Any]) -> tuple[Anime, bool]:
        """
        Create or overwrite a title keyed by mal_id.

        Only the attributes in `values` are written; everything else on an
        existing row is left alone.

        Returns:
            Tuple of (anime, created)
        """
        anime = await self.get_by_mal_id(mal_id)
        created = anime is None

        if created:
            anime = Anime(mal_id=mal_id, **values)
            self.session.add(anime)
        else:
            for key, value in values.items():
                setattr(anime, key, value)

        await self.session.flush()
        return anime, created

    async def list_unfetched(self, limit: int | None = None) -> Sequence[Anime]:
        """Titles that enrichment has not attempted yet, oldest first."""
        query = (
            select(Anime)
            .options(lazyload(Anime.tags))
            .where(Anime.data_fetched.is_(False))
            .order_by(Anime.id.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def delete(self, anime: Anime) -> None:
        await self.session.delete(anime)
        await self.session.flush()
