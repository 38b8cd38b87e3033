"""
Repository for Tag database operations.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.models.tag import Tag, TagCategory
from animelist.services.tag_classifier import TagClassifier

logger = logging.getLogger(__name__)


class TagRepository:
    """Tag lookups, race-safe creation and edits on one session."""

    def __init__(self, session: AsyncSession, classifier: TagClassifier | None = None):
        self.session = session
        self.classifier = classifier or TagClassifier()

    async def get_by_id(self, tag_id: int) -> Tag | None:
        return await self.session.get(Tag, tag_id)

    async def get_by_name(self, name: str) -> Tag | None:
        result = await self.session.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()

    async def list_all(self, include_system: bool = True) -> Sequence[Tag]:
        """
        List tags, system categories first, then by name.

        Args:
            include_system: Include status/type/studio/genre tags
        """
        query = select(Tag).order_by(
            Tag.is_status.desc(),
            Tag.is_type.desc(),
            Tag.is_studio.desc(),
            Tag.is_genre.desc(),
            Tag.name.asc(),
        )
        if not include_system:
            query = query.where(
                Tag.is_status.is_(False),
                Tag.is_type.is_(False),
                Tag.is_studio.is_(False),
                Tag.is_genre.is_(False),
            )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def get_or_create(self, name: str, category: TagCategory) -> Tag:
        """
        Fetch the tag named `name`, creating it with `category` if missing.

        The unique constraint on the name arbitrates concurrent creators: the
        insert runs in a SAVEPOINT and a losing insert re-fetches the row the
        winner created. An existing tag keeps its original category and color.
        """
        tag = await self.get_by_name(name)
        if tag is not None:
            return tag

        tag = Tag(
            name=name,
            color_key=self.classifier.color_for(category, name),
            **Tag.flags_for(category),
        )
        try:
            async with self.session.begin_nested():
                self.session.add(tag)
        except IntegrityError:
            logger.debug(f"Tag '{name}' created concurrently, re-fetching")
            tag = await self.get_by_name(name)
            if tag is None:
                raise
        return tag

    async def get_or_create_in(self, name: str, category: TagCategory) -> Tag | None:
        """
        Like get_or_create, but None when `name` already belongs to a tag of
        another category. Callers skip the link in that case.
        """
        tag = await self.get_or_create(name, category)
        if tag.category != category:
            logger.warning(
                f"Tag '{name}' is a {tag.category.value} tag, not linking it as {category.value}"
            )
            return None
        return tag

    async def update(self, tag: Tag, *, name: str | None = None, color_key: str | None = None) -> Tag:
        if name is not None:
            tag.name = name
        if color_key is not None:
            tag.color_key = color_key
        await self.session.flush()
        return tag

    async def delete(self, tag: Tag) -> None:
        await self.session.delete(tag)
        await self.session.flush()
