"""
Tag service - Business logic for tag operations.
"""

import logging
from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from animelist.core.exceptions import (
    ProtectedTagException,
    TagConflictException,
    TagNotFoundException,
    ValidationException,
)
from animelist.models.tag import Tag
from animelist.repositories.tag_repository import TagRepository
from animelist.services.tag_classifier import is_valid_color_key, reserved_category

logger = logging.getLogger(__name__)


class TagService:
    """Service class for tag operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tags = TagRepository(db)

    async def list_all(self, include_system: bool = True) -> tuple[Sequence[Tag], int]:
        """
        List tags, system categories first.

        Returns:
            Tuple of (list of tags, total count)
        """
        tags = await self.tags.list_all(include_system=include_system)
        return tags, len(tags)

    async def get_by_id(self, tag_id: int) -> Tag:
        tag = await self.tags.get_by_id(tag_id)
        if tag is None:
            raise TagNotFoundException(tag_id)
        return tag

    async def update(
        self,
        tag_id: int,
        name: str | None = None,
        color_key: str | None = None,
    ) -> Tag:
        """
        Rename and/or recolor a tag.

        Any tag may be renamed or recolored; its category never changes. A
        status, type or genre name can only go to a tag of that category.

        Raises:
            TagNotFoundException: If the tag does not exist
            TagConflictException: If another tag already has the new name
            ValidationException: If the name is blank, reserved for another
                category, or the color key unknown
        """
        tag = await self.get_by_id(tag_id)

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationException("Tag name must not be empty")
            if name != tag.name:
                owner = reserved_category(name)
                if owner is not None and owner != tag.category:
                    raise ValidationException(
                        f"Tag name '{name}' is reserved for {owner.value} tags",
                        details={"name": name, "category": owner.value},
                    )
                existing = await self.tags.get_by_name(name)
                if existing is not None:
                    raise TagConflictException(name)
            else:
                name = None

        if color_key is not None and not is_valid_color_key(color_key):
            raise ValidationException(
                f"Unknown color key '{color_key}'",
                details={"colorKey": color_key},
            )

        try:
            return await self.tags.update(tag, name=name, color_key=color_key)
        except IntegrityError as e:
            raise TagConflictException(name or tag.name) from e

    async def delete(self, tag_id: int) -> None:
        """
        Delete a free-form tag and unlink it everywhere.

        Raises:
            TagNotFoundException: If the tag does not exist
            ProtectedTagException: If the tag is a status/type/studio/genre tag
        """
        tag = await self.get_by_id(tag_id)
        if not tag.is_custom:
            raise ProtectedTagException(tag.name, tag.category.value)
        await self.tags.delete(tag)
        logger.info(f"Deleted tag '{tag.name}'")
