"""
Tag SQLAlchemy model.

A tag is either system-managed (status, type, studio, genre) or a free-form
user tag (no category flag). Category flags are set at creation and never
change afterwards.
"""

import enum

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from animelist.db.base import Base


class TagCategory(str, enum.Enum):
    """Tag categories, derived from the flags on a Tag row."""
    STATUS = "status"       # Watching, Completed, On-Hold, Dropped, Plan to Watch
    TYPE = "type"           # TV, Movie, OVA, ONA, Special, Music
    STUDIO = "studio"       # Madhouse, Bones, ...
    GENRE = "genre"         # Action, Drama, Slice of Life, ...
    CUSTOM = "custom"       # Free-form user tags


# Categories whose links the import pipeline recomputes on every re-import
SYSTEM_OWNED_CATEGORIES = (TagCategory.STATUS, TagCategory.TYPE)


class Tag(Base):
    """Classification label attached to anime titles."""
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        index=True,
        comment="Display name (globally unique)",
    )
    is_status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_type: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_studio: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_genre: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    color_key: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="DEFAULT",
        comment="Key into the closed color palette",
    )

    @property
    def category(self) -> TagCategory:
        if self.is_status:
            return TagCategory.STATUS
        if self.is_type:
            return TagCategory.TYPE
        if self.is_studio:
            return TagCategory.STUDIO
        if self.is_genre:
            return TagCategory.GENRE
        return TagCategory.CUSTOM

    @property
    def is_custom(self) -> bool:
        return not (self.is_status or self.is_type or self.is_studio or self.is_genre)

    @classmethod
    def flags_for(cls, category: TagCategory) -> dict[str, bool]:
        """Column values for a new tag of the given category."""
        return {
            "is_status": category == TagCategory.STATUS,
            "is_type": category == TagCategory.TYPE,
            "is_studio": category == TagCategory.STUDIO,
            "is_genre": category == TagCategory.GENRE,
        }

    @classmethod
    def flag_column(cls, category: TagCategory):
        """The boolean column marking a category (None for custom tags)."""
        return {
            TagCategory.STATUS: cls.is_status,
            TagCategory.TYPE: cls.is_type,
            TagCategory.STUDIO: cls.is_studio,
            TagCategory.GENRE: cls.is_genre,
        }.get(category)

    def __repr__(self) -> str:
        return f"<Tag(name={self.name}, category={self.category.value})>"
