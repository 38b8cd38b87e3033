"""
Pydantic schemas for Tag request/response validation.
"""

from pydantic import BaseModel, ConfigDict, Field

from animelist.models.tag import Tag, TagCategory
from animelist.services.tag_classifier import resolve_color


class TagResponse(BaseModel):
    """Response schema for a single tag."""

    id: int
    name: str
    color: str = Field(description="Hex color resolved from the color key")
    color_key: str = Field(alias="colorKey")
    category: TagCategory
    is_status: bool = Field(alias="isStatus")
    is_type: bool = Field(alias="isType")
    is_studio: bool = Field(alias="isStudio")
    is_genre: bool = Field(alias="isGenre")

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )

    @classmethod
    def from_tag(cls, tag: Tag) -> "TagResponse":
        return cls(
            id=tag.id,
            name=tag.name,
            color=resolve_color(tag.color_key),
            color_key=tag.color_key,
            category=tag.category,
            is_status=tag.is_status,
            is_type=tag.is_type,
            is_studio=tag.is_studio,
            is_genre=tag.is_genre,
        )


class TagListResponse(BaseModel):
    """Response schema for tag listing."""

    items: list[TagResponse]
    total: int


class TagUpdate(BaseModel):
    """Rename and/or recolor a tag."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    color_key: str | None = Field(default=None, alias="colorKey")

    model_config = ConfigDict(populate_by_name=True)
