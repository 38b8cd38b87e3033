"""
Tag endpoints.
"""

from fastapi import APIRouter, Query, status

from animelist.dependencies import DbSession
from animelist.schemas.tag import TagListResponse, TagResponse, TagUpdate
from animelist.services.tag_service import TagService

router = APIRouter()


@router.get("", response_model=TagListResponse)
async def list_tags(
    db: DbSession,
    includeSystem: bool = Query(default=True, description="Include status/type/studio/genre tags"),
):
    """
    List tags.

    System tags come first (status, type, studio, genre), then free-form
    tags, each group ordered by name.
    """
    service = TagService(db)
    tags, total = await service.list_all(include_system=includeSystem)
    return TagListResponse(items=[TagResponse.from_tag(tag) for tag in tags], total=total)


@router.patch("/{tag_id}", response_model=TagResponse)
async def update_tag(tag_id: int, body: TagUpdate, db: DbSession):
    """
    Rename and/or recolor a tag.

    The color key must be one of the palette keys.
    """
    service = TagService(db)
    tag = await service.update(tag_id, name=body.name, color_key=body.color_key)
    return TagResponse.from_tag(tag)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag_id: int, db: DbSession):
    """
    Delete a free-form tag.

    Status, type, studio and genre tags are managed automatically and
    cannot be deleted (409).
    """
    service = TagService(db)
    await service.delete(tag_id)
