"""
Association tables for many-to-many relationships.
"""

from sqlalchemy import Column, ForeignKey, Integer, Table

from animelist.db.base import Base

# Anime-Tag many-to-many association table, unique on (anime_id, tag_id)
anime_tags = Table(
    "anime_tags",
    Base.metadata,
    Column(
        "anime_id",
        Integer,
        ForeignKey("anime.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)
