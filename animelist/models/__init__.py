"""
SQLAlchemy ORM models for the anime list service.
"""

from animelist.models.anime import ENRICHMENT_OWNED_FIELDS, IMPORT_OWNED_FIELDS, Anime
from animelist.models.tag import SYSTEM_OWNED_CATEGORIES, Tag, TagCategory
from animelist.models.associations import anime_tags

__all__ = [
    "Anime",
    "IMPORT_OWNED_FIELDS",
    "ENRICHMENT_OWNED_FIELDS",
    "Tag",
    "TagCategory",
    "SYSTEM_OWNED_CATEGORIES",
    "anime_tags",
]
