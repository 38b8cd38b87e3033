"""
Repositories: the persistence boundary of the import pipeline and services.
"""

from animelist.repositories.anime_repository import AnimeRepository
from animelist.repositories.anime_tag_repository import AnimeTagRepository
from animelist.repositories.tag_repository import TagRepository

__all__ = ["AnimeRepository", "AnimeTagRepository", "TagRepository"]
