"""
Anime List API

Imports a MyAnimeList watch-history export into a tagged, searchable
library and enriches it with catalog metadata from the Jikan API.
"""

__version__ = "1.0.0"
