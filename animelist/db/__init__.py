"""Database module for the anime list service."""

from animelist.db.base import Base
from animelist.db.session import Database, get_database, get_db, is_busy_error

__all__ = ["Base", "Database", "get_database", "get_db", "is_busy_error"]
