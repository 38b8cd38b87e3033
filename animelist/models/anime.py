"""
Anime SQLAlchemy model.

One row per watched title, keyed by its MyAnimeList catalog id. Fields fall
in two groups: those owned by the import pipeline (overwritten on every
re-import) and those owned by enrichment (only written by the metadata fetch).
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from animelist.db.base import Base

if TYPE_CHECKING:
    from animelist.models.tag import Tag


# Attributes written by reconciliation from an import entry
IMPORT_OWNED_FIELDS = (
    "title",
    "type",
    "episodes",
    "my_score",
    "my_status",
    "my_watched_episodes",
    "my_start_date",
    "my_finish_date",
    "my_rewatching",
    "my_rewatching_ep",
)

# Attributes written only by the enrichment fetcher
ENRICHMENT_OWNED_FIELDS = (
    "title_english",
    "title_japanese",
    "image_url",
    "synopsis",
    "trailer_url",
    "year",
)


class Anime(Base):
    """Watched-media entity."""
    __tablename__ = "anime"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    mal_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True,
        comment="MyAnimeList catalog id (natural key)",
    )

    # ===================
    # Import-owned
    # ===================
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        index=True,
    )
    type: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Media type (TV, Movie, OVA, ...)",
    )
    episodes: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Total episode count, NULL when unknown",
    )
    my_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="0 = unscored, else 1-10",
    )
    my_status: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Canonical watch status",
    )
    my_watched_episodes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    my_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    my_finish_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    my_rewatching: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    my_rewatching_ep: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # ===================
    # Enrichment-owned
    # ===================
    data_fetched: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Set once enrichment was attempted, whatever the outcome",
    )
    title_english: Mapped[str | None] = mapped_column(String(500), nullable=True)
    title_japanese: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    synopsis: Mapped[str | None] = mapped_column(Text, nullable=True)
    trailer_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    tags: Mapped[list["Tag"]] = relationship(
        "Tag",
        secondary="anime_tags",
        lazy="selectin",
        order_by="Tag.name",
    )

    def __repr__(self) -> str:
        return f"<Anime(id={self.id}, mal_id={self.mal_id}, title={self.title})>"
