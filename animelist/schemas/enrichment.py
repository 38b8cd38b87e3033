"""
Pydantic schemas for metadata enrichment.

JikanAnime validates the `data` object of a Jikan v4 /anime/{id} response;
only the fields the service stores are declared. The remaining schemas are
API responses.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _JikanModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class JikanImage(_JikanModel):
    image_url: str | None = None
    large_image_url: str | None = None


class JikanImages(_JikanModel):
    jpg: JikanImage | None = None


class JikanTrailer(_JikanModel):
    url: str | None = None


class JikanNamedResource(_JikanModel):
    name: str


class JikanAnime(_JikanModel):
    """The subset of a Jikan anime record used for enrichment."""

    mal_id: int | None = None
    title_english: str | None = None
    title_japanese: str | None = None
    images: JikanImages | None = None
    synopsis: str | None = None
    trailer: JikanTrailer | None = None
    year: int | None = None
    studios: list[JikanNamedResource] = Field(default_factory=list)
    genres: list[JikanNamedResource] = Field(default_factory=list)

    @property
    def image_url(self) -> str | None:
        if self.images is None or self.images.jpg is None:
            return None
        return self.images.jpg.large_image_url or self.images.jpg.image_url

    @property
    def trailer_url(self) -> str | None:
        return self.trailer.url if self.trailer else None

    @property
    def studio_names(self) -> list[str]:
        return _unique_names(self.studios)

    @property
    def genre_names(self) -> list[str]:
        return _unique_names(self.genres)


def _unique_names(resources: list[JikanNamedResource]) -> list[str]:
    names: list[str] = []
    for resource in resources:
        name = resource.name.strip()
        if name and name not in names:
            names.append(name)
    return names


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EnrichmentResult(_CamelModel):
    """Metadata stored for one title after a successful fetch."""

    anime_id: int
    mal_id: int
    title: str
    title_english: str | None = None
    title_japanese: str | None = None
    image_url: str | None = None
    synopsis: str | None = None
    trailer_url: str | None = None
    year: int | None = None
    studios: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)


class FetchOneResponse(_CamelModel):
    success: bool
    result: EnrichmentResult | None = None


class PendingAnime(_CamelModel):
    """A title enrichment has not attempted yet."""

    id: int
    mal_id: int
    title: str


class PendingListResponse(_CamelModel):
    items: list[PendingAnime]
    total: int


class SweepResult(_CamelModel):
    """Aggregate outcome of one enrichment sweep."""

    total: int = 0
    updated: int = 0
    failed: int = 0
