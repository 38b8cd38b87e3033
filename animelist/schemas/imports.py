"""
Pydantic schemas for the import pipeline.

ImportEntry is the normalized record the export parser produces and the
batched JSON import path accepts. Its validators are lenient on purpose:
absent or non-numeric numbers become 0, the all-zero date sentinel and
unparsable dates become None, and nothing ever raises on a bad field value.
"""

import math
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ZERO_DATE = "0000-00-00"
DEFAULT_TITLE = "Unknown"


def coerce_int(value: Any) -> int:
    """Integer value of a loosely typed field, 0 when absent or not numeric."""
    if value is None or isinstance(value, bool):
        return int(bool(value))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return 0 if math.isnan(value) or math.isinf(value) else int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0
        try:
            return int(stripped)
        except ValueError:
            pass
        try:
            number = float(stripped)
        except ValueError:
            return 0
        return 0 if math.isnan(number) or math.isinf(number) else int(number)
    return 0


def coerce_date(value: Any) -> date | None:
    """Date value of an export date field, None for the sentinel or junk."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped or stripped == ZERO_DATE:
        return None
    try:
        return date.fromisoformat(stripped[:10])
    except ValueError:
        return None


class ImportEntry(BaseModel):
    """One normalized watch-history entry."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    mal_id: int | None = Field(default=None, description="MyAnimeList catalog id")
    title: str = DEFAULT_TITLE
    media_type: str | None = None
    total_episodes: int | None = None
    watched_episodes: int = 0
    score: int = 0
    status_label: str | None = None
    start_date: date | None = None
    finish_date: date | None = None
    rewatching: bool = False
    rewatch_count: int = 0

    @field_validator("mal_id", mode="before")
    @classmethod
    def _natural_key(cls, value: Any) -> int | None:
        key = coerce_int(value)
        return key if key > 0 else None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_TITLE
        text = str(value).strip()
        return text or DEFAULT_TITLE

    @field_validator("media_type", "status_label", mode="before")
    @classmethod
    def _optional_label(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("total_episodes", mode="before")
    @classmethod
    def _total_episodes(cls, value: Any) -> int | None:
        # 0 means "unknown" in the export
        count = coerce_int(value)
        return count if count > 0 else None

    @field_validator("watched_episodes", "rewatch_count", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return max(coerce_int(value), 0)

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, value: Any) -> int:
        score = coerce_int(value)
        return score if 0 <= score <= 10 else 0

    @field_validator("start_date", "finish_date", mode="before")
    @classmethod
    def _date(cls, value: Any) -> date | None:
        return coerce_date(value)

    @field_validator("rewatching", mode="before")
    @classmethod
    def _rewatching(cls, value: Any) -> bool:
        return coerce_int(value) > 0


class ImportEntriesRequest(BaseModel):
    """
    Body of the batched import path.

    `entries` may be a single entry object or a list of them.
    """

    entries: list[dict[str, Any]] | dict[str, Any] = Field(default_factory=list)

    def normalized(self) -> list[ImportEntry]:
        raw = self.entries if isinstance(self.entries, list) else [self.entries]
        return [ImportEntry.model_validate(item) for item in raw]


class ImportResult(BaseModel):
    """Outcome counts of one import batch."""

    created: int = 0
    updated: int = 0
    failed: int = 0
    total: int = 0
    errors: list[str] = Field(default_factory=list)
